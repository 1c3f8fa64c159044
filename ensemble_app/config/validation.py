"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from ..data.validators import is_valid_symbol

# Integer parameters that must be strictly positive, per config section
POSITIVE_INT_FIELDS = {
    "rsi": ("period",),
    "macd": ("fast_period", "slow_period", "signal_period"),
    "bollinger": ("period",),
    "moving_average": ("fast_period", "slow_period"),
    "volume": ("period",),
    "stochastic": ("k_period", "d_period"),
    "williams_r": ("period",),
    "ichimoku": ("conversion_period", "base_period", "span_b_period", "displacement"),
    "adx": ("period",),
    "cci": ("period",),
    "store": ("retention", "backfill_resolution", "backfill_count", "min_analysis_points"),
}


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation problem."""
    field: str
    message: str
    value: Any


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_periods(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate that every window length is a positive integer."""
        issues = []

        for section, fields in POSITIVE_INT_FIELDS.items():
            params = config.get(section, {})
            for name in fields:
                if name in params and not _is_positive_int(params[name]):
                    issues.append(ConfigIssue(
                        field=f"{section}.{name}",
                        message="Must be a positive integer",
                        value=params[name]
                    ))

        macd = config.get("macd", {})
        if _is_positive_int(macd.get("fast_period")) and _is_positive_int(macd.get("slow_period")):
            if macd["fast_period"] >= macd["slow_period"]:
                issues.append(ConfigIssue(
                    field="macd.fast_period",
                    message="Must be smaller than slow_period",
                    value=macd["fast_period"]
                ))

        return issues

    @staticmethod
    def validate_bollinger_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate Bollinger Bands parameters."""
        issues = []

        if "std_dev" in params and not _is_positive_number(params["std_dev"]):
            issues.append(ConfigIssue(
                field="bollinger.std_dev",
                message="Must be a positive number",
                value=params["std_dev"]
            ))

        return issues

    @staticmethod
    def validate_parabolic_sar_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate acceleration factor settings."""
        issues = []

        for name in ("acceleration_factor", "max_acceleration_factor", "acceleration_increment"):
            if name in params and not _is_positive_number(params[name]):
                issues.append(ConfigIssue(
                    field=f"parabolic_sar.{name}",
                    message="Must be a positive number",
                    value=params[name]
                ))

        start = params.get("acceleration_factor")
        maximum = params.get("max_acceleration_factor")
        if _is_positive_number(start) and _is_positive_number(maximum) and start > maximum:
            issues.append(ConfigIssue(
                field="parabolic_sar.acceleration_factor",
                message="Must not exceed max_acceleration_factor",
                value=start
            ))

        return issues

    @staticmethod
    def validate_weights(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate ensemble weights are non-negative numbers."""
        issues = []

        for name, value in params.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                issues.append(ConfigIssue(
                    field=f"weights.{name}",
                    message="Must be a non-negative number",
                    value=value
                ))

        return issues

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate timer intervals and the default instrument list."""
        issues = []

        for name in ("update_interval_seconds", "snapshot_interval_seconds"):
            if name in params and not _is_positive_number(params[name]):
                issues.append(ConfigIssue(
                    field=f"store.{name}",
                    message="Must be a positive number of seconds",
                    value=params[name]
                ))

        if "instruments" in params:
            issues.extend(ConfigValidator.validate_instruments(params["instruments"], "store.instruments"))

        return issues

    @staticmethod
    def validate_instruments(symbols: Any, field: str = "instruments") -> list[ConfigIssue]:
        """Validate a list of instrument symbols."""
        if not isinstance(symbols, (list, tuple)):
            return [ConfigIssue(field=field, message="Must be a list of symbols", value=symbols)]

        issues = []
        for symbol in symbols:
            normalized = symbol.strip().upper() if isinstance(symbol, str) else symbol
            if not is_valid_symbol(normalized):
                issues.append(ConfigIssue(
                    field=field,
                    message="Symbols must be 2-10 letters or digits",
                    value=symbol
                ))

        return issues

    @staticmethod
    def validate_persistence_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate snapshot persistence parameters."""
        issues = []

        if "data_dir" in params and (not isinstance(params["data_dir"], str) or not params["data_dir"]):
            issues.append(ConfigIssue(
                field="persistence.data_dir",
                message="Must be a non-empty path",
                value=params["data_dir"]
            ))

        if "cleanup_max_age_hours" in params and not _is_positive_number(params["cleanup_max_age_hours"]):
            issues.append(ConfigIssue(
                field="persistence.cleanup_max_age_hours",
                message="Must be a positive number of hours",
                value=params["cleanup_max_age_hours"]
            ))

        return issues

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        issues = []

        issues.extend(ConfigValidator.validate_periods(config))

        if "bollinger" in config:
            issues.extend(ConfigValidator.validate_bollinger_params(config["bollinger"]))

        if "parabolic_sar" in config:
            issues.extend(ConfigValidator.validate_parabolic_sar_params(config["parabolic_sar"]))

        if "weights" in config:
            issues.extend(ConfigValidator.validate_weights(config["weights"]))

        if "store" in config:
            issues.extend(ConfigValidator.validate_store_params(config["store"]))

        if "persistence" in config:
            issues.extend(ConfigValidator.validate_persistence_params(config["persistence"]))

        return issues
