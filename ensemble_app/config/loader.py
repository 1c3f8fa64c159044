"""Configuration loader: YAML overrides over dataclass defaults, plus the runtime instrument list."""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

import structlog
import yaml

from ..errors import ConfigurationError, ValidationError
from ..data.validators import normalize_symbol
from .defaults import DefaultConfig, get_default_config
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)

SETTINGS_FILE = "settings.yaml"
INSTRUMENTS_FILE = "instruments.yaml"


@dataclass(frozen=True)
class ConfigLoader:
    """Loads settings with 2-tier precedence and persists the tracked instrument list."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def _read_yaml(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{filename} must contain a mapping")
        return data

    def load_settings(self) -> dict[str, Any]:
        """Load the settings file overrides, empty when absent."""
        return self._read_yaml(SETTINGS_FILE)

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Explicit overrides (highest priority)
        2. settings.yaml
        3. Dataclass defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_settings())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def build_config(self, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """
        Merge, validate and materialize the configuration.

        Raises:
            ConfigurationError: If any merged value fails validation
        """
        merged = self.merge_config(overrides)
        issues = ConfigValidator.validate_config(merged)
        if issues:
            logger.error("Configuration validation failed",
                         issue_count=len(issues),
                         fields=[issue.field for issue in issues])
            raise ConfigurationError("Invalid configuration", issues=issues)

        sections = {}
        for section in fields(DefaultConfig):
            default_section = getattr(self.defaults, section.name)
            section_cls = type(default_section)
            known = {f.name for f in fields(section_cls)}
            values = {k: v for k, v in merged.get(section.name, {}).items() if k in known}
            if "instruments" in values:
                values["instruments"] = tuple(normalize_symbol(s) for s in values["instruments"])
            sections[section.name] = section_cls(**values)

        return DefaultConfig(**sections)

    def load_instruments(self) -> list[str]:
        """
        Load the runtime instrument list, falling back to configured defaults.

        Raises:
            ConfigurationError: If the stored list contains invalid symbols
        """
        data = self._read_yaml(INSTRUMENTS_FILE)
        symbols = data.get("instruments")

        if symbols is None:
            return list(self.defaults.store.instruments)

        issues = ConfigValidator.validate_instruments(symbols)
        if issues:
            raise ConfigurationError("Invalid runtime instrument list", issues=issues)

        return _dedupe(normalize_symbol(s) for s in symbols)

    def save_instruments(self, symbols: Iterable[str], updated_by: str = "api") -> list[str]:
        """
        Persist the runtime instrument list.

        Returns:
            The normalized list that was written

        Raises:
            ValidationError: If any symbol is malformed
        """
        normalized = _dedupe(normalize_symbol(s) for s in symbols)
        if not normalized:
            raise ValidationError("Instrument list must not be empty", field="instruments", value=[])

        self.config_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "instruments": normalized,
            "last_updated": datetime.now(timezone.utc).isoformat(),
            "updated_by": updated_by,
        }
        with open(self.config_dir / INSTRUMENTS_FILE, "w") as f:
            yaml.safe_dump(payload, f, sort_keys=False)

        logger.info("Runtime instrument list saved", instruments=normalized, updated_by=updated_by)
        return normalized

    def reset_instruments(self) -> list[str]:
        """Restore the default instrument list."""
        return self.save_instruments(self.defaults.store.instruments, updated_by="reset")

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, tuple):
                    result[field_name] = list(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def _dedupe(symbols: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(symbols))
