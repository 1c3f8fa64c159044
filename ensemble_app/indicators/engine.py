"""Runs every indicator calculator against one history with per-indicator isolation."""

from typing import Any, Optional

import structlog

from ..config.defaults import DefaultConfig, get_default_config
from ..logging.config import log_indicator_result
from ..models.signals import IndicatorResult
from .adx import ADXIndicator
from .base import BaseIndicator
from .bollinger import BollingerBandsIndicator
from .cci import CCIIndicator
from .ichimoku import IchimokuIndicator
from .macd import MACDIndicator
from .moving_average import MovingAverageCrossoverIndicator
from .parabolic_sar import ParabolicSARIndicator
from .rsi import RSIIndicator
from .stochastic import StochasticIndicator
from .volume import VolumeIndicator
from .williams_r import WilliamsRIndicator

logger = structlog.get_logger(__name__)


def build_indicators(config: DefaultConfig) -> list[BaseIndicator]:
    """Instantiate the eleven calculators from configuration."""
    return [
        RSIIndicator(period=config.rsi.period),
        MACDIndicator(
            fast_period=config.macd.fast_period,
            slow_period=config.macd.slow_period,
            signal_period=config.macd.signal_period,
        ),
        BollingerBandsIndicator(period=config.bollinger.period, std_dev=config.bollinger.std_dev),
        MovingAverageCrossoverIndicator(
            fast_period=config.moving_average.fast_period,
            slow_period=config.moving_average.slow_period,
        ),
        VolumeIndicator(period=config.volume.period),
        StochasticIndicator(k_period=config.stochastic.k_period, d_period=config.stochastic.d_period),
        WilliamsRIndicator(period=config.williams_r.period),
        IchimokuIndicator(
            conversion_period=config.ichimoku.conversion_period,
            base_period=config.ichimoku.base_period,
            span_b_period=config.ichimoku.span_b_period,
            displacement=config.ichimoku.displacement,
        ),
        ADXIndicator(period=config.adx.period),
        CCIIndicator(period=config.cci.period),
        ParabolicSARIndicator(
            acceleration_factor=config.parabolic_sar.acceleration_factor,
            max_acceleration_factor=config.parabolic_sar.max_acceleration_factor,
            acceleration_increment=config.parabolic_sar.acceleration_increment,
        ),
    ]


class IndicatorEngine:
    """Coordinates all indicator calculators."""

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        indicators: Optional[list[BaseIndicator]] = None
    ):
        self.config = config or get_default_config()
        self.indicators = indicators if indicators is not None else build_indicators(self.config)

    @property
    def indicator_names(self) -> list[str]:
        return [indicator.name for indicator in self.indicators]

    @property
    def min_data_points(self) -> int:
        """Points needed before every indicator can run."""
        return max((indicator.min_data_points for indicator in self.indicators), default=0)

    def calculate_all(self, history: Any, symbol: Optional[str] = None) -> dict[str, IndicatorResult]:
        """
        Calculate every indicator. Never raises.

        Args:
            history: History or mapping of ``closes/highs/lows/volumes``
            symbol: Instrument symbol, used for logging only

        Returns:
            One result per indicator, keyed by name. Failed indicators map to
            a neutral hold result whose ``error`` describes the failure.
        """
        results = {}

        for indicator in self.indicators:
            outcome = indicator.evaluate(history)
            if outcome.is_success:
                result = outcome.result
            else:
                result = indicator.neutral_result(str(outcome.error))

            results[indicator.name] = result
            log_indicator_result(
                logger,
                symbol=symbol or "unknown",
                indicator_name=indicator.name,
                suggestion=result.suggestion.value,
                confidence=result.confidence,
                error=result.error,
            )

        valid = sum(1 for result in results.values() if result.is_valid)
        logger.debug("Indicators calculated", symbol=symbol, valid=valid, total=len(results))
        return results
