"""
Technical indicator calculators and the weighted ensemble.

Each calculator shares the ``BaseIndicator`` contract; ``IndicatorEngine``
runs all eleven with per-indicator isolation and ``EnsembleAggregator``
combines their results.
"""

from .adx import ADXIndicator
from .base import BaseIndicator
from .bollinger import BollingerBandsIndicator
from .cci import CCIIndicator
from .engine import IndicatorEngine, build_indicators
from .ensemble import EnsembleAggregator
from .ichimoku import IchimokuIndicator
from .macd import MACDIndicator
from .moving_average import MovingAverageCrossoverIndicator
from .parabolic_sar import ParabolicSARIndicator
from .rsi import RSIIndicator
from .stochastic import StochasticIndicator
from .volume import VolumeIndicator
from .williams_r import WilliamsRIndicator

__all__ = [
    "ADXIndicator",
    "BaseIndicator",
    "BollingerBandsIndicator",
    "CCIIndicator",
    "EnsembleAggregator",
    "IchimokuIndicator",
    "IndicatorEngine",
    "MACDIndicator",
    "MovingAverageCrossoverIndicator",
    "ParabolicSARIndicator",
    "RSIIndicator",
    "StochasticIndicator",
    "VolumeIndicator",
    "WilliamsRIndicator",
    "build_indicators",
]
