"""Default configuration parameters for the time-series store and indicator ensemble."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RSIParams:
    """Relative Strength Index parameters."""
    period: int = 14


@dataclass(frozen=True)
class MACDParams:
    """MACD parameters."""
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


@dataclass(frozen=True)
class BollingerParams:
    """Bollinger Bands parameters."""
    period: int = 20
    std_dev: float = 2.0


@dataclass(frozen=True)
class MovingAverageParams:
    """Moving average crossover parameters."""
    fast_period: int = 10
    slow_period: int = 21


@dataclass(frozen=True)
class VolumeParams:
    """Volume analysis parameters."""
    period: int = 20


@dataclass(frozen=True)
class StochasticParams:
    """Stochastic oscillator parameters."""
    k_period: int = 14
    d_period: int = 3


@dataclass(frozen=True)
class WilliamsRParams:
    """Williams %R parameters."""
    period: int = 14


@dataclass(frozen=True)
class IchimokuParams:
    """Ichimoku cloud parameters."""
    conversion_period: int = 9       # Tenkan-sen
    base_period: int = 26            # Kijun-sen
    span_b_period: int = 52          # Senkou Span B
    displacement: int = 26           # Chikou reference offset


@dataclass(frozen=True)
class ADXParams:
    """Average Directional Index parameters."""
    period: int = 14


@dataclass(frozen=True)
class CCIParams:
    """Commodity Channel Index parameters."""
    period: int = 20


@dataclass(frozen=True)
class ParabolicSARParams:
    """Parabolic SAR parameters."""
    acceleration_factor: float = 0.02
    max_acceleration_factor: float = 0.2
    acceleration_increment: float = 0.02


@dataclass(frozen=True)
class EnsembleWeights:
    """Per-indicator ensemble weights; unknown indicators weigh 1.0."""
    rsi: float = 1.0
    macd: float = 1.2
    bollinger: float = 1.0
    moving_average: float = 1.1
    volume: float = 1.3
    stochastic: float = 1.0
    williams_r: float = 0.9
    ichimoku: float = 1.5
    adx: float = 1.4
    cci: float = 1.1
    parabolic_sar: float = 1.2

    def weight_for(self, indicator_name: str) -> float:
        """Weight for an indicator name, 1.0 when unknown."""
        return float(getattr(self, indicator_name, 1.0))


DEFAULT_INSTRUMENTS = ("XMR", "RVN", "BEL", "DOGE", "KAS", "SAL")


@dataclass(frozen=True)
class StoreParams:
    """Rolling time-series store parameters."""
    retention: int = 1440                      # Max points kept per instrument
    update_interval_seconds: float = 300.0     # Live collection cadence
    snapshot_interval_seconds: float = 300.0   # Snapshot cadence, independent of collection
    backfill_resolution: int = 5               # Bar resolution in minutes
    backfill_count: int = 180                  # Bars requested when no snapshot exists
    min_analysis_points: int = 52              # Points needed before analysis is meaningful
    instruments: tuple[str, ...] = field(default=DEFAULT_INSTRUMENTS)


@dataclass(frozen=True)
class PersistenceParams:
    """Snapshot persistence parameters."""
    data_dir: str = "data/pairs"
    cleanup_max_age_hours: float = 168.0
    discard_corrupt: bool = True


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    rsi: RSIParams
    macd: MACDParams
    bollinger: BollingerParams
    moving_average: MovingAverageParams
    volume: VolumeParams
    stochastic: StochasticParams
    williams_r: WilliamsRParams
    ichimoku: IchimokuParams
    adx: ADXParams
    cci: CCIParams
    parabolic_sar: ParabolicSARParams
    weights: EnsembleWeights
    store: StoreParams
    persistence: PersistenceParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        rsi=RSIParams(),
        macd=MACDParams(),
        bollinger=BollingerParams(),
        moving_average=MovingAverageParams(),
        volume=VolumeParams(),
        stochastic=StochasticParams(),
        williams_r=WilliamsRParams(),
        ichimoku=IchimokuParams(),
        adx=ADXParams(),
        cci=CCIParams(),
        parabolic_sar=ParabolicSARParams(),
        weights=EnsembleWeights(),
        store=StoreParams(),
        persistence=PersistenceParams(),
    )
