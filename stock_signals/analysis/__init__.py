from .indicators import (
    compute_bollinger,
    compute_ema,
    compute_indicators,
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_sma,
    compute_volume_ratio,
)
from .fusion import FusedSignal, Contribution, fuse
from .recommendation import (
    assess_risk,
    compute_confidence,
    compute_target_price,
    infer_time_horizon,
    resolve,
    resolve_signal,
)
from .engine import StockAnalysisEngine, analyze
