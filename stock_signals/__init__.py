"""stock-signals: deterministic technical-analysis recommendations.

    >>> from stock_signals import StockAnalysisEngine
    >>> from stock_signals.data import generate_random_walk
    >>> rec = StockAnalysisEngine().analyze("ACME", generate_random_walk(252))
    >>> rec.signal in {"BUY", "HOLD", "SELL"}
    True
"""

from stock_signals.analysis.engine import StockAnalysisEngine, analyze
from stock_signals.config import EngineConfig, FusionWeights
from stock_signals.errors import ComputationError, InsufficientDataWarning, MalformedInputError
from stock_signals.models import (
    AnalysisResult,
    BollingerBands,
    IndicatorSet,
    MACDReading,
    PricePoint,
    PriceSeries,
    Recommendation,
)

__version__ = "0.1.0"
