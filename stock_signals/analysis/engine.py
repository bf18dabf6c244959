"""Stock analysis engine: price history in, recommendation out.

Runs indicator calculation, signal fusion and recommendation resolution
once per call.  The engine holds nothing but its configuration, so
concurrent calls on different inputs need no coordination.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from stock_signals.analysis.fusion import fuse
from stock_signals.analysis.indicators import compute_indicators
from stock_signals.analysis.recommendation import resolve
from stock_signals.config import DEFAULT_CONFIG, LOG_LEVEL, EngineConfig
from stock_signals.errors import ComputationError, MalformedInputError
from stock_signals.models import AnalysisResult, PriceSeries, Recommendation
from stock_signals.utils.logger import setup_logger

logger = setup_logger("engine", LOG_LEVEL)


class StockAnalysisEngine:
    """Deterministic technical-analysis recommender."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    def analyze(self, symbol: str, series: Any) -> Recommendation:
        """Analyse *series* (PriceSeries, OHLCV DataFrame or records).

        Raises:
            MalformedInputError: the input cannot be interpreted as a price
                history.  Short but valid input never raises; it yields a
                HOLD recommendation instead.
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise MalformedInputError("symbol must be a non-empty string", field="symbol")
        try:
            prices = PriceSeries.coerce(series)
        except MalformedInputError as exc:
            logger.warning("Rejected input for %s: %s", symbol, exc)
            raise

        latest = prices.latest
        indicators = compute_indicators(prices, self.config)
        fused = fuse(indicators, latest.close, self.config)
        rec = resolve(symbol, latest.close, indicators, fused, self.config, as_of=latest.date)

        logger.info(
            "%s: %s (confidence %.1f, score %+.1f, %d points)",
            symbol, rec.signal, rec.confidence, rec.score, len(prices),
        )
        return rec

    def try_analyze(self, symbol: str, series: Any) -> AnalysisResult:
        """Like ``analyze`` but reports failures as a result instead of raising."""
        try:
            return AnalysisResult(symbol=symbol, recommendation=self.analyze(symbol, series))
        except (MalformedInputError, ComputationError) as exc:
            return AnalysisResult(symbol=symbol, error=exc.to_dict())

    def analyze_batch(self, series_by_symbol: Mapping[str, Any]) -> Dict[str, AnalysisResult]:
        """Analyse several symbols one after another; failures stay per-symbol."""
        results: Dict[str, AnalysisResult] = {}
        for symbol, series in series_by_symbol.items():
            results[symbol] = self.try_analyze(symbol, series)
        failed = sum(1 for r in results.values() if not r.ok)
        if failed:
            logger.warning("Batch finished: %d of %d symbols failed", failed, len(results))
        return results


def analyze(symbol: str, series: Any, config: Optional[EngineConfig] = None) -> Recommendation:
    """Analyse one symbol with a throwaway engine."""
    return StockAnalysisEngine(config).analyze(symbol, series)
