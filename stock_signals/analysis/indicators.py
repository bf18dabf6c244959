"""Technical indicator calculator.

Every function here is a pure function of a price (or volume) array and
reads only the trailing window ending at the last element.  Standard
indicator math runs through TA-Lib; the short-history fallbacks and
division-by-zero guards are handled around it:

=============  ======================  ====================================
Indicator      Needs                   Fallback
=============  ======================  ====================================
RSI            period + 1 points       50.0 (neutral)
EMA / SMA      period points           None, excluded from fusion
MACD           slow + signal points    signal = line, histogram = 0
Bollinger      period points           None, excluded from fusion
Momentum       period + 1 points       None, excluded from fusion
=============  ======================  ====================================
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np
import talib

from stock_signals.config import DEFAULT_CONFIG, LOG_LEVEL, EngineConfig
from stock_signals.errors import InsufficientDataWarning
from stock_signals.models import BollingerBands, IndicatorSet, MACDReading, PriceSeries
from stock_signals.utils.logger import setup_logger

logger = setup_logger("indicators", LOG_LEVEL)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
RSI_NEUTRAL = 50.0


def _last(values: np.ndarray) -> Optional[float]:
    if len(values) == 0:
        return None
    val = float(values[-1])
    return None if np.isnan(val) else val


def _as_array(values) -> np.ndarray:
    return np.ascontiguousarray(values, dtype=np.float64)


# ---------------------------------------------------------------------------
# Momentum oscillators
# ---------------------------------------------------------------------------
def compute_rsi(close, period: int = 14) -> float:
    """Wilder RSI at the last point.

    A window with only gains reads 100 and one with only losses reads 0.
    Returns ``RSI_NEUTRAL`` when fewer than ``period + 1`` closes exist or
    when the price never moved at all.
    """
    close = _as_array(close)
    if len(close) < period + 1:
        return RSI_NEUTRAL
    if not np.any(np.diff(close)):
        return RSI_NEUTRAL
    val = _last(talib.RSI(close, timeperiod=period))
    if val is None:
        return RSI_NEUTRAL
    return float(min(100.0, max(0.0, val)))


def compute_momentum(close, period: int = 10) -> Optional[float]:
    """Percent change over *period* bars: ``(p_t - p_{t-n}) / p_{t-n} * 100``."""
    close = _as_array(close)
    if len(close) < period + 1:
        return None
    base = float(close[-(period + 1)])
    if base == 0:
        return 0.0
    return (float(close[-1]) - base) / base * 100.0


# ---------------------------------------------------------------------------
# Moving averages
# ---------------------------------------------------------------------------
def ema_series(values, period: int) -> np.ndarray:
    """Full EMA series (alpha = 2 / (period + 1), seeded by the first SMA).

    The first ``period - 1`` entries are NaN.
    """
    values = _as_array(values)
    if len(values) < period:
        return np.full(len(values), np.nan)
    return talib.EMA(values, timeperiod=period)


def compute_ema(close, period: int) -> Optional[float]:
    return _last(ema_series(close, period))


def compute_sma(close, period: int) -> Optional[float]:
    """Mean of the trailing *period* closes, or None with less history."""
    close = _as_array(close)
    if len(close) < period:
        return None
    return _last(talib.SMA(close, timeperiod=period))


def compute_macd(close, fast: int = 12, slow: int = 26, signal: int = 9) -> MACDReading:
    """MACD line, signal line and histogram at the last point.

    The line is ``EMA(fast) - EMA(slow)`` over the whole series and the
    signal line is an EMA of that line.  With fewer than ``slow + signal``
    closes the signal line is set equal to the line (histogram 0) and the
    reading is marked unstable; with fewer than ``slow`` closes everything
    is zero.
    """
    close = _as_array(close)
    if len(close) < slow:
        return MACDReading(0.0, 0.0, 0.0, stable=False)

    line_series = ema_series(close, fast) - ema_series(close, slow)
    line_series = line_series[slow - 1:]
    line = float(line_series[-1])

    if len(close) < slow + signal:
        return MACDReading(line, line, 0.0, stable=False)

    signal_val = _last(ema_series(line_series, signal))
    if signal_val is None:
        return MACDReading(line, line, 0.0, stable=False)
    return MACDReading(line, signal_val, line - signal_val, stable=True)


# ---------------------------------------------------------------------------
# Volatility
# ---------------------------------------------------------------------------
def compute_bollinger(close, period: int = 20, k: float = 2.0) -> Optional[BollingerBands]:
    """SMA(period) +- k population standard deviations."""
    close = _as_array(close)
    if len(close) < period:
        return None
    upper, middle, lower = talib.BBANDS(
        close, timeperiod=period, nbdevup=k, nbdevdn=k, matype=0,
    )
    u, m, lo = _last(upper), _last(middle), _last(lower)
    if u is None or m is None or lo is None:
        return None
    return BollingerBands(upper=u, middle=m, lower=lo)


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------
def compute_volume_ratio(volume, period: int = 20) -> Optional[float]:
    """Latest volume over its trailing average.

    The window is clamped to the available history.
    """
    volume = _as_array(volume)
    if len(volume) < 2:
        return None
    window = volume[-min(period, len(volume)):]
    avg = float(np.mean(window))
    if avg <= 0:
        return None
    return float(volume[-1]) / avg


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
def compute_indicators(series: PriceSeries, config: EngineConfig = DEFAULT_CONFIG) -> IndicatorSet:
    """Compute every indicator at the latest point of *series*.

    Indicators that lack history degrade per the module table and are
    listed in ``IndicatorSet.shortfalls``.
    """
    close = series.closes()
    n = len(close)
    shortfalls: List[InsufficientDataWarning] = []

    def _need(name: str, required: int) -> None:
        if n < required:
            shortfalls.append(InsufficientDataWarning(name, required, n))

    _need("rsi", config.rsi_period + 1)
    _need("macd", config.macd_slow + config.macd_signal)
    _need("sma20", config.sma_short)
    _need("sma50", config.sma_medium)
    _need("sma200", config.sma_long)
    _need("ema50", config.ema_period)
    _need("bollinger", config.bollinger_period)
    _need("momentum", config.momentum_period + 1)

    indicators = IndicatorSet(
        rsi=compute_rsi(close, config.rsi_period),
        macd=compute_macd(close, config.macd_fast, config.macd_slow, config.macd_signal),
        sma20=compute_sma(close, config.sma_short),
        sma50=compute_sma(close, config.sma_medium),
        sma200=compute_sma(close, config.sma_long),
        ema50=compute_ema(close, config.ema_period),
        bollinger=compute_bollinger(close, config.bollinger_period, config.bollinger_k),
        momentum=compute_momentum(close, config.momentum_period),
        volume_ratio=compute_volume_ratio(series.volumes(), config.volume_period),
        data_points=n,
        shortfalls=tuple(shortfalls),
    )
    for w in shortfalls:
        logger.debug("%s degraded: %d of %d points", w.indicator, w.available, w.required)
    return indicators
