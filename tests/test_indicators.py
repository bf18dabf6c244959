"""Tests for stock_signals.analysis.indicators -- RSI, EMA/SMA, MACD, Bollinger, momentum."""

import numpy as np
import pytest

from stock_signals.analysis.indicators import (
    RSI_NEUTRAL,
    compute_bollinger,
    compute_ema,
    compute_indicators,
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_sma,
    compute_volume_ratio,
    ema_series,
)
from stock_signals.data.synthetic import generate_random_walk, generate_trend


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _random_closes(n=252, seed=42):
    np.random.seed(seed)
    return 150.0 * np.exp(np.cumsum(np.random.normal(0.0004, 0.015, n)))


def _manual_ema(values, period):
    """Reference EMA: SMA seed then EMA_t = a * p_t + (1 - a) * EMA_{t-1}."""
    alpha = 2.0 / (period + 1)
    out = np.full(len(values), np.nan)
    ema = float(np.mean(values[:period]))
    out[period - 1] = ema
    for i in range(period, len(values)):
        ema = alpha * values[i] + (1 - alpha) * ema
        out[i] = ema
    return out


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------

class TestRSI:

    def test_strictly_increasing_series_near_100(self):
        close = np.arange(1.0, 16.0)          # 15 points
        assert compute_rsi(close, 14) > 95

    def test_strictly_decreasing_series_near_0(self):
        close = np.arange(15.0, 0.0, -1.0)
        assert compute_rsi(close, 14) < 5

    def test_only_gains_reads_exactly_100(self):
        assert compute_rsi(np.linspace(10, 20, 40), 14) == pytest.approx(100.0)

    def test_too_short_is_neutral(self):
        assert compute_rsi(np.arange(1.0, 15.0), 14) == RSI_NEUTRAL

    def test_flat_series_is_neutral(self):
        assert compute_rsi(np.full(30, 100.0), 14) == RSI_NEUTRAL

    def test_bounded_on_random_walk(self):
        for seed in range(5):
            val = compute_rsi(_random_closes(seed=seed), 14)
            assert 0.0 <= val <= 100.0

    def test_accepts_plain_lists(self):
        assert compute_rsi(list(range(1, 31)), 14) == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# Moving averages
# ---------------------------------------------------------------------------

class TestMovingAverages:

    def test_ema_matches_reference_recurrence(self):
        close = _random_closes()
        assert compute_ema(close, 50) == pytest.approx(_manual_ema(close, 50)[-1], rel=1e-9)

    def test_ema_seed_is_simple_average(self):
        close = _random_closes(n=50)
        assert compute_ema(close, 50) == pytest.approx(np.mean(close), rel=1e-9)

    def test_ema_series_leading_values_are_nan(self):
        series = ema_series(_random_closes(n=30), 12)
        assert np.isnan(series[:11]).all()
        assert not np.isnan(series[11:]).any()

    def test_ema_insufficient_returns_none(self):
        assert compute_ema(_random_closes(n=49), 50) is None

    def test_sma_is_trailing_mean(self):
        close = _random_closes()
        assert compute_sma(close, 20) == pytest.approx(np.mean(close[-20:]), rel=1e-9)
        assert compute_sma(close, 200) == pytest.approx(np.mean(close[-200:]), rel=1e-9)

    def test_sma_insufficient_returns_none(self):
        assert compute_sma(_random_closes(n=19), 20) is None


# ---------------------------------------------------------------------------
# MACD
# ---------------------------------------------------------------------------

class TestMACD:

    def test_line_is_fast_minus_slow_ema(self):
        close = _random_closes()
        macd = compute_macd(close)
        expected = _manual_ema(close, 12)[-1] - _manual_ema(close, 26)[-1]
        assert macd.line == pytest.approx(expected, rel=1e-6, abs=1e-9)

    def test_signal_is_ema_of_line_series(self):
        close = _random_closes()
        line_series = (_manual_ema(close, 12) - _manual_ema(close, 26))[25:]
        macd = compute_macd(close)
        assert macd.stable
        assert macd.signal == pytest.approx(_manual_ema(line_series, 9)[-1], rel=1e-6, abs=1e-9)
        assert macd.histogram == pytest.approx(macd.line - macd.signal, abs=1e-12)

    def test_degraded_signal_falls_back_to_line(self):
        macd = compute_macd(_random_closes(n=30))
        assert not macd.stable
        assert macd.signal == macd.line
        assert macd.histogram == 0.0

    def test_stable_from_slow_plus_signal_points(self):
        assert compute_macd(_random_closes(n=35)).stable
        assert not compute_macd(_random_closes(n=34)).stable

    def test_shorter_than_slow_period_is_zero(self):
        macd = compute_macd(_random_closes(n=20))
        assert (macd.line, macd.signal, macd.histogram) == (0.0, 0.0, 0.0)
        assert not macd.stable

    def test_uptrend_has_positive_line(self):
        macd = compute_macd(np.linspace(50, 100, 60))
        assert macd.line > 0


# ---------------------------------------------------------------------------
# Bollinger Bands
# ---------------------------------------------------------------------------

class TestBollinger:

    def test_bands_use_population_std(self):
        close = _random_closes()
        bb = compute_bollinger(close, 20, 2.0)
        window = close[-20:]
        assert bb.middle == pytest.approx(np.mean(window), rel=1e-9)
        assert bb.upper - bb.middle == pytest.approx(2 * np.std(window, ddof=0), rel=1e-6)
        assert bb.middle - bb.lower == pytest.approx(2 * np.std(window, ddof=0), rel=1e-6)

    def test_flat_series_collapses_bands(self):
        bb = compute_bollinger(np.full(25, 100.0))
        assert bb.upper == pytest.approx(100.0)
        assert bb.lower == pytest.approx(100.0)
        assert bb.bandwidth == pytest.approx(0.0, abs=1e-12)

    def test_insufficient_returns_none(self):
        assert compute_bollinger(_random_closes(n=19)) is None

    def test_bandwidth_relative_to_middle(self):
        bb = compute_bollinger(_random_closes())
        assert bb.bandwidth == pytest.approx((bb.upper - bb.lower) / bb.middle)


# ---------------------------------------------------------------------------
# Momentum and volume
# ---------------------------------------------------------------------------

class TestMomentum:

    def test_percent_change_over_period(self):
        close = np.array([100.0] + [0.0] * 9 + [110.0])
        close[1:10] = 105.0
        assert compute_momentum(close, 10) == pytest.approx(10.0)

    def test_negative_momentum(self):
        close = np.linspace(100, 80, 21)
        expected = (80.0 - close[-11]) / close[-11] * 100
        assert compute_momentum(close, 10) == pytest.approx(expected)

    def test_insufficient_returns_none(self):
        assert compute_momentum(np.arange(1.0, 11.0), 10) is None

    def test_zero_base_price_reads_zero(self):
        close = np.array([0.0] + [1.0] * 10)
        assert compute_momentum(close, 10) == 0.0


class TestVolumeRatio:

    def test_constant_volume_is_one(self):
        assert compute_volume_ratio(np.full(30, 1e6)) == pytest.approx(1.0)

    def test_spike_is_above_one(self):
        vol = np.full(30, 1e6)
        vol[-1] = 3e6
        assert compute_volume_ratio(vol) > 1.0

    def test_window_clamped_to_history(self):
        assert compute_volume_ratio(np.array([1.0, 3.0])) == pytest.approx(1.5)

    def test_single_point_or_zero_volume_is_none(self):
        assert compute_volume_ratio(np.array([5.0])) is None
        assert compute_volume_ratio(np.zeros(10)) is None


# ---------------------------------------------------------------------------
# compute_indicators
# ---------------------------------------------------------------------------

class TestComputeIndicators:

    def test_full_history_has_no_shortfalls(self):
        ind = compute_indicators(generate_random_walk(252, seed=1))
        assert ind.shortfalls == ()
        assert ind.sma200 is not None
        assert ind.ema50 is not None
        assert ind.macd.stable
        assert ind.data_points == 252

    def test_thirty_points_degrade_long_indicators(self):
        ind = compute_indicators(generate_trend(100, 70, days=30))
        names = {w.indicator for w in ind.shortfalls}
        assert names == {"macd", "sma50", "sma200", "ema50"}
        assert ind.sma20 is not None
        assert ind.bollinger is not None
        assert ind.sma50 is None and ind.sma200 is None and ind.ema50 is None

    def test_five_points_degrade_everything(self):
        ind = compute_indicators(generate_trend(100, 104, days=5))
        names = {w.indicator for w in ind.shortfalls}
        assert names == {"rsi", "macd", "sma20", "sma50", "sma200", "ema50", "bollinger", "momentum"}
        assert ind.rsi == RSI_NEUTRAL
        assert ind.momentum is None
        assert not ind.is_available("rsi")

    def test_shortfall_records_counts(self):
        ind = compute_indicators(generate_trend(100, 70, days=30))
        macd = next(w for w in ind.shortfalls if w.indicator == "macd")
        assert (macd.required, macd.available) == (35, 30)

    def test_pure_function(self):
        series = generate_random_walk(120, seed=3)
        assert compute_indicators(series) == compute_indicators(series)
