"""Tests for stock_signals.data.synthetic."""

import numpy as np
import pytest

from stock_signals.data.synthetic import generate_random_walk, generate_trend


class TestRandomWalk:

    def test_same_seed_same_series(self):
        assert generate_random_walk(100, seed=7) == generate_random_walk(100, seed=7)

    def test_different_seed_different_series(self):
        a = generate_random_walk(100, seed=7).closes()
        b = generate_random_walk(100, seed=8).closes()
        assert not np.allclose(a, b)

    def test_ohlc_consistency(self):
        for p in generate_random_walk(252, seed=1):
            assert p.low <= min(p.open, p.close) <= max(p.open, p.close) <= p.high
            assert p.volume >= 1_000_000

    def test_business_days_strictly_increasing(self):
        series = generate_random_walk(30)
        dates = [p.date for p in series]
        assert all(d.weekday() < 5 for d in dates)
        assert dates == sorted(set(dates))

    def test_rejects_zero_days(self):
        with pytest.raises(ValueError):
            generate_random_walk(0)


class TestTrend:

    def test_endpoints(self):
        closes = generate_trend(100.0, 70.0, days=30).closes()
        assert closes[0] == pytest.approx(100.0)
        assert closes[-1] == pytest.approx(70.0)
        assert np.all(np.diff(closes) < 0)

    def test_constant_volume(self):
        vols = generate_trend(1.0, 2.0, days=10, volume=5.0).volumes()
        assert np.all(vols == 5.0)
