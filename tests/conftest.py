"""Shared pytest fixtures for the stock-signals test suite.

Synthetic price data only, with fixed seeds for reproducibility.
"""

import pytest

from stock_signals.analysis.engine import StockAnalysisEngine
from stock_signals.config import EngineConfig
from stock_signals.data.synthetic import generate_random_walk, generate_trend


# ---------------------------------------------------------------------------
# 1. OHLCV DataFrame fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_ohlcv():
    """252-row OHLCV DataFrame (DatetimeIndex, Open/High/Low/Close/Volume)."""
    return generate_random_walk(days=252, seed=7).to_frame()


# ---------------------------------------------------------------------------
# 2. PriceSeries fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def random_walk():
    return generate_random_walk(days=252, seed=42)


@pytest.fixture
def declining_30():
    """30 days falling linearly from 100 to 70."""
    return generate_trend(100.0, 70.0, days=30)


@pytest.fixture
def rising_30():
    """30 days rising linearly from 70 to 100."""
    return generate_trend(70.0, 100.0, days=30)


@pytest.fixture
def flat_30():
    return generate_trend(100.0, 100.0, days=30)


@pytest.fixture
def short_5():
    return generate_trend(100.0, 104.0, days=5)


# ---------------------------------------------------------------------------
# 3. Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def engine(config):
    return StockAnalysisEngine(config)
