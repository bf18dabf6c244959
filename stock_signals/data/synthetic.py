"""Synthetic price histories for demos and tests.

Stands in for a market-data feed: a seeded geometric Brownian motion and a
straight-line trend, both returned as ``PriceSeries`` on business days.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from stock_signals.models import PricePoint, PriceSeries


def _build_series(close: np.ndarray, start: str, volume: np.ndarray,
                  spread: float, rng: Optional[np.random.Generator]) -> PriceSeries:
    n = len(close)
    dates = pd.bdate_range(start=start, periods=n)
    if rng is not None and spread > 0:
        high = close * (1 + np.abs(rng.normal(spread, spread, n)))
        low = close * (1 - np.abs(rng.normal(spread, spread, n)))
        open_ = close * (1 + rng.normal(0, spread, n))
    else:
        high = close * (1 + spread)
        low = close * (1 - spread)
        open_ = close.copy()
    low = np.clip(low, 0.0, None)
    open_ = np.clip(open_, 0.0, None)
    points = tuple(
        PricePoint(
            date=dates[i].date(),
            open=float(open_[i]),
            high=float(max(high[i], open_[i], close[i])),
            low=float(min(low[i], open_[i], close[i])),
            close=float(close[i]),
            volume=float(volume[i]),
        )
        for i in range(n)
    )
    return PriceSeries(points)


def generate_random_walk(
    days: int = 252,
    start_price: float = 150.0,
    drift: float = 0.0004,
    volatility: float = 0.015,
    seed: int = 42,
    start: str = "2023-01-02",
) -> PriceSeries:
    """Geometric Brownian motion closes with noisy OHLC and volume.

    Defaults give a ~150 start, ~0.04% daily drift and ~1.5% daily vol.
    The same seed always produces the same series.
    """
    if days < 1:
        raise ValueError("days must be >= 1")
    rng = np.random.default_rng(seed)
    log_returns = rng.normal(drift, volatility, days)
    close = start_price * np.exp(np.cumsum(log_returns))
    volume = rng.integers(1_000_000, 10_000_000, days).astype(float)
    return _build_series(close, start, volume, spread=0.003, rng=rng)


def generate_trend(
    start_price: float,
    end_price: float,
    days: int = 30,
    volume: float = 1_000_000.0,
    start: str = "2023-01-02",
) -> PriceSeries:
    """Closes moving in a straight line from *start_price* to *end_price*.

    Volume is constant and OHLC collapse onto the close.
    """
    if days < 1:
        raise ValueError("days must be >= 1")
    close = np.linspace(start_price, end_price, days)
    return _build_series(close, start, np.full(days, float(volume)), spread=0.0, rng=None)
