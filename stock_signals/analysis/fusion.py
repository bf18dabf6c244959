"""Signal fusion: indicator readings -> one directional score.

Each indicator is mapped to a sub-score in [-1, +1] (positive = bullish),
multiplied by its configured weight, and the weighted contributions are
summed.  Indicators that could not be computed drop out.  Once the active
weight reaches ``min_active_weight`` the remaining weights are renormalised
so the score spans -100 .. +100; below it the sum is left on the full
weight scale and no single indicator can carry more than its own weight.

Sub-score rules
---------------
- RSI: +1 at or below ``rsi_oversold``, -1 at or above ``rsi_overbought``,
  linear in between through 0 at the midpoint.
- MACD: sign of the histogram, halved when the MACD line sits on the other
  side of zero (trend still intact, momentum fading).  Unstable readings
  are excluded.
- Moving averages: +1 when price is above both SMA20 and EMA50, -1 when
  below both, 0 when mixed.
- Bollinger: +1 at/below the lower band, -1 at/above the upper band, linear
  partial credit across the outer ``bollinger_partial_zone`` of the half band.
- Momentum: confirms the direction of the other indicators.  It scores
  ``|momentum| / momentum_scale`` (clamped) toward that direction when it
  agrees and 0 when it disagrees, halved on below-average volume.  Only
  when the others cancel out does it push in its own direction.  Momentum
  on its own never counts as enough data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from stock_signals.config import COMPONENTS, DEFAULT_CONFIG, LOG_LEVEL, EngineConfig
from stock_signals.errors import ComputationError
from stock_signals.models import IndicatorSet
from stock_signals.utils.logger import setup_logger

logger = setup_logger("fusion", LOG_LEVEL)

_FLAT_BAND_EPS = 1e-12

# Confirms other indicators; never a signal on its own
_TIE_BREAKER = "momentum"


@dataclass(frozen=True)
class Contribution:
    name: str
    weight: float
    sub_score: float        # -1 .. +1
    active: bool = True

    @property
    def value(self) -> float:
        """Weighted contribution, bounded by the weight."""
        return self.weight * self.sub_score if self.active else 0.0


@dataclass(frozen=True)
class FusedSignal:
    score: float                            # -100 .. +100
    contributions: Tuple[Contribution, ...]
    active_weight: float

    @property
    def primary_weight(self) -> float:
        return sum(c.weight for c in self.contributions if c.active and c.name != _TIE_BREAKER)

    @property
    def insufficient(self) -> bool:
        return self.primary_weight <= 0

    def get(self, name: str) -> Optional[Contribution]:
        for c in self.contributions:
            if c.name == name:
                return c
        return None


def _clamp(x: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


# ---------------------------------------------------------------------------
# Per-indicator sub-scores
# ---------------------------------------------------------------------------
def rsi_sub_score(rsi: float, oversold: float = 30.0, overbought: float = 70.0) -> float:
    mid = (oversold + overbought) / 2.0
    if rsi <= mid:
        return _clamp((mid - rsi) / (mid - oversold))
    return _clamp((mid - rsi) / (overbought - mid))


def macd_sub_score(line: float, histogram: float, fading_factor: float = 0.5) -> float:
    direction = _sign(histogram)
    if direction == 0:
        return 0.0
    if _sign(line) == -direction:
        return direction * fading_factor
    return float(direction)


def moving_average_sub_score(price: float, sma: float, ema: float) -> float:
    if price > sma and price > ema:
        return 1.0
    if price < sma and price < ema:
        return -1.0
    return 0.0


def bollinger_sub_score(price: float, upper: float, middle: float, lower: float,
                        partial_zone: float = 0.5) -> float:
    half_width = (upper - lower) / 2.0
    if half_width <= _FLAT_BAND_EPS:
        return 0.0
    if price <= lower:
        return 1.0
    if price >= upper:
        return -1.0
    z = (price - middle) / half_width
    if abs(z) <= partial_zone:
        return 0.0
    return -_sign(z) * (abs(z) - partial_zone) / (1.0 - partial_zone)


def momentum_sub_score(momentum: float, volume_ratio: Optional[float], scale: float = 10.0,
                       low_volume_factor: float = 0.5, dominant: int = 0) -> float:
    """Momentum as confirmation of ``dominant`` (sign of the other contributions).

    With ``dominant == 0`` momentum breaks the tie in its own direction.
    """
    s = _clamp(momentum / scale)
    if dominant:
        s = abs(s) * dominant if _sign(s) == dominant else 0.0
    if volume_ratio is not None and volume_ratio < 1.0:
        s *= low_volume_factor
    return s


# ---------------------------------------------------------------------------
# Fusion
# ---------------------------------------------------------------------------
def fuse(indicators: IndicatorSet, price: float, config: EngineConfig = DEFAULT_CONFIG) -> FusedSignal:
    """Weight and sum the indicator sub-scores into one score."""
    weights = config.weights.as_dict()
    subs: Dict[str, Optional[float]] = dict.fromkeys(COMPONENTS)

    if indicators.is_available("rsi"):
        subs["rsi"] = rsi_sub_score(indicators.rsi, config.rsi_oversold, config.rsi_overbought)

    macd = indicators.macd
    if macd.stable:
        subs["macd"] = macd_sub_score(macd.line, macd.histogram, config.macd_fading_factor)

    if indicators.sma20 is not None and indicators.ema50 is not None:
        subs["moving_average"] = moving_average_sub_score(price, indicators.sma20, indicators.ema50)

    bb = indicators.bollinger
    if bb is not None:
        subs["bollinger"] = bollinger_sub_score(
            price, bb.upper, bb.middle, bb.lower, config.bollinger_partial_zone,
        )

    if indicators.momentum is not None:
        dominant = _sign(sum(
            weights[name] * _clamp(s) for name, s in subs.items() if s is not None
        ))
        subs["momentum"] = momentum_sub_score(
            indicators.momentum, indicators.volume_ratio,
            scale=config.momentum_scale,
            low_volume_factor=config.low_volume_factor,
            dominant=dominant,
        )

    contributions = tuple(
        Contribution(
            name=name,
            weight=weights[name],
            sub_score=_clamp(subs[name]) if subs[name] is not None else 0.0,
            active=subs[name] is not None,
        )
        for name in COMPONENTS
    )
    active_weight = sum(c.weight for c in contributions if c.active)
    fused = FusedSignal(score=0.0, contributions=contributions, active_weight=active_weight)
    if fused.insufficient:
        return fused

    # Thin coverage stays on the full weight scale
    scale = active_weight if active_weight >= config.min_active_weight else 1.0
    raw = 100.0 * sum(c.value for c in contributions) / scale
    if not math.isfinite(raw):
        raise ComputationError(f"fused score is not finite: {raw}")
    score = _clamp(raw, -100.0, 100.0)
    logger.debug(
        "Fused score %.2f over weight %.2f (%s)", score, active_weight,
        ", ".join(f"{c.name}={c.sub_score:+.2f}" for c in contributions if c.active),
    )
    return FusedSignal(score=score, contributions=contributions, active_weight=active_weight)
