"""Recommendation resolver: fused score -> BUY / HOLD / SELL.

Turns a ``FusedSignal`` into the final ``Recommendation`` value object:
signal, confidence, target price, risk level, time horizon and reasoning.
All thresholds come from ``EngineConfig``.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from stock_signals.analysis.fusion import FusedSignal
from stock_signals.analysis.reasoning import build_reasoning, describe_insufficient, describe_shortfall
from stock_signals.config import DEFAULT_CONFIG, EngineConfig
from stock_signals.models import IndicatorSet, Recommendation, RiskLevel, SignalType, TimeHorizon

# Contribution groups used to pick the time horizon
_SHORT_TERM = ("rsi", "bollinger")
_LONG_TERM = ("moving_average",)


def resolve_signal(score: float, config: EngineConfig = DEFAULT_CONFIG) -> SignalType:
    if score >= config.buy_threshold:
        return "BUY"
    if score <= config.sell_threshold:
        return "SELL"
    return "HOLD"


def compute_confidence(score: float, signal: SignalType, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Confidence in [0, 100].

    BUY/SELL scale linearly from ``confidence_floor`` at the threshold to
    ``confidence_ceiling`` at |score| = 100.  HOLD is highest at score 0 and
    falls to ``hold_confidence_min`` at the thresholds, so it always stays
    below the BUY/SELL floor.
    """
    magnitude = min(abs(score), 100.0)
    if signal == "HOLD":
        threshold = config.buy_threshold if score >= 0 else abs(config.sell_threshold)
        frac = min(magnitude / threshold, 1.0)
        conf = config.hold_confidence_max - frac * (config.hold_confidence_max - config.hold_confidence_min)
    else:
        threshold = config.buy_threshold if signal == "BUY" else abs(config.sell_threshold)
        frac = max(0.0, (magnitude - threshold) / (100.0 - threshold))
        conf = config.confidence_floor + frac * (config.confidence_ceiling - config.confidence_floor)
    return round(max(0.0, min(100.0, conf)), 1)


def compute_target_price(price: float, signal: SignalType, config: EngineConfig = DEFAULT_CONFIG) -> float:
    if signal == "BUY":
        return price * (1.0 + config.target_premium_up)
    if signal == "SELL":
        return price * (1.0 - config.target_premium_down)
    return price


def assess_risk(indicators: IndicatorSet, config: EngineConfig = DEFAULT_CONFIG) -> RiskLevel:
    """Volatility bucket from Bollinger bandwidth and |momentum|."""
    bandwidth = indicators.bollinger.bandwidth if indicators.bollinger else None
    momentum = abs(indicators.momentum) if indicators.momentum is not None else None
    if bandwidth is None and momentum is None:
        return "medium"
    if (bandwidth is not None and bandwidth >= config.high_risk_bandwidth) or (
        momentum is not None and momentum >= config.high_risk_momentum
    ):
        return "high"
    if (bandwidth is None or bandwidth < config.low_risk_bandwidth) and (
        momentum is None or momentum < config.low_risk_momentum
    ):
        return "low"
    return "medium"


def infer_time_horizon(fused: FusedSignal) -> TimeHorizon:
    """short if RSI/Bollinger drove the score, long if the MA crossover did."""
    shares = {c.name: abs(c.value) for c in fused.contributions}
    total = sum(shares.values())
    if total <= 0:
        return "medium"
    if sum(shares[n] for n in _SHORT_TERM) / total > 0.5:
        return "short"
    if sum(shares[n] for n in _LONG_TERM) / total > 0.5:
        return "long"
    return "medium"


def resolve(
    symbol: str,
    price: float,
    indicators: IndicatorSet,
    fused: FusedSignal,
    config: EngineConfig = DEFAULT_CONFIG,
    as_of: Optional[date] = None,
) -> Recommendation:
    """Build the Recommendation for one analysed series."""
    if fused.insufficient:
        return Recommendation(
            symbol=symbol,
            signal="HOLD",
            confidence=config.insufficient_confidence,
            current_price=price,
            target_price=price,
            indicators=indicators,
            reasoning=(
                describe_insufficient(indicators.data_points, config.min_history),
                *(describe_shortfall(w) for w in indicators.shortfalls),
            ),
            risk_level=assess_risk(indicators, config),
            time_horizon="medium",
            score=0.0,
            as_of=as_of,
        )

    signal = resolve_signal(fused.score, config)
    return Recommendation(
        symbol=symbol,
        signal=signal,
        confidence=compute_confidence(fused.score, signal, config),
        current_price=price,
        target_price=compute_target_price(price, signal, config),
        indicators=indicators,
        reasoning=tuple(build_reasoning(fused, indicators, price, config)),
        risk_level=assess_risk(indicators, config),
        time_horizon=infer_time_horizon(fused),
        score=fused.score,
        as_of=as_of,
    )
