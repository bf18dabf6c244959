"""Jinja2 templates turning indicator contributions into reasoning text.

Kept apart from the numeric core: these functions only read an already
computed ``IndicatorSet`` / ``FusedSignal`` and return strings.
"""

from __future__ import annotations

from typing import List, Optional

from jinja2 import DictLoader, Environment, StrictUndefined

from stock_signals.config import DEFAULT_CONFIG, EngineConfig
from stock_signals.errors import InsufficientDataWarning
from stock_signals.models import IndicatorSet

_TEMPLATES = {
    "rsi": (
        "RSI at {{ rsi|fmt_ratio(1) }} "
        "{% if rsi <= oversold %}indicates oversold conditions"
        "{% elif rsi >= overbought %}indicates overbought conditions"
        "{% elif rsi < mid %}is leaning toward oversold territory"
        "{% else %}is leaning toward overbought territory{% endif %}"
    ),
    "macd": (
        "MACD histogram at {{ hist|fmt_ratio(3) }} signals "
        "{{ 'bullish' if hist > 0 else 'bearish' }} momentum"
        "{% if fading %}, though the MACD line is still "
        "{{ 'above' if line > 0 else 'below' }} zero{% endif %}"
    ),
    "moving_average": (
        "Price {{ price|fmt_price }} is "
        "{% if sub > 0 %}above both SMA20 ({{ sma|fmt_price }}) and EMA50 ({{ ema|fmt_price }}), "
        "confirming an uptrend"
        "{% else %}below both SMA20 ({{ sma|fmt_price }}) and EMA50 ({{ ema|fmt_price }}), "
        "confirming a downtrend{% endif %}"
    ),
    "bollinger": (
        "{% if sub >= 1 %}Price at or below the lower Bollinger Band ({{ lower|fmt_price }}) "
        "suggests oversold conditions"
        "{% elif sub <= -1 %}Price at or above the upper Bollinger Band ({{ upper|fmt_price }}) "
        "suggests overbought conditions"
        "{% elif sub > 0 %}Price near the lower Bollinger Band ({{ lower|fmt_price }}) "
        "suggests a possible rebound"
        "{% else %}Price near the upper Bollinger Band ({{ upper|fmt_price }}) "
        "suggests a possible pullback{% endif %}"
    ),
    "momentum": (
        "{{ period }}-day momentum of {{ momentum|fmt_signed_pct }} "
        "{{ 'supports further upside' if momentum > 0 else 'points to continued weakness' }}"
        "{% if low_volume %} on below-average volume{% endif %}"
    ),
    "shortfall": (
        "{{ label }} not computed: {{ available }} of {{ required }} data points available"
    ),
    "insufficient": (
        "Insufficient data: {{ available }} price point{{ '' if available == 1 else 's' }} "
        "supplied, at least {{ required }} needed for a directional signal"
    ),
    "balanced": "No indicator shows a directional edge; signals are balanced",
}

_LABELS = {
    "rsi": "RSI",
    "macd": "MACD signal line",
    "sma20": "SMA20",
    "sma50": "SMA50",
    "sma200": "SMA200",
    "ema50": "EMA50",
    "bollinger": "Bollinger Bands",
    "momentum": "Momentum",
}


def fmt_ratio(val, ndigits: int = 2) -> str:
    if val is None:
        return "N/A"
    try:
        return f"{float(val):.{ndigits}f}"
    except (TypeError, ValueError):
        return str(val)


def fmt_price(val, currency: str = "$") -> str:
    if val is None:
        return "N/A"
    try:
        return f"{currency}{float(val):,.2f}"
    except (TypeError, ValueError):
        return str(val)


def fmt_signed_pct(val) -> str:
    if val is None:
        return "N/A"
    try:
        return f"{float(val):+.1f}%"
    except (TypeError, ValueError):
        return str(val)


_env = Environment(
    loader=DictLoader(_TEMPLATES),
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=False,
)
_env.filters["fmt_ratio"] = fmt_ratio
_env.filters["fmt_price"] = fmt_price
_env.filters["fmt_signed_pct"] = fmt_signed_pct


def _render(name: str, **context) -> str:
    return _env.get_template(name).render(**context)


def describe(
    name: str,
    sub_score: float,
    indicators: IndicatorSet,
    price: float,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[str]:
    """One sentence for a non-zero indicator contribution, else None."""
    if sub_score == 0:
        return None
    if name == "rsi":
        return _render(
            "rsi", rsi=indicators.rsi, oversold=config.rsi_oversold,
            overbought=config.rsi_overbought,
            mid=(config.rsi_oversold + config.rsi_overbought) / 2.0,
        )
    if name == "macd":
        macd = indicators.macd
        return _render(
            "macd", hist=macd.histogram, line=macd.line,
            fading=abs(sub_score) < 1.0,
        )
    if name == "moving_average":
        return _render(
            "moving_average", price=price, sma=indicators.sma20,
            ema=indicators.ema50, sub=sub_score,
        )
    if name == "bollinger" and indicators.bollinger is not None:
        bb = indicators.bollinger
        return _render("bollinger", upper=bb.upper, lower=bb.lower, sub=sub_score)
    if name == "momentum" and indicators.momentum is not None:
        ratio = indicators.volume_ratio
        return _render(
            "momentum", period=config.momentum_period, momentum=indicators.momentum,
            low_volume=ratio is not None and ratio < 1.0,
        )
    return None


def describe_shortfall(warning: InsufficientDataWarning) -> str:
    return _render(
        "shortfall", label=_LABELS.get(warning.indicator, warning.indicator),
        available=warning.available, required=warning.required,
    )


def describe_insufficient(available: int, required: int) -> str:
    return _render("insufficient", available=available, required=required)


def describe_balanced() -> str:
    return _render("balanced")


def build_reasoning(fused, indicators: IndicatorSet, price: float,
                    config: EngineConfig = DEFAULT_CONFIG) -> List[str]:
    """Reasoning lines: contributors by weight rank, then data shortfalls."""
    lines: List[str] = []
    for name in config.weights.ranked():
        contrib = fused.get(name)
        if contrib is None or not contrib.active or contrib.weight <= 0:
            continue
        text = describe(name, contrib.sub_score, indicators, price, config)
        if text:
            lines.append(text)
    if not lines:
        lines.append(describe_balanced())
    lines.extend(describe_shortfall(w) for w in indicators.shortfalls)
    return lines
