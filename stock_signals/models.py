"""Value objects passed into and out of the analysis engine.

``PricePoint`` / ``PriceSeries`` describe the input history; ``IndicatorSet``
and ``Recommendation`` describe the output.  Everything here is immutable:
a ``Recommendation`` is built once per request and never changed.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, Literal, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from stock_signals.errors import InsufficientDataWarning, MalformedInputError

SignalType = Literal["BUY", "HOLD", "SELL"]
RiskLevel = Literal["low", "medium", "high"]
TimeHorizon = Literal["short", "medium", "long"]

_VALUE_FIELDS = ("open", "high", "low", "close", "volume")
_REQUIRED_FIELDS = ("date",) + _VALUE_FIELDS


def _round(val: Optional[float], ndigits: int = 4) -> Optional[float]:
    if val is None:
        return None
    return round(float(val), ndigits)


def _to_date(value: Any, index: Optional[int] = None) -> date:
    """Normalise date-like input (date, datetime, Timestamp, ISO string)."""
    if value is pd.NaT:
        raise MalformedInputError("date is missing (NaT)", index, "date")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (str, np.datetime64)):
        try:
            ts = pd.Timestamp(value)
        except (TypeError, ValueError) as exc:
            raise MalformedInputError(f"unparseable date {value!r}", index, "date") from exc
        if pd.isna(ts):
            raise MalformedInputError(f"unparseable date {value!r}", index, "date")
        return ts.date()
    raise MalformedInputError(f"date must be date-like, got {type(value).__name__}", index, "date")


def _to_number(value: Any, name: str, index: Optional[int] = None) -> float:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        raise MalformedInputError(
            f"{name} must be numeric, got {type(value).__name__}", index, name,
        )
    num = float(value)
    if not math.isfinite(num):
        raise MalformedInputError(f"{name} must be finite, got {num}", index, name)
    if num < 0:
        raise MalformedInputError(f"{name} must be non-negative, got {num}", index, name)
    return num


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PricePoint:
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any], index: Optional[int] = None) -> "PricePoint":
        missing = [k for k in _REQUIRED_FIELDS if k not in record]
        if missing:
            raise MalformedInputError(
                f"missing required field(s) {', '.join(missing)}", index, missing[0],
            )
        return cls(
            date=_to_date(record["date"], index),
            **{k: _to_number(record[k], k, index) for k in _VALUE_FIELDS},
        )

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass(frozen=True)
class PriceSeries:
    """Ordered OHLCV history, oldest first, strictly increasing dates.

    Gaps between dates are fine and are never filled in.
    """

    points: Tuple[PricePoint, ...]

    def __post_init__(self) -> None:
        points = tuple(self.points)
        object.__setattr__(self, "points", points)
        if not points:
            raise MalformedInputError("price series is empty")
        prev: Optional[date] = None
        for i, p in enumerate(points):
            if not isinstance(p, PricePoint):
                raise MalformedInputError(f"expected PricePoint, got {type(p).__name__}", i)
            current = _to_date(p.date, i)
            for name in _VALUE_FIELDS:
                _to_number(getattr(p, name), name, i)
            if prev is not None and current <= prev:
                kind = "duplicate" if current == prev else "out-of-order"
                raise MalformedInputError(f"{kind} date {current.isoformat()}", i, "date")
            prev = current

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @property
    def latest(self) -> PricePoint:
        return self.points[-1]

    def closes(self) -> np.ndarray:
        return np.array([p.close for p in self.points], dtype=float)

    def volumes(self) -> np.ndarray:
        return np.array([p.volume for p in self.points], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        """OHLCV DataFrame indexed by date (``Open/High/Low/Close/Volume``)."""
        return pd.DataFrame(
            {
                "Open": [p.open for p in self.points],
                "High": [p.high for p in self.points],
                "Low": [p.low for p in self.points],
                "Close": [p.close for p in self.points],
                "Volume": [p.volume for p in self.points],
            },
            index=pd.DatetimeIndex([pd.Timestamp(p.date) for p in self.points], name="Date"),
        )

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "PriceSeries":
        points = []
        for i, rec in enumerate(records):
            if isinstance(rec, PricePoint):
                points.append(rec)
            elif isinstance(rec, Mapping):
                points.append(PricePoint.from_mapping(rec, i))
            else:
                raise MalformedInputError(f"record must be a mapping, got {type(rec).__name__}", i)
        return cls(tuple(points))

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "PriceSeries":
        """Build from an OHLCV DataFrame.

        Column names are matched case-insensitively.  Dates come from a
        ``Date`` column when present, otherwise from the index.
        """
        cols = {str(c).lower(): c for c in df.columns}
        missing = [k for k in _VALUE_FIELDS if k not in cols]
        if missing:
            raise MalformedInputError(
                f"DataFrame missing column(s) {', '.join(missing)}", field=missing[0],
            )
        dates = df[cols["date"]].tolist() if "date" in cols else list(df.index)
        columns = {k: df[cols[k]].tolist() for k in _VALUE_FIELDS}
        records = [
            {"date": dates[i], **{k: columns[k][i] for k in _VALUE_FIELDS}}
            for i in range(len(df))
        ]
        return cls.from_records(records)

    @classmethod
    def coerce(cls, obj: Any) -> "PriceSeries":
        """Accept a PriceSeries, an OHLCV DataFrame or a sequence of records."""
        if isinstance(obj, PriceSeries):
            return obj
        if isinstance(obj, pd.DataFrame):
            return cls.from_frame(obj)
        if isinstance(obj, (str, bytes, Mapping)) or not isinstance(obj, Iterable):
            raise MalformedInputError(f"cannot build a price series from {type(obj).__name__}")
        return cls.from_records(list(obj))


# ---------------------------------------------------------------------------
# Indicator snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MACDReading:
    line: float
    signal: float
    histogram: float
    stable: bool = True     # False when signal fell back to the MACD line

    def to_dict(self) -> dict:
        return {
            "line": _round(self.line),
            "signal": _round(self.signal),
            "histogram": _round(self.histogram),
            "stable": self.stable,
        }


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float

    @property
    def bandwidth(self) -> Optional[float]:
        """Band width relative to the middle band."""
        if self.middle <= 0:
            return None
        return (self.upper - self.lower) / self.middle

    def to_dict(self) -> dict:
        return {
            "upper": _round(self.upper),
            "middle": _round(self.middle),
            "lower": _round(self.lower),
        }


@dataclass(frozen=True)
class IndicatorSet:
    """Indicator readings at the latest point of one series."""

    rsi: float
    macd: MACDReading
    sma20: Optional[float]
    sma50: Optional[float]
    sma200: Optional[float]
    ema50: Optional[float]
    bollinger: Optional[BollingerBands]
    momentum: Optional[float]
    volume_ratio: Optional[float] = None
    data_points: int = 0
    shortfalls: Tuple[InsufficientDataWarning, ...] = ()

    def is_available(self, indicator: str) -> bool:
        return all(w.indicator != indicator for w in self.shortfalls)

    def to_dict(self) -> dict:
        return {
            "rsi": _round(self.rsi, 2),
            "macd": self.macd.to_dict(),
            "sma20": _round(self.sma20),
            "sma50": _round(self.sma50),
            "sma200": _round(self.sma200),
            "ema50": _round(self.ema50),
            "bollinger": self.bollinger.to_dict() if self.bollinger else None,
            "momentum": _round(self.momentum, 2),
            "volume_ratio": _round(self.volume_ratio, 3),
            "data_points": self.data_points,
            "shortfalls": [w.to_dict() for w in self.shortfalls],
        }


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Recommendation:
    symbol: str
    signal: SignalType
    confidence: float           # 0 .. 100
    current_price: float
    target_price: float
    indicators: IndicatorSet
    reasoning: Tuple[str, ...]
    risk_level: RiskLevel
    time_horizon: TimeHorizon
    score: float = 0.0          # fused score, -100 .. +100
    as_of: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "signal": self.signal,
            "confidence": round(self.confidence, 1),
            "current_price": _round(self.current_price),
            "target_price": _round(self.target_price),
            "score": round(self.score, 2),
            "risk_level": self.risk_level,
            "time_horizon": self.time_horizon,
            "reasoning": list(self.reasoning),
            "indicators": self.indicators.to_dict(),
            "as_of": self.as_of.isoformat() if self.as_of else None,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Either a recommendation or the reason no recommendation was made."""

    symbol: str
    recommendation: Optional[Recommendation] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.recommendation is not None

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "ok": self.ok,
            "recommendation": self.recommendation.to_dict() if self.recommendation else None,
            "error": self.error,
        }
