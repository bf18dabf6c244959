"""Central configuration loader for stock-signals."""

from __future__ import annotations

import dataclasses
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from stock_signals.utils.logger import setup_logger

# Project root is the parent of the stock_signals/ directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    CONFIGS = PROJECT_ROOT / "configs"
    SETTINGS_FILE = PROJECT_ROOT / "configs" / "settings.yaml"


def load_settings(path: Optional[Path] = None) -> dict:
    """Load settings from configs/settings.yaml (or $STOCK_SIGNALS_SETTINGS)."""
    settings_path = path or Path(os.getenv("STOCK_SIGNALS_SETTINGS", Paths.SETTINGS_FILE))
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()

LOG_LEVEL = os.getenv("STOCK_SIGNALS_LOG_LEVEL") or SETTINGS.get("app", {}).get("log_level", "INFO")

logger = setup_logger("config", LOG_LEVEL)


# ---------------------------------------------------------------------------
# Engine configuration
# ---------------------------------------------------------------------------
COMPONENTS: Tuple[str, ...] = ("rsi", "macd", "moving_average", "bollinger", "momentum")

_WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class FusionWeights:
    """Per-indicator share of the fused score.  Must sum to 1.0."""

    rsi: float = 0.25
    macd: float = 0.25
    moving_average: float = 0.20
    bollinger: float = 0.20
    momentum: float = 0.10

    def __post_init__(self) -> None:
        for name in COMPONENTS:
            w = getattr(self, name)
            if not isinstance(w, (int, float)) or not math.isfinite(w) or w < 0:
                raise ValueError(f"weight for {name} must be a non-negative number, got {w!r}")
        total = sum(self.as_dict().values())
        if abs(total - 1.0) > _WEIGHT_TOLERANCE:
            raise ValueError(f"fusion weights must sum to 1.0, got {total:.6f}")

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in COMPONENTS}

    def ranked(self) -> List[str]:
        """Component names, highest weight first (ties keep canonical order)."""
        order = {name: i for i, name in enumerate(COMPONENTS)}
        weights = self.as_dict()
        return sorted(COMPONENTS, key=lambda n: (-weights[n], order[n]))


@dataclass(frozen=True)
class EngineConfig:
    """Every tunable number used by the fuser and resolver."""

    # Indicator lookbacks
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    sma_short: int = 20
    sma_medium: int = 50
    sma_long: int = 200
    ema_period: int = 50
    bollinger_period: int = 20
    bollinger_k: float = 2.0
    momentum_period: int = 10
    volume_period: int = 20

    # Fusion
    weights: FusionWeights = field(default_factory=FusionWeights)
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    bollinger_partial_zone: float = 0.5
    momentum_scale: float = 10.0
    macd_fading_factor: float = 0.5
    low_volume_factor: float = 0.5
    min_active_weight: float = 0.4       # below this the score is not renormalised

    # Resolution
    buy_threshold: float = 40.0
    sell_threshold: float = -40.0
    confidence_floor: float = 70.0
    confidence_ceiling: float = 98.0
    hold_confidence_max: float = 65.0
    hold_confidence_min: float = 40.0
    insufficient_confidence: float = 50.0
    target_premium_up: float = 0.10
    target_premium_down: float = 0.10

    # Risk classification
    high_risk_bandwidth: float = 0.10
    low_risk_bandwidth: float = 0.04
    high_risk_momentum: float = 10.0
    low_risk_momentum: float = 3.0

    def __post_init__(self) -> None:
        for name in ("rsi_period", "macd_fast", "macd_slow", "macd_signal", "sma_short",
                     "sma_medium", "sma_long", "ema_period", "bollinger_period",
                     "momentum_period", "volume_period"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        if not 0 < self.rsi_oversold < self.rsi_overbought < 100:
            raise ValueError("RSI thresholds must satisfy 0 < oversold < overbought < 100")
        if not 0 < self.buy_threshold < 100 or not -100 < self.sell_threshold < 0:
            raise ValueError("buy_threshold must be in (0, 100) and sell_threshold in (-100, 0)")
        if not 0 <= self.bollinger_partial_zone < 1:
            raise ValueError("bollinger_partial_zone must be in [0, 1)")
        if not 0 < self.min_active_weight <= 1:
            raise ValueError("min_active_weight must be in (0, 1]")
        if self.momentum_scale <= 0:
            raise ValueError("momentum_scale must be positive")
        if not 0 <= self.hold_confidence_min <= self.hold_confidence_max < self.confidence_floor:
            raise ValueError("HOLD confidence range must sit below confidence_floor")
        if not self.confidence_floor <= self.confidence_ceiling <= 100:
            raise ValueError("confidence_floor <= confidence_ceiling <= 100 required")
        if not 0 <= self.insufficient_confidence <= 100:
            raise ValueError("insufficient_confidence must be in [0, 100]")
        if self.target_premium_up <= 0 or not 0 < self.target_premium_down < 1:
            raise ValueError("target premiums must be positive (down premium below 1)")

    @property
    def min_history(self) -> int:
        """Shortest series for which a primary (non-momentum) indicator is computed."""
        return min(
            self.rsi_period + 1,
            self.macd_slow + self.macd_signal,
            max(self.sma_short, self.ema_period),
            self.bollinger_period,
        )

    def replace(self, **changes: Any) -> "EngineConfig":
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_settings(cls, section: Optional[Mapping[str, Any]] = None) -> "EngineConfig":
        """Build from the ``engine:`` block of settings.yaml."""
        if section is None:
            section = SETTINGS.get("engine", {}) or {}
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in section.items():
            if key == "weights":
                kwargs["weights"] = FusionWeights(**dict(value))
            elif key in known:
                kwargs[key] = value
            else:
                logger.warning("Ignoring unknown engine setting: %s", key)
        return cls(**kwargs)


DEFAULT_CONFIG = EngineConfig.from_settings()
