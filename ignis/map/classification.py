"""
Color classification for map markers.

Two independent threshold tables:

* fire-risk probability (0-1) onto a red to green gradient, with a neutral
  color for anything below 0.5 or missing;
* FRP / burned-area intensity (unbounded) onto a red gradient.

Both are pure and total: ``None``, NaN and non-numeric values fall into
the lowest bucket of their table.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

# (lower bound, inclusive, color), checked top-down
RISK_THRESHOLDS: Sequence[Tuple[float, bool, str]] = (
    (0.9, True, "#FF0000"),  # extreme
    (0.8, True, "#FF4500"),  # dark orange
    (0.7, True, "#FFA500"),  # orange
    (0.6, True, "#FFFF00"),  # yellow
    (0.5, True, "#ADFF2F"),  # lime
)
RISK_OUT_OF_RANGE = "#D3D3D3"

FRP_THRESHOLDS: Sequence[Tuple[float, bool, str]] = (
    (50, True, "#800026"),
    (30, True, "#E31A1C"),
    (15, True, "#FC4E2A"),
    (2, True, "#FD8D3C"),
    (0, False, "#FED976"),
)
FRP_LOWEST = "#FFEDA0"


def to_number(value) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def _bucket(value, thresholds) -> int:
    """Index counted from the lowest bucket (0) up to len(thresholds)."""
    number = to_number(value)
    for position, (bound, inclusive, _color) in enumerate(thresholds):
        if number > bound or (inclusive and number == bound):
            return len(thresholds) - position
    return 0


def risk_bucket(value: Optional[float]) -> int:
    """0 is out of range, 5 is extreme risk."""
    return _bucket(value, RISK_THRESHOLDS)


def frp_bucket(value: Optional[float]) -> int:
    """0 is the lightest bucket, 5 the darkest."""
    return _bucket(value, FRP_THRESHOLDS)


def risk_color(value: Optional[float]) -> str:
    bucket = risk_bucket(value)
    if bucket == 0:
        return RISK_OUT_OF_RANGE
    return RISK_THRESHOLDS[len(RISK_THRESHOLDS) - bucket][2]


def frp_color(value: Optional[float]) -> str:
    bucket = frp_bucket(value)
    if bucket == 0:
        return FRP_LOWEST
    return FRP_THRESHOLDS[len(FRP_THRESHOLDS) - bucket][2]
