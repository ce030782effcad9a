"""
Fixed API 8-RD dimensional tolerance table.

Centered rules are symmetric around zero (|value| <= bound); range rules are
inclusive min/max. Keys not listed here are recorded for information only.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Union


@dataclass(frozen=True)
class CenteredRule:
    """Passes when the absolute reading does not exceed `bound`."""
    bound: Decimal

    def fails(self, value: Decimal) -> bool:
        return abs(value) > self.bound

    def label(self) -> str:
        return f"± {self.bound}"


@dataclass(frozen=True)
class RangeRule:
    """Passes when low <= value <= high. No absolute value is taken."""
    low: Decimal
    high: Decimal

    def fails(self, value: Decimal) -> bool:
        return value < self.low or value > self.high

    def label(self) -> str:
        return f"{self.low} – {self.high}"


ToleranceRule = Union[CenteredRule, RangeRule]

# Row attribute names for every measurement column, in report order.
MEASUREMENT_KEYS = (
    "l1",
    "lead",
    "taper_a",
    "taper_b",
    "taper_c",
    "taper_avg",
    "thread_height",
    "od",
    "id",
    "standoff",
    "l4",
    "seal_face_minus_l1",
    "overall_length",
)

# camelCase keys used by report JSON and the client forms
FIELD_ALIASES: Dict[str, str] = {
    "taperA": "taper_a",
    "taperB": "taper_b",
    "taperC": "taper_c",
    "taperAvg": "taper_avg",
    "threadHeight": "thread_height",
    "sealFaceMinusL1": "seal_face_minus_l1",
    "overallLength": "overall_length",
}

TOLERANCES: Mapping[str, ToleranceRule] = {
    "l1": CenteredRule(Decimal("0.002")),
    "lead": RangeRule(Decimal("0.002"), Decimal("0.006")),
    "taper_avg": RangeRule(Decimal("0.061"), Decimal("0.066")),
    "thread_height": RangeRule(Decimal("0.020"), Decimal("0.030")),
    "standoff": CenteredRule(Decimal("0.125")),
    "id": RangeRule(Decimal("5.275"), Decimal("5.375")),
}


def canonical_key(key: str) -> str:
    """Map a camelCase column key onto the row attribute name."""
    return FIELD_ALIASES.get(key, key)


def rule_for(key: str, table: Mapping[str, ToleranceRule] = TOLERANCES) -> Optional[ToleranceRule]:
    return table.get(canonical_key(key))
