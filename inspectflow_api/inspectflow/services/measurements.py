"""
Measurement validation for 8-RD dimension rows.

Every function here is pure: no I/O, no shared mutable state, safe to call from
any number of concurrent request handlers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from inspectflow.schemas.packets import ConnectionVariant, DimensionRow, RowResult
from inspectflow.services.tolerances import (
    MEASUREMENT_KEYS,
    TOLERANCES,
    ToleranceRule,
    canonical_key,
)

# Tokens an operator passes through while typing a number.
PARTIAL_TOKENS = frozenset({"-", ".", "-."})

_DECIMAL_RE = re.compile(r"-?(?:\d+|\d*\.\d+)")
_PIN_RE = re.compile(r"\bPIN\b", re.IGNORECASE)
_BOX_RE = re.compile(r"\bBOX\b", re.IGNORECASE)


@dataclass(frozen=True)
class FieldEvaluation:
    """Outcome of checking one raw measurement against the tolerance table."""
    raw: str
    parsed: Optional[Decimal] = None
    is_partial: bool = False
    is_valid: bool = True
    out_of_tolerance: bool = False


@dataclass(frozen=True)
class RowEvaluation:
    serial: str
    fields: Dict[str, FieldEvaluation] = field(default_factory=dict)
    table: Mapping[str, ToleranceRule] = field(default_factory=lambda: TOLERANCES, repr=False, compare=False)

    @property
    def out_of_tolerance_keys(self) -> List[str]:
        return [k for k, ev in self.fields.items() if ev.out_of_tolerance]

    @property
    def invalid_keys(self) -> List[str]:
        return [k for k, ev in self.fields.items() if not ev.is_valid]

    @property
    def suggested_result(self) -> RowResult:
        """
        REJECT on any out-of-tolerance reading, ACCEPT once every ruled field has a
        passing reading, UNSET otherwise. Advisory; the operator sets the row result.
        """
        if self.out_of_tolerance_keys:
            return RowResult.REJECT
        ruled = [self.fields[k] for k in self.table if k in self.fields]
        if ruled and all(ev.parsed is not None for ev in ruled):
            return RowResult.ACCEPT
        return RowResult.UNSET


# PUBLIC_INTERFACE
def parse_measurement(raw_text: Optional[str]) -> FieldEvaluation:
    """
    Parse raw measurement text without applying any tolerance.

    Empty text and transitional tokens parse to None and are not errors. A fully
    formed optionally negative decimal parses to a Decimal. Anything else is
    flagged invalid and the raw text is kept verbatim.
    """
    raw = raw_text or ""
    if raw == "":
        return FieldEvaluation(raw=raw)
    if raw in PARTIAL_TOKENS:
        return FieldEvaluation(raw=raw, is_partial=True)
    if _DECIMAL_RE.fullmatch(raw):
        return FieldEvaluation(raw=raw, parsed=Decimal(raw))
    return FieldEvaluation(raw=raw, is_valid=False)


# PUBLIC_INTERFACE
def evaluate(
    key: str,
    raw_text: Optional[str],
    table: Mapping[str, ToleranceRule] = TOLERANCES,
) -> FieldEvaluation:
    """Classify one measurement as in or out of tolerance for `key`."""
    result = parse_measurement(raw_text)
    rule = table.get(canonical_key(key))
    if rule is None or result.parsed is None:
        return result
    return FieldEvaluation(
        raw=result.raw,
        parsed=result.parsed,
        out_of_tolerance=rule.fails(result.parsed),
    )


def is_out_of_tolerance(key: str, raw_text: Optional[str]) -> bool:
    return evaluate(key, raw_text).out_of_tolerance


# PUBLIC_INTERFACE
def evaluate_row(row: DimensionRow, table: Mapping[str, ToleranceRule] = TOLERANCES) -> RowEvaluation:
    """Evaluate every measurement column of a dimension row."""
    fields = {key: evaluate(key, getattr(row, key), table) for key in MEASUREMENT_KEYS}
    return RowEvaluation(serial=row.serial, fields=fields, table=table)


def commit_value(raw_text: Optional[str]) -> str:
    """Value to keep once the operator leaves a field: transitional tokens become empty."""
    raw = raw_text or ""
    return "" if raw in PARTIAL_TOKENS else raw


def infer_variant(description: Optional[str], current: ConnectionVariant) -> ConnectionVariant:
    """Pick PIN or BOX from the header description, keeping `current` when neither word appears."""
    if not description:
        return current
    if _BOX_RE.search(description):
        return ConnectionVariant.BOX
    if _PIN_RE.search(description):
        return ConnectionVariant.PIN
    return current
