"""
Gauge calibration lifecycle and usage eligibility.

Status is derived from `expires_at` only; the broken flag is a manual override.
Use records snapshot the status at the moment a gauge is attached to a packet.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from inspectflow.core.errors import (
    GaugeIneligibleError,
    GaugeNotSelectedError,
    RoleNotPermittedError,
)
from inspectflow.schemas.common import Role
from inspectflow.schemas.gauges import GaugeRecord, GaugeStatus, GaugeUseRecord, GaugeView

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 7
_SECONDS_PER_DAY = 24 * 60 * 60

INELIGIBLE_STATUSES = frozenset({GaugeStatus.EXPIRED, GaugeStatus.BROKEN})

# Catalog filter names offered to the gauge picker
CATALOG_FILTERS: Dict[str, Optional[GaugeStatus]] = {
    "ALL": None,
    "OK": GaugeStatus.OK,
    "DUE": GaugeStatus.DUE_SOON,
    "EXPIRED": GaugeStatus.EXPIRED,
    "BROKEN": GaugeStatus.BROKEN,
}


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# PUBLIC_INTERFACE
def days_left(gauge: GaugeRecord, now: datetime) -> int:
    """Whole days until expiry, rounded up."""
    delta = _as_utc(gauge.expires_at) - _as_utc(now)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


# PUBLIC_INTERFACE
def status_of(gauge: GaugeRecord, now: datetime, due_soon_days: int = DUE_SOON_DAYS) -> GaugeStatus:
    """
    Compute a gauge's usability status.

    expired when days_left <= 0, due_soon when 0 < days_left <= due_soon_days,
    ok otherwise. A stored broken flag wins over any date-derived status.
    """
    if gauge.is_broken:
        return GaugeStatus.BROKEN
    remaining = days_left(gauge, now)
    if remaining <= 0:
        return GaugeStatus.EXPIRED
    if remaining <= due_soon_days:
        return GaugeStatus.DUE_SOON
    return GaugeStatus.OK


# PUBLIC_INTERFACE
def is_eligible_for_use(gauge: GaugeRecord, now: datetime, due_soon_days: int = DUE_SOON_DAYS) -> bool:
    """due_soon gauges are usable but flagged for review downstream."""
    return status_of(gauge, now, due_soon_days) not in INELIGIBLE_STATUSES


def describe(gauge: GaugeRecord, now: datetime, due_soon_days: int = DUE_SOON_DAYS) -> GaugeView:
    """Augment a stored gauge with its computed days_left and status."""
    raw = {name: getattr(gauge, name) for name in GaugeRecord.model_fields}
    return GaugeView(
        **raw,
        days_left=days_left(gauge, now),
        status=status_of(gauge, now, due_soon_days),
    )


def filter_catalog(views: Iterable[GaugeView], query: str = "", status_filter: str = "ALL") -> List[GaugeView]:
    """Filter the catalog by status bucket and a case-insensitive text search."""
    wanted = CATALOG_FILTERS.get(status_filter.upper(), None)
    text = (query or "").strip().lower()
    out = []
    for view in views:
        if wanted is not None and view.status != wanted:
            continue
        haystack = " ".join(p for p in (view.name, view.type, view.location) if p).lower()
        if text and text not in haystack:
            continue
        out.append(view)
    return out


# PUBLIC_INTERFACE
def record_use(
    gauge: GaugeRecord,
    actor_role: Role,
    now: datetime,
    existing: Optional[GaugeUseRecord] = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> GaugeUseRecord:
    """
    Record that `actor_role` used `gauge` on a packet.

    Eligibility is checked on every call, including when adding the second
    role's timestamp to an existing record. A new record snapshots the current
    status; an existing record keeps its snapshot and only gains the actor's
    timestamp if that one is still missing.

    Raises:
        GaugeIneligibleError: the gauge is expired or broken right now.
    """
    status = status_of(gauge, now, due_soon_days)
    if status in INELIGIBLE_STATUSES:
        logger.warning("Rejected use of gauge %s with status %s", gauge.id, status.value)
        raise GaugeIneligibleError(gauge.id, status)

    stamp_field = (
        "confirmed_by_operator_at" if actor_role == Role.OPERATOR else "verified_by_inspector_at"
    )
    if existing is None:
        record = GaugeUseRecord(gauge_id=gauge.id, status_at_use=status, **{stamp_field: now})
        logger.info("Gauge %s recorded by %s (status %s)", gauge.id, actor_role.value, status.value)
        return record

    if existing.gauge_id != gauge.id:
        raise ValueError(f"Use record for {existing.gauge_id} cannot be merged into {gauge.id}")
    if getattr(existing, stamp_field) is not None:
        return existing
    return existing.model_copy(update={stamp_field: now})


# PUBLIC_INTERFACE
def verify_use(record: GaugeUseRecord, actor_role: Role, now: datetime) -> GaugeUseRecord:
    """Explicit inspector re-verification; overwrites any earlier verification time."""
    if actor_role != Role.INSPECTOR:
        raise RoleNotPermittedError("verify gauge use", actor_role)
    return record.model_copy(update={"verified_by_inspector_at": now})


class GaugeSelection:
    """
    Gauges attached to one packet, keyed by gauge id.

    Unusing a gauge drops its record entirely; selecting it again starts a new
    snapshot.
    """

    def __init__(self, records: Optional[Dict[str, GaugeUseRecord]] = None, due_soon_days: int = DUE_SOON_DAYS):
        self._records: Dict[str, GaugeUseRecord] = dict(records or {})
        self.due_soon_days = due_soon_days

    def __contains__(self, gauge_id: str) -> bool:
        return gauge_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Dict[str, GaugeUseRecord]:
        return dict(self._records)

    def get(self, gauge_id: str) -> Optional[GaugeUseRecord]:
        return self._records.get(gauge_id)

    def select(self, gauge: GaugeRecord, actor_role: Role, now: datetime) -> GaugeUseRecord:
        record = record_use(gauge, actor_role, now, self._records.get(gauge.id), self.due_soon_days)
        self._records[gauge.id] = record
        return record

    def unuse(self, gauge_id: str) -> bool:
        return self._records.pop(gauge_id, None) is not None

    def toggle(self, gauge: GaugeRecord, actor_role: Role, now: datetime) -> Optional[GaugeUseRecord]:
        if gauge.id in self._records:
            self.unuse(gauge.id)
            return None
        return self.select(gauge, actor_role, now)

    def verify(self, gauge_id: str, actor_role: Role, now: datetime) -> GaugeUseRecord:
        record = self._records.get(gauge_id)
        if record is None:
            raise GaugeNotSelectedError(gauge_id)
        record = verify_use(record, actor_role, now)
        self._records[gauge_id] = record
        return record

    def needs_review(self) -> List[GaugeUseRecord]:
        return [r for r in self._records.values() if r.needs_review]
