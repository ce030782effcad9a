from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class GaugeStatus(str, Enum):
    """Usability status of a gauge. `broken` is a stored flag, the rest derive from dates."""
    OK = "ok"
    DUE_SOON = "due_soon"
    EXPIRED = "expired"
    BROKEN = "broken"


class GaugeRecord(BaseModel):
    """Raw calibration fields as persisted by the gauge store."""
    id: str = Field(..., description="Gauge id")
    name: str = Field(..., description="Display name")
    type: Optional[str] = Field(None, description="Gauge type (plug, ring, ...)")
    location: Optional[str] = Field(None, description="Storage location")
    last_calibrated: datetime = Field(..., description="Last calibration timestamp")
    calibration_interval_days: int = Field(..., ge=0, description="Calibration interval")
    expires_at: datetime = Field(..., description="Calibration expiry (authoritative)")
    is_broken: bool = Field(False, description="Manual out-of-service flag")

    class Config:
        from_attributes = True


class GaugeView(GaugeRecord):
    """Gauge augmented with computed lifecycle fields."""
    days_left: int = Field(..., description="ceil((expires_at - now) / 1 day)")
    status: GaugeStatus = Field(..., description="Computed usability status")


class GaugeBrokenUpdate(BaseModel):
    """Set or clear the manual broken flag."""
    is_broken: bool = Field(..., description="True to take the gauge out of service")


class GaugeUseRecord(BaseModel):
    """
    Snapshot of gauge eligibility at the moment it was selected for a packet.

    `status_at_use` never changes after the first record; only the missing
    confirmation or verification timestamp may be filled in later.
    """
    gauge_id: str = Field(..., alias="gaugeId")
    status_at_use: GaugeStatus = Field(..., alias="statusAtUse")
    confirmed_by_operator_at: Optional[datetime] = Field(None, alias="confirmedByOperatorAt")
    verified_by_inspector_at: Optional[datetime] = Field(None, alias="verifiedByInspectorAt")

    class Config:
        populate_by_name = True

    @property
    def needs_review(self) -> bool:
        return self.status_at_use == GaugeStatus.DUE_SOON
