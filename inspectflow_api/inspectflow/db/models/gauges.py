from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from inspectflow.db.base import Base, TimestampMixin


class Gauge(TimestampMixin, Base):
    """
    Calibrated thread gauge. Only raw calibration fields are stored; status and
    days left are computed at read time.
    """
    __tablename__ = "gauges"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_calibrated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    calibration_interval_days: Mapped[int] = mapped_column(Integer, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_broken: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
