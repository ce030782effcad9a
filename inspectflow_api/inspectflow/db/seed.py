"""
Database seeding utilities for demo data.

Seeds:
- Orders 441 (QUEUED), 442 (IN_PROGRESS) and 443 (QUEUED) with packet header data
- Gauges g1 (calibration valid for another 30 days) and g2 (expired 10 days ago)

Existing rows are left untouched, so seeding can be repeated.

Usage:
  python -m inspectflow.db.run_migrations upgrade head
  python -m inspectflow.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.db.base import utcnow
from inspectflow.db.models import Gauge, Order
from inspectflow.db.session import get_session_factory
from inspectflow.repositories.packets import DocumentKind, PacketStateRepository
from inspectflow.schemas.packets import PacketMeta
from inspectflow.services.serialization import serialize_meta

logger = logging.getLogger(__name__)

SEED_ORDERS = (
    {"id": "441", "part_number": "PN-8821", "required_thread": '2-3/8" 8RD', "status": "QUEUED"},
    {"id": "442", "part_number": "PN-8822", "required_thread": '3-1/2" 8RD', "status": "IN_PROGRESS"},
    {"id": "443", "part_number": "PN-9001", "required_thread": "NC38", "status": "QUEUED"},
)

# (id, name, type, location, days since last calibration, interval days)
SEED_GAUGES = (
    ("g1", 'Thread Plug Gauge - 2-3/8" 8RD', "Thread Plug", "Bench A", 60, 90),
    ("g2", "Ring Gauge - NC38", "Ring", "Bench B", 100, 90),
)


# PUBLIC_INTERFACE
async def seed_all(session: Optional[AsyncSession] = None, now: Optional[datetime] = None) -> None:
    """
    Seed the database with demo orders and gauges.

    Parameters:
        session: session to use; a new one is opened from the global factory when None
        now: reference time for creation and calibration dates (defaults to current UTC)
    """
    if session is None:
        async with get_session_factory()() as own:
            await seed_all(own, now)
        return

    now = now or utcnow()
    docs = PacketStateRepository(session)

    for i, data in enumerate(SEED_ORDERS):
        if await session.get(Order, data["id"]) is None:
            # newest first in listings: 443, 442, 441
            session.add(Order(created_at=now - timedelta(minutes=len(SEED_ORDERS) - i), **data))
            logger.info("Seeded order %s", data["id"])

    for gauge_id, name, gauge_type, location, age_days, interval in SEED_GAUGES:
        if await session.get(Gauge, gauge_id) is None:
            last = now - timedelta(days=age_days)
            session.add(
                Gauge(
                    id=gauge_id,
                    name=name,
                    type=gauge_type,
                    location=location,
                    last_calibrated=last,
                    calibration_interval_days=interval,
                    expires_at=last + timedelta(days=interval),
                )
            )
            logger.info("Seeded gauge %s", gauge_id)

    await session.commit()

    for data in SEED_ORDERS:
        if await docs.get_document(data["id"], DocumentKind.META) is None:
            meta = PacketMeta(
                order_id=data["id"],
                part_number=data["part_number"],
                required_thread=data["required_thread"],
            )
            await docs.put_document(data["id"], DocumentKind.META, serialize_meta(meta))


if __name__ == "__main__":
    from inspectflow.core.logging import configure_logging

    configure_logging()
    asyncio.run(seed_all())
