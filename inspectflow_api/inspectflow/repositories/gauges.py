from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.db.models.gauges import Gauge
from .base import BaseRepository


class GaugeRepository(BaseRepository):
    """
    Repository for the gauge catalog.

    Persists raw calibration fields only; status is computed by the engine.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_all(self) -> List[Gauge]:
        stmt = select(Gauge).order_by(Gauge.created_at.desc(), Gauge.id)
        res = await self.scalars(stmt)
        return list(res)

    async def get_gauge(self, gauge_id: str) -> Optional[Gauge]:
        stmt = select(Gauge).where(Gauge.id == gauge_id)
        return await self.scalar_one_or_none(stmt)

    async def set_broken(self, gauge: Gauge, is_broken: bool) -> Gauge:
        gauge.is_broken = is_broken
        await self.commit()
        return gauge
