from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.db.models.orders import Order
from inspectflow.schemas.orders import OrderStatus
from .base import BaseRepository

LIST_LIMIT = 100
TODAY_LIMIT = 50


def local_day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start and end of the local calendar day containing `now`, as UTC datetimes."""
    local = (now or datetime.now(tz=timezone.utc)).astimezone()
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


class OrderRepository(BaseRepository):
    """Repository for inspection orders."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def list_orders(self, *, status: Optional[OrderStatus] = None, limit: int = LIST_LIMIT) -> List[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status.value)
        stmt = stmt.order_by(Order.created_at.desc()).limit(min(limit, LIST_LIMIT))
        res = await self.scalars(stmt)
        return list(res)

    async def list_today(
        self, *, status: Optional[OrderStatus] = None, now: Optional[datetime] = None
    ) -> List[Order]:
        start, end = local_day_bounds(now)
        stmt = select(Order).where(Order.created_at >= start, Order.created_at < end)
        if status:
            stmt = stmt.where(Order.status == status.value)
        stmt = stmt.order_by(Order.created_at.desc()).limit(TODAY_LIMIT)
        res = await self.scalars(stmt)
        return list(res)

    async def get_order(self, order_id: str) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        return await self.scalar_one_or_none(stmt)

    async def exists(self, order_id: str) -> bool:
        stmt = select(Order.id).where(Order.id == order_id)
        return (await self.scalar_one_or_none(stmt)) is not None

    async def create_order(
        self,
        *,
        order_id: str,
        part_number: str,
        required_thread: str,
        status: OrderStatus = OrderStatus.QUEUED,
        created_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> Order:
        order = Order(
            id=order_id,
            part_number=part_number,
            required_thread=required_thread,
            status=status.value,
        )
        if created_at is not None:
            order.created_at = created_at
        await self.add(order)
        if commit:
            await self.commit()
        return order

    async def update_status(self, order: Order, status: OrderStatus) -> Order:
        order.status = status.value
        await self.commit()
        return order
