from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.db.base import utcnow
from inspectflow.db.models.packets import PacketDocument
from .base import BaseRepository

# Dialects with INSERT ... ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class DocumentKind(str, Enum):
    """Packet state documents kept per order."""
    META = "meta"
    REPORT = "report"
    GAUGES = "gauges"


class PacketStateRepository(BaseRepository):
    """
    Repository for serialized packet state.

    There is no locking or version check: `put_document` upserts on
    (order_id, kind), so concurrent editors of the same order get
    last-write-wins, including two writers racing to create the document.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def _get_row(self, order_id: str, kind: DocumentKind) -> Optional[PacketDocument]:
        stmt = (
            select(PacketDocument)
            .where(PacketDocument.order_id == order_id, PacketDocument.kind == kind.value)
            .execution_options(populate_existing=True)
        )
        return await self.scalar_one_or_none(stmt)

    async def get_document(self, order_id: str, kind: DocumentKind) -> Optional[str]:
        row = await self._get_row(order_id, kind)
        return row.payload if row else None

    async def put_document(
        self, order_id: str, kind: DocumentKind, payload: str, *, commit: bool = True
    ) -> None:
        """
        Insert or replace one document.

        With commit=False the write joins the caller's transaction.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"No upsert support for the {dialect} dialect")
        now = utcnow()
        stmt = insert(PacketDocument).values(
            order_id=order_id, kind=kind.value, payload=payload, created_at=now, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["order_id", "kind"],
            set_={"payload": stmt.excluded.payload, "updated_at": stmt.excluded.updated_at},
        )
        await self.execute(stmt)
        if commit:
            await self.commit()
