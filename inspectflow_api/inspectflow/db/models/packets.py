from __future__ import annotations

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inspectflow.db.base import Base, TimestampMixin


class PacketDocument(TimestampMixin, Base):
    """
    Serialized packet state keyed by order id and kind (meta, report, gauges).

    Writes replace the whole document; the last write wins.
    """
    __tablename__ = "packet_documents"
    __table_args__ = (UniqueConstraint("order_id", "kind", name="uq_packet_documents_order_kind"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
