from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.core.errors import (
    DuplicateOrderError,
    GaugeNotFoundError,
    OrderIdExhaustedError,
    OrderNotFoundError,
    PacketValidationError,
    RoleNotPermittedError,
)
from inspectflow.repositories.gauges import GaugeRepository
from inspectflow.repositories.orders import OrderRepository
from inspectflow.repositories.packets import DocumentKind, PacketStateRepository
from inspectflow.schemas.common import Role
from inspectflow.schemas.gauges import GaugeRecord, GaugeUseRecord, GaugeView
from inspectflow.schemas.orders import OrderCreate, OrderRead, OrderStatus
from inspectflow.schemas.packets import (
    FieldEvaluationRead,
    InspectionReport,
    Packet,
    PacketMeta,
    ReportEvaluationRead,
    ReportSignatures,
    RowEvaluationRead,
)
from inspectflow.services import gauges as gauge_lifecycle
from inspectflow.services import orders as order_lifecycle
from inspectflow.services import packets as packet_assembler
from inspectflow.services import serialization, signing
from inspectflow.services.base import BaseService
from inspectflow.services.measurements import RowEvaluation, evaluate_row, infer_variant

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT")


def row_evaluation_read(ev: RowEvaluation) -> RowEvaluationRead:
    return RowEvaluationRead(
        serial=ev.serial,
        fields={k: FieldEvaluationRead(**vars(f)) for k, f in ev.fields.items()},
        out_of_tolerance_keys=ev.out_of_tolerance_keys,
        invalid_keys=ev.invalid_keys,
        suggested_result=ev.suggested_result,
    )


class InspectionService(BaseService):
    """
    Domain service for the inspection workflow.

    Loads state from the order, gauge and packet stores, applies the pure engine
    rules and writes the results back. Every mutating call takes the acting role
    explicitly.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        clock: Callable[[], datetime] = gauge_lifecycle.utcnow,
        due_soon_days: int = gauge_lifecycle.DUE_SOON_DAYS,
        report_rows: int = packet_assembler.DEFAULT_ROW_COUNT,
    ) -> None:
        super().__init__(session)
        self.orders = OrderRepository(session)
        self.gauges = GaugeRepository(session)
        self.documents = PacketStateRepository(session)
        self.clock = clock
        self.due_soon_days = due_soon_days
        self.report_rows = report_rows

    # ---- orders -------------------------------------------------------------

    # PUBLIC_INTERFACE
    async def create_order(self, payload: OrderCreate, actor_role: Role) -> OrderRead:
        """
        Create an order and store its packet side data.

        Parameters:
            payload: OrderCreate request; `id` is generated when omitted
            actor_role: must be INSPECTOR
        Returns:
            The created order
        """
        order_lifecycle.authorize_create(actor_role)
        part_number, required_thread = order_lifecycle.validate_new_order(
            payload.part_number, payload.required_thread
        )

        async with self.store_guard("order"):
            if payload.id and payload.id.strip():
                order_id = payload.id.strip()
                if await self.orders.exists(order_id):
                    raise DuplicateOrderError(order_id)
            else:
                for candidate in order_lifecycle.order_id_candidates():
                    if not await self.orders.exists(candidate):
                        order_id = candidate
                        break
                else:
                    raise OrderIdExhaustedError(order_lifecycle.MAX_ID_ATTEMPTS)

            meta = PacketMeta(
                order_id=order_id,
                part_number=part_number,
                required_thread=required_thread,
                ndt_type=None if (payload.ndt_type or "").strip() in ("", "None") else payload.ndt_type,
                blueprint_url=payload.blueprint_url or None,
            )
            # order row and packet meta commit together
            try:
                created = await self.orders.create_order(
                    order_id=order_id,
                    part_number=part_number,
                    required_thread=required_thread,
                    status=payload.status,
                    created_at=self.clock(),
                    commit=False,
                )
                await self.documents.put_document(
                    order_id, DocumentKind.META, serialization.serialize_meta(meta), commit=False
                )
                await self.session.commit()
            except IntegrityError:
                # another writer took the id between the check and the insert
                await self.session.rollback()
                raise DuplicateOrderError(order_id)

        logger.info("Order %s created (%s, %s)", created.id, part_number, required_thread)
        return OrderRead.model_validate(created)

    async def list_orders(self, status: Optional[OrderStatus] = None) -> List[OrderRead]:
        async with self.store_guard("order"):
            rows = await self.orders.list_orders(status=status)
        return [OrderRead.model_validate(x) for x in rows]

    async def list_today(self, status: Optional[OrderStatus] = None) -> List[OrderRead]:
        async with self.store_guard("order"):
            rows = await self.orders.list_today(status=status, now=self.clock())
        return [OrderRead.model_validate(x) for x in rows]

    async def get_order(self, order_id: str) -> OrderRead:
        async with self.store_guard("order"):
            row = await self.orders.get_order(order_id)
        if row is None:
            raise OrderNotFoundError(order_id)
        return OrderRead.model_validate(row)

    # PUBLIC_INTERFACE
    async def advance_order(self, order_id: str, target: OrderStatus, actor_role: Role) -> OrderRead:
        """Move an order one step forward, enforcing the role allowed to do so."""
        async with self.store_guard("order"):
            row = await self.orders.get_order(order_id)
            if row is None:
                raise OrderNotFoundError(order_id)
            advanced = order_lifecycle.advance(OrderRead.model_validate(row), target, actor_role)
            row = await self.orders.update_status(row, advanced.status)
        return OrderRead.model_validate(row)

    # ---- gauges -------------------------------------------------------------

    async def list_gauges(self, query: str = "", status_filter: str = "ALL") -> List[GaugeView]:
        """Gauge catalog augmented with computed status and days left."""
        async with self.store_guard("gauge"):
            rows = await self.gauges.list_all()
        now = self.clock()
        views = [
            gauge_lifecycle.describe(GaugeRecord.model_validate(g), now, self.due_soon_days)
            for g in rows
        ]
        return gauge_lifecycle.filter_catalog(views, query, status_filter)

    async def _get_gauge(self, gauge_id: str) -> GaugeRecord:
        async with self.store_guard("gauge"):
            row = await self.gauges.get_gauge(gauge_id)
        if row is None:
            raise GaugeNotFoundError(gauge_id)
        return GaugeRecord.model_validate(row)

    async def set_gauge_broken(self, gauge_id: str, is_broken: bool, actor_role: Role) -> GaugeView:
        """Inspectors take gauges out of service (or return them) by hand."""
        if actor_role != Role.INSPECTOR:
            raise RoleNotPermittedError("change gauge service status", actor_role)
        async with self.store_guard("gauge"):
            row = await self.gauges.get_gauge(gauge_id)
            if row is None:
                raise GaugeNotFoundError(gauge_id)
            row = await self.gauges.set_broken(row, is_broken)
        logger.info("Gauge %s broken flag set to %s", gauge_id, is_broken)
        return gauge_lifecycle.describe(GaugeRecord.model_validate(row), self.clock(), self.due_soon_days)

    # ---- packets ------------------------------------------------------------

    async def _load(self, order_id: str, kind: DocumentKind, loader: Callable[[str], DocT]) -> Optional[DocT]:
        async with self.store_guard("packet"):
            text = await self.documents.get_document(order_id, kind)
        if text is None:
            return None
        try:
            return loader(text)
        except ValidationError:
            logger.warning("Ignoring unreadable %s document for order %s", kind.value, order_id)
            return None

    # PUBLIC_INTERFACE
    async def open_packet(self, order_id: str) -> Packet:
        """
        Assemble the packet for an order from the fixed template and whatever
        state was saved earlier. Missing side data leaves header fields blank.
        """
        order_id = (order_id or "").strip()
        if not order_id:
            raise PacketValidationError("orderId is required")
        meta = await self._load(order_id, DocumentKind.META, serialization.deserialize_meta)
        report = await self._load(order_id, DocumentKind.REPORT, serialization.deserialize_report)
        uses = await self._load(order_id, DocumentKind.GAUGES, serialization.deserialize_gauge_uses)
        return packet_assembler.open_packet(order_id, meta, report, uses, row_count=self.report_rows)

    async def get_report(self, order_id: str) -> InspectionReport:
        return (await self.open_packet(order_id)).report

    # PUBLIC_INTERFACE
    async def save_report(self, order_id: str, report: InspectionReport, actor_role: Role) -> InspectionReport:
        """
        Replace the stored report; the last write wins.

        Signatures are not writable here: the stored signature block is kept and
        whatever the payload carries is dropped. Use `sign_report` to sign.
        """
        stored = await self._load(order_id, DocumentKind.REPORT, serialization.deserialize_report)
        signatures = stored.signatures if stored is not None else ReportSignatures()
        report = report.model_copy(
            update={
                "variant": infer_variant(report.header.description, report.variant),
                "signatures": signatures,
            }
        )
        async with self.store_guard("packet"):
            await self.documents.put_document(order_id, DocumentKind.REPORT, serialization.serialize_report(report))
        logger.info("Report for order %s saved by %s", order_id, actor_role.value)
        return report

    async def evaluate_report(self, order_id: str) -> ReportEvaluationRead:
        report = await self.get_report(order_id)
        rows = []
        oot = invalid = 0
        for row in report.dimensions:
            ev = evaluate_row(row)
            oot += len(ev.out_of_tolerance_keys)
            invalid += len(ev.invalid_keys)
            rows.append(row_evaluation_read(ev))
        return ReportEvaluationRead(
            order_id=order_id, rows=rows, out_of_tolerance_count=oot, invalid_count=invalid
        )

    async def _gauge_selection(self, order_id: str) -> gauge_lifecycle.GaugeSelection:
        uses = await self._load(order_id, DocumentKind.GAUGES, serialization.deserialize_gauge_uses)
        return gauge_lifecycle.GaugeSelection(uses, self.due_soon_days)

    async def _save_selection(self, order_id: str, selection: gauge_lifecycle.GaugeSelection) -> None:
        async with self.store_guard("packet"):
            await self.documents.put_document(
                order_id, DocumentKind.GAUGES, serialization.serialize_gauge_uses(selection.records)
            )

    # PUBLIC_INTERFACE
    async def record_gauge_use(self, order_id: str, gauge_id: str, actor_role: Role) -> GaugeUseRecord:
        """Attach a gauge to the packet, or add the acting role's confirmation to it."""
        gauge = await self._get_gauge(gauge_id)
        selection = await self._gauge_selection(order_id)
        record = selection.select(gauge, actor_role, self.clock())
        await self._save_selection(order_id, selection)
        return record

    async def unuse_gauge(self, order_id: str, gauge_id: str) -> Dict[str, GaugeUseRecord]:
        selection = await self._gauge_selection(order_id)
        if selection.unuse(gauge_id):
            await self._save_selection(order_id, selection)
        return selection.records

    # PUBLIC_INTERFACE
    async def verify_gauge_use(self, order_id: str, gauge_id: str, actor_role: Role) -> GaugeUseRecord:
        packet = await self.open_packet(order_id)
        packet = signing.verify_gauge_use(packet, gauge_id, actor_role, self.clock())
        selection = gauge_lifecycle.GaugeSelection(packet.gauge_uses, self.due_soon_days)
        await self._save_selection(order_id, selection)
        return packet.gauge_uses[gauge_id]

    # PUBLIC_INTERFACE
    async def sign_report(self, order_id: str, actor_role: Role, name: Optional[str] = None) -> ReportSignatures:
        packet = await self.open_packet(order_id)
        packet = signing.sign_packet(packet, actor_role, self.clock(), name)
        async with self.store_guard("packet"):
            await self.documents.put_document(
                order_id, DocumentKind.REPORT, serialization.serialize_report(packet.report)
            )
        return packet.report.signatures
