"""
Inspection packet assembly.

A packet is rebuilt from a fixed template every time it is opened, so the same
order always yields the same SOP links and checklist. Report data and gauge use
records captured earlier are carried through unchanged.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from inspectflow.core.errors import PacketValidationError
from inspectflow.schemas.gauges import GaugeUseRecord
from inspectflow.schemas.packets import DimensionRow, InspectionReport, Packet, PacketMeta

SOP_LINKS: Tuple[str, ...] = (
    "SOP-THREAD-GENERAL.pdf",
    "SOP-NDT-MT-LEVEL2.pdf",
)

CHECKLIST: Tuple[str, ...] = (
    "Verify gauge calibration",
    "Confirm thread spec vs order",
    "Record measurements",
    "Sign inspector certificate",
)

DEFAULT_ROW_COUNT = 12
PLACEHOLDER = "—"


def default_rows(count: int = DEFAULT_ROW_COUNT) -> list[DimensionRow]:
    return [DimensionRow(serial=str(i + 1)) for i in range(count)]


def new_report(row_count: int = DEFAULT_ROW_COUNT) -> InspectionReport:
    return InspectionReport(dimensions=default_rows(row_count))


# PUBLIC_INTERFACE
def open_packet(
    order_id: str,
    meta: Optional[PacketMeta] = None,
    report: Optional[InspectionReport] = None,
    gauge_uses: Optional[Dict[str, GaugeUseRecord]] = None,
    row_count: int = DEFAULT_ROW_COUNT,
) -> Packet:
    """
    Compose the inspection packet for an order.

    Parameters:
        order_id: the order the packet belongs to
        meta: order-creation side data; when missing the header fields stay blank
        report: previously captured report, copied as is
        gauge_uses: previously recorded gauge use, copied as is
        row_count: blank rows in a fresh report
    Raises:
        PacketValidationError: order_id is blank.
    """
    order_id = (order_id or "").strip()
    if not order_id:
        raise PacketValidationError("orderId is required")

    if meta is None:
        meta = PacketMeta(order_id=order_id)
    report = report.model_copy(deep=True) if report is not None else new_report(row_count)
    uses = {k: v.model_copy() for k, v in (gauge_uses or {}).items()}

    return Packet(
        order_id=order_id,
        sop_links=list(SOP_LINKS),
        checklist=list(CHECKLIST),
        meta=meta.model_copy(),
        report=report,
        gauge_uses=uses,
    )


def header_summary(packet: Packet) -> Dict[str, Optional[str]]:
    """Display values for the packet header; blanks become a placeholder dash."""
    meta = packet.meta
    return {
        "part_number": meta.part_number or PLACEHOLDER,
        "thread": meta.required_thread or PLACEHOLDER,
        "ndt": meta.ndt_type or PLACEHOLDER,
        "blueprint_url": meta.blueprint_url or None,
    }


def add_row(report: InspectionReport) -> InspectionReport:
    rows = list(report.dimensions)
    rows.append(DimensionRow(serial=str(len(rows) + 1)))
    return report.model_copy(update={"dimensions": rows})


def remove_last_row(report: InspectionReport) -> InspectionReport:
    """Drop the last row, always keeping at least one."""
    if len(report.dimensions) <= 1:
        return report
    return report.model_copy(update={"dimensions": list(report.dimensions[:-1])})
