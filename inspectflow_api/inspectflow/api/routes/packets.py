from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, Path

from inspectflow.core.deps import get_actor_role, get_inspection_service
from inspectflow.schemas.common import Role
from inspectflow.schemas.gauges import GaugeUseRecord
from inspectflow.schemas.packets import (
    DimensionRow,
    InspectionReport,
    OpenPacketRequest,
    Packet,
    ReportEvaluationRead,
    ReportSignatures,
    RowEvaluationRead,
    SignRequest,
)
from inspectflow.services.inspection import InspectionService, row_evaluation_read
from inspectflow.services.measurements import evaluate_row

router = APIRouter(prefix="/packets", tags=["Packets"])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=Packet,
    summary="Open packet",
    description=(
        "Assemble the inspection packet for an order: fixed checklist and SOP links, "
        "header side data, and any report or gauge state saved earlier."
    ),
)
async def open_packet(
    payload: OpenPacketRequest,
    service: InspectionService = Depends(get_inspection_service),
) -> Packet:
    return await service.open_packet(payload.order_id)


# PUBLIC_INTERFACE
@router.post(
    "/evaluate-row",
    response_model=RowEvaluationRead,
    summary="Evaluate a dimension row",
    description="Check one row of raw measurements against the 8-RD tolerance table. Nothing is stored.",
)
async def evaluate_dimension_row(row: DimensionRow) -> RowEvaluationRead:
    return row_evaluation_read(evaluate_row(row))


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}/report",
    response_model=InspectionReport,
    summary="Get report",
    description="The saved 8-RD report for an order, or a blank one.",
)
async def get_report(
    order_id: str = Path(...),
    service: InspectionService = Depends(get_inspection_service),
) -> InspectionReport:
    return await service.get_report(order_id)


# PUBLIC_INTERFACE
@router.put(
    "/{order_id}/report",
    response_model=InspectionReport,
    summary="Save report",
    description="Replace the saved report. No merge is attempted; the last write wins. Signatures are kept as stored.",
)
async def save_report(
    report: InspectionReport,
    order_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> InspectionReport:
    return await service.save_report(order_id, report, actor_role)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}/evaluation",
    response_model=ReportEvaluationRead,
    summary="Evaluate report",
    description="Per-field tolerance and parse status for every row of the saved report.",
)
async def evaluate_report(
    order_id: str = Path(...),
    service: InspectionService = Depends(get_inspection_service),
) -> ReportEvaluationRead:
    return await service.evaluate_report(order_id)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/gauges/{gauge_id}",
    response_model=GaugeUseRecord,
    summary="Record gauge use",
    description="Attach a gauge to the packet, or add the acting role's confirmation. Expired or broken gauges are rejected.",
)
async def record_gauge_use(
    order_id: str = Path(...),
    gauge_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> GaugeUseRecord:
    return await service.record_gauge_use(order_id, gauge_id, actor_role)


# PUBLIC_INTERFACE
@router.delete(
    "/{order_id}/gauges/{gauge_id}",
    response_model=Dict[str, GaugeUseRecord],
    summary="Unuse gauge",
    description="Remove a gauge's use record from the packet entirely.",
)
async def unuse_gauge(
    order_id: str = Path(...),
    gauge_id: str = Path(...),
    service: InspectionService = Depends(get_inspection_service),
) -> Dict[str, GaugeUseRecord]:
    return await service.unuse_gauge(order_id, gauge_id)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/gauges/{gauge_id}/verify",
    response_model=GaugeUseRecord,
    summary="Verify gauge use",
    description="Inspector verification of a recorded gauge; replaces any earlier verification time.",
)
async def verify_gauge_use(
    order_id: str = Path(...),
    gauge_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> GaugeUseRecord:
    return await service.verify_gauge_use(order_id, gauge_id, actor_role)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/sign",
    response_model=ReportSignatures,
    summary="Sign report",
    description="Sign (or re-sign) the report as the acting role.",
)
async def sign_report(
    payload: SignRequest,
    order_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> ReportSignatures:
    return await service.sign_report(order_id, actor_role, payload.name)
