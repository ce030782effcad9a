from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path, Query

from inspectflow.core.deps import get_actor_role, get_inspection_service
from inspectflow.schemas.common import Role
from inspectflow.schemas.gauges import GaugeBrokenUpdate, GaugeView
from inspectflow.services.inspection import InspectionService

router = APIRouter(prefix="/gauges", tags=["Gauges"])


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[GaugeView],
    summary="List gauges",
    description="Gauge catalog with computed days left and calibration status.",
)
async def list_gauges(
    service: InspectionService = Depends(get_inspection_service),
    q: str = Query("", description="Search name, type and location"),
    status_filter: str = Query("ALL", alias="status", description="ALL, OK, DUE, EXPIRED or BROKEN"),
) -> List[GaugeView]:
    return await service.list_gauges(q, status_filter)


# PUBLIC_INTERFACE
@router.put(
    "/{gauge_id}/broken",
    response_model=GaugeView,
    summary="Set broken flag",
    description="Take a gauge out of service or return it (inspectors only).",
)
async def set_broken(
    payload: GaugeBrokenUpdate,
    gauge_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> GaugeView:
    return await service.set_gauge_broken(gauge_id, payload.is_broken, actor_role)
