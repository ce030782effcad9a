from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from inspectflow.core.deps import get_actor_role, get_inspection_service
from inspectflow.schemas.common import Role
from inspectflow.schemas.orders import OrderAdvance, OrderCreate, OrderRead, OrderStatus
from inspectflow.services.inspection import InspectionService

router = APIRouter(prefix="/orders", tags=["Orders"])


# PUBLIC_INTERFACE
@router.get(
    "/today",
    response_model=List[OrderRead],
    summary="List today's orders",
    description="Orders created during the current local day, newest first (max 50).",
)
async def list_today(
    service: InspectionService = Depends(get_inspection_service),
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
) -> List[OrderRead]:
    return await service.list_today(status_filter)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[OrderRead],
    summary="List orders",
    description="The 100 most recent orders, optionally filtered by status.",
)
async def list_orders(
    service: InspectionService = Depends(get_inspection_service),
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by status"),
) -> List[OrderRead]:
    return await service.list_orders(status_filter)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create an order (inspectors only). The id is generated when not supplied.",
)
async def create_order(
    payload: OrderCreate,
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> OrderRead:
    return await service.create_order(payload, actor_role)


# PUBLIC_INTERFACE
@router.get(
    "/{order_id}",
    response_model=OrderRead,
    summary="Get order",
    description="Get an order by id.",
)
async def get_order(
    order_id: str = Path(...),
    service: InspectionService = Depends(get_inspection_service),
) -> OrderRead:
    return await service.get_order(order_id)


# PUBLIC_INTERFACE
@router.post(
    "/{order_id}/advance",
    response_model=OrderRead,
    summary="Advance order status",
    description="Move an order one step forward: QUEUED -> IN_PROGRESS -> DONE.",
)
async def advance_order(
    payload: OrderAdvance,
    order_id: str = Path(...),
    actor_role: Role = Depends(get_actor_role),
    service: InspectionService = Depends(get_inspection_service),
) -> OrderRead:
    return await service.advance_order(order_id, payload.status, actor_role)
