from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    """Order lifecycle states, in forward order."""
    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class OrderRead(BaseModel):
    """Order read model."""
    id: str = Field(..., description="Short opaque order identifier")
    part_number: str = Field(..., description="Part number")
    required_thread: str = Field(..., description="Required thread, e.g. 2-3/8\" 8RD")
    status: OrderStatus = Field(..., description="Lifecycle status")
    created_at: datetime = Field(..., description="Created at")

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    """
    Create order payload.

    Packet side data (NDT type, blueprint link) is optional and stored alongside
    the order so the packet header can show it later.
    """
    id: Optional[str] = Field(None, description="Manual order id; generated when omitted")
    part_number: str = Field("", description="Part number")
    required_thread: str = Field("", description="Required thread")
    status: OrderStatus = Field(OrderStatus.QUEUED, description="Initial status")
    ndt_type: Optional[str] = Field(None, description="NDT method for the packet header")
    blueprint_url: Optional[str] = Field(None, description="Blueprint reference for the packet")


class OrderAdvance(BaseModel):
    """Advance order status payload."""
    status: OrderStatus = Field(..., description="Target status (must be the next state)")
