from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.core.logging import actor_role_var
from inspectflow.core.settings import get_app_settings
from inspectflow.db.session import get_async_session
from inspectflow.schemas.common import Role
from inspectflow.services.inspection import InspectionService

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
async def get_actor_role(x_actor_role: Optional[str] = Header(default=None, alias="X-Actor-Role")) -> Role:
    """
    Extract and validate the acting role from the X-Actor-Role header.

    Raises:
        HTTPException: 400 Bad Request if header missing or not OPERATOR/INSPECTOR.
    Returns:
        Role: the acting role, passed explicitly into every engine call
    """
    if not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Role header is required.",
        )
    try:
        role = Role(x_actor_role.strip().upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Role header must be OPERATOR or INSPECTOR.",
        )
    actor_role_var.set(role.value)
    return role


# PUBLIC_INTERFACE
async def get_inspection_service(
    session: AsyncSession = Depends(get_async_session),
) -> InspectionService:
    """Build the inspection service for the request's session."""
    settings = get_app_settings()
    return InspectionService(
        session,
        due_soon_days=settings.DUE_SOON_DAYS,
        report_rows=settings.DEFAULT_REPORT_ROWS,
    )
