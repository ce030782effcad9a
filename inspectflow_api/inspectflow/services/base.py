from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inspectflow.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class BaseService:
    """
    Base class for services. Holds a session for use across multiple repositories.

    Services keep orchestration only: business rules live in the pure engine
    modules, data access in repositories.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def store_guard(self, store: str) -> AsyncIterator[None]:
        """Translate database failures into StoreUnavailableError for the named store."""
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("%s store failure", store)
            try:
                await self.session.rollback()
            except SQLAlchemyError:
                logger.warning("Rollback failed after %s store failure", store)
            raise StoreUnavailableError(store) from exc
