"""Best-effort writer for the platform operation audit log."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.operation_log import OperationStatus
from ..repositories.operation_log import OperationLogRepository

logger = logging.getLogger(__name__)


class OperationLogService:
    """
    Side channel for audit entries.

    ``record`` never raises: a failed log write is reported through the
    application logger and the caller's own outcome stands.
    """

    def __init__(
        self,
        repository_factory: Callable[..., OperationLogRepository],
        session_factory: Callable[[], async_sessionmaker[AsyncSession]],
    ):
        self._repository_factory = repository_factory
        self._session_factory_provider = session_factory

    async def record(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        operation_type: str,
        status: OperationStatus,
        error_message: Optional[str] = None,
        credential_id: Optional[str] = None,
        request_payload: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Append one entry. Returns False when the write failed."""
        try:
            session_factory = self._session_factory_provider()
            async with session_factory() as session:
                repo = self._repository_factory(session=session)
                await repo.append(
                    advertiser_id=advertiser_id,
                    platform_id=platform_id,
                    credential_id=credential_id,
                    operation_type=operation_type,
                    status=OperationStatus(status).value,
                    error_message=error_message,
                    request_payload=request_payload,
                )
                await session.commit()
        except Exception:
            logger.exception(
                "Failed to write operation log | advertiser_id=%s | operation_type=%s | status=%s",
                advertiser_id,
                operation_type,
                status,
            )
            return False

        logger.debug(
            "Operation logged | advertiser_id=%s | operation_type=%s | status=%s",
            advertiser_id,
            operation_type,
            OperationStatus(status).value,
        )
        return True
