"""Append-only repository for platform operation logs."""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models.operation_log import PlatformOperationLog


class OperationLogRepository(BaseRepository[PlatformOperationLog]):
    """Entries are only ever appended; there is no update or delete path."""

    def __init__(self, session: AsyncSession):
        super().__init__(PlatformOperationLog, session)

    async def append(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        operation_type: str,
        status: str,
        error_message: Optional[str] = None,
        credential_id: Optional[str] = None,
        request_payload: Optional[dict[str, Any]] = None,
    ) -> PlatformOperationLog:
        entry = PlatformOperationLog(
            advertiser_id=advertiser_id,
            platform_id=platform_id,
            credential_id=credential_id,
            operation_type=operation_type,
            status=status,
            error_message=error_message,
            request_payload=request_payload,
        )
        return await self.create(entry)

    async def list_for_advertiser(
        self,
        advertiser_id: str,
        *,
        operation_type: Optional[str] = None,
        limit: int = 100,
    ) -> List[PlatformOperationLog]:
        stmt = select(PlatformOperationLog).where(PlatformOperationLog.advertiser_id == advertiser_id)
        if operation_type:
            stmt = stmt.where(PlatformOperationLog.operation_type == operation_type)
        stmt = stmt.order_by(PlatformOperationLog.created_at.desc(), PlatformOperationLog.id.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
