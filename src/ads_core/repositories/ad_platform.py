"""Repository for advertising platforms."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models.ad_platform import AdPlatform


class AdPlatformRepository(BaseRepository[AdPlatform]):
    def __init__(self, session: AsyncSession):
        super().__init__(AdPlatform, session)

    async def get_by_name(self, name: str) -> Optional[AdPlatform]:
        stmt = select(AdPlatform).where(AdPlatform.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, *, name: str, display_name: str, api_base_url: str) -> AdPlatform:
        """Return the platform row, creating it on first connection."""
        existing = await self.get_by_name(name)
        if existing:
            return existing

        platform = AdPlatform(name=name, display_name=display_name, api_base_url=api_base_url)
        self.session.add(platform)
        try:
            await self.session.flush()
        except IntegrityError:
            # Another request created it between the select and the insert.
            await self.session.rollback()
            existing = await self.get_by_name(name)
            if existing is None:
                raise
            return existing
        return platform
