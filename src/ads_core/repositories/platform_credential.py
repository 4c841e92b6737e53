"""Repository for platform credentials."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models.ad_platform import AdPlatform
from ..models.platform_credential import PlatformCredential
from ..utils.time import now_db_utc


class PlatformCredentialRepository(BaseRepository[PlatformCredential]):
    """Data access layer for platform credentials.

    Writes always set the full token tuple (access token, refresh token,
    expiry) in one flush so a reader never sees a token with a foreign expiry.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(PlatformCredential, session)

    async def get_by_advertiser_platform(self, advertiser_id: str, platform_id: str) -> Optional[PlatformCredential]:
        stmt = select(PlatformCredential).where(
            PlatformCredential.advertiser_id == advertiser_id,
            PlatformCredential.platform_id == platform_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        profile_id: Optional[str],
        access_token_encrypted: str,
        refresh_token_encrypted: str,
        token_expires_at: datetime,
    ) -> PlatformCredential:
        """Insert or overwrite the credential keyed on (advertiser_id, platform_id)."""
        existing = await self.get_by_advertiser_platform(advertiser_id, platform_id)
        if existing is None:
            record = PlatformCredential(
                advertiser_id=advertiser_id,
                platform_id=platform_id,
                profile_id=profile_id,
                access_token_encrypted=access_token_encrypted,
                refresh_token_encrypted=refresh_token_encrypted,
                token_expires_at=token_expires_at,
                is_active=True,
            )
            self.session.add(record)
            try:
                await self.session.flush()
                return record
            except IntegrityError:
                # Concurrent first connection won the insert; fall through to update.
                await self.session.rollback()
                existing = await self.get_by_advertiser_platform(advertiser_id, platform_id)
                if existing is None:
                    raise

        existing.profile_id = profile_id
        existing.access_token_encrypted = access_token_encrypted
        existing.refresh_token_encrypted = refresh_token_encrypted
        existing.token_expires_at = token_expires_at
        existing.is_active = True
        existing.updated_at = now_db_utc()
        await self.session.flush()
        return existing

    async def update_tokens(
        self,
        credential: PlatformCredential,
        *,
        access_token_encrypted: str,
        token_expires_at: datetime,
        refresh_token_encrypted: Optional[str] = None,
    ) -> PlatformCredential:
        """Store a refreshed access token; a rotated refresh token is swapped in the same flush."""
        credential.access_token_encrypted = access_token_encrypted
        credential.token_expires_at = token_expires_at
        if refresh_token_encrypted:
            credential.refresh_token_encrypted = refresh_token_encrypted
        credential.updated_at = now_db_utc()
        await self.session.flush()
        return credential

    async def deactivate(self, credential: PlatformCredential) -> PlatformCredential:
        credential.is_active = False
        credential.updated_at = now_db_utc()
        await self.session.flush()
        return credential

    async def list_by_advertiser(self, advertiser_id: str) -> List[Tuple[PlatformCredential, AdPlatform]]:
        stmt = (
            select(PlatformCredential, AdPlatform)
            .join(AdPlatform, AdPlatform.id == PlatformCredential.platform_id)
            .where(PlatformCredential.advertiser_id == advertiser_id)
            .order_by(AdPlatform.name)
        )
        result = await self.session.execute(stmt)
        return [(credential, platform) for credential, platform in result.all()]

    async def list_active_expiring_before(self, deadline: datetime, limit: int = 100) -> List[PlatformCredential]:
        """Active credentials whose token is missing or expires before the deadline (naive UTC)."""
        stmt = (
            select(PlatformCredential)
            .where(
                PlatformCredential.is_active.is_(True),
                PlatformCredential.refresh_token_encrypted.is_not(None),
                (PlatformCredential.token_expires_at.is_(None)) | (PlatformCredential.token_expires_at < deadline),
            )
            .order_by(PlatformCredential.token_expires_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
