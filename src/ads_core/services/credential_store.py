"""Encrypted persistence of platform credentials."""

from __future__ import annotations

import base64
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..exceptions import ConfigurationError, CredentialNotFoundError
from ..models.platform_credential import PlatformCredential
from ..repositories.ad_platform import AdPlatformRepository
from ..repositories.platform_credential import PlatformCredentialRepository
from ..schemas.credential import ConnectedPlatform, CredentialSnapshot
from ..utils.time import now_utc, to_db_utc, to_utc

logger = logging.getLogger(__name__)


class CredentialStoreService:
    """
    Handles encryption at rest and persistence of platform credentials.

    Every public method is its own unit of work: it opens a short-lived
    session from the injected factory and commits before returning, so
    concurrent refreshes never share a session.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], async_sessionmaker[AsyncSession]],
        credential_repository_factory: Callable[..., PlatformCredentialRepository],
        platform_repository_factory: Callable[..., AdPlatformRepository],
        encryption_key: str,
    ):
        self._session_factory_provider = session_factory
        self._credential_repository_factory = credential_repository_factory
        self._platform_repository_factory = platform_repository_factory
        self._fernet = self._build_fernet(encryption_key)

    @staticmethod
    def _build_fernet(key: str) -> Fernet:
        try:
            raw = key.encode("utf-8")
            # Fernet expects 32 urlsafe base64 bytes
            base64.urlsafe_b64decode(raw)
            return Fernet(raw)
        except Exception as exc:  # noqa: BLE001
            raise ConfigurationError("Invalid OAUTH_ENCRYPTION_KEY. Expected urlsafe base64 32 bytes.") from exc

    def _encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode("utf-8")).decode("utf-8")

    def _decrypt(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            return self._fernet.decrypt(value.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ConfigurationError("Stored credential cannot be decrypted. Check OAUTH_ENCRYPTION_KEY.") from exc

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        session_factory = self._session_factory_provider()
        try:
            async with session_factory() as session:
                yield session
        except (OperationalError, InterfaceError) as exc:
            logger.error("Credential store unavailable | error=%s", exc)
            raise ConfigurationError("Credential store is unavailable") from exc

    def _snapshot(self, record: PlatformCredential) -> CredentialSnapshot:
        return CredentialSnapshot(
            id=record.id,
            advertiser_id=record.advertiser_id,
            platform_id=record.platform_id,
            profile_id=record.profile_id,
            access_token=self._decrypt(record.access_token_encrypted),
            refresh_token=self._decrypt(record.refresh_token_encrypted),
            token_expires_at=to_utc(record.token_expires_at) if record.token_expires_at else None,
            is_active=record.is_active,
            updated_at=to_utc(record.updated_at) if record.updated_at else None,
        )

    async def ensure_platform(self, *, name: str, display_name: str, api_base_url: str) -> str:
        """Return the platform id, registering the platform on first use."""
        async with self._session() as session:
            repo = self._platform_repository_factory(session=session)
            platform = await repo.get_or_create(name=name, display_name=display_name, api_base_url=api_base_url)
            platform_id = platform.id
            await session.commit()
            return platform_id

    async def get(self, credential_id: str) -> CredentialSnapshot:
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            record = await repo.get_by_id(credential_id)
            if record is None:
                raise CredentialNotFoundError(credential_id)
            return self._snapshot(record)

    async def save_exchanged_tokens(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        profile_id: Optional[str],
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> CredentialSnapshot:
        """Upsert the credential for (advertiser, platform) and mark it active."""
        if not refresh_token:
            raise ValueError("Refresh token is required for an active credential")
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            record = await repo.upsert(
                advertiser_id=advertiser_id,
                platform_id=platform_id,
                profile_id=profile_id,
                access_token_encrypted=self._encrypt(access_token),
                refresh_token_encrypted=self._encrypt(refresh_token),
                token_expires_at=to_db_utc(expires_at),
            )
            await session.commit()
            return self._snapshot(record)

    async def save_refreshed_tokens(
        self,
        credential_id: str,
        *,
        access_token: str,
        expires_at: datetime,
        refresh_token: Optional[str] = None,
    ) -> CredentialSnapshot:
        """Persist (access token, expiry[, rotated refresh token]) as one update."""
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            record = await repo.get_by_id(credential_id)
            if record is None:
                raise CredentialNotFoundError(credential_id)

            previous_expiry = record.token_expires_at
            new_expiry = to_db_utc(expires_at)
            if previous_expiry is not None and new_expiry <= previous_expiry:
                logger.warning(
                    "Refreshed token expires no later than the stored one | credential_id=%s | previous=%s | new=%s",
                    credential_id,
                    previous_expiry.isoformat(),
                    new_expiry.isoformat(),
                )

            await repo.update_tokens(
                record,
                access_token_encrypted=self._encrypt(access_token),
                token_expires_at=new_expiry,
                refresh_token_encrypted=self._encrypt(refresh_token) if refresh_token else None,
            )
            await session.commit()
            return self._snapshot(record)

    async def deactivate(self, credential_id: str) -> CredentialSnapshot:
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            record = await repo.get_by_id(credential_id)
            if record is None:
                raise CredentialNotFoundError(credential_id)
            await repo.deactivate(record)
            await session.commit()
            return self._snapshot(record)

    async def list_connected(self, advertiser_id: str) -> List[ConnectedPlatform]:
        now = now_utc()
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            rows = await repo.list_by_advertiser(advertiser_id)

        platforms: List[ConnectedPlatform] = []
        for credential, platform in rows:
            expires_at = to_utc(credential.token_expires_at) if credential.token_expires_at else None
            is_expired = expires_at is not None and expires_at <= now
            platforms.append(
                ConnectedPlatform(
                    credential_id=credential.id,
                    platform_id=platform.id,
                    platform_name=platform.name,
                    display_name=platform.display_name,
                    profile_id=credential.profile_id,
                    is_active=credential.is_active,
                    token_status="expired" if is_expired else "valid",
                    token_expires_at=expires_at,
                )
            )
        return platforms

    async def list_expiring_credential_ids(self, deadline: datetime, limit: int = 100) -> List[str]:
        async with self._session() as session:
            repo = self._credential_repository_factory(session=session)
            records = await repo.list_active_expiring_before(to_db_utc(deadline), limit=limit)
            return [record.id for record in records]
