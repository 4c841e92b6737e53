"""Refresh token use case - exchanges a refresh token for a new access token."""

import logging
from typing import Optional

from ..exceptions import MissingRefreshTokenError, ProviderError, TokenRefreshError, serialize_payload
from ..interfaces.services import IAmazonOAuthClient, ICredentialStore, ILockManager, IOperationLogService
from ..models.operation_log import OperationStatus, OperationType
from ..schemas.credential import CredentialSnapshot
from ..utils.single_flight import SingleFlight
from ..utils.time import expires_at_from, iso_utc

logger = logging.getLogger(__name__)

REFRESH_LOCK_PREFIX = "credential-refresh"


class RefreshTokenUseCase:
    """
    Refresh one credential and persist the new token pair.

    Concurrent callers in this process share a single refresh per credential;
    across processes a Redis lock serializes them. With ``force=False`` the
    credential is re-read once the lock is held and returned untouched if
    another worker already refreshed it.
    """

    def __init__(
        self,
        credential_store: ICredentialStore,
        oauth_client: IAmazonOAuthClient,
        operation_log: IOperationLogService,
        lock_manager: ILockManager,
        single_flight: SingleFlight,
        skew_window_seconds: int = 300,
        default_expires_in_seconds: int = 3600,
        lock_timeout_seconds: int = 60,
    ):
        self.credential_store = credential_store
        self.oauth_client = oauth_client
        self.operation_log = operation_log
        self.lock_manager = lock_manager
        self.single_flight = single_flight
        self.skew_window_seconds = skew_window_seconds
        self.default_expires_in_seconds = default_expires_in_seconds
        self.lock_timeout_seconds = lock_timeout_seconds

    async def execute(self, credential_id: str, force: bool = True) -> CredentialSnapshot:
        """
        Refresh the credential's access token.

        Args:
            credential_id: Credential to refresh
            force: Refresh even if the stored token is still fresh (used after a 401)

        Returns:
            Snapshot of the credential as stored after the call

        Raises:
            ConfigurationError: client credentials missing or store unreachable
            CredentialNotFoundError: no such credential
            MissingRefreshTokenError: credential has no refresh token
            TokenRefreshError: provider rejected the refresh
        """
        self.oauth_client.ensure_configured()
        flight_key = f"{credential_id}:{'force' if force else 'stale'}"
        return await self.single_flight.run(flight_key, lambda: self._refresh(credential_id, force))

    async def _refresh(self, credential_id: str, force: bool) -> CredentialSnapshot:
        lock_key = f"{REFRESH_LOCK_PREFIX}:{credential_id}"
        async with self.lock_manager.acquire(
            lock_key,
            timeout=self.lock_timeout_seconds,
            wait=True,
        ) as held:
            if not held:
                logger.warning(
                    "Refresh lock not acquired, proceeding with re-read | credential_id=%s | lock_key=%s",
                    credential_id,
                    lock_key,
                )

            # Re-read under the lock: another worker may have rotated the refresh token.
            credential = await self.credential_store.get(credential_id)

            if not force and not credential.is_stale(self.skew_window_seconds):
                logger.info(
                    "Credential already refreshed by another caller | credential_id=%s | expires_at=%s",
                    credential_id,
                    iso_utc(credential.token_expires_at),
                )
                return credential

            if not credential.refresh_token:
                error = MissingRefreshTokenError(credential_id)
                logger.error("Cannot refresh credential | credential_id=%s | reason=missing_refresh_token", credential_id)
                await self._log(credential, OperationStatus.ERROR, error_message=error.message)
                raise error

            return await self._refresh_with_provider(credential)

    async def _refresh_with_provider(self, credential: CredentialSnapshot) -> CredentialSnapshot:
        logger.info(
            "Refreshing access token | credential_id=%s | advertiser_id=%s | previous_expiry=%s",
            credential.id,
            credential.advertiser_id,
            iso_utc(credential.token_expires_at),
        )
        try:
            grant = await self.oauth_client.refresh(credential.refresh_token)
        except ProviderError as exc:
            payload = exc.body
            logger.error(
                "Token refresh rejected | credential_id=%s | status=%s | payload=%s",
                credential.id,
                exc.status_code,
                serialize_payload(payload),
            )
            await self._log(credential, OperationStatus.ERROR, error_message=serialize_payload(payload))
            raise TokenRefreshError(payload, status_code=exc.status_code) from exc

        expires_at = expires_at_from(grant.lifetime_seconds(self.default_expires_in_seconds))
        rotated: Optional[str] = grant.refresh_token
        updated = await self.credential_store.save_refreshed_tokens(
            credential.id,
            access_token=grant.access_token,
            expires_at=expires_at,
            refresh_token=rotated,
        )

        logger.info(
            "Access token refreshed | credential_id=%s | expires_at=%s | refresh_token_rotated=%s",
            credential.id,
            iso_utc(expires_at),
            rotated is not None,
        )
        await self._log(
            credential,
            OperationStatus.SUCCESS,
            request_payload={"refresh_token_rotated": rotated is not None, "expires_at": iso_utc(expires_at)},
        )
        return updated

    async def _log(
        self,
        credential: CredentialSnapshot,
        status: OperationStatus,
        *,
        error_message: Optional[str] = None,
        request_payload: Optional[dict] = None,
    ) -> None:
        await self.operation_log.record(
            advertiser_id=credential.advertiser_id,
            platform_id=credential.platform_id,
            credential_id=credential.id,
            operation_type=OperationType.REFRESH_TOKEN,
            status=status,
            error_message=error_message,
            request_payload=request_payload,
        )
