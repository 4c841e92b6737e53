"""Exchange token use case - turns an authorization code into a stored credential."""

import logging
from typing import Optional

from ..exceptions import AdsCoreError, ExternalAuthError, ProviderError, serialize_payload
from ..interfaces.services import IAmazonOAuthClient, ICredentialStore, IOperationLogService
from ..models.operation_log import OperationStatus, OperationType
from ..schemas.credential import ExchangeResult
from ..utils.time import expires_at_from, iso_utc

logger = logging.getLogger(__name__)


class ExchangeTokenUseCase:
    """
    Complete the OAuth connection for an advertiser.

    Exchanges the code, picks the first advertising profile, and upserts the
    credential for (advertiser, platform). Exactly one ``initial_connection``
    log entry is written per call once the platform is known.
    """

    def __init__(
        self,
        credential_store: ICredentialStore,
        oauth_client: IAmazonOAuthClient,
        operation_log: IOperationLogService,
        platform_name: str,
        platform_display_name: str,
        api_base_url: str,
        default_expires_in_seconds: int = 3600,
    ):
        self.credential_store = credential_store
        self.oauth_client = oauth_client
        self.operation_log = operation_log
        self.platform_name = platform_name
        self.platform_display_name = platform_display_name
        self.api_base_url = api_base_url
        self.default_expires_in_seconds = default_expires_in_seconds

    async def execute(self, code: str, advertiser_id: str, redirect_uri: Optional[str] = None) -> ExchangeResult:
        """
        Exchange ``code`` and persist the resulting credential.

        Raises:
            ConfigurationError: client id/secret missing (nothing is written)
            ExternalAuthError: provider rejected the code, or granted no refresh token
            ProviderError: provider unavailable (5xx or network)
        """
        self.oauth_client.ensure_configured()
        logger.info("Starting token exchange | advertiser_id=%s | platform=%s", advertiser_id, self.platform_name)

        platform_id = await self.credential_store.ensure_platform(
            name=self.platform_name,
            display_name=self.platform_display_name,
            api_base_url=self.api_base_url,
        )

        try:
            result = await self._exchange(code, advertiser_id, platform_id, redirect_uri)
        except AdsCoreError as exc:
            await self.operation_log.record(
                advertiser_id=advertiser_id,
                platform_id=platform_id,
                operation_type=OperationType.INITIAL_CONNECTION,
                status=OperationStatus.ERROR,
                error_message=exc.message,
            )
            raise

        await self.operation_log.record(
            advertiser_id=advertiser_id,
            platform_id=platform_id,
            credential_id=result.credential_id,
            operation_type=OperationType.INITIAL_CONNECTION,
            status=OperationStatus.SUCCESS,
            request_payload={"profile_id": result.profile_id, "expires_at": iso_utc(result.expires_at)},
        )
        logger.info(
            "Token exchange completed | advertiser_id=%s | credential_id=%s | profile_id=%s",
            advertiser_id,
            result.credential_id,
            result.profile_id,
        )
        return result

    async def _exchange(
        self,
        code: str,
        advertiser_id: str,
        platform_id: str,
        redirect_uri: Optional[str],
    ) -> ExchangeResult:
        try:
            grant = await self.oauth_client.exchange_code(code, redirect_uri)
        except ProviderError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                logger.error(
                    "Authorization code rejected | advertiser_id=%s | status=%s | payload=%s",
                    advertiser_id,
                    exc.status_code,
                    serialize_payload(exc.body),
                )
                raise ExternalAuthError(
                    f"Authorization code rejected: {serialize_payload(exc.body)}",
                    payload=exc.body,
                ) from exc
            logger.error(
                "Token endpoint unavailable during exchange | advertiser_id=%s | status=%s",
                advertiser_id,
                exc.status_code,
            )
            raise

        if not grant.refresh_token:
            logger.error("Token exchange returned no refresh token | advertiser_id=%s", advertiser_id)
            raise ExternalAuthError("Token response did not include a refresh token")

        profile_id = await self._select_profile(grant.access_token, advertiser_id)
        expires_at = expires_at_from(grant.lifetime_seconds(self.default_expires_in_seconds))

        credential = await self.credential_store.save_exchanged_tokens(
            advertiser_id=advertiser_id,
            platform_id=platform_id,
            profile_id=profile_id,
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=expires_at,
        )
        return ExchangeResult(
            credential_id=credential.id,
            advertiser_id=advertiser_id,
            platform_id=platform_id,
            profile_id=profile_id,
            expires_at=expires_at,
        )

    async def _select_profile(self, access_token: str, advertiser_id: str) -> Optional[str]:
        """First advertising profile, or None when the listing is empty or unavailable."""
        try:
            profiles = await self.oauth_client.fetch_profiles(access_token)
        except ProviderError as exc:
            logger.warning(
                "Profile lookup failed, continuing without profile | advertiser_id=%s | status=%s",
                advertiser_id,
                exc.status_code,
            )
            return None

        if not profiles:
            logger.warning("No advertising profiles found | advertiser_id=%s", advertiser_id)
            return None

        if len(profiles) > 1:
            logger.info(
                "Multiple advertising profiles, using the first | advertiser_id=%s | count=%s",
                advertiser_id,
                len(profiles),
            )
        return profiles[0].profile_id
