"""Read path for access tokens: never hands out a token inside the skew window."""

import logging
from typing import Optional

from ..exceptions import CredentialInactiveError
from ..interfaces.services import ICredentialStore
from ..schemas.credential import AccessTokenResult
from ..utils.time import iso_utc
from .refresh_token import RefreshTokenUseCase

logger = logging.getLogger(__name__)


class GetValidAccessTokenUseCase:
    """Return a usable access token, refreshing it first when it is stale."""

    def __init__(
        self,
        credential_store: ICredentialStore,
        refresh_token_use_case: RefreshTokenUseCase,
        skew_window_seconds: int = 300,
        profile_id_override: Optional[str] = None,
    ):
        self.credential_store = credential_store
        self.refresh_token_use_case = refresh_token_use_case
        self.skew_window_seconds = skew_window_seconds
        self.profile_id_override = profile_id_override

    async def execute(self, credential_id: str) -> AccessTokenResult:
        credential = await self.credential_store.get(credential_id)
        if not credential.is_active:
            logger.warning("Access token requested for inactive credential | credential_id=%s", credential_id)
            raise CredentialInactiveError(credential_id)

        if credential.is_stale(self.skew_window_seconds):
            logger.info(
                "Access token stale, refreshing | credential_id=%s | expires_at=%s | skew_window=%ss",
                credential_id,
                iso_utc(credential.token_expires_at),
                self.skew_window_seconds,
            )
            credential = await self.refresh_token_use_case.execute(credential_id, force=False)
        else:
            logger.debug("Access token fresh | credential_id=%s", credential_id)

        return AccessTokenResult(
            credential_id=credential.id,
            advertiser_id=credential.advertiser_id,
            platform_id=credential.platform_id,
            access_token=credential.access_token,
            profile_id=self.profile_id_override or credential.profile_id,
            expires_at=credential.token_expires_at,
        )
