"""Proactive refresh sweep for credentials about to expire."""

import logging
from datetime import timedelta
from typing import Any, Dict, List

from ..exceptions import AdsCoreError
from ..interfaces.services import ICredentialStore
from ..utils.time import iso_utc, now_utc
from .refresh_token import RefreshTokenUseCase

logger = logging.getLogger(__name__)


class RefreshExpiringCredentialsUseCase:
    """
    Refresh every active credential whose token expires within the lookahead window.

    Keeps interactive calls on the fast path. A failing credential is logged
    and counted; it never stops the sweep.
    """

    def __init__(
        self,
        credential_store: ICredentialStore,
        refresh_token_use_case: RefreshTokenUseCase,
        lookahead_seconds: int = 900,
        batch_size: int = 100,
    ):
        self.credential_store = credential_store
        self.refresh_token_use_case = refresh_token_use_case
        self.lookahead_seconds = lookahead_seconds
        self.batch_size = batch_size

    async def execute(self) -> Dict[str, Any]:
        deadline = now_utc() + timedelta(seconds=self.lookahead_seconds)
        credential_ids = await self.credential_store.list_expiring_credential_ids(deadline, limit=self.batch_size)
        logger.info(
            "Proactive refresh sweep | deadline=%s | candidates=%s",
            iso_utc(deadline),
            len(credential_ids),
        )

        refreshed: List[str] = []
        failed: Dict[str, str] = {}
        for credential_id in credential_ids:
            try:
                await self.refresh_token_use_case.execute(credential_id, force=False)
            except AdsCoreError as exc:
                logger.warning(
                    "Proactive refresh failed | credential_id=%s | error_code=%s | error=%s",
                    credential_id,
                    exc.code,
                    exc.message,
                )
                failed[credential_id] = exc.code
                continue
            refreshed.append(credential_id)

        return {
            "status": "ok" if not failed else "partial",
            "candidates": len(credential_ids),
            "refreshed": refreshed,
            "failed": failed,
        }
