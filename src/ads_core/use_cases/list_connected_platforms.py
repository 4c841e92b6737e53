"""List connected platforms use case."""

import logging
from typing import List

from ..interfaces.services import ICredentialStore
from ..schemas.credential import ConnectedPlatform

logger = logging.getLogger(__name__)


class ListConnectedPlatformsUseCase:
    """Credentials of an advertiser with a valid/expired token status, without touching the provider."""

    def __init__(self, credential_store: ICredentialStore):
        self.credential_store = credential_store

    async def execute(self, advertiser_id: str) -> List[ConnectedPlatform]:
        platforms = await self.credential_store.list_connected(advertiser_id)
        logger.debug(
            "Listed connected platforms | advertiser_id=%s | count=%s | expired=%s",
            advertiser_id,
            len(platforms),
            sum(1 for item in platforms if item.token_status == "expired"),
        )
        return platforms
