"""Deactivate credential use case - soft retires a connection."""

import logging

from ..interfaces.services import ICredentialStore, IOperationLogService
from ..models.operation_log import OperationStatus, OperationType
from ..schemas.credential import CredentialSnapshot

logger = logging.getLogger(__name__)


class DeactivateCredentialUseCase:
    """
    Mark a credential inactive.

    Tokens stay in place; the accessor refuses inactive credentials and a new
    exchange for the same advertiser reactivates the row.
    """

    def __init__(self, credential_store: ICredentialStore, operation_log: IOperationLogService):
        self.credential_store = credential_store
        self.operation_log = operation_log

    async def execute(self, credential_id: str) -> CredentialSnapshot:
        credential = await self.credential_store.deactivate(credential_id)
        logger.info(
            "Credential deactivated | credential_id=%s | advertiser_id=%s",
            credential_id,
            credential.advertiser_id,
        )
        await self.operation_log.record(
            advertiser_id=credential.advertiser_id,
            platform_id=credential.platform_id,
            credential_id=credential.id,
            operation_type=OperationType.DEACTIVATE,
            status=OperationStatus.SUCCESS,
        )
        return credential
