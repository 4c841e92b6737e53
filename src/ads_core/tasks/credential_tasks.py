"""Celery tasks keeping platform credentials fresh ahead of interactive use."""

import logging

from ..celery_app import celery_app
from ..container import get_container
from ..exceptions import AdsCoreError
from ..utils.task_helpers import async_task
from ..utils.time import iso_utc

logger = logging.getLogger(__name__)


@celery_app.task
@async_task
async def refresh_expiring_credentials_task():
    """Refresh every active credential expiring within the lookahead window."""
    container = get_container()
    use_case = container.refresh_expiring_credentials_use_case()

    try:
        result = await use_case.execute()
    except AdsCoreError as exc:
        logger.error("Proactive refresh sweep aborted | error_code=%s | error=%s", exc.code, exc.message)
        return {"status": "error", "reason": exc.message}

    if result["failed"]:
        logger.warning(
            "Proactive refresh sweep finished with failures | refreshed=%s | failed=%s",
            len(result["refreshed"]),
            len(result["failed"]),
        )
    else:
        logger.info("Proactive refresh sweep finished | refreshed=%s", len(result["refreshed"]))
    return result


@celery_app.task
@async_task
async def refresh_credential_task(credential_id: str, force: bool = True):
    """Refresh one credential out of band."""
    container = get_container()
    use_case = container.refresh_token_use_case()

    try:
        credential = await use_case.execute(credential_id, force=force)
    except AdsCoreError as exc:
        logger.error(
            "Credential refresh task failed | credential_id=%s | error_code=%s | error=%s",
            credential_id,
            exc.code,
            exc.message,
        )
        return {"status": "error", "credential_id": credential_id, "error_code": exc.code, "reason": exc.message}

    return {
        "status": "ok",
        "credential_id": credential.id,
        "expires_at": iso_utc(credential.token_expires_at),
    }
