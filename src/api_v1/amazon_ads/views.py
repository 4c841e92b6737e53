"""Amazon Ads campaign operations proxied through the resilient invoker."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ads_core.container import Container, get_container
from api_v1.auth import require_service_token
from .schemas import OperationRequest, OperationResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["amazon-ads"], dependencies=[Depends(require_service_token)])


@router.post("/{credential_id}/operations/{operation}", response_model=OperationResponse)
async def run_operation(
    credential_id: str,
    operation: str,
    payload: Optional[OperationRequest] = Body(None),
    container: Container = Depends(get_container),
) -> OperationResponse:
    """
    Run a logical campaign operation (list_campaigns, get_campaign, create_campaign,
    update_campaign, adjust_budget, get_campaign_report) for a credential.
    """
    service = container.amazon_ads_service()
    params = payload.params if payload else {}
    response = await service.execute(credential_id, operation, params)
    return OperationResponse(operation=operation, status_code=response.status_code, data=response.body)
