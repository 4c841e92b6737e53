"""Credential read path and lifecycle endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from ads_core.container import Container, get_container
from api_v1.auth import require_service_token
from .schemas import AccessTokenResponse, ConnectedPlatformResponse, CredentialStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["credentials"], dependencies=[Depends(require_service_token)])


@router.get("/credentials/{credential_id}/access-token", response_model=AccessTokenResponse)
async def get_access_token(
    credential_id: str,
    container: Container = Depends(get_container),
) -> AccessTokenResponse:
    result = await container.get_valid_access_token_use_case().execute(credential_id)
    return AccessTokenResponse(
        credential_id=result.credential_id,
        access_token=result.access_token,
        profile_id=result.profile_id,
        expires_at=result.expires_at,
    )


@router.post("/credentials/{credential_id}/deactivate", response_model=CredentialStatusResponse)
async def deactivate_credential(
    credential_id: str,
    container: Container = Depends(get_container),
) -> CredentialStatusResponse:
    credential = await container.deactivate_credential_use_case().execute(credential_id)
    return CredentialStatusResponse(credential_id=credential.id, is_active=credential.is_active)


@router.get("/advertisers/{advertiser_id}/platforms", response_model=List[ConnectedPlatformResponse])
async def list_connected_platforms(
    advertiser_id: str,
    container: Container = Depends(get_container),
) -> List[ConnectedPlatformResponse]:
    platforms = await container.list_connected_platforms_use_case().execute(advertiser_id)
    return [ConnectedPlatformResponse(**item.model_dump()) for item in platforms]
