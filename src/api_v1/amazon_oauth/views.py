"""Amazon Ads OAuth connection endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ads_core.config import settings
from ads_core.container import Container, get_container
from ads_core.exceptions import ExternalAuthError
from ads_core.utils.oauth_state import InvalidStateError, generate_state, validate_state
from .schemas import AuthUrlResponse, ExchangeRequest, ExchangeResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["amazon-oauth"])


@router.get("/authorize", response_model=AuthUrlResponse)
async def amazon_oauth_authorize(
    advertiser_id: str = Query(..., min_length=1),
    redirect_uri: Optional[str] = Query(None),
    use_test_account: bool = Query(False),
    container: Container = Depends(get_container),
) -> AuthUrlResponse:
    """
    Build the Login with Amazon consent URL for the frontend to redirect the user.

    The returned ``state`` is signed with APP_SECRET and carries the advertiser
    id, so the exchange step does not have to trust a client-supplied id.
    """
    state = generate_state(settings.app_secret, advertiser_id, use_test_account=use_test_account)
    auth_url = container.amazon_oauth_client().build_authorization_url(
        state=state,
        redirect_uri=redirect_uri,
        use_test_account=use_test_account,
    )
    logger.info(
        "Generated Amazon authorization URL | advertiser_id=%s | use_test_account=%s",
        advertiser_id,
        use_test_account,
    )
    return AuthUrlResponse(auth_url=auth_url, state=state)


@router.post("/exchange", response_model=ExchangeResponse)
async def amazon_oauth_exchange(
    payload: ExchangeRequest,
    container: Container = Depends(get_container),
) -> ExchangeResponse:
    """Exchange the authorization code delivered by the consent redirect."""
    advertiser_id = payload.advertiser_id
    if payload.state:
        try:
            state = validate_state(settings.app_secret, payload.state)
        except InvalidStateError as exc:
            logger.warning("Rejected OAuth state | reason=%s", exc)
            raise ExternalAuthError(str(exc)) from exc
        if advertiser_id and advertiser_id != state.advertiser_id:
            logger.warning(
                "OAuth state advertiser mismatch | state_advertiser=%s | body_advertiser=%s",
                state.advertiser_id,
                advertiser_id,
            )
            raise ExternalAuthError("State does not match advertiser")
        advertiser_id = state.advertiser_id

    use_case = container.exchange_token_use_case()
    result = await use_case.execute(payload.code, advertiser_id, payload.redirect_uri)
    return ExchangeResponse(
        credential_id=result.credential_id,
        advertiser_id=result.advertiser_id,
        profile_id=result.profile_id,
        expires_at=result.expires_at,
    )
