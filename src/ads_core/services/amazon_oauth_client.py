"""Login with Amazon token endpoint and Amazon Ads profile discovery."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..exceptions import ConfigurationError, ProviderError
from ..schemas.token import AdvertisingProfile, TokenGrant

logger = logging.getLogger(__name__)

CAMPAIGN_MANAGEMENT_SCOPE = "advertising::campaign_management"
TEST_ACCOUNT_SCOPE = "advertising::test:create_account"
CLIENT_ID_HEADER = "Amazon-Advertising-API-ClientId"


class AmazonOAuthClient:
    """Thin async client for the Amazon OAuth token endpoint and the profiles listing.

    Non-2xx responses raise ProviderError carrying the status and the decoded
    provider payload; callers translate them into their own error kinds.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        token_url: str,
        authorize_url: str,
        api_base_url: str,
        default_redirect_uri: Optional[str] = None,
    ):
        self._http = http_client
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.authorize_url = authorize_url
        self.api_base_url = api_base_url.rstrip("/")
        self.default_redirect_uri = default_redirect_uri

    def ensure_configured(self) -> None:
        missing = [
            name
            for name, value in (
                ("AMAZON_ADS_CLIENT_ID", self.client_id),
                ("AMAZON_ADS_CLIENT_SECRET", self.client_secret),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Amazon Ads client is not configured: missing {', '.join(missing)}")

    def build_authorization_url(
        self,
        *,
        state: str,
        redirect_uri: Optional[str] = None,
        use_test_account: bool = False,
    ) -> str:
        if not self.client_id:
            raise ConfigurationError("Amazon Ads client is not configured: missing AMAZON_ADS_CLIENT_ID")
        scope = CAMPAIGN_MANAGEMENT_SCOPE
        if use_test_account:
            scope = f"{TEST_ACCOUNT_SCOPE} {CAMPAIGN_MANAGEMENT_SCOPE}"
        params = {
            "client_id": self.client_id,
            "scope": scope,
            "response_type": "code",
            "redirect_uri": redirect_uri or self.default_redirect_uri,
            "state": state,
        }
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> TokenGrant:
        """authorization_code grant."""
        self.ensure_configured()
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        effective_redirect = redirect_uri or self.default_redirect_uri
        if effective_redirect:
            form["redirect_uri"] = effective_redirect
        return await self._request_token(form, grant="authorization_code")

    async def refresh(self, refresh_token: str) -> TokenGrant:
        """refresh_token grant."""
        self.ensure_configured()
        form = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        return await self._request_token(form, grant="refresh_token")

    async def fetch_profiles(self, access_token: str) -> List[AdvertisingProfile]:
        url = f"{self.api_base_url}/v2/profiles"
        headers = {
            "Authorization": f"Bearer {access_token}",
            CLIENT_ID_HEADER: self.client_id,
            "Content-Type": "application/json",
        }
        try:
            response = await self._http.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Profiles request failed | error=%s", exc)
            raise ProviderError(None, str(exc)) from exc

        payload = _decode_body(response)
        if response.status_code != 200:
            logger.warning("Profiles request rejected | status=%s | body=%s", response.status_code, payload)
            raise ProviderError(response.status_code, payload)

        if not isinstance(payload, list):
            logger.warning("Unexpected profiles payload | type=%s", type(payload).__name__)
            return []

        profiles: List[AdvertisingProfile] = []
        for item in payload:
            try:
                profiles.append(AdvertisingProfile.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed profile entry | entry=%s", item)
        return profiles

    async def _request_token(self, form: Dict[str, str], *, grant: str) -> TokenGrant:
        logger.info("Requesting Amazon token | grant_type=%s", grant)
        try:
            response = await self._http.post(
                self.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as exc:
            logger.error("Token endpoint unreachable | grant_type=%s | error=%s", grant, exc)
            raise ProviderError(None, str(exc)) from exc

        payload = _decode_body(response)
        if response.status_code != 200:
            logger.error(
                "Token endpoint rejected request | grant_type=%s | status=%s | body=%s",
                grant,
                response.status_code,
                payload,
            )
            raise ProviderError(response.status_code, payload)

        try:
            return TokenGrant.model_validate(payload)
        except ValidationError as exc:
            logger.error("Token endpoint returned malformed payload | grant_type=%s", grant)
            raise ProviderError(response.status_code, payload, message="Token response missing access_token") from exc


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
