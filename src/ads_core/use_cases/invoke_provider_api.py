"""Resilient advertising API invocation: bearer auth, one forced refresh on 401, backoff on transient failures."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..constants.retry_policy import RATE_LIMIT_STATUS, UNAUTHORIZED_STATUS
from ..exceptions import (
    AdsCoreError,
    AuthorizationError,
    ProviderError,
    RateLimitExceededError,
    serialize_payload,
)
from ..models.operation_log import OperationStatus
from ..interfaces.services import ICredentialStore, IOperationLogService
from ..schemas.credential import AccessTokenResult, CredentialSnapshot
from ..schemas.provider import ProviderRequest, ProviderResponse
from ..services.amazon_oauth_client import CLIENT_ID_HEADER
from ..utils.retry import RetryPolicy, retry_async
from .get_valid_access_token import GetValidAccessTokenUseCase
from .refresh_token import RefreshTokenUseCase

logger = logging.getLogger(__name__)

SCOPE_HEADER = "Amazon-Advertising-API-Scope"


def is_transient_error(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.is_transient


class InvokeProviderApiUseCase:
    """
    Call the advertising API on behalf of a credential.

    A 401 triggers exactly one unconditional refresh per invocation followed
    by one retry; network errors, 5xx and 429 are retried with the injected
    RetryPolicy; any other non-2xx fails immediately. One operation log entry
    is written per invocation, including failures to obtain a token; an
    unknown credential has nothing to log against and only raises.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credential_store: ICredentialStore,
        access_token_use_case: GetValidAccessTokenUseCase,
        refresh_token_use_case: RefreshTokenUseCase,
        operation_log: IOperationLogService,
        retry_policy: RetryPolicy,
        client_id: str,
        api_base_url: str,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.http_client = http_client
        self.credential_store = credential_store
        self.access_token_use_case = access_token_use_case
        self.refresh_token_use_case = refresh_token_use_case
        self.operation_log = operation_log
        self.retry_policy = retry_policy
        self.client_id = client_id
        self.api_base_url = api_base_url.rstrip("/")
        self._sleep = sleep

    async def execute(self, credential_id: str, operation: str, request: ProviderRequest) -> ProviderResponse:
        credential = await self.credential_store.get(credential_id)
        invocation: Optional[_Invocation] = None

        async def attempt() -> ProviderResponse:
            return await self._attempt(invocation, request)

        logger.info(
            "Invoking provider API | credential_id=%s | operation=%s | method=%s | url=%s",
            credential_id,
            operation,
            request.method,
            request.url,
        )
        try:
            invocation = _Invocation(await self.access_token_use_case.execute(credential_id))
            response = await retry_async(
                attempt,
                self.retry_policy,
                is_transient=is_transient_error,
                sleep=self._sleep,
                description=operation,
            )
        except AdsCoreError as exc:
            logger.error(
                "Provider API call failed | credential_id=%s | operation=%s | error_code=%s | error=%s",
                credential_id,
                operation,
                exc.code,
                exc.message,
            )
            await self._log(credential, operation, request, OperationStatus.ERROR, error_message=exc.message)
            raise

        logger.info(
            "Provider API call succeeded | credential_id=%s | operation=%s | status=%s | refreshed=%s",
            credential_id,
            operation,
            response.status_code,
            invocation.refreshed,
        )
        await self._log(credential, operation, request, OperationStatus.SUCCESS)
        return response

    async def _attempt(self, invocation: "_Invocation", request: ProviderRequest) -> ProviderResponse:
        response = await self._send(request, invocation.token)

        if response.status_code == UNAUTHORIZED_STATUS:
            if invocation.refreshed:
                raise AuthorizationError(body=response.body)
            logger.warning(
                "Provider returned 401, forcing token refresh | credential_id=%s",
                invocation.token.credential_id,
            )
            invocation.refreshed = True
            refreshed = await self.refresh_token_use_case.execute(invocation.token.credential_id, force=True)
            invocation.token = invocation.token.model_copy(
                update={"access_token": refreshed.access_token, "expires_at": refreshed.token_expires_at}
            )
            response = await self._send(request, invocation.token)
            if response.status_code == UNAUTHORIZED_STATUS:
                raise AuthorizationError(body=response.body)

        if response.ok:
            return response
        if response.status_code == RATE_LIMIT_STATUS:
            raise RateLimitExceededError(response.body, retry_after=_retry_after(response.headers))
        raise ProviderError(response.status_code, response.body)

    async def _send(self, request: ProviderRequest, token: AccessTokenResult) -> ProviderResponse:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        headers.update(request.headers)
        headers["Authorization"] = f"Bearer {token.access_token}"
        headers[CLIENT_ID_HEADER] = self.client_id
        if token.profile_id:
            headers[SCOPE_HEADER] = token.profile_id

        try:
            raw = await self.http_client.request(
                request.method,
                self._resolve_url(request.url),
                json=request.body,
                params=request.params,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Provider request failed | url=%s | error=%s", request.url, exc)
            raise ProviderError(None, str(exc)) from exc

        return ProviderResponse(
            status_code=raw.status_code,
            body=_decode_body(raw),
            headers=dict(raw.headers),
        )

    def _resolve_url(self, url: str) -> str:
        if url.startswith("http://") or url.startswith("https://"):
            return url
        return f"{self.api_base_url}/{url.lstrip('/')}"

    async def _log(
        self,
        credential: CredentialSnapshot,
        operation: str,
        request: ProviderRequest,
        status: OperationStatus,
        error_message: Optional[str] = None,
    ) -> None:
        payload: Dict[str, Any] = {"method": request.method, "url": request.url}
        if request.params:
            payload["params"] = request.params
        if request.body is not None:
            payload["body"] = request.body
        await self.operation_log.record(
            advertiser_id=credential.advertiser_id,
            platform_id=credential.platform_id,
            credential_id=credential.id,
            operation_type=operation,
            status=status,
            error_message=error_message,
            request_payload=payload,
        )


class _Invocation:
    """Per-call state shared across retry attempts."""

    def __init__(self, token: AccessTokenResult):
        self.token = token
        self.refreshed = False


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _retry_after(headers: Dict[str, str]) -> Optional[float]:
    for name, value in headers.items():
        if name.lower() == "retry-after":
            try:
                return float(value)
            except (TypeError, ValueError):
                logger.debug("Ignoring non-numeric Retry-After | value=%s", serialize_payload(value))
                return None
    return None
