"""
Unit tests for InvokeProviderApiUseCase.

Tests cover:
- Request shaping: auth, client id and scope headers, URL resolution
- 401 handling: one forced refresh then retry
- Backoff on 5xx, 429 and network errors; immediate failure on other 4xx
- Exactly one operation log entry per invocation
"""

import httpx
import pytest

from ads_core.exceptions import (
    AuthorizationError,
    CredentialInactiveError,
    CredentialNotFoundError,
    ProviderError,
    RateLimitExceededError,
    RetriesExhaustedError,
    TokenRefreshError,
)
from ads_core.schemas.provider import ProviderRequest
from ads_core.services.amazon_oauth_client import CLIENT_ID_HEADER
from ads_core.use_cases.invoke_provider_api import SCOPE_HEADER, is_transient_error
from tests.helpers import error_response, token_response

CAMPAIGNS = "/v2/sp/campaigns"


def _list_campaigns() -> ProviderRequest:
    return ProviderRequest(method="GET", url=CAMPAIGNS, params={"stateFilter": "enabled"})


@pytest.mark.unit
@pytest.mark.use_case
class TestInvokeProviderApi:
    async def test_success_sends_provider_headers(
        self, invoke_use_case, credential_factory, amazon_api, fetch_operation_logs
    ):
        credential = await credential_factory(access_token="at1", profile_id="111")
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(200, json=[{"campaignId": 1}]))

        response = await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert response.status_code == 200
        assert response.body == [{"campaignId": 1}]
        request = amazon_api.calls_to(CAMPAIGNS)[0]
        assert str(request.url) == "https://advertising-api.amazon.com/v2/sp/campaigns?stateFilter=enabled"
        assert request.headers["Authorization"] == "Bearer at1"
        assert request.headers[CLIENT_ID_HEADER] == "test-client-id"
        assert request.headers[SCOPE_HEADER] == "111"

        logs = await fetch_operation_logs("list_campaigns")
        assert len(logs) == 1
        assert logs[0].status == "success"
        assert logs[0].request_payload == {
            "method": "GET",
            "url": CAMPAIGNS,
            "params": {"stateFilter": "enabled"},
        }

    async def test_absolute_url_and_json_body(self, invoke_use_case, credential_factory, amazon_api):
        credential = await credential_factory(profile_id=None)
        amazon_api.add("POST", "/v2/sp/campaigns", httpx.Response(207, json=[{"code": "SUCCESS"}]))
        request = ProviderRequest(
            method="post",
            url="https://advertising-api.amazon.com/v2/sp/campaigns",
            body=[{"name": "Spring"}],
        )

        response = await invoke_use_case.execute(credential.id, "create_campaign", request)

        assert response.status_code == 207
        sent = amazon_api.calls[0]
        assert amazon_api.json_body(sent) == [{"name": "Spring"}]
        assert SCOPE_HEADER not in sent.headers

    async def test_401_forces_one_refresh_and_retries(
        self, invoke_use_case, credential_factory, amazon_api, fetch_operation_logs
    ):
        """Token still fresh by expiry but revoked upstream: refresh once, retry with the new token."""
        credential = await credential_factory(access_token="at1", expires_in=3600)
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(401, json={"code": "UNAUTHORIZED"}), httpx.Response(200, json=[]))
        amazon_api.token(token_response("at2", None, 3600))

        response = await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert response.status_code == 200
        api_calls = amazon_api.calls_to(CAMPAIGNS)
        assert [call.headers["Authorization"] for call in api_calls] == ["Bearer at1", "Bearer at2"]
        assert len(amazon_api.calls_to("/auth/o2/token")) == 1
        assert len(await fetch_operation_logs("list_campaigns")) == 1

    async def test_second_401_is_authorization_error(
        self, invoke_use_case, credential_factory, amazon_api, fetch_operation_logs, sleeps
    ):
        credential = await credential_factory(expires_in=3600)
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(401, json={"code": "UNAUTHORIZED"}))
        amazon_api.token(token_response("at2", None, 3600))

        with pytest.raises(AuthorizationError):
            await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert len(amazon_api.calls_to(CAMPAIGNS)) == 2
        assert len(amazon_api.calls_to("/auth/o2/token")) == 1
        assert sleeps == []
        logs = await fetch_operation_logs("list_campaigns")
        assert [log.status for log in logs] == ["error"]

    async def test_transient_errors_back_off_then_succeed(self, invoke_use_case, credential_factory, amazon_api, sleeps):
        credential = await credential_factory()
        amazon_api.add(
            "GET",
            CAMPAIGNS,
            httpx.Response(500, json={"code": "INTERNAL_ERROR"}),
            httpx.Response(500, json={"code": "INTERNAL_ERROR"}),
            httpx.Response(200, json=[]),
        )

        response = await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert response.status_code == 200
        assert sleeps == [0.5, 1.0]
        assert len(amazon_api.calls_to(CAMPAIGNS)) == 3

    async def test_retries_exhausted(self, invoke_use_case, credential_factory, amazon_api, sleeps, fetch_operation_logs):
        credential = await credential_factory()
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(503, text="unavailable"))

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, ProviderError)
        assert exc_info.value.last_error.status_code == 503
        assert len(amazon_api.calls_to(CAMPAIGNS)) == 3
        assert sleeps == [0.5, 1.0]
        assert len(await fetch_operation_logs("list_campaigns")) == 1

    async def test_client_error_fails_immediately(self, invoke_use_case, credential_factory, amazon_api, sleeps):
        credential = await credential_factory()
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(400, json={"code": "INVALID_ARGUMENT", "details": "bad filter"}))

        with pytest.raises(ProviderError) as exc_info:
            await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == {"code": "INVALID_ARGUMENT", "details": "bad filter"}
        assert len(amazon_api.calls_to(CAMPAIGNS)) == 1
        assert sleeps == []

    async def test_rate_limit_is_retried(self, invoke_use_case, credential_factory, amazon_api, sleeps):
        credential = await credential_factory()
        amazon_api.add(
            "GET",
            CAMPAIGNS,
            httpx.Response(429, headers={"Retry-After": "2"}, json={"code": "THROTTLED"}),
            httpx.Response(200, json=[]),
        )

        response = await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert response.status_code == 200
        assert sleeps == [0.5]

    async def test_persistent_rate_limit_exhausts(self, invoke_use_case, credential_factory, amazon_api):
        credential = await credential_factory()
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(429, headers={"Retry-After": "2"}, json={"code": "THROTTLED"}))

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        last_error = exc_info.value.last_error
        assert isinstance(last_error, RateLimitExceededError)
        assert last_error.retry_after == 2.0

    async def test_network_error_is_retried(self, invoke_use_case, credential_factory, amazon_api, sleeps):
        credential = await credential_factory()
        amazon_api.add("GET", CAMPAIGNS, httpx.ConnectError("connection reset"), httpx.Response(200, json=[]))

        response = await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert response.status_code == 200
        assert sleeps == [0.5]

    async def test_stale_token_refreshed_before_call(self, invoke_use_case, credential_factory, amazon_api):
        credential = await credential_factory(access_token="at1", expires_in=30)
        amazon_api.token(token_response("at2", None, 3600))
        amazon_api.add("GET", CAMPAIGNS, httpx.Response(200, json=[]))

        await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        assert amazon_api.calls_to(CAMPAIGNS)[0].headers["Authorization"] == "Bearer at2"

    async def test_rejected_refresh_is_logged_under_operation(
        self, invoke_use_case, credential_factory, amazon_api, fetch_operation_logs
    ):
        """A token that cannot be refreshed still leaves one entry for the caller's operation."""
        credential = await credential_factory(expires_in=30)
        amazon_api.token(error_response(400, "invalid_grant", "Refresh token revoked"))

        with pytest.raises(TokenRefreshError):
            await invoke_use_case.execute(credential.id, "list_campaigns", _list_campaigns())

        logs = await fetch_operation_logs("list_campaigns")
        assert [log.status for log in logs] == ["error"]
        assert logs[0].credential_id == credential.id
        assert logs[0].advertiser_id == credential.advertiser_id
        assert "invalid_grant" in logs[0].error_message
        assert amazon_api.calls_to(CAMPAIGNS) == []

    async def test_inactive_credential_is_logged(self, invoke_use_case, credential_factory, fetch_operation_logs):
        credential = await credential_factory(is_active=False)

        with pytest.raises(CredentialInactiveError):
            await invoke_use_case.execute(credential.id, "get_campaign", _list_campaigns())

        logs = await fetch_operation_logs("get_campaign")
        assert [log.status for log in logs] == ["error"]

    async def test_unknown_credential_writes_no_entry(self, invoke_use_case, platform_id, fetch_operation_logs):
        with pytest.raises(CredentialNotFoundError):
            await invoke_use_case.execute("missing", "list_campaigns", _list_campaigns())

        assert await fetch_operation_logs() == []


@pytest.mark.unit
class TestIsTransientError:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (ProviderError(None, "timeout"), True),
            (ProviderError(502), True),
            (RateLimitExceededError(), True),
            (ProviderError(404), False),
            (AuthorizationError(), False),
            (ValueError("boom"), False),
        ],
    )
    def test_classification(self, error, expected):
        assert is_transient_error(error) is expected
