"""Unit tests for the error taxonomy."""

import pytest

from ads_core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    CredentialNotFoundError,
    ErrorAction,
    ExternalAuthError,
    ProviderError,
    RateLimitExceededError,
    RetriesExhaustedError,
    ServiceAuthError,
    TokenRefreshError,
    serialize_payload,
)


@pytest.mark.unit
class TestErrorTaxonomy:
    def test_to_dict_shape(self):
        error = CredentialNotFoundError("cred-1")

        assert error.to_dict() == {
            "code": "credential_not_found",
            "message": "Platform credential cred-1 not found",
            "action": ErrorAction.RECONNECT,
        }

    @pytest.mark.parametrize(
        "error,action",
        [
            (ConfigurationError("missing client id"), ErrorAction.CONTACT_SUPPORT),
            (ExternalAuthError("bad code"), ErrorAction.RECONNECT),
            (TokenRefreshError({"error": "invalid_grant"}), ErrorAction.RECONNECT),
            (AuthorizationError(), ErrorAction.RECONNECT),
            (ProviderError(503, "down"), ErrorAction.RETRY),
            (ProviderError(None, "reset"), ErrorAction.RETRY),
            (ProviderError(400, "bad"), ErrorAction.FIX_REQUEST),
            (RateLimitExceededError("slow down"), ErrorAction.RETRY),
            (RetriesExhaustedError(3, ProviderError(500)), ErrorAction.RETRY),
            (ServiceAuthError("Unauthorized"), ErrorAction.FIX_REQUEST),
        ],
    )
    def test_action_hints(self, error, action):
        assert error.action == action

    def test_transient_classification(self):
        assert ProviderError(500).is_transient
        assert ProviderError(None).is_transient
        assert not ProviderError(404).is_transient
        assert RateLimitExceededError().is_transient
        assert RateLimitExceededError().status_code == 429

    def test_token_refresh_error_keeps_payload(self):
        payload = {"error": "invalid_grant", "error_description": "revoked"}
        error = TokenRefreshError(payload, status_code=400)

        assert error.payload == payload
        assert error.status_code == 400
        assert serialize_payload(payload) in error.message


@pytest.mark.unit
def test_serialize_payload_is_stable():
    assert serialize_payload({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'
    assert serialize_payload("plain") == "plain"
