"""Typed errors raised by the credential lifecycle and provider invocation layer.

Every error carries a stable ``code`` and a UI ``action`` hint so callers can
choose between "reconnect your account" and "try again" by class rather than
by parsing messages.
"""

from __future__ import annotations

import json
from typing import Any, Optional


class ErrorAction:
    RECONNECT = "reconnect"
    RETRY = "retry"
    FIX_REQUEST = "fix_request"
    CONTACT_SUPPORT = "contact_support"


class AdsCoreError(Exception):
    code: str = "ads_core_error"
    action: str = ErrorAction.CONTACT_SUPPORT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "action": self.action}


class ConfigurationError(AdsCoreError):
    """Client credentials or infrastructure are not configured."""

    code = "configuration_error"
    action = ErrorAction.CONTACT_SUPPORT


class ExternalAuthError(AdsCoreError):
    """Provider rejected the authorization code (expired, reused, or mismatched redirect)."""

    code = "external_auth_error"
    action = ErrorAction.RECONNECT

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class CredentialNotFoundError(AdsCoreError):
    code = "credential_not_found"
    action = ErrorAction.RECONNECT

    def __init__(self, credential_id: str):
        super().__init__(f"Platform credential {credential_id} not found")
        self.credential_id = credential_id


class CredentialInactiveError(AdsCoreError):
    code = "credential_inactive"
    action = ErrorAction.RECONNECT

    def __init__(self, credential_id: str):
        super().__init__(f"Platform credential {credential_id} is deactivated")
        self.credential_id = credential_id


class MissingRefreshTokenError(AdsCoreError):
    code = "missing_refresh_token"
    action = ErrorAction.RECONNECT

    def __init__(self, credential_id: str):
        super().__init__(f"Platform credential {credential_id} has no refresh token")
        self.credential_id = credential_id


class TokenRefreshError(AdsCoreError):
    """Provider rejected a refresh attempt; the stored credential is left as last-known-good."""

    code = "token_refresh_error"
    action = ErrorAction.RECONNECT

    def __init__(self, payload: Any, status_code: Optional[int] = None):
        super().__init__(f"Token refresh failed: {serialize_payload(payload)}")
        self.payload = payload
        self.status_code = status_code


class AuthorizationError(AdsCoreError):
    """Provider API kept answering 401 after a forced refresh."""

    code = "authorization_error"
    action = ErrorAction.RECONNECT

    def __init__(self, message: str = "Provider rejected the access token after refresh", body: Any = None):
        super().__init__(message)
        self.body = body


class ServiceAuthError(AdsCoreError):
    """Caller did not present a valid service token."""

    code = "unauthorized"
    action = ErrorAction.FIX_REQUEST


class ProviderError(AdsCoreError):
    """Non-success provider response. ``status_code`` is None for network failures."""

    code = "provider_error"

    def __init__(self, status_code: Optional[int], body: Any = None, message: Optional[str] = None):
        super().__init__(message or f"Provider returned status={status_code} body={serialize_payload(body)}")
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        return self.status_code is None or self.status_code >= 500

    @property
    def action(self) -> str:  # type: ignore[override]
        return ErrorAction.RETRY if self.is_transient else ErrorAction.FIX_REQUEST


class RateLimitExceededError(ProviderError):
    code = "rate_limit_exceeded"

    def __init__(self, body: Any = None, retry_after: Optional[float] = None):
        super().__init__(429, body, message="Provider rate limit exceeded")
        self.retry_after = retry_after

    @property
    def is_transient(self) -> bool:
        return True


class RetriesExhaustedError(AdsCoreError):
    code = "retries_exhausted"
    action = ErrorAction.RETRY

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


class InvalidOperationError(AdsCoreError):
    code = "invalid_operation"
    action = ErrorAction.FIX_REQUEST


def serialize_payload(payload: Any) -> str:
    """Render a provider payload for logs and error messages."""
    if isinstance(payload, str):
        return payload
    try:
        return json.dumps(payload, default=str, sort_keys=True)
    except (TypeError, ValueError):
        return str(payload)
