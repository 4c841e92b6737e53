"""Maps the typed error taxonomy onto HTTP responses."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ads_core.exceptions import (
    AdsCoreError,
    AuthorizationError,
    ConfigurationError,
    CredentialInactiveError,
    CredentialNotFoundError,
    ExternalAuthError,
    InvalidOperationError,
    MissingRefreshTokenError,
    ProviderError,
    RateLimitExceededError,
    RetriesExhaustedError,
    ServiceAuthError,
    TokenRefreshError,
)

logger = logging.getLogger(__name__)

# Most specific classes first: RateLimitExceededError is a ProviderError.
_STATUS_BY_ERROR = (
    (ConfigurationError, 500),
    (ExternalAuthError, 400),
    (CredentialNotFoundError, 404),
    (CredentialInactiveError, 409),
    (MissingRefreshTokenError, 409),
    (TokenRefreshError, 401),
    (AuthorizationError, 401),
    (ServiceAuthError, 401),
    (RateLimitExceededError, 429),
    (RetriesExhaustedError, 503),
    (InvalidOperationError, 400),
)


def status_for(exc: AdsCoreError) -> int:
    for error_cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status
    if isinstance(exc, ProviderError):
        return 502 if exc.is_transient else 400
    return 500


async def ads_core_error_handler(request: Request, exc: AdsCoreError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Request failed | method=%s | path=%s | status=%s | error_code=%s | action=%s",
        request.method,
        request.url.path,
        status_code,
        exc.code,
        exc.action,
    )
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})
