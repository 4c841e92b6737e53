"""Service-token guard for credential and ads routes."""

from __future__ import annotations

import logging
from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import ExpiredSignatureError, InvalidTokenError
from jwt.exceptions import MissingRequiredClaimError

from ads_core.config import settings
from ads_core.exceptions import ConfigurationError, ServiceAuthError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


# NOTE: using explicit security dependency so Swagger UI sends Authorization header
async def require_service_token(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> dict[str, Any]:
    secret_key = settings.json_api.secret_key
    algorithm = settings.json_api.algorithm

    if not secret_key:
        raise ConfigurationError("JSON API secret key is not configured")
    if not credentials or credentials.scheme.lower() != "bearer":
        raise ServiceAuthError("Missing or invalid Authorization header")

    try:
        return jwt.decode(
            credentials.credentials.strip(),
            secret_key,
            algorithms=[algorithm],
            options={"require": ["exp"]},
        )
    except ExpiredSignatureError:
        raise ServiceAuthError("Token expired")
    except MissingRequiredClaimError:
        raise ServiceAuthError("Token missing required claim")
    except InvalidTokenError:
        logger.warning("Rejected service token with invalid signature or format")
        raise ServiceAuthError("Unauthorized")
