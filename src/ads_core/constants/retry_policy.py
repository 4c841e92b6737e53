"""Shared retry and timeout constants for provider calls."""

DEFAULT_MAX_ATTEMPTS: int = 3
DEFAULT_BASE_DELAY_SECONDS: float = 1.0
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0

# Statuses handled specially by the invoker; 5xx is always transient.
RATE_LIMIT_STATUS: int = 429
UNAUTHORIZED_STATUS: int = 401
