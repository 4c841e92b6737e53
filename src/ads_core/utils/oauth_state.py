"""Signed, time-bound OAuth ``state`` values carrying the advertiser id through the consent redirect."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import dataclass
from typing import Optional

STATE_TTL_SECONDS = 600  # 10 minutes


class InvalidStateError(ValueError):
    """State was tampered with, malformed, or expired."""


@dataclass(frozen=True)
class OAuthState:
    advertiser_id: str
    use_test_account: bool
    nonce: str
    issued_at: int


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _sign(secret: str, message: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def generate_state(
    secret: str,
    advertiser_id: str,
    use_test_account: bool = False,
    now: Optional[int] = None,
) -> str:
    """Encode ``payload.signature`` where payload is base64 JSON and the signature an HMAC-SHA256."""
    payload = {
        "advertiser_id": advertiser_id,
        "use_test_account": bool(use_test_account),
        "nonce": uuid.uuid4().hex,
        "ts": int(now if now is not None else time.time()),
    }
    encoded = _b64encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode())
    return f"{encoded}.{_sign(secret, encoded)}"


def validate_state(
    secret: str,
    state: str,
    ttl_seconds: int = STATE_TTL_SECONDS,
    now: Optional[int] = None,
) -> OAuthState:
    """Verify signature and age; return the decoded state."""
    try:
        encoded, signature = state.rsplit(".", 1)
    except ValueError:
        raise InvalidStateError("Invalid state parameter")

    if not hmac.compare_digest(signature, _sign(secret, encoded)):
        raise InvalidStateError("State verification failed")

    try:
        payload = json.loads(_b64decode(encoded))
        issued_at = int(payload["ts"])
        advertiser_id = str(payload["advertiser_id"])
    except (ValueError, KeyError, TypeError):
        raise InvalidStateError("Invalid state payload")

    current = int(now if now is not None else time.time())
    if current - issued_at > ttl_seconds:
        raise InvalidStateError("State expired")

    return OAuthState(
        advertiser_id=advertiser_id,
        use_test_account=bool(payload.get("use_test_account")),
        nonce=str(payload.get("nonce", "")),
        issued_at=issued_at,
    )
