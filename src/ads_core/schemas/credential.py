from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel

from ..utils.time import now_utc, to_utc


class CredentialSnapshot(BaseModel):
    """Decrypted, detached view of a platform credential row."""

    id: str
    advertiser_id: str
    platform_id: str
    profile_id: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    is_active: bool = True
    updated_at: Optional[datetime] = None

    def is_stale(self, skew_window_seconds: int, now: Optional[datetime] = None) -> bool:
        """True when the token is missing or expires within the skew window."""
        if self.access_token is None or self.token_expires_at is None:
            return True
        remaining = to_utc(self.token_expires_at) - (now or now_utc())
        return remaining < timedelta(seconds=skew_window_seconds)


class AccessTokenResult(BaseModel):
    credential_id: str
    advertiser_id: str
    platform_id: str
    access_token: str
    profile_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class ExchangeResult(BaseModel):
    credential_id: str
    advertiser_id: str
    platform_id: str
    profile_id: Optional[str] = None
    expires_at: datetime


class ConnectedPlatform(BaseModel):
    credential_id: str
    platform_id: str
    platform_name: str
    display_name: str
    profile_id: Optional[str] = None
    is_active: bool
    token_status: str
    token_expires_at: Optional[datetime] = None
