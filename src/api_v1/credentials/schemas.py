from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class AccessTokenResponse(BaseModel):
    credential_id: str
    access_token: str
    profile_id: Optional[str] = None
    expires_at: Optional[datetime] = None


class CredentialStatusResponse(BaseModel):
    credential_id: str
    is_active: bool


class ConnectedPlatformResponse(BaseModel):
    credential_id: str
    platform_id: str
    platform_name: str
    display_name: str
    profile_id: Optional[str] = None
    is_active: bool
    token_status: Literal["valid", "expired"]
    token_expires_at: Optional[datetime] = None
