from datetime import datetime
from typing import Optional, Self

from pydantic import BaseModel, Field, model_validator


class AuthUrlResponse(BaseModel):
    auth_url: str
    state: str


class ExchangeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    state: Optional[str] = None
    advertiser_id: Optional[str] = None
    redirect_uri: Optional[str] = None

    @model_validator(mode="after")
    def _require_advertiser(self) -> Self:
        if not self.state and not self.advertiser_id:
            raise ValueError("Either state or advertiser_id is required")
        return self


class ExchangeResponse(BaseModel):
    success: bool = True
    credential_id: str
    advertiser_id: str
    profile_id: Optional[str] = None
    expires_at: datetime
