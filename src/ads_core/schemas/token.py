from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenGrant(BaseModel):
    """Successful token endpoint response (authorization_code or refresh_token grant).

    ``expires_in`` is None when the provider omitted it or sent something
    unusable; callers fall back to the configured default lifetime.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None

    @field_validator("expires_in", mode="before")
    @classmethod
    def _coerce_expires_in(cls, value: Any) -> Optional[int]:
        try:
            seconds = int(value)
        except (TypeError, ValueError):
            return None
        return seconds if seconds > 0 else None

    @field_validator("refresh_token", mode="before")
    @classmethod
    def _blank_refresh_token(cls, value: Any) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def lifetime_seconds(self, default: int) -> int:
        return self.expires_in or default


class AdvertisingProfile(BaseModel):
    """Entry of the Amazon Ads /v2/profiles listing."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    profile_id: str = Field(..., alias="profileId")
    country_code: Optional[str] = Field(None, alias="countryCode")
    currency_code: Optional[str] = Field(None, alias="currencyCode")

    @field_validator("profile_id", mode="before")
    @classmethod
    def _coerce_profile_id(cls, value: Any) -> str:
        # Amazon returns profile ids as JSON numbers.
        return str(value)
