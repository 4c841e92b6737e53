import os
from typing import Optional, Self
from pydantic import BaseModel, Field, model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, EnvSettingsSource
from dotenv import load_dotenv

from .constants.retry_policy import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)

load_dotenv()


class DbSettings(BaseModel):
    url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", "").strip())
    echo: bool = Field(default=False)

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.url:
            raise ValueError("DATABASE_URL environment variable must be set.")
        return self


class CelerySettings(BaseModel):
    broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")


class RedisSettings(BaseModel):
    url: str = Field(
        default_factory=lambda: os.getenv(
            "REDIS_URL",
            os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        ).strip()
    )


class AmazonAdsSettings(BaseModel):
    """Amazon Advertising API client settings.

    Client id and secret are deliberately optional here: a missing value is
    reported as ConfigurationError when a token call is attempted.
    """

    client_id: str = Field(default_factory=lambda: os.getenv("AMAZON_ADS_CLIENT_ID", "").strip())
    client_secret: str = Field(default_factory=lambda: os.getenv("AMAZON_ADS_CLIENT_SECRET", "").strip())
    redirect_uri: str = Field(default_factory=lambda: os.getenv("AMAZON_ADS_REDIRECT_URI", "").strip())
    token_url: str = os.getenv("AMAZON_ADS_TOKEN_URL", "https://api.amazon.com/auth/o2/token")
    authorize_url: str = os.getenv("AMAZON_ADS_AUTHORIZE_URL", "https://www.amazon.com/ap/oa")
    api_base_url: str = os.getenv("AMAZON_ADS_API_BASE_URL", "https://advertising-api.amazon.com")
    platform_name: str = os.getenv("AMAZON_ADS_PLATFORM_NAME", "amazon")
    platform_display_name: str = os.getenv("AMAZON_ADS_PLATFORM_DISPLAY_NAME", "Amazon Ads")
    request_timeout_seconds: float = Field(
        default_factory=lambda: float(
            os.getenv("AMAZON_ADS_REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT_SECONDS))
        )
    )
    # Single-tenant deployments may pin every call to one profile.
    profile_id_override: Optional[str] = Field(
        default_factory=lambda: os.getenv("AMAZON_ADS_PROFILE_ID_OVERRIDE", "").strip() or None
    )

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.request_timeout_seconds <= 0:
            raise ValueError("AMAZON_ADS_REQUEST_TIMEOUT_SECONDS must be greater than zero.")
        return self


class JsonApiSettings(BaseModel):
    secret_key: str = Field(default_factory=lambda: os.getenv("JWT_SECRET_KEY", "").strip())
    algorithm: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256").strip() or "HS256")

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.secret_key:
            raise ValueError("JWT_SECRET_KEY environment variable must be set.")
        if not self.algorithm:
            raise ValueError("JWT_ALGORITHM environment variable must be set.")
        return self


class TokenSettings(BaseModel):
    skew_window_seconds: int = Field(default_factory=lambda: int(os.getenv("TOKEN_SKEW_WINDOW_SECONDS", "300")))
    default_expires_in_seconds: int = Field(
        default_factory=lambda: int(os.getenv("TOKEN_DEFAULT_EXPIRES_IN_SECONDS", "3600"))
    )
    refresh_lock_timeout_seconds: int = Field(
        default_factory=lambda: int(os.getenv("TOKEN_REFRESH_LOCK_TIMEOUT_SECONDS", "60"))
    )
    proactive_refresh_lookahead_seconds: int = Field(
        default_factory=lambda: int(os.getenv("TOKEN_PROACTIVE_REFRESH_LOOKAHEAD_SECONDS", str(15 * 60)))
    )
    proactive_refresh_interval_seconds: int = Field(
        default_factory=lambda: int(os.getenv("TOKEN_PROACTIVE_REFRESH_INTERVAL_SECONDS", str(5 * 60)))
    )

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.skew_window_seconds < 0:
            raise ValueError("TOKEN_SKEW_WINDOW_SECONDS must not be negative.")
        if self.default_expires_in_seconds <= 0:
            raise ValueError("TOKEN_DEFAULT_EXPIRES_IN_SECONDS must be greater than zero.")
        return self


class RetrySettings(BaseModel):
    max_attempts: int = Field(
        default_factory=lambda: int(os.getenv("PROVIDER_RETRY_MAX_ATTEMPTS", str(DEFAULT_MAX_ATTEMPTS)))
    )
    base_delay_seconds: float = Field(
        default_factory=lambda: float(
            os.getenv("PROVIDER_RETRY_BASE_DELAY_SECONDS", str(DEFAULT_BASE_DELAY_SECONDS))
        )
    )

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.max_attempts < 1:
            raise ValueError("PROVIDER_RETRY_MAX_ATTEMPTS must be at least 1.")
        if self.base_delay_seconds < 0:
            raise ValueError("PROVIDER_RETRY_BASE_DELAY_SECONDS must not be negative.")
        return self


class RelaxedEnvSettingsSource(EnvSettingsSource):
    def decode_complex_value(self, field_name, field, value):
        try:
            return super().decode_complex_value(field_name, field, value)
        except Exception:
            return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")
    api_v1_prefix: str = "/api/v1"
    app_secret: str = Field(default_factory=lambda: os.getenv("APP_SECRET", "").strip())
    oauth_encryption_key: str = Field(default_factory=lambda: os.getenv("OAUTH_ENCRYPTION_KEY", "").strip())
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=False)
    db: DbSettings = DbSettings()
    celery: CelerySettings = CelerySettings()
    redis: RedisSettings = RedisSettings()
    amazon_ads: AmazonAdsSettings = AmazonAdsSettings()
    json_api: JsonApiSettings = JsonApiSettings()
    token: TokenSettings = TokenSettings()
    retry: RetrySettings = RetrySettings()

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.app_secret:
            raise ValueError("APP_SECRET environment variable must be set.")
        if not self.oauth_encryption_key:
            raise ValueError("OAUTH_ENCRYPTION_KEY environment variable must be set.")
        return self

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value):
        if value is None:
            return ["*"]
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or stripped == "*":
                return ["*"]
            return [item.strip() for item in stripped.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            origins = [str(item).strip() for item in value if str(item).strip()]
            return origins or ["*"]
        raise ValueError("Invalid cors_allowed_origins format; provide comma-separated string or list.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            RelaxedEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
