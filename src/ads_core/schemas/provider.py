from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ProviderRequest(BaseModel):
    """Outbound advertising API call; ``url`` may be absolute or relative to the API base URL."""

    method: str = "GET"
    url: str
    body: Optional[Any] = None
    params: Optional[Dict[str, Any]] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


class ProviderResponse(BaseModel):
    status_code: int
    body: Optional[Any] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
