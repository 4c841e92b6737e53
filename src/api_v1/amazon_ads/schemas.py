from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class OperationRequest(BaseModel):
    params: Dict[str, Any] = Field(default_factory=dict)


class OperationResponse(BaseModel):
    operation: str
    status_code: int
    data: Optional[Any] = None
