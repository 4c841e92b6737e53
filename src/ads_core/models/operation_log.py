from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from ..utils.time import now_db_utc


class OperationStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class OperationType:
    INITIAL_CONNECTION = "initial_connection"
    REFRESH_TOKEN = "refresh_token"
    DEACTIVATE = "deactivate"


class PlatformOperationLog(Base):
    """Append-only audit entry for credential and provider API operations."""

    __tablename__ = "platform_operation_logs"

    advertiser_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    platform_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    credential_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    operation_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False)

    __table_args__ = (
        Index("ix_platform_operation_logs_advertiser_created", "advertiser_id", "created_at"),
    )
