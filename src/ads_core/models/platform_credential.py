from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from ..utils.time import now_db_utc


class PlatformCredential(Base):
    """OAuth credential of one advertiser on one ad platform.

    Tokens are stored Fernet-encrypted; the expiry is the provider's real
    expiry (the skew window is applied when reading, not when writing).
    """

    __tablename__ = "platform_credentials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    advertiser_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    platform_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("ad_platforms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    profile_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Provider sub-account (advertising profile) used as API scope",
    )
    access_token_encrypted: Mapped[str | None] = mapped_column(String(4096), nullable=True)
    refresh_token_encrypted: Mapped[str | None] = mapped_column(String(4096), nullable=True)
    token_expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, onupdate=now_db_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint("advertiser_id", "platform_id", name="uq_platform_credentials_advertiser_platform"),
        Index("ix_platform_credentials_active_expiry", "is_active", "token_expires_at"),
    )
