"""Repository pattern implementations for clean data access."""

from .base import BaseRepository
from .ad_platform import AdPlatformRepository
from .platform_credential import PlatformCredentialRepository
from .operation_log import OperationLogRepository

__all__ = [
    "BaseRepository",
    "AdPlatformRepository",
    "PlatformCredentialRepository",
    "OperationLogRepository",
]
