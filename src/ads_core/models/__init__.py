__all__ = (
    "Base",
    "DatabaseHelper",
    "db_helper",
    "AdPlatform",
    "PlatformCredential",
    "PlatformOperationLog",
    "OperationStatus",
    "OperationType",
)

from .base import Base
from .db_helper import DatabaseHelper, db_helper
from .ad_platform import AdPlatform
from .platform_credential import PlatformCredential
from .operation_log import PlatformOperationLog, OperationStatus, OperationType
