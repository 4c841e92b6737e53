"""
Service interfaces/protocols for dependency injection.

Use cases depend on these protocols rather than on the concrete
credential store, OAuth client or lock implementation.
"""

from .services import (
    IAmazonOAuthClient,
    ICredentialStore,
    ILockManager,
    IOperationLogService,
)

__all__ = [
    "IAmazonOAuthClient",
    "ICredentialStore",
    "ILockManager",
    "IOperationLogService",
]
