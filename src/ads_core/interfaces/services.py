"""
Service protocols for dependency injection.

These protocols define the interfaces that services must implement,
allowing use cases to depend on abstractions rather than concrete implementations.
"""

from datetime import datetime
from typing import Any, AsyncContextManager, List, Optional, Protocol

from ..models.operation_log import OperationStatus
from ..schemas.credential import ConnectedPlatform, CredentialSnapshot
from ..schemas.token import AdvertisingProfile, TokenGrant


class IAmazonOAuthClient(Protocol):
    """Protocol for the provider token endpoint and profile discovery."""

    client_id: str

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when client id or secret is missing."""
        ...

    def build_authorization_url(
        self,
        *,
        state: str,
        redirect_uri: Optional[str] = None,
        use_test_account: bool = False,
    ) -> str:
        ...

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> TokenGrant:
        """
        Exchange an authorization code for a token pair.

        Raises:
            ProviderError: provider answered non-2xx or was unreachable
        """
        ...

    async def refresh(self, refresh_token: str) -> TokenGrant:
        ...

    async def fetch_profiles(self, access_token: str) -> List[AdvertisingProfile]:
        ...


class ICredentialStore(Protocol):
    """Protocol for encrypted credential persistence."""

    async def ensure_platform(self, *, name: str, display_name: str, api_base_url: str) -> str:
        ...

    async def get(self, credential_id: str) -> CredentialSnapshot:
        ...

    async def save_exchanged_tokens(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        profile_id: Optional[str],
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> CredentialSnapshot:
        ...

    async def save_refreshed_tokens(
        self,
        credential_id: str,
        *,
        access_token: str,
        expires_at: datetime,
        refresh_token: Optional[str] = None,
    ) -> CredentialSnapshot:
        ...

    async def deactivate(self, credential_id: str) -> CredentialSnapshot:
        ...

    async def list_connected(self, advertiser_id: str) -> List[ConnectedPlatform]:
        ...

    async def list_expiring_credential_ids(self, deadline: datetime, limit: int = 100) -> List[str]:
        ...


class IOperationLogService(Protocol):
    """Protocol for the best-effort audit trail."""

    async def record(
        self,
        *,
        advertiser_id: str,
        platform_id: str,
        operation_type: str,
        status: OperationStatus,
        error_message: Optional[str] = None,
        credential_id: Optional[str] = None,
        request_payload: Optional[dict[str, Any]] = None,
    ) -> bool:
        ...


class ILockManager(Protocol):
    """Protocol for cross-process locks."""

    def acquire(
        self,
        lock_key: str,
        timeout: int = 30,
        wait: bool = False,
        wait_timeout: Optional[float] = None,
    ) -> AsyncContextManager[bool]:
        ...
