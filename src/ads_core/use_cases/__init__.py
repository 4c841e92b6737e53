"""Use case layer for credential lifecycle and provider invocation."""

from .exchange_token import ExchangeTokenUseCase
from .refresh_token import RefreshTokenUseCase
from .get_valid_access_token import GetValidAccessTokenUseCase
from .invoke_provider_api import InvokeProviderApiUseCase
from .list_connected_platforms import ListConnectedPlatformsUseCase
from .deactivate_credential import DeactivateCredentialUseCase
from .refresh_expiring_credentials import RefreshExpiringCredentialsUseCase

__all__ = [
    "ExchangeTokenUseCase",
    "RefreshTokenUseCase",
    "GetValidAccessTokenUseCase",
    "InvokeProviderApiUseCase",
    "ListConnectedPlatformsUseCase",
    "DeactivateCredentialUseCase",
    "RefreshExpiringCredentialsUseCase",
]
