from .token import TokenGrant, AdvertisingProfile
from .credential import CredentialSnapshot, AccessTokenResult, ExchangeResult, ConnectedPlatform
from .provider import ProviderRequest, ProviderResponse

__all__ = [
    "TokenGrant",
    "AdvertisingProfile",
    "CredentialSnapshot",
    "AccessTokenResult",
    "ExchangeResult",
    "ConnectedPlatform",
    "ProviderRequest",
    "ProviderResponse",
]
