"""
Dependency Injection Container.

Centralizes all dependency configuration following the Dependency Inversion Principle.
HTTP client, Redis client and session factory live here; nothing in the core
creates its own.
"""

import httpx
from dependency_injector import containers, providers
from redis import asyncio as redis_async

from .config import settings

# Services
from .services.amazon_oauth_client import AmazonOAuthClient
from .services.amazon_ads_service import AmazonAdsService
from .services.credential_store import CredentialStoreService
from .services.operation_log_service import OperationLogService

# Infrastructure
from .models.db_helper import db_helper
from .utils.lock_manager import LockManager
from .utils.retry import RetryPolicy
from .utils.single_flight import SingleFlight

# Use cases
from .use_cases.exchange_token import ExchangeTokenUseCase
from .use_cases.refresh_token import RefreshTokenUseCase
from .use_cases.get_valid_access_token import GetValidAccessTokenUseCase
from .use_cases.invoke_provider_api import InvokeProviderApiUseCase
from .use_cases.list_connected_platforms import ListConnectedPlatformsUseCase
from .use_cases.deactivate_credential import DeactivateCredentialUseCase
from .use_cases.refresh_expiring_credentials import RefreshExpiringCredentialsUseCase

# Repositories
from .repositories.ad_platform import AdPlatformRepository
from .repositories.platform_credential import PlatformCredentialRepository
from .repositories.operation_log import OperationLogRepository


class Container(containers.DeclarativeContainer):
    """
    Application DI container.

    Provides centralized configuration for all dependencies.
    Services are created as singletons or factories as appropriate.
    """

    # Configuration
    config = providers.Configuration()

    # Infrastructure - Singleton
    http_client = providers.Singleton(
        httpx.AsyncClient,
        timeout=settings.amazon_ads.request_timeout_seconds,
    )

    redis_client = providers.Singleton(
        redis_async.Redis.from_url,
        settings.redis.url,
    )

    lock_manager = providers.Singleton(
        LockManager,
        client=redis_client,
    )

    # Shared across refresh use case instances so concurrent requests collapse.
    single_flight = providers.Singleton(SingleFlight)

    retry_policy = providers.Singleton(
        RetryPolicy,
        max_attempts=settings.retry.max_attempts,
        base_delay=settings.retry.base_delay_seconds,
    )

    # Database infrastructure
    database_helper = providers.Object(db_helper)
    db_engine = providers.Callable(lambda helper: helper.engine, database_helper)
    db_session_factory = providers.Callable(lambda helper: helper.session_factory, database_helper)

    # Repository factories
    ad_platform_repository_factory = providers.Factory(AdPlatformRepository)
    platform_credential_repository_factory = providers.Factory(PlatformCredentialRepository)
    operation_log_repository_factory = providers.Factory(OperationLogRepository)

    # Services
    amazon_oauth_client = providers.Singleton(
        AmazonOAuthClient,
        http_client=http_client,
        client_id=settings.amazon_ads.client_id,
        client_secret=settings.amazon_ads.client_secret,
        token_url=settings.amazon_ads.token_url,
        authorize_url=settings.amazon_ads.authorize_url,
        api_base_url=settings.amazon_ads.api_base_url,
        default_redirect_uri=settings.amazon_ads.redirect_uri,
    )

    credential_store = providers.Singleton(
        CredentialStoreService,
        session_factory=db_session_factory.provider,
        credential_repository_factory=platform_credential_repository_factory.provider,
        platform_repository_factory=ad_platform_repository_factory.provider,
        encryption_key=settings.oauth_encryption_key,
    )

    operation_log_service = providers.Singleton(
        OperationLogService,
        repository_factory=operation_log_repository_factory.provider,
        session_factory=db_session_factory.provider,
    )

    # Use Cases - Factory (new instance per request)

    exchange_token_use_case = providers.Factory(
        ExchangeTokenUseCase,
        credential_store=credential_store,
        oauth_client=amazon_oauth_client,
        operation_log=operation_log_service,
        platform_name=settings.amazon_ads.platform_name,
        platform_display_name=settings.amazon_ads.platform_display_name,
        api_base_url=settings.amazon_ads.api_base_url,
        default_expires_in_seconds=settings.token.default_expires_in_seconds,
    )

    refresh_token_use_case = providers.Factory(
        RefreshTokenUseCase,
        credential_store=credential_store,
        oauth_client=amazon_oauth_client,
        operation_log=operation_log_service,
        lock_manager=lock_manager,
        single_flight=single_flight,
        skew_window_seconds=settings.token.skew_window_seconds,
        default_expires_in_seconds=settings.token.default_expires_in_seconds,
        lock_timeout_seconds=settings.token.refresh_lock_timeout_seconds,
    )

    get_valid_access_token_use_case = providers.Factory(
        GetValidAccessTokenUseCase,
        credential_store=credential_store,
        refresh_token_use_case=refresh_token_use_case,
        skew_window_seconds=settings.token.skew_window_seconds,
        profile_id_override=settings.amazon_ads.profile_id_override,
    )

    invoke_provider_api_use_case = providers.Factory(
        InvokeProviderApiUseCase,
        http_client=http_client,
        credential_store=credential_store,
        access_token_use_case=get_valid_access_token_use_case,
        refresh_token_use_case=refresh_token_use_case,
        operation_log=operation_log_service,
        retry_policy=retry_policy,
        client_id=settings.amazon_ads.client_id,
        api_base_url=settings.amazon_ads.api_base_url,
    )

    amazon_ads_service = providers.Factory(
        AmazonAdsService,
        invoke=invoke_provider_api_use_case.provided.execute,
    )

    list_connected_platforms_use_case = providers.Factory(
        ListConnectedPlatformsUseCase,
        credential_store=credential_store,
    )

    deactivate_credential_use_case = providers.Factory(
        DeactivateCredentialUseCase,
        credential_store=credential_store,
        operation_log=operation_log_service,
    )

    refresh_expiring_credentials_use_case = providers.Factory(
        RefreshExpiringCredentialsUseCase,
        credential_store=credential_store,
        refresh_token_use_case=refresh_token_use_case,
        lookahead_seconds=settings.token.proactive_refresh_lookahead_seconds,
    )


# Global container instance
container = Container()


def get_container() -> Container:
    """
    Get the global container instance.

    Used as a FastAPI dependency:
        container: Container = Depends(get_container)
    """
    return container


def reset_container():
    """
    Reset container for testing.

    Clears all singletons and allows fresh initialization.
    """
    container.reset_singletons()
