"""
Pytest configuration and shared fixtures for all tests.

This file provides:
- Database fixtures (in-memory SQLite for fast tests)
- Scripted Amazon endpoints over httpx.MockTransport
- fakeredis-backed lock manager
- Wired services and use cases
- Async FastAPI client with container overrides
"""

import os
import sys
from datetime import timedelta
from typing import AsyncGenerator, List, Optional

import pytest
from unittest.mock import AsyncMock

# Prepopulate required env vars for settings before imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_SECRET", "dummy_app_secret")
os.environ.setdefault("OAUTH_ENCRYPTION_KEY", "1p_UUU0j5OJ9SxWwtUWFI7Ak4luuL8EA3twJY86W0Z0=")
os.environ.setdefault("AMAZON_ADS_CLIENT_ID", "test-client-id")
os.environ.setdefault("AMAZON_ADS_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("AMAZON_ADS_REDIRECT_URI", "https://app.example.com/amazon-callback")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import fakeredis
from dependency_injector import providers
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ads_core.container import Container, get_container, reset_container
from ads_core.models import Base, PlatformOperationLog
from ads_core.repositories.ad_platform import AdPlatformRepository
from ads_core.repositories.operation_log import OperationLogRepository
from ads_core.repositories.platform_credential import PlatformCredentialRepository
from ads_core.schemas.credential import CredentialSnapshot
from ads_core.services.amazon_oauth_client import AmazonOAuthClient
from ads_core.services.credential_store import CredentialStoreService
from ads_core.services.operation_log_service import OperationLogService
from ads_core.use_cases.exchange_token import ExchangeTokenUseCase
from ads_core.use_cases.get_valid_access_token import GetValidAccessTokenUseCase
from ads_core.use_cases.invoke_provider_api import InvokeProviderApiUseCase
from ads_core.use_cases.refresh_token import RefreshTokenUseCase
from ads_core.utils.lock_manager import LockManager
from ads_core.utils.retry import RetryPolicy
from ads_core.utils.single_flight import SingleFlight
from ads_core.utils.time import now_utc
from main import app
from tests.helpers import API_BASE_URL, TOKEN_URL, FakeAmazonApi

fake = Faker()

TEST_ENCRYPTION_KEY = "1p_UUU0j5OJ9SxWwtUWFI7Ak4luuL8EA3twJY86W0Z0="
CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret"


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for repository tests."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory handed to services that open their own unit of work."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def fetch_operation_logs(session_maker):
    """Read back the audit trail, oldest first."""

    async def _fetch(operation_type: Optional[str] = None) -> List[PlatformOperationLog]:
        async with session_maker() as session:
            stmt = select(PlatformOperationLog).order_by(PlatformOperationLog.id)
            if operation_type:
                stmt = stmt.where(PlatformOperationLog.operation_type == operation_type)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    return _fetch


# ============================================================================
# EXTERNAL DEPENDENCY FIXTURES
# ============================================================================


@pytest.fixture
def amazon_api() -> FakeAmazonApi:
    return FakeAmazonApi()


@pytest.fixture
async def http_client(amazon_api):
    client = amazon_api.client()
    yield client
    await client.aclose()


@pytest.fixture
async def fake_redis():
    client = fakeredis.FakeAsyncRedis()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def lock_manager(fake_redis) -> LockManager:
    return LockManager(client=fake_redis, poll_interval=0.01)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    """Records backoff delays instead of sleeping."""

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def retry_policy() -> RetryPolicy:
    # jitter pinned to 0 so delays are base * 2**attempt * 0.5
    return RetryPolicy(max_attempts=3, base_delay=1.0, jitter=lambda: 0.0)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def oauth_client(http_client) -> AmazonOAuthClient:
    return AmazonOAuthClient(
        http_client=http_client,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        token_url=TOKEN_URL,
        authorize_url="https://www.amazon.com/ap/oa",
        api_base_url=API_BASE_URL,
        default_redirect_uri="https://app.example.com/amazon-callback",
    )


@pytest.fixture
def credential_store(session_maker) -> CredentialStoreService:
    return CredentialStoreService(
        session_factory=lambda: session_maker,
        credential_repository_factory=lambda session: PlatformCredentialRepository(session),
        platform_repository_factory=lambda session: AdPlatformRepository(session),
        encryption_key=TEST_ENCRYPTION_KEY,
    )


@pytest.fixture
def operation_log_service(session_maker) -> OperationLogService:
    return OperationLogService(
        repository_factory=lambda session: OperationLogRepository(session),
        session_factory=lambda: session_maker,
    )


@pytest.fixture
async def platform_id(credential_store) -> str:
    return await credential_store.ensure_platform(
        name="amazon",
        display_name="Amazon Ads",
        api_base_url=API_BASE_URL,
    )


@pytest.fixture
def credential_factory(credential_store, platform_id, session_maker):
    """Create stored credentials; ``expires_in`` may be negative for already expired tokens."""

    async def _create(
        advertiser_id: Optional[str] = None,
        access_token: str = "at1",
        refresh_token: Optional[str] = "rt1",
        expires_in: int = 3600,
        profile_id: Optional[str] = "111",
        is_active: bool = True,
    ) -> CredentialSnapshot:
        snapshot = await credential_store.save_exchanged_tokens(
            advertiser_id=advertiser_id or fake.uuid4(),
            platform_id=platform_id,
            profile_id=profile_id,
            access_token=access_token,
            refresh_token=refresh_token or "placeholder",
            expires_at=now_utc() + timedelta(seconds=expires_in),
        )
        if refresh_token is None or not is_active:
            async with session_maker() as session:
                repo = PlatformCredentialRepository(session)
                record = await repo.get_by_id(snapshot.id)
                if refresh_token is None:
                    record.refresh_token_encrypted = None
                if not is_active:
                    record.is_active = False
                await session.commit()
            snapshot = await credential_store.get(snapshot.id)
        return snapshot

    return _create


# ============================================================================
# USE CASE FIXTURES
# ============================================================================


@pytest.fixture
def single_flight() -> SingleFlight:
    return SingleFlight()


@pytest.fixture
def refresh_use_case(credential_store, oauth_client, operation_log_service, lock_manager, single_flight):
    return RefreshTokenUseCase(
        credential_store=credential_store,
        oauth_client=oauth_client,
        operation_log=operation_log_service,
        lock_manager=lock_manager,
        single_flight=single_flight,
        skew_window_seconds=300,
        default_expires_in_seconds=3600,
        lock_timeout_seconds=5,
    )


@pytest.fixture
def access_token_use_case(credential_store, refresh_use_case):
    return GetValidAccessTokenUseCase(
        credential_store=credential_store,
        refresh_token_use_case=refresh_use_case,
        skew_window_seconds=300,
    )


@pytest.fixture
def invoke_use_case(
    http_client,
    credential_store,
    access_token_use_case,
    refresh_use_case,
    operation_log_service,
    retry_policy,
    fake_sleep,
):
    return InvokeProviderApiUseCase(
        http_client=http_client,
        credential_store=credential_store,
        access_token_use_case=access_token_use_case,
        refresh_token_use_case=refresh_use_case,
        operation_log=operation_log_service,
        retry_policy=retry_policy,
        client_id=CLIENT_ID,
        api_base_url=API_BASE_URL,
        sleep=fake_sleep,
    )


@pytest.fixture
def exchange_use_case(credential_store, oauth_client, operation_log_service):
    return ExchangeTokenUseCase(
        credential_store=credential_store,
        oauth_client=oauth_client,
        operation_log=operation_log_service,
        platform_name="amazon",
        platform_display_name="Amazon Ads",
        api_base_url=API_BASE_URL,
        default_expires_in_seconds=3600,
    )


@pytest.fixture
def mock_operation_log():
    log = AsyncMock()
    log.record = AsyncMock(return_value=True)
    return log


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def test_container(http_client, session_maker, lock_manager, retry_policy):
    """DI container wired to the in-memory database, fake Redis and scripted Amazon API."""
    reset_container()
    container = Container()
    container.http_client.override(providers.Object(http_client))
    container.db_session_factory.override(providers.Object(session_maker))
    container.lock_manager.override(providers.Object(lock_manager))
    container.retry_policy.override(
        providers.Object(RetryPolicy(max_attempts=retry_policy.max_attempts, base_delay=0.0, jitter=lambda: 0.0))
    )

    app.dependency_overrides[get_container] = lambda: container
    yield container
    app.dependency_overrides.clear()
    reset_container()


@pytest.fixture
async def async_client(test_container) -> AsyncGenerator[AsyncClient, None]:
    """Async FastAPI test client for testing async endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
