from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker

from ads_core.config import settings


class DatabaseHelper:
    """Owns the async engine and the session factory every unit of work draws from."""

    def __init__(self, url: str, echo: bool = False):
        self.engine: AsyncEngine = create_async_engine(
            url=url,
            echo=echo,
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


db_helper = DatabaseHelper(
    url=settings.db.url,
    echo=settings.db.echo,
)
