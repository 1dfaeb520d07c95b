from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from conexa.config import settings
# URL must use an async driver (asyncpg, aiosqlite)
engine_kwargs = {"echo": settings.DATABASE_ECHO}
if settings.DATABASE_NULL_POOL:
    # no pooled connections outliving an event loop (tests run one loop per client)
    engine_kwargs["poolclass"] = NullPool
engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

# Session factory for dependency injection
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)
async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
