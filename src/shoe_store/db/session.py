from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shoe_store.config import settings


def _engine_options(database_url: str) -> dict:
    # у SQLite (тесты, локальный запуск) нет пула соединений с сервером
    options = {"echo": settings.SQL_ECHO}
    if not make_url(database_url).get_backend_name().startswith("sqlite"):
        options.update(
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# expire_on_commit=False: после commit объекты читаются без ленивых запросов
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Сессия на запрос: Depends(get_async_session).
    Незакоммиченные изменения откатываются при выходе.
    """
    async with AsyncSessionLocal() as session:
        yield session
