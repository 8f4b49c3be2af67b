"""데이터베이스 엔진 및 세션 설정 모듈.

Database engine and session setup for the account/session stores.
Every statement carries a driver-level timeout so a stalled database surfaces
as a retryable store failure instead of hanging a login.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from auth_server.config import settings

# 비동기 엔진 (asyncpg) — pool checkout and statements share one timeout budget
engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
    pool_timeout=settings.DATABASE_COMMAND_TIMEOUT,
    connect_args={"command_timeout": settings.DATABASE_COMMAND_TIMEOUT},
)

# 요청/스위퍼 단위 세션 팩토리 — responses are built from rows after commit
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """``user_accounts`` / ``auth_sessions`` 모델의 선언적 베이스."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 세션 (Request-scoped session; routes commit explicitly)."""
    async with async_session() as session:
        yield session
