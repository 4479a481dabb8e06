"""데이터베이스 엔진, 세션 팩토리, ORM 베이스.

Async SQLAlchemy wiring for the scorecard database. Two kinds of sessions
come out of the same factory:

* ``get_db``: one session per write request; routers commit it and a
  failed request is rolled back here.
* the record store: one short-lived session per read, so the aggregate
  loader can run its fetches concurrently. Pool sizing therefore comes
  from settings rather than being fixed.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


def build_engine(url: str) -> AsyncEngine:
    """asyncpg 엔진 생성 (Create the asyncpg engine from settings)."""
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        connect_args={"statement_cache_size": settings.DB_STATEMENT_CACHE_SIZE},
    )


engine: AsyncEngine = build_engine(settings.DATABASE_URL)

# 커밋 후에도 속성 접근 가능해야 응답 직렬화가 추가 쿼리 없이 동작
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    """모든 ORM 모델의 선언적 베이스 (Declarative base for every mapped model)."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """쓰기 요청용 세션 의존성.

    Yields a session for the duration of a request. If the handler raises,
    pending changes are rolled back before the session is returned to the
    pool; commits are left to the routers.

    Yields:
        AsyncSession: 요청 범위 세션 (Request-scoped session)
    """
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
