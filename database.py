"""데이터베이스 연결 모듈

DATABASE_URL로 PostgreSQL(asyncpg, 운영)과 SQLite(aiosqlite, 로컬/테스트)를 전환한다.
"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from config import settings


def _engine_kwargs(url: str) -> dict:
    """DB 종류별 엔진 옵션"""
    if url.startswith("sqlite"):
        return {"echo": False}

    return {
        "echo": False,
        # 커넥션 풀 설정
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
        "pool_recycle": 1800,      # 30분마다 연결 재활용 (stale 방지)
        "pool_pre_ping": True,
        # asyncpg 성능 옵션
        "connect_args": {
            "server_settings": {
                "jit": "off",
                "statement_timeout": "30000",
            },
            "command_timeout": 30,
        },
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# 세션 팩토리
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base 클래스
Base = declarative_base()


async def get_db() -> AsyncSession:
    """FastAPI 의존성 주입용 DB 세션"""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind=None):
    """데이터베이스 초기화 (테이블 생성)"""
    import models  # noqa: F401  모든 테이블을 metadata에 등록

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
