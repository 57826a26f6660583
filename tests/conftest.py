"""테스트 공용 픽스처

설정 모듈이 import 시점에 환경변수를 읽으므로 앱 모듈보다 먼저 설정한다.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["PRICE_SCHEDULER_ENABLED"] = "false"
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["JWT_SECRET"] = "test-secret"

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from api import app
from database import Base, get_db
from middleware.auth import create_access_token, hash_password
from models.team import Team
from models.user import User
from services.price_scheduler import PriceScheduler

ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # CASCADE 삭제를 위해 외래키 활성화
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def create_user(db: AsyncSession, school_number: int = 20240001, capital: int = 50000,
                      password: str = "secret123") -> User:
    user = User(
        name=f"user-{school_number}",
        school_number=school_number,
        department="컴퓨터공학과",
        password=hash_password(password),
        capital=capital,
        stock_value=0,
        total_assets=capital,
        roi=0,
    )
    db.add(user)
    await db.flush()
    user.access_token = create_access_token(user)
    await db.commit()
    return user


async def create_team(db: AsyncSession, name: str = "Team Alpha", money: int = 0,
                      p0: int = 1000, p: int = None) -> Team:
    team = Team(team_name=name, status="ongoing", money=money, p0=p0, p=p)
    db.add(team)
    await db.commit()
    return team


@pytest.fixture
async def user(db):
    return await create_user(db)


@pytest.fixture
async def team(db):
    return await create_team(db)


@pytest.fixture
def make_user(db):
    async def _make(**kwargs) -> User:
        return await create_user(db, **kwargs)
    return _make


@pytest.fixture
def make_team(db):
    async def _make(**kwargs) -> Team:
        return await create_team(db, **kwargs)
    return _make


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory
    app.state.price_scheduler = PriceScheduler(session_factory)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.session_factory = None
    app.state.price_scheduler = None


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user.access_token}"}


@pytest.fixture
def admin_headers():
    return dict(ADMIN_HEADERS)
