import os
import pytest_asyncio
import sqlalchemy
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.services.locking import serialize_sqlite_writers, sqlite_connect_args
from src.depends import get_session

LOCK_TIMEOUT_MS = 5000


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """
    Test database engine

    Uses TEST_DB_URI when set (e.g. a PostgreSQL test database), otherwise a
    SQLite file so several sessions can share it.
    """
    test_db_url = os.environ.get("TEST_DB_URI") or f"sqlite+aiosqlite:///{tmp_path / 'ledger_test.db'}"

    engine = serialize_sqlite_writers(
        create_async_engine(
            test_db_url, echo=False, future=True, connect_args=sqlite_connect_args(test_db_url, LOCK_TIMEOUT_MS)
        )
    )

    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(sqlalchemy.text("DROP SCHEMA IF EXISTS public CASCADE"))
            await conn.execute(sqlalchemy.text("CREATE SCHEMA public"))
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    if engine.dialect.name == "postgresql":
        async with engine.begin() as conn:
            await conn.execute(sqlalchemy.text("DROP SCHEMA IF EXISTS public CASCADE"))
            await conn.execute(sqlalchemy.text("CREATE SCHEMA public"))

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    """Factory for independent sessions, one per concurrent caller"""
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    def _open() -> AsyncSession:
        session = Session()
        session.info["lock_timeout_ms"] = LOCK_TIMEOUT_MS
        return session

    return _open


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session):
    """Create test client with database session override"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
