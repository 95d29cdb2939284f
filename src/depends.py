from functools import lru_cache
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.activity_log import create_activity_log_sink
from src.adapter.services.locking import serialize_sqlite_writers, sqlite_connect_args
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.activity_log import ActivityLogSink


engine = serialize_sqlite_writers(
    create_async_engine(
        ApplicationConfig.DB_URI,
        echo=False,
        future=True,
        connect_args=sqlite_connect_args(ApplicationConfig.DB_URI, ApplicationConfig.LOCK_TIMEOUT_MS),
    )
)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


def configure_session(session: AsyncSession) -> AsyncSession:
    session.info["lock_timeout_ms"] = ApplicationConfig.LOCK_TIMEOUT_MS
    return session


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield configure_session(session)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(configure_session(session))


@lru_cache
def get_activity_log_sink() -> ActivityLogSink:
    return create_activity_log_sink(ApplicationConfig.ACTIVITY_LOG_WEBHOOK)
