from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from blog_api.config import settings


def install_sqlite_savepoints(engine) -> None:
    """
    Let SAVEPOINT work on a SQLite (aiosqlite) *engine*.

    The sqlite driver issues its own BEGIN lazily and ignores SAVEPOINT
    boundaries, which breaks ``AsyncSession.begin_nested()``.  This turns
    the driver's transaction handling off and emits BEGIN ourselves, as
    described in the SQLAlchemy SQLite dialect docs.

    Must be called once per SQLite engine (here and in ``conftest.py``).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Module-level engine variable allows tests to override with a test engine.
engine = create_async_engine(
    settings.database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

if engine.dialect.name == "sqlite":
    install_sqlite_savepoints(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def init_schema(bind=None) -> None:
    """Create every table that does not exist yet."""
    # Make sure all models are registered on Base.metadata.
    import blog_api.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
