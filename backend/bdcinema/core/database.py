import asyncio
import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from bdcinema.core.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.sqlalchemy_url

connect_args = {}
engine_kwargs = {"pool_pre_ping": True}
if DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync handlers in a threadpool
    connect_args = {"check_same_thread": False}
else:
    engine_kwargs.update(pool_size=10, max_overflow=20, pool_timeout=30, pool_recycle=3600)

engine = create_engine(DATABASE_URL, connect_args=connect_args, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE and FK checks unless asked per connection
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def redacted_database_url() -> str:
    """Database URL with the password masked, for status endpoints."""
    url = engine.url
    if url.password:
        return url.render_as_string(hide_password=True)
    return str(url)


def create_tables(bind=None) -> None:
    from bdcinema.models import Base
    Base.metadata.create_all(bind=bind or engine)


async def init_db():
    from bdcinema.services.seed import seed_defaults
    loop = asyncio.get_running_loop()

    def _init():
        create_tables()
        db = SessionLocal()
        try:
            seed_defaults(db)
        finally:
            db.close()

    await loop.run_in_executor(None, _init)
    logger.info(f"Database ready at {redacted_database_url()}")
