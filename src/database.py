import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from dotenv import load_dotenv
from asyncpg import Connection
from uuid import uuid4
from sqlalchemy import JSON, Column, String, func, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

class Base(DeclarativeBase): pass


class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


def database_url() -> str:
    """DATABASE_URL if set, else Postgres from POSTGRES_* vars, else a local SQLite file."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if POSTGRES_USER and POSTGRES_DB:
        return f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}"
    return "sqlite+aiosqlite:///./cornhole.db"


def make_engine(url: str, **kwargs):
    if url.startswith("postgresql+asyncpg"):
        kwargs.setdefault("connect_args", {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "connection_class": FixedConnection,
        })
    return create_async_engine(url, echo=False, future=True, **kwargs)


DATABASE_URL = database_url()
engine = make_engine(DATABASE_URL)

# Фабрика сессий
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_models(bind=engine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

#ORM

class StateORM(Base):
    """One row per top-level tournament field (players, groups, mode, ...)."""
    __tablename__ = "tournament_state"

    key        = Column(String, primary_key=True)
    value      = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
