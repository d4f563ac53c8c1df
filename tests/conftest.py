import asyncio
import os
import random

# Keep the app's own engine off any real database configured in .env
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from cornhole.router import get_rng
from database import get_session, init_models, make_engine
from main import app


@pytest.fixture
def engine(tmp_path):
    """Fresh SQLite file per test."""
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'cornhole.db'}", poolclass=NullPool)
    asyncio.run(init_models(eng))
    yield eng
    asyncio.run(eng.dispose())


@pytest.fixture
def client(engine):
    """TestClient backed by the per-test database and a seeded random source."""
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def _get_session():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_rng] = lambda: random.Random(2024)
    with TestClient(app, follow_redirects=False) as c:
        yield c
    app.dependency_overrides.clear()
