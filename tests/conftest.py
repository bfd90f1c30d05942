"""
Pytest configuration and fixtures.
"""

import sys
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from planner.infra.db import Base
from planner.infra.repository import ExceptionRepository, InstanceRepository, RuleRepository


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest.fixture
def rule_repo(db_session):
    return RuleRepository(session=db_session)


@pytest.fixture
def instance_repo(db_session):
    return InstanceRepository(session=db_session)


@pytest.fixture
def exception_repo(db_session):
    return ExceptionRepository(session=db_session)
