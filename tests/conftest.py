import os
import uuid

os.environ.setdefault("SECRET_KEY", "luxeblog-test-signing-key-9f3a")
os.environ.setdefault("SEED_DEFAULT_TAXONOMY", "false")
os.environ.setdefault("DEFAULT_LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

from luxeblog.database import db_manager
from luxeblog.models.blog_models import Principal, UserRole


@pytest_asyncio.fixture
async def mock_database():
    """In-memory Motor-compatible database with the blog indexes installed."""
    client = AsyncMongoMockClient()
    database = client[f"luxeblog_test_{uuid.uuid4().hex[:8]}"]
    previous = (db_manager.client, db_manager.database)
    db_manager.client = client
    db_manager.database = database
    await db_manager.create_indexes()
    yield database
    db_manager.client, db_manager.database = previous


@pytest.fixture
def reader():
    return Principal(id="user_reader", role=UserRole.USER, name="Rita Reader")


@pytest.fixture
def author():
    return Principal(id="user_author", role=UserRole.AUTHOR, name="Ada Author", avatar="ada.jpg")


@pytest.fixture
def other_author():
    return Principal(id="user_other", role=UserRole.AUTHOR, name="Olive Other")


@pytest.fixture
def admin():
    return Principal(id="user_admin", role=UserRole.ADMIN, name="Alan Admin")
