"""
Test configuration and fixtures for the realty API.
Provides an in-memory database per test, fake Redis backed infrastructure,
an HTTP client wired to the app and test data factories.
"""

import os
import tempfile

# Required settings must exist before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-the-test-suite"
os.environ["REDIS_HOST"] = "localhost"
os.environ["ENVIRONMENT"] = "testing"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="realty-uploads-")
for _name in ("CLOUDINARY_CLOUD_NAME", "EMAIL_HOST", "EMAIL_USER", "EMAIL_PASSWORD"):
    os.environ.pop(_name, None)

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import MagicMock

import fakeredis
import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from realty_api.main import app
from realty_api.database import Base, get_db, enable_sqlite_foreign_keys
from realty_api.models.user import User, UserRole
from realty_api.models.property import Property, PropertyType, PropertyStatus, ListingType
from realty_api.repositories.user import UserRepository
from realty_api.repositories.property import PropertyRepository
from realty_api.services.cache import ResponseCache
from realty_api.services.email_queue import EmailQueue
from realty_api.services.media_storage import LocalFileStorage
from realty_api.utils.auth import create_access_token
from realty_api.utils.dependencies import get_media_storage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory database for every test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    enable_sqlite_foreign_keys(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(str(tmp_path / "media"))


@pytest.fixture
def response_cache() -> ResponseCache:
    return ResponseCache(fakeredis.aioredis.FakeRedis(decode_responses=True))


@pytest.fixture
def email_queue() -> MagicMock:
    queue = MagicMock(spec=EmailQueue)
    queue.enqueue.return_value = "job-1"
    queue.get_queue_stats.return_value = {"waiting": 0, "active": 0, "completed": 0, "failed": 0}
    return queue


@pytest.fixture
async def client(session_factory, storage, response_cache, email_queue) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database and fakes wired in."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: storage
    app.state.response_cache = response_cache
    app.state.email_queue = email_queue

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    app.dependency_overrides.clear()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        full_name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "full_name": full_name,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(db: AsyncSession, **kwargs) -> User:
        return await UserRepository(db).create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_payload(**overrides) -> dict:
        """Request body accepted by POST /api/properties."""
        payload = {
            "title": "Sunny family house",
            "description": "Three bedrooms, large garden and a quiet street",
            "property_type": "house",
            "listing_type": "sale",
            "price": 350000,
            "address": {
                "street": "12 Oak Street",
                "city": "Springfield",
                "state": "IL",
                "zip_code": "62701"
            },
            "location": {"latitude": 39.7817, "longitude": -89.6501},
            "features": {"bedrooms": 3, "bathrooms": 2, "area": 1800},
            "amenities": ["garden", "garage"]
        }
        payload.update(overrides)
        return payload

    @staticmethod
    async def create_property(
        db: AsyncSession,
        agent: User,
        title: str = "Test Property",
        price: Decimal = Decimal("250000"),
        status: PropertyStatus = PropertyStatus.AVAILABLE,
        is_published: bool = True,
        is_featured: bool = False,
        latitude: float = None,
        longitude: float = None,
        city: str = "Springfield",
        bedrooms: int = 2
    ) -> Property:
        return await PropertyRepository(db).create({
            "title": title,
            "description": "A test listing",
            "property_type": PropertyType.HOUSE,
            "status": status,
            "listing_type": ListingType.SALE,
            "price": price,
            "street": "1 Main Street",
            "city": city,
            "state": "IL",
            "zip_code": "62701",
            "latitude": latitude,
            "longitude": longitude,
            "bedrooms": bedrooms,
            "bathrooms": 1,
            "area": 1000,
            "agent_id": agent.id,
            "is_published": is_published,
            "is_featured": is_featured,
        })


def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def image_bytes(fmt: str = "PNG", size=(20, 20)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
async def admin_user(db_session) -> User:
    return await UserFactory.create_user(db_session, email="admin@example.com", full_name="Ada Admin", role=UserRole.ADMIN)


@pytest.fixture
async def agent_user(db_session) -> User:
    return await UserFactory.create_user(db_session, email="agent@example.com", full_name="Alex Agent", role=UserRole.AGENT)


@pytest.fixture
async def other_agent(db_session) -> User:
    return await UserFactory.create_user(db_session, email="other.agent@example.com", full_name="Olive Other", role=UserRole.AGENT)


@pytest.fixture
async def regular_user(db_session) -> User:
    return await UserFactory.create_user(db_session, email="buyer@example.com", full_name="Bo Buyer", role=UserRole.USER)


@pytest.fixture
async def agent_property(db_session, agent_user) -> Property:
    return await PropertyFactory.create_property(db_session, agent_user, title="Agent listing")
