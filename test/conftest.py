"""
Pytest configuration and fixtures for the sitecms tests
"""

import os
import sys
import tempfile
from collections.abc import AsyncGenerator

_TEST_DIR = tempfile.mkdtemp(prefix="sitecms-test-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DIR}/sitecms_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-the-suite")
os.environ.setdefault("ENVIRONMENT", "test")

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import sitecms.database as database_module  # noqa: E402
import sitecms.models  # noqa: E402, F401
from sitecms.auth import create_access_token  # noqa: E402
from sitecms.database import Base  # noqa: E402
from sitecms.middleware.rate_limit import limiter  # noqa: E402
from sitecms.models.user import User, UserRole  # noqa: E402
from sitecms.services import auth_service, setup_service  # noqa: E402

SITE_ID = "site-a"
OTHER_SITE_ID = "site-b"

TEST_DATABASE_URL = os.environ["DATABASE_URL"]

test_engine = create_async_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

# Replace the app's engine and session maker with test versions
database_module.engine = test_engine
database_module.AsyncSessionLocal = TestSessionLocal

from main import app  # noqa: E402

# Rate limits are exercised explicitly in test_rate_limit.py
limiter.enabled = False


@pytest.fixture(scope="function")
async def setup_test_database():
    """Fresh schema for every test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled connections must not outlive the test's event loop
    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db(setup_test_database) -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
async def client(setup_test_database) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async client bound to the app through ASGI, no network involved."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
async def admin_user(db: AsyncSession) -> User:
    return await auth_service.register_user(db, SITE_ID, "admin@example.com", "adminpassword", role=UserRole.ADMIN)


@pytest.fixture
async def editor_user(db: AsyncSession) -> User:
    return await auth_service.register_user(db, SITE_ID, "editor@example.com", "editorpassword")


@pytest.fixture
async def other_site_admin(db: AsyncSession) -> User:
    return await auth_service.register_user(
        db, OTHER_SITE_ID, "admin@example.com", "otherpassword", role=UserRole.ADMIN
    )


def bearer_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.user_id, user.site_id)}"}


@pytest.fixture
def auth_headers():
    """Factory for Authorization headers of any user."""
    return bearer_headers


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer_headers(admin_user)


@pytest.fixture
def editor_headers(editor_user: User) -> dict[str, str]:
    return bearer_headers(editor_user)


@pytest.fixture
async def default_types(db: AsyncSession) -> list[str]:
    """The built-in content types (projects, testimonials, team, site-content) for SITE_ID."""
    await setup_service.ensure_website(db, SITE_ID, "Site A")
    return await setup_service.ensure_default_content_types(db, SITE_ID)
