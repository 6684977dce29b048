import os
import tempfile
import uuid
from types import SimpleNamespace
from typing import AsyncGenerator, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Uploads from the whole run land in one throwaway directory
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="realty-crm-storage-"))

from realty_crm.main import app
from realty_crm.database import get_session
from realty_crm.core.security import create_access_token, get_password_hash
from realty_crm.models import User, UserRole
from realty_crm.services import realtime

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "secret123"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as db:
        yield db


@pytest.fixture(autouse=True)
def fresh_broker(monkeypatch):
    """Every test gets its own realtime broker."""
    monkeypatch.setattr(realtime, "_broker", None)
    yield realtime.get_broker()


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user (optionally with a role) and return it with auth headers."""

    async def _make(role: Optional[str], full_name: Optional[str] = None, email: Optional[str] = None):
        suffix = uuid.uuid4().hex[:8]
        async with session_factory() as db:
            user = User(
                email=email or f"{role or 'user'}-{suffix}@example.com",
                password_hash=get_password_hash(TEST_PASSWORD),
                full_name=full_name or f"{(role or 'user').title()} {suffix}",
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            if role:
                db.add(UserRole(user_id=user.id, role=role))
                await db.commit()

        token = create_access_token({"sub": user.email, "user_id": str(user.id)})
        return SimpleNamespace(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=role,
            password=TEST_PASSWORD,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", full_name="Alice Admin")


@pytest.fixture
async def marketer(make_user):
    return await make_user("digital_marketer", full_name="Dana Marketer")


@pytest.fixture
async def salesman(make_user):
    return await make_user("salesman", full_name="Sam Sales")
