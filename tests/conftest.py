"""Shared fixtures: a throwaway SQLite file database and authenticated users."""
import os
import tempfile
import uuid

import pytest

_TEST_DIR = tempfile.mkdtemp(prefix="mentorchat-tests-")
_DB_PATH = os.path.join(_TEST_DIR, "mentorchat-test.db")

# Settings are read at import time, so the environment has to be ready first
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["REALTIME_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "warning"

from sqlalchemy import create_engine  # noqa: E402

from mentorchat.core.database import AsyncSessionLocal  # noqa: E402
from mentorchat.core.security import CurrentUser, identity_provider  # noqa: E402
from mentorchat.models import Base  # noqa: E402
from mentorchat.models.enums import UserRole  # noqa: E402
from mentorchat.services.profile_service import ProfileService  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh tables for every test"""
    sync_engine = create_engine(f"sqlite:///{_DB_PATH}")
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    yield


@pytest.fixture
async def session():
    async with AsyncSessionLocal() as db:
        yield db


def new_user(role: UserRole, name: str = None) -> CurrentUser:
    return CurrentUser(id=uuid.uuid4(), role=role, name=name)


async def register(user: CurrentUser) -> CurrentUser:
    """Create the user's profile the way an authenticated request does"""
    async with AsyncSessionLocal() as db:
        await ProfileService(db).sync_profile(user)
    return user


@pytest.fixture
async def mentor():
    return await register(new_user(UserRole.MENTOR, "Dr. Maria Lopez"))


@pytest.fixture
async def other_mentor():
    return await register(new_user(UserRole.MENTOR, "Dr. Sam Okafor"))


@pytest.fixture
async def student():
    return await register(new_user(UserRole.STUDENT, "Alex Chen"))


@pytest.fixture
async def other_student():
    return await register(new_user(UserRole.STUDENT, "Jordan Smith"))


def auth_headers(user: CurrentUser) -> dict:
    token = identity_provider.create_access_token(user.id, user.role, user.name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from mentorchat.main import app

    with TestClient(app) as test_client:
        yield test_client
