"""Shared fixtures for the notification core test-suite."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "notifyhub_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["APP_TIMEZONE"] = "UTC"

from notifyhub.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from notifyhub.domain.entities import Identity, Role  # noqa: E402
from notifyhub.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from notifyhub.infrastructure.models import UserModel  # noqa: E402
from notifyhub.infrastructure.security import create_access_token  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session():
    with SessionLocal() as db:
        yield db


@pytest.fixture()
def make_user(session):
    """Insert a directory user and return its id."""

    def _make_user(username: str, role: Role = Role.EMPLOYEE, *, is_active: bool = True) -> int:
        model = UserModel(username=username, role=role, is_active=is_active)
        session.add(model)
        session.commit()
        session.refresh(model)
        return model.id

    return _make_user


@pytest.fixture()
def identity_for(session):
    """Return the :class:`Identity` of an existing user."""

    def _identity_for(user_id: int) -> Identity:
        model = session.get(UserModel, user_id)
        return Identity(user_id=model.id, username=model.username, role=Role(model.role))

    return _identity_for


@pytest.fixture()
def auth_headers(identity_for):
    def _auth_headers(user_id: int) -> dict[str, str]:
        token = create_access_token(identity_for(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
