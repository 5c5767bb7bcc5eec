import os
import uuid

# Settings are read at import time: point the app at an in-memory DB first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["IMPORT_PROVIDER"] = "HEURISTIC"
os.environ.pop("GOOGLE_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from contentflow.auth import Actor, get_current_actor
from contentflow.database import Base, SessionLocal, engine, get_db
from contentflow.main import app
from contentflow.models.user import User


TEST_ORG_ID = "00000000-0000-0000-0000-000000000001"
OTHER_ORG_ID = "00000000-0000-0000-0000-000000000002"


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _user(session, org_id, role, can_approve=False, can_view_all=False, name=None) -> User:
    user = User(
        id=str(uuid.uuid4()),
        org_id=org_id,
        name=name or role.title(),
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        role=role,
        can_approve=can_approve,
        can_view_all=can_view_all,
        api_token=uuid.uuid4().hex,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def users(db_session) -> dict[str, User]:
    return {
        "approver": _user(db_session, TEST_ORG_ID, "CRISPIM", can_approve=True, can_view_all=True),
        "copy"    : _user(db_session, TEST_ORG_ID, "COPY"),
        "editor"  : _user(db_session, TEST_ORG_ID, "EDITOR"),
        "social"  : _user(db_session, TEST_ORG_ID, "SOCIAL"),
        "outsider": _user(db_session, OTHER_ORG_ID, "CRISPIM", can_approve=True, can_view_all=True),
    }


@pytest.fixture()
def actors(users) -> dict[str, Actor]:
    return {key: Actor.from_user(u) for key, u in users.items()}


@pytest.fixture()
def override_dependencies(db_session):
    def get_db_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_db_override
    try:
        yield
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def act_as(override_dependencies):
    """act_as(actor) — every following request runs as that actor."""
    def _set(actor: Actor):
        app.dependency_overrides[get_current_actor] = lambda: actor
    return _set


@pytest.fixture()
def api_client(override_dependencies):
    with TestClient(app) as client:
        yield client
