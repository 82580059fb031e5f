"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from citadel.core.config import Settings, get_settings
from citadel.core.rbac import InMemoryPermissionStore, Principal, WildcardAuthorizer
from citadel.db import models  # noqa: F401  (registers tables on the metadata)
from citadel.db.base import Base

from tests.factories import create_user


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        secret_key="test-secret-key",
        database_url="sqlite://",
        super_admin_role="Super Admin",
        default_user_role="User",
        permission_guard="api",
    )


# ---------------------------------------------------------------------------
# In-memory RBAC
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store():
    """In-memory store holding a small posts/users permission set.

    Roles:
      - Super Admin: no explicit permissions
      - editor: posts.view, posts.create, posts.edit
      - moderator: users.moderate, comments.moderate
      - viewer: posts.view
    """
    store = InMemoryPermissionStore(default_guard="api")
    for name in [
        "posts.view", "posts.create", "posts.edit", "posts.delete", "posts.publish",
        "posts.*", "posts.manage",
        "users.view", "users.create", "users.moderate", "users.*",
        "comments.moderate", "media.manage", "reports",
    ]:
        store.find_or_create_permission(name, "api")
    store.find_or_create_permission("x.y", "web")
    store.find_or_create_permission("web.permission", "web")

    store.find_or_create_role("Super Admin", "api")
    store.find_or_create_role("editor", "api", permissions=["posts.view", "posts.create", "posts.edit"])
    store.find_or_create_role("moderator", "api", permissions=["users.moderate", "comments.moderate"])
    store.find_or_create_role("viewer", "api", permissions=["posts.view"])
    store.find_or_create_role("web-editor", "web", permissions=["x.y"])
    return store


@pytest.fixture
def authorizer(memory_store):
    return WildcardAuthorizer(memory_store, super_admin_role="Super Admin", default_guard="api")


@pytest.fixture
def principal_factory():
    """Create principals with unique ids."""
    counter = {"n": 0}

    def _make(guard: str = "api") -> Principal:
        counter["n"] += 1
        return Principal(counter["n"], guard)

    return _make


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Each test gets a fresh in-memory database."""
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_factory(db_session):
    def _make(**kwargs):
        return create_user(db_session, **kwargs)

    return _make


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


@pytest.fixture
def client(db_session, settings):
    from citadel.api.deps import get_db
    from citadel.api.main import create_app

    app = create_app(settings)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


@pytest.fixture
def auth_headers(settings):
    """Build bearer headers the way the OAuth provider would sign them."""

    def _headers(user):
        token = jwt.encode({"sub": str(user.id)}, settings.secret_key, algorithm=settings.algorithm)
        return {"Authorization": f"Bearer {token}"}

    return _headers
