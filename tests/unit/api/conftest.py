"""Fixtures for API tests."""

import pytest

from citadel.core.rbac import Principal
from citadel.db.seed import seed_roles_and_permissions
from citadel.db.store import SqlPermissionStore


@pytest.fixture
def seeded(db_session, settings):
    """Database holding the default roles and permission catalogue."""
    seed_roles_and_permissions(db_session, settings)
    db_session.commit()
    return SqlPermissionStore(db_session, default_guard=settings.permission_guard)


@pytest.fixture
def user_with_role(seeded, user_factory):
    """Create a user holding the given roles."""

    def _make(*role_names, **kwargs):
        user = user_factory(**kwargs)
        if role_names:
            seeded.assign_role(Principal(user.id), *role_names)
        return user

    return _make
