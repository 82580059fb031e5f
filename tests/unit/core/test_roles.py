"""Tests for default role definitions."""

import pytest

from citadel.core.rbac import InMemoryPermissionStore, Principal, WildcardAuthorizer
from citadel.core.rbac.permissions import get_all_permissions
from citadel.core.rbac.roles import (
    ADMIN_PERMISSIONS,
    get_default_role_permissions,
    get_default_roles,
)


@pytest.fixture
def seeded(settings):
    """In-memory store seeded like the database seeder."""
    store = InMemoryPermissionStore(default_guard=settings.permission_guard)
    for name in get_all_permissions():
        store.find_or_create_permission(name)
    for role_name, config in get_default_roles(settings).items():
        store.find_or_create_role(role_name, permissions=config["permissions"])
    return store


def _principal_with(store, role_name, principal_id=1):
    principal = Principal(principal_id)
    store.assign_role(principal, role_name)
    return principal


class TestDefaultRoles:

    def test_all_default_roles_defined(self, settings):
        roles = get_default_roles(settings)
        assert list(roles) == ["Super Admin", "Admin", "Moderator", "User"]

    def test_role_names_follow_settings(self, settings):
        custom = settings.model_copy(update={"super_admin_role": "Root", "default_user_role": "Member"})
        roles = get_default_roles(custom)
        assert "Root" in roles
        assert "Member" in roles
        assert "Super Admin" not in roles

    def test_super_admin_has_no_explicit_permissions(self, settings):
        assert get_default_role_permissions("Super Admin", settings) == []

    def test_unknown_role_raises(self, settings):
        with pytest.raises(ValueError):
            get_default_role_permissions("unknown_role", settings)

    def test_default_permissions_are_catalogued(self, settings):
        catalogue = set(get_all_permissions())
        for config in get_default_roles(settings).values():
            assert set(config["permissions"]) <= catalogue


class TestRoleSeparation:

    def test_admin_wildcards(self, seeded):
        authorizer = WildcardAuthorizer(seeded)
        admin = _principal_with(seeded, "Admin")

        assert ADMIN_PERMISSIONS[0] == "users.*"
        assert authorizer.can(admin, "users.delete")
        assert authorizer.can(admin, "roles.assign")
        assert authorizer.can(admin, "media.upload")
        assert not authorizer.can(admin, "system.backup")

    def test_moderator(self, seeded):
        authorizer = WildcardAuthorizer(seeded)
        moderator = _principal_with(seeded, "Moderator")

        assert authorizer.can(moderator, "users.update")
        assert authorizer.can(moderator, "media.delete")
        assert not authorizer.can(moderator, "users.delete")
        assert not authorizer.can(moderator, "roles.assign")

    def test_default_user(self, seeded):
        authorizer = WildcardAuthorizer(seeded)
        user = _principal_with(seeded, "User")

        assert authorizer.can(user, "media.upload")
        assert authorizer.can(user, "api.access")
        assert not authorizer.can(user, "media.delete")
        assert not authorizer.can(user, "users.update")

    def test_super_admin_bypass(self, seeded):
        authorizer = WildcardAuthorizer(seeded)
        root = _principal_with(seeded, "Super Admin")

        assert authorizer.can(root, "system.restore")
        assert authorizer.can(root, "not.catalogued")
