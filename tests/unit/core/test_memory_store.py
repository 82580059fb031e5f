"""Tests for the in-memory permission store."""

import pytest

from citadel.core.rbac import (
    GuardMismatch,
    InMemoryPermissionStore,
    PermissionNotFound,
    Principal,
    RoleNotFound,
)


class TestCreation:

    def test_find_or_create_is_idempotent(self):
        store = InMemoryPermissionStore()
        store.find_or_create_permission("posts.view")
        store.find_or_create_permission("posts.view")
        store.find_or_create_role("editor", permissions=["posts.view"])
        store.find_or_create_role("editor")

        assert store.role_names() == {"editor"}
        assert store.role_permissions("editor") == {"posts.view"}

    def test_same_name_in_two_guards(self):
        store = InMemoryPermissionStore()
        store.find_or_create_role("editor", "api")
        store.find_or_create_role("editor", "web")

        assert store.role_names("api") == {"editor"}
        assert store.role_names("web") == {"editor"}

    def test_sync_replaces_permissions(self, memory_store):
        memory_store.sync_role_permissions("editor", ["posts.delete"])
        assert memory_store.role_permissions("editor") == {"posts.delete"}


class TestGrants:

    def test_assign_multiple_roles(self, memory_store):
        principal = Principal(1)
        memory_store.assign_role(principal, "editor", "moderator")

        assert memory_store.roles_of(principal, "api") == {"editor", "moderator"}
        assert memory_store.has_role(principal, "editor", "api")

    def test_remove_role_keeps_role(self, memory_store):
        principal = Principal(1)
        memory_store.assign_role(principal, "editor")
        memory_store.remove_role(principal, "editor")

        assert not memory_store.has_role(principal, "editor", "api")
        assert "editor" in memory_store.role_names()

    def test_effective_permissions_union(self, memory_store):
        principal = Principal(1)
        memory_store.assign_role(principal, "editor")
        memory_store.grant_permission(principal, "posts.publish")

        assert memory_store.direct_permissions(principal, "api") == {"posts.publish"}
        assert memory_store.permissions_via_roles(principal, "api") == {
            "posts.view", "posts.create", "posts.edit",
        }
        assert memory_store.effective_permissions(principal, "api") == {
            "posts.view", "posts.create", "posts.edit", "posts.publish",
        }

    def test_overlapping_roles_deduplicate(self, memory_store):
        principal = Principal(1)
        memory_store.assign_role(principal, "editor", "viewer")
        memory_store.grant_permission(principal, "posts.view")

        assert memory_store.effective_permissions(principal, "api") == {
            "posts.view", "posts.create", "posts.edit",
        }

    def test_reads_are_guard_filtered(self, memory_store):
        principal = Principal(1, "web")
        memory_store.assign_role(principal, "web-editor")

        assert memory_store.effective_permissions(principal, "web") == {"x.y"}
        assert memory_store.effective_permissions(principal, "api") == set()
        assert memory_store.roles_of(principal, "api") == set()

    def test_absent_principal_has_nothing(self, memory_store):
        assert memory_store.roles_of(None, "api") == set()
        assert memory_store.effective_permissions(None, "api") == set()


class TestErrors:

    def test_unknown_role(self, memory_store):
        with pytest.raises(RoleNotFound) as exc_info:
            memory_store.assign_role(Principal(1), "non-existent-role")
        assert exc_info.value.name == "non-existent-role"
        assert exc_info.value.guard == "api"

    def test_unknown_permission(self, memory_store):
        with pytest.raises(PermissionNotFound):
            memory_store.grant_permission(Principal(1), "non-existent-permission")

    def test_unknown_permission_on_role(self, memory_store):
        with pytest.raises(PermissionNotFound):
            memory_store.give_permission_to_role("editor", "non-existent-permission")

    def test_permission_of_other_guard(self, memory_store):
        """A web permission cannot be granted to an api principal."""
        with pytest.raises(GuardMismatch) as exc_info:
            memory_store.grant_permission(Principal(1, "api"), "web.permission")
        assert exc_info.value.expected == "api"
        assert exc_info.value.given == "web"

    def test_role_of_other_guard(self, memory_store):
        with pytest.raises(GuardMismatch):
            memory_store.assign_role(Principal(1, "api"), "web-editor")

    def test_explicit_guard_must_match_principal(self, memory_store):
        with pytest.raises(GuardMismatch):
            memory_store.grant_permission(Principal(1, "api"), "x.y", guard="web")

    def test_failed_grant_changes_nothing(self, memory_store):
        principal = Principal(1)
        with pytest.raises(PermissionNotFound):
            memory_store.grant_permission(principal, "posts.view", "missing.permission")
        assert memory_store.direct_permissions(principal, "api") == set()
