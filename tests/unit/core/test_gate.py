"""Tests for the authorization gate."""

import pytest

from citadel.core.rbac import AuthorizationDenied, AuthorizationGate, PermissionDenied


@pytest.fixture
def gate(authorizer):
    return AuthorizationGate(authorizer)


class TestAuthorizationGate:

    def test_can_delegates_to_authorizer(self, gate, memory_store, principal_factory):
        principal = principal_factory()
        memory_store.grant_permission(principal, "users.*")

        assert gate.can(principal, "users.delete")
        assert not gate.can(principal, "posts.delete")
        assert not gate.can(None, "users.delete")

    def test_authorize_or_403_passes(self, gate, memory_store, principal_factory):
        principal = principal_factory()
        memory_store.grant_permission(principal, "media.manage")
        gate.authorize_or_403(principal, "media.upload")

    def test_authorize_or_403_raises_permission_denied(self, gate, principal_factory):
        with pytest.raises(PermissionDenied) as exc_info:
            gate.authorize_or_403(principal_factory(), "users.view")

        error = exc_info.value
        assert error.code == "PERMISSION_DENIED"
        assert error.status_code == 403
        assert error.permission == "users.view"
        assert error.guard == "api"

    def test_permission_denied_is_an_authorization_denial(self, gate, principal_factory):
        with pytest.raises(AuthorizationDenied):
            gate.authorize_or_403(principal_factory(), "users.view")

    def test_guard_override(self, gate, memory_store, principal_factory):
        principal = principal_factory(guard="web")
        memory_store.grant_permission(principal, "x.y")

        gate.authorize_or_403(principal, "x.y", guard="web")
        with pytest.raises(PermissionDenied):
            gate.authorize_or_403(principal, "x.y", guard="api")

    def test_can_any_and_all(self, gate, memory_store, principal_factory):
        principal = principal_factory()
        memory_store.grant_permission(principal, "posts.view")

        assert gate.can_any(principal, ["posts.view", "posts.delete"])
        assert not gate.can_all(principal, ["posts.view", "posts.delete"])
