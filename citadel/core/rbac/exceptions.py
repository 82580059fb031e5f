"""Error taxonomy for Citadel RBAC.

Denials are ordinary, recoverable outcomes. Store errors signal a
programming or configuration problem and are propagated unchanged.
"""

from typing import Optional


class CitadelError(Exception):
    """Base class for all Citadel errors."""


class AuthorizationError(CitadelError):
    """Base class for authorization outcomes raised as exceptions."""


class AuthorizationDenied(AuthorizationError):
    """The requested permission is not satisfied by any rule."""

    default_message = "This action is unauthorized."

    def __init__(self, permission: str, guard: Optional[str] = None, message: Optional[str] = None):
        self.permission = permission
        self.guard = guard
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(AuthorizationDenied):
    """Denial surfaced at the request boundary, rendered as a 403."""

    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "You do not have permission to access this resource."


class PermissionStoreError(CitadelError):
    """Base class for errors raised by a permission store."""


class RoleNotFound(PermissionStoreError):
    def __init__(self, name: str, guard: str):
        self.name = name
        self.guard = guard
        super().__init__(f"There is no role named `{name}` for guard `{guard}`.")


class PermissionNotFound(PermissionStoreError):
    def __init__(self, name: str, guard: str):
        self.name = name
        self.guard = guard
        super().__init__(f"There is no permission named `{name}` for guard `{guard}`.")


class PrincipalNotFound(PermissionStoreError):
    def __init__(self, principal_id):
        self.principal_id = principal_id
        super().__init__(f"There is no principal with id `{principal_id}`.")


class GuardMismatch(PermissionStoreError):
    """A grant or comparison crossed guard boundaries."""

    def __init__(self, expected: str, given: str, name: Optional[str] = None):
        self.expected = expected
        self.given = given
        self.name = name
        subject = f"`{name}` " if name else ""
        super().__init__(
            f"The given role or permission {subject}should use guard `{expected}` instead of `{given}`."
        )
