"""RBAC (Role-Based Access Control) module for Citadel.

This module defines permission names, default roles, the permission store
contract and the wildcard authorizer.
"""

from .authorizer import Decision, WildcardAuthorizer
from .exceptions import (
    AuthorizationDenied,
    GuardMismatch,
    PermissionDenied,
    PermissionNotFound,
    PrincipalNotFound,
    RoleNotFound,
)
from .gate import AuthorizationGate
from .permissions import PermissionName, PERMISSION_CATALOGUE
from .store import InMemoryPermissionStore, PermissionStore, Principal

__all__ = [
    "AuthorizationDenied",
    "AuthorizationGate",
    "Decision",
    "GuardMismatch",
    "InMemoryPermissionStore",
    "PERMISSION_CATALOGUE",
    "PermissionDenied",
    "PermissionName",
    "PermissionNotFound",
    "PermissionStore",
    "Principal",
    "PrincipalNotFound",
    "RoleNotFound",
    "WildcardAuthorizer",
]
