"""User and role assignment API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from citadel.api.deps import (
    get_current_user,
    get_db,
    get_gate,
    get_principal,
    get_store,
    require_permission,
)
from citadel.api.schemas.common import PaginatedData, SuccessResponse
from citadel.api.schemas.users import (
    CurrentUserResponse,
    RoleAssignment,
    UserPermissions,
    UserResponse,
    UserRoles,
    UserUpdate,
)
from citadel.core.config import Settings, get_settings
from citadel.core.rbac import AuthorizationGate, Principal
from citadel.db.models import User
from citadel.db.store import SqlPermissionStore

router = APIRouter(tags=["users"])

VIEW_USERS = "users.view"
UPDATE_USERS = "users.update"
ASSIGN_ROLES = "roles.assign"


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "USER_NOT_FOUND", "message": "User not found."},
        )
    return user


def _authorize_self_or(gate: AuthorizationGate, principal: Principal, user_id: int, permission: str) -> None:
    """Users may act on their own record; anyone else needs permission.

    Runs before the user lookup so callers without permission cannot tell
    which ids exist.
    """
    if principal.id != user_id:
        gate.authorize_or_403(principal, permission)


def _sorted_roles(store: SqlPermissionStore, user: User) -> list:
    return sorted(store.roles_of(Principal(user.id, store.default_guard), store.default_guard))


@router.get("/user", response_model=SuccessResponse[CurrentUserResponse])
def current_user(
    user: User = Depends(get_current_user),
    store: SqlPermissionStore = Depends(get_store),
):
    """Get the authenticated user with their roles."""
    data = CurrentUserResponse(
        **UserResponse.model_validate(user).model_dump(),
        roles=_sorted_roles(store, user),
    )
    return SuccessResponse(data=data, message="User retrieved successfully")


@router.get("/users", response_model=SuccessResponse[PaginatedData[UserResponse]])
def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: Optional[int] = Query(None, ge=1, description="Items per page"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    principal: Principal = Depends(require_permission(VIEW_USERS)),
):
    """List users, paginated."""
    per_page = min(per_page or settings.api_per_page, settings.api_max_per_page)
    query = db.query(User).order_by(User.id)
    total = query.count()
    users = query.offset((page - 1) * per_page).limit(per_page).all()

    data = PaginatedData.create(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        per_page=per_page,
    )
    return SuccessResponse(data=data, message="Users retrieved successfully")


@router.get("/users/{user_id}", response_model=SuccessResponse[UserResponse])
def show_user(
    user_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    gate: AuthorizationGate = Depends(get_gate),
):
    """Get a user by ID. Users can always view their own profile."""
    _authorize_self_or(gate, principal, user_id, VIEW_USERS)
    user = _get_user_or_404(db, user_id)
    return SuccessResponse(data=UserResponse.model_validate(user), message="User retrieved successfully")


@router.put("/users/{user_id}", response_model=SuccessResponse[UserResponse])
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    gate: AuthorizationGate = Depends(get_gate),
):
    """Update a user's name or email. Users can always update their own profile."""
    _authorize_self_or(gate, principal, user_id, UPDATE_USERS)
    user = _get_user_or_404(db, user_id)

    if payload.email is not None:
        taken = db.query(User).filter(User.email == payload.email, User.id != user.id).first()
        if taken:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "code": "VALIDATION_ERROR",
                    "message": "The given data was invalid.",
                    "details": {"email": ["The email has already been taken."]},
                },
            )

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)

    return SuccessResponse(data=UserResponse.model_validate(user), message="User updated successfully")


@router.post("/users/{user_id}/roles", response_model=SuccessResponse[UserRoles])
def assign_role(
    user_id: int,
    assignment: RoleAssignment,
    db: Session = Depends(get_db),
    store: SqlPermissionStore = Depends(get_store),
    principal: Principal = Depends(require_permission(ASSIGN_ROLES)),
):
    """Assign a role to a user."""
    user = _get_user_or_404(db, user_id)
    store.assign_role(Principal(user.id, store.default_guard), assignment.role)
    db.commit()

    data = UserRoles(user=UserResponse.model_validate(user), roles=_sorted_roles(store, user))
    return SuccessResponse(data=data, message="Role assigned successfully")


@router.delete("/users/{user_id}/roles/{role_name}", response_model=SuccessResponse[UserRoles])
def remove_role(
    user_id: int,
    role_name: str,
    db: Session = Depends(get_db),
    store: SqlPermissionStore = Depends(get_store),
    principal: Principal = Depends(require_permission(ASSIGN_ROLES)),
):
    """Remove a role from a user. The role itself is kept."""
    user = _get_user_or_404(db, user_id)
    store.remove_role(Principal(user.id, store.default_guard), role_name)
    db.commit()

    data = UserRoles(user=UserResponse.model_validate(user), roles=_sorted_roles(store, user))
    return SuccessResponse(data=data, message="Role removed successfully")


@router.get("/users/{user_id}/permissions", response_model=SuccessResponse[UserPermissions])
def user_permissions(
    user_id: int,
    db: Session = Depends(get_db),
    store: SqlPermissionStore = Depends(get_store),
    principal: Principal = Depends(get_principal),
    gate: AuthorizationGate = Depends(get_gate),
):
    """Get a user's roles, effective permissions and direct permissions."""
    _authorize_self_or(gate, principal, user_id, VIEW_USERS)
    user = _get_user_or_404(db, user_id)

    target = Principal(user.id, store.default_guard)
    guard = store.default_guard
    data = UserPermissions(
        roles=sorted(store.roles_of(target, guard)),
        permissions=sorted(store.effective_permissions(target, guard)),
        direct_permissions=sorted(store.direct_permissions(target, guard)),
    )
    return SuccessResponse(data=data, message="User permissions retrieved successfully")
