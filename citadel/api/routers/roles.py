"""Role and permission catalogue API endpoints."""

from typing import Dict, List

from fastapi import APIRouter, Depends, Query

from citadel.api.deps import get_current_user, get_store, require_permission
from citadel.api.schemas.common import SuccessResponse
from citadel.api.schemas.roles import RoleResponse
from citadel.core.rbac import Principal
from citadel.core.rbac.permissions import get_all_permissions, group_by_resource
from citadel.db.models import User
from citadel.db.store import SqlPermissionStore

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=SuccessResponse[List[RoleResponse]])
def list_roles(
    with_users: bool = Query(True, description="Include user counts"),
    store: SqlPermissionStore = Depends(get_store),
    principal: Principal = Depends(require_permission("roles.view")),
):
    """List all roles of the configured guard with their permissions."""
    roles = [
        RoleResponse(
            id=r.id,
            name=r.name,
            guard_name=r.guard_name,
            permissions=sorted(p.name for p in r.permissions),
            users_count=len(r.users) if with_users else 0,
        )
        for r in store.list_roles()
    ]
    return SuccessResponse(data=roles, message="Roles retrieved successfully")


@router.get("/permissions", response_model=SuccessResponse[Dict[str, List[str]]])
def list_permission_catalogue(
    current_user: User = Depends(get_current_user),
):
    """List all catalogued permissions grouped by resource."""
    return SuccessResponse(
        data=group_by_resource(get_all_permissions()),
        message="Permissions retrieved successfully",
    )
