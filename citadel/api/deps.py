from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from citadel.core.config import Settings, get_settings
from citadel.core.rbac import AuthorizationGate, Principal, WildcardAuthorizer
from citadel.core.security import decode_access_token
from citadel.db.models import User
from citadel.db.session import SessionLocal
from citadel.db.store import SqlPermissionStore

# Tokens are issued by the OAuth provider; this only reads the bearer header.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SqlPermissionStore:
    return SqlPermissionStore(db, default_guard=settings.permission_guard)


def get_gate(
    store: SqlPermissionStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> AuthorizationGate:
    return AuthorizationGate(WildcardAuthorizer.from_settings(store, settings))


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> User:
    """Get current authenticated user from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "UNAUTHENTICATED", "message": "Unauthenticated."},
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    user_id = decode_access_token(token, settings)
    if user_id is None:
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    return user


def get_principal(
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> Principal:
    return Principal(current_user.id, settings.permission_guard)


class PermissionDependency:
    """
    FastAPI dependency for permission checking.

    Resolves to the authenticated principal, or raises PermissionDenied
    which the app renders as a 403 with code PERMISSION_DENIED.

    Usage:
        @router.get("/users")
        async def list_users(principal: Principal = Depends(require_permission("users.view"))):
            ...
    """

    def __init__(self, permission: str):
        self.permission = permission

    def __call__(
        self,
        principal: Principal = Depends(get_principal),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> Principal:
        gate.authorize_or_403(principal, self.permission)
        return principal


def require_permission(permission: str) -> PermissionDependency:
    return PermissionDependency(permission)
