from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from citadel import __version__
from citadel.api.routers import health, roles, users
from citadel.api.schemas.common import error_response
from citadel.common.logger import configure_logging, get_logger
from citadel.core.config import Settings, get_settings
from citadel.core.rbac.exceptions import (
    GuardMismatch,
    PermissionDenied,
    PermissionNotFound,
    PrincipalNotFound,
    RoleNotFound,
)

logger = get_logger(__name__)

# Fallback error codes for HTTPExceptions raised with a plain string detail
STATUS_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "PERMISSION_DENIED",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


async def permission_denied_handler(request: Request, exc: PermissionDenied):
    logger.info("Permission %s denied on %s %s", exc.permission, request.method, request.url.path)
    return error_response(exc.status_code, exc.code, exc.message)


async def missing_grant_target_handler(request: Request, exc: Exception):
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "The given data was invalid.",
        details=str(exc),
    )


async def guard_mismatch_handler(request: Request, exc: GuardMismatch):
    logger.warning("Guard mismatch on %s %s: %s", request.method, request.url.path, exc)
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "GUARD_MISMATCH", str(exc))


async def principal_not_found_handler(request: Request, exc: PrincipalNotFound):
    return error_response(status.HTTP_404_NOT_FOUND, "USER_NOT_FOUND", "User not found.")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    details = None
    if isinstance(exc.detail, dict):
        code = exc.detail.get("code", "HTTP_ERROR")
        message = exc.detail.get("message", "")
        details = exc.detail.get("details")
    else:
        code = STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        message = str(exc.detail)
    response = error_response(exc.status_code, code, message, details=details)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "The given data was invalid.",
        details=jsonable_encoder(exc.errors()),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Role-based access control API",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(RoleNotFound, missing_grant_target_handler)
    app.add_exception_handler(PermissionNotFound, missing_grant_target_handler)
    app.add_exception_handler(GuardMismatch, guard_mismatch_handler)
    app.add_exception_handler(PrincipalNotFound, principal_not_found_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router)
    app.include_router(users.router, prefix="/api")
    app.include_router(roles.router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    return app


app = create_app()
