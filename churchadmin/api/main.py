import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from churchadmin import __version__
from churchadmin.api.middleware.rate_limit import RateLimitMiddleware
from churchadmin.api.routers import (
    auth,
    cellgroups,
    events,
    finance,
    health,
    members,
    offerings,
    roles,
    settings as settings_router,
    tags,
    users,
)
from churchadmin.api.schemas.common import ErrorResponse
from churchadmin.common.logger import setup_logger
from churchadmin.core.config import Settings, get_settings
from churchadmin.core.errors import AuthenticationFailed, ChurchAdminError

logger = logging.getLogger(__name__)

# Documented on every /api route
ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409)}


async def church_admin_error_handler(request: Request, exc: ChurchAdminError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationFailed):
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and query parameters are reported like domain validation errors."""
    errors = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "body"] = error.get("msg", "Invalid value")
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "errors": errors},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    setup_logger(settings=settings)

    app = FastAPI(
        title=settings.app_name,
        description="Church administration backend",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins_list,
        allow_credentials=not settings.debug,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware)

    app.add_exception_handler(ChurchAdminError, church_admin_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Include routers
    for api_router in (
        auth.router,
        members.router,
        tags.router,
        cellgroups.router,
        offerings.router,
        events.router,
        finance.router,
        roles.router,
        users.router,
        settings_router.router,
    ):
        app.include_router(api_router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(health.router)

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    logger.info(f"{settings.app_name} {__version__} started")
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "churchadmin.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
