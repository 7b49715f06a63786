"""
Main FastAPI application for the TimeHatch API.

This module provides the application factory with middleware, exception
handlers and the versioned routers.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Dict, List, Optional, cast

import pydantic
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from ..core.config import Environment, TimeHatchConfig, get_config
from ..core.database import close_tortoise, init_tortoise
from ..core.errors import RateLimitError, TimeHatchError
from ..core.logging import get_logger, security_logger
from ..core.security import get_client_ip
from .versioning import NO_STORE_HEADERS, APIVersion, api_prefix, get_version_meta

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Permissions-Policy": (
        "camera=(), microphone=(), geolocation=(), payment=(), usb=(), "
        "magnetometer=(), gyroscope=(), accelerometer=(), "
        "ambient-light-sensor=(), autoplay=(), fullscreen=(self)"
    ),
    "Content-Security-Policy": (
        "default-src 'none'; frame-ancestors 'none'; base-uri 'self'"
    ),
}

# Interactive docs load their assets from a CDN
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            if name == "Content-Security-Policy" and request.url.path.startswith(
                DOCS_PATHS
            ):
                continue
            response.headers[name] = value

        if "server" in response.headers:
            del response.headers["server"]

        return cast(Response, response)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window rate limiting for auth endpoints."""

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 10,
        window_seconds: int = 60,
        path_prefix: str = "/api/v1/auth",
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.requests: Dict[str, List[float]] = {}

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return cast(Response, await call_next(request))

        client_ip = get_client_ip(request)
        current_time = time.time()

        # Drop clients whose newest request left the window
        self.requests = {
            ip: timestamps
            for ip, timestamps in self.requests.items()
            if current_time - timestamps[-1] < self.window_seconds
        }
        timestamps = [
            ts
            for ts in self.requests.get(client_ip, [])
            if current_time - ts < self.window_seconds
        ]

        if len(timestamps) >= self.max_requests:
            security_logger.log_rate_limit_exceeded(
                ip_address=client_ip, endpoint=request.url.path
            )
            retry_after = max(
                1, int(self.window_seconds - (current_time - timestamps[0]))
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": (
                        f"Too many requests. Limit: {self.max_requests} "
                        f"per {self.window_seconds} seconds"
                    ),
                    "retry_after": retry_after,
                    "path": request.url.path,
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(current_time)
        self.requests[client_ip] = timestamps
        return cast(Response, await call_next(request))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger = get_logger("api.app")
    config = get_config()
    logger.info("Starting TimeHatch API", environment=config.environment.value)

    await init_tortoise()
    try:
        yield
    finally:
        await close_tortoise()
        logger.info("TimeHatch API stopped")


def create_app(environment: Optional[str] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        environment: Optional environment override for this app instance.
    """
    config = get_config()
    if environment:
        config.environment = Environment(environment)

    production = config.is_production()
    app = FastAPI(
        title="TimeHatch API",
        description=(
            "Time tracking, reporting and subscription billing for TimeHatch. "
            "Most endpoints require a bearer token from `/api/v1/auth/jwt/login`."
        ),
        version=get_version_meta(config)["version"],
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
        lifespan=lifespan,
    )

    @app.get("/api/version", tags=["version"])
    async def get_api_version() -> JSONResponse:
        """Build metadata of the running deployment; never cached."""
        return JSONResponse(content=get_version_meta(), headers=NO_STORE_HEADERS)

    _setup_middleware(app, config)
    _setup_exception_handlers(app)
    _setup_routes(app)

    return app


def _setup_middleware(app: FastAPI, config: TimeHatchConfig) -> None:
    """Set up application middleware."""
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.security.auth_rate_limit_requests,
        window_seconds=config.security.auth_rate_limit_window_seconds,
        path_prefix=f"{api_prefix(APIVersion.V1)}/auth",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_resolved,
        allow_credentials=config.api.cors_credentials,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
        max_age=config.api.cors_max_age,
    )

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Any:
        logger = get_logger("api.middleware")
        start_time = time.time()

        response = await call_next(request)

        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return response


def _validation_errors(errors: List[Dict[str, Any]]) -> Any:
    # ctx may hold the raised exception instance
    return jsonable_encoder(
        [{key: value for key, value in e.items() if key != "ctx"} for e in errors]
    )


def _setup_exception_handlers(app: FastAPI) -> None:
    """Set up exception handlers."""
    logger = get_logger("api.exceptions")

    @app.exception_handler(TimeHatchError)
    async def timehatch_exception_handler(
        request: Request, exc: TimeHatchError
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "Request failed",
            error_type=exc.error_type.value,
            error=exc.message,
            path=request.url.path,
        )
        headers = None
        if isinstance(exc, RateLimitError) and exc.retry_after is not None:
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code,
            content={**exc.to_dict(), "path": request.url.path},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Validation error", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation error",
                "errors": _validation_errors(exc.errors()),
                "path": request.url.path,
            },
        )

    @app.exception_handler(pydantic.ValidationError)
    async def model_validation_exception_handler(
        request: Request, exc: pydantic.ValidationError
    ) -> JSONResponse:
        logger.warning("Model validation error", path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Validation error",
                "errors": _validation_errors(exc.errors()),
                "path": request.url.path,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        logger.warning(
            "HTTP exception", status_code=exc.status_code, detail=exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "path": request.url.path},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error("Unexpected error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "path": request.url.path},
        )


def _setup_routes(app: FastAPI) -> None:
    """Set up application routes."""
    from ..core.auth.fastapi_users import (
        UserCreate,
        UserRead,
        UserUpdate,
        auth_backend,
        fastapi_users,
    )
    from .routes import (
        audit,
        auth,
        billing,
        expenses,
        export,
        health,
        mfa,
        onboarding,
        reports,
        tracking,
        trusted_devices,
        waitlist,
    )

    prefix = api_prefix(APIVersion.V1)

    # FastAPI Users routers
    app.include_router(
        fastapi_users.get_auth_router(auth_backend),
        prefix=f"{prefix}/auth/jwt",
        tags=["auth"],
    )
    app.include_router(
        fastapi_users.get_register_router(UserRead, UserCreate),
        prefix=f"{prefix}/auth",
        tags=["auth"],
    )
    app.include_router(
        fastapi_users.get_reset_password_router(),
        prefix=f"{prefix}/auth",
        tags=["auth"],
    )
    app.include_router(
        fastapi_users.get_users_router(UserRead, UserUpdate),
        prefix=f"{prefix}/users",
        tags=["users"],
    )

    for module in (
        health,
        auth,
        reports,
        export,
        billing,
        trusted_devices,
        mfa,
        onboarding,
        waitlist,
        audit,
        tracking,
        expenses,
    ):
        app.include_router(module.router, prefix=prefix)


# Create the main application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        "timehatch.api.app:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.reload and config.is_development(),
        log_level="info",
    )
