"""Main FastAPI application for the Polaris service."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import admin_router, auth_router, health_router, upload_router
from .config import settings
from .core import LocalFileStore, SessionTokenIssuer
from .errors import AppError, ErrorCode, InternalError
from .middleware.auth import AuthMiddleware, error_response
from .models import ErrorResponse
from .storage import close_database, init_database
from .telemetry import (
    TelemetryEvents,
    TelemetryMiddleware,
    flush_telemetry,
    initialize_telemetry,
    record_error_code,
    track_event,
    track_exception,
)
from .wechat import WechatClient

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "development-secret-key-change-in-production"

HTTP_STATUS_CODES = {
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting Polaris service...")
    logger.info(f"Service version: {app.version}")
    logger.info(f"Host: {settings.service_host}:{settings.service_port}")

    initialize_telemetry()
    logger.info("Telemetry initialized")

    await init_database()
    logger.info("Database initialized")

    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET not set - using the development secret")
    if not settings.wechat_app_id or not settings.wechat_app_secret:
        logger.warning("WECHAT_APP_ID/WECHAT_APP_SECRET not set - WeChat login will fail")

    app.state.token_issuer = SessionTokenIssuer(
        settings.jwt_secret,
        expire_hours=settings.jwt_expire_hours,
        algorithm=settings.jwt_algorithm,
    )
    app.state.wechat_client = WechatClient(
        settings.wechat_app_id,
        settings.wechat_app_secret,
        api_base=settings.wechat_api_base,
        timeout=settings.wechat_timeout_seconds,
    )
    app.state.file_store = LocalFileStore(settings.upload_storage_path)

    track_event(TelemetryEvents.APP_STARTED, {"version": __version__})
    logger.info("Polaris service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Polaris service...")
    track_event(TelemetryEvents.APP_STOPPED)

    await app.state.wechat_client.aclose()

    flush_telemetry()
    logger.info("Telemetry flushed")

    await close_database()
    logger.info("Polaris service stopped")


app = FastAPI(
    title="Polaris API",
    description="""
Backend for the baby feeding mini-program.

## API Endpoints

### Auth
- `POST /auth/wechat-login` - Log in with a wx.login code
- `GET /auth/app-version` - Currently active client version
- `POST /auth/refresh-token` - Issue a fresh session token
- `GET /auth/user-info` - Current user's profile
- `PUT /auth/user-info` - Update nickname and avatar

### Upload
- `POST /upload` - Upload a user or baby avatar

### Admin (X-Admin-Key)
- `GET /admin/app-versions` - List versions
- `POST /admin/app-versions` - Register a version
- `GET /admin/app-versions/{version}` - Get a version
- `PUT /admin/app-versions/active` - Activate a version
- `POST /admin/qrcodes` - Generate a mini-program code

Business endpoints answer with `{code, message, data, timestamp}`; `code` is
0 on success.
""",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        track_exception(exc, {"endpoint": request.url.path, "error_code": int(exc.code)})
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    record_error_code(request, int(ErrorCode.PARAM_ERROR))
    body = ErrorResponse(code=int(ErrorCode.PARAM_ERROR), message=details or "invalid parameters")
    return JSONResponse(status_code=400, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        code = ErrorCode.INTERNAL_ERROR
    else:
        code = HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.PARAM_ERROR)
    record_error_code(request, int(code))
    body = ErrorResponse(code=int(code), message=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    track_exception(exc, {"endpoint": request.url.path})
    return error_response(request, InternalError())


# Middleware added last runs first: CORS -> telemetry -> auth -> routes

# Authentication middleware (binds the openid into the telemetry context)
app.add_middleware(AuthMiddleware)

# Telemetry middleware (wraps auth, so rejected requests are tracked too)
app.add_middleware(TelemetryMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(upload_router)
app.include_router(admin_router)

# Uploaded and generated files
Path(settings.upload_storage_path).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_storage_path), name="uploads")


def main() -> None:
    """Main entry point for running the service."""
    import uvicorn

    uvicorn.run(
        "polaris_api.main:app",
        host=settings.service_host,
        port=settings.service_port,
        workers=settings.service_workers,
        log_level=settings.log_level,
        reload=False,
    )


if __name__ == "__main__":
    main()
