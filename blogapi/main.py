import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models
from .api.v1 import router as api_router
from .core.config import Settings, get_settings
from .core.errors import AppError
from .core.log import configure_logging
from .database import build_engine, build_session_factory
from .middleware.ratelimit import (
    RateLimiter,
    RateLimitExceeded,
    rate_limit_exceeded_handler,
    sweep_forever,
)
from .middleware.request_log import log_requests

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = [
    "Origin",
    "Content-Type",
    "Content-Length",
    "Accept-Encoding",
    "X-CSRF-Token",
    "Authorization",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Criar as tabelas
    models.Base.metadata.create_all(bind=app.state.engine)

    settings = app.state.settings
    sweeper = asyncio.create_task(
        sweep_forever(app.state.rate_limiter, settings.RATE_LIMIT_SWEEP_SECONDS)
    )
    logger.info(f"{settings.PROJECT_NAME} started")
    try:
        yield
    finally:
        sweeper.cancel()
        try:
            await sweeper
        except asyncio.CancelledError:
            pass
        app.state.engine.dispose()


def _log_server_error(request: Request, status_code: int, detail: str) -> None:
    logger.error(f"[ERROR] {request.method} {request.url.path} - {status_code} - Error: {detail}")


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        _log_server_error(request, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location}: {error.get('msg')}")
    return JSONResponse(status_code=400, content={"error": f"Invalid request data: {'; '.join(problems)}"})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        _log_server_error(request, exc.status_code, str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    _log_server_error(request, 500, repr(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def unhandled_error_handler(request: Request, exc: Exception):
    _log_server_error(request, 500, repr(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)

    engine = build_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.rate_limiter = RateLimiter(
        interval=settings.RATE_LIMIT_INTERVAL_MS / 1000,
        burst=settings.RATE_LIMIT_BURST,
        idle_timeout=settings.RATE_LIMIT_IDLE_SECONDS,
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        max_age=86400,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()


def run():
    uvicorn.run("blogapi.main:app", host="0.0.0.0", port=8080)


if __name__ == "__main__":
    run()
