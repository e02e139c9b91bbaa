"""
FastAPI application factory — entry point for the video archive server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from archiver.api.router import api_router
from archiver.config import settings
from archiver.exceptions import ArchiveError
from archiver.middleware.error_handler import (
    AccessLogMiddleware,
    ErrorHandlerMiddleware,
    RequestIdMiddleware,
)
from archiver.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hooks."""
    # The archive directory itself is created lazily on first use
    logger.info("Serving archive from %s", settings.ARCHIVE_PATH.resolve())
    yield


async def archive_error_handler(request: Request, exc: ArchiveError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message, error=exc.error).model_dump(),
    )


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=ErrorResponse(message="", error="page not found").model_dump(),
        )
    return await http_exception_handler(request, exc)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Video Archiver",
        description="Upload, list, stream and delete files in a flat media archive.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(ArchiveError, archive_error_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)

    # ── Middleware (order matters — last added is outermost) ─
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["POST", "GET", "DELETE"],
        allow_headers=["*"],
    )

    # ── API Routes ───────────────────────────────────────
    app.include_router(api_router)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    configure_logging()
    logger.info("Server started on http://%s:%s", settings.HOST, settings.PORT)
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
