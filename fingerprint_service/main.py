import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from fingerprint_service.api.exceptions import (
    components_parse_error_handler,
    duplicate_error_handler,
    generic_exception_handler,
    invalid_input_error_handler,
    not_found_error_handler,
    payload_too_large_error_handler,
    request_validation_error_handler,
    storage_error_handler,
)
from fingerprint_service.api.middleware.request_limits import (
    BodySizeLimitMiddleware,
    RequestContextMiddleware,
)
from fingerprint_service.api.routes import archive, fingerprints, health
from fingerprint_service.core.config import Settings, get_settings
from fingerprint_service.core.exceptions import (
    ComponentsParseError,
    DuplicateError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
)
from fingerprint_service.infrastructure.archive.blob_archive import BlobArchive
from fingerprint_service.infrastructure.database.connection import Database

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting fingerprint service...")
        settings.profile_dir.mkdir(mode=0o755, parents=True, exist_ok=True)

        database = Database.from_settings(settings)
        await database.create_all()
        logger.info(
            "Database initialized at "
            f"{database.engine.url.render_as_string(hide_password=True)}"
        )

        app.state.database = database
        app.state.archive = BlobArchive(
            directory=settings.profile_dir,
            version=settings.fingerprints.version,
            extension=settings.fingerprints.extension,
        )
        logger.info(
            f"Duplicate policy: {settings.fingerprints.duplicate_policy.value}, "
            f"archive: {'enabled' if settings.fingerprints.archive_enabled else 'disabled'}"
        )

        yield

        logger.info("Shutting down fingerprint service...")
        await database.dispose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Browser fingerprint collection and lookup service",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        BodySizeLimitMiddleware, max_body_bytes=settings.server.max_body_bytes
    )

    app.include_router(health.router)
    app.include_router(fingerprints.router)
    if settings.fingerprints.archive_enabled:
        app.include_router(archive.router)

    app.add_exception_handler(InvalidInputError, invalid_input_error_handler)
    app.add_exception_handler(DuplicateError, duplicate_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(PayloadTooLargeError, payload_too_large_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(ComponentsParseError, components_parse_error_handler)
    app.add_exception_handler(
        RequestValidationError, request_validation_error_handler
    )
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured address."""
    settings = get_settings()
    logger.info(f"Server running on port {settings.server.port}")
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
