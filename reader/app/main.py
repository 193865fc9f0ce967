from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from reader.app.api import articles_router, rules_router, saved_filters_router
from reader.app.core.config import settings
from reader.app.core.logging import get_logger, setup_logging
from reader.app.db import models  # noqa: F401 - import to register models
from reader.app.db.async_session import close_async_engine, get_async_engine
from reader.app.db.init_db import init_database, verify_connection
from reader.app.exceptions import ReaderException
from reader.app.middleware.request_id import RequestIdMiddleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create missing tables on startup and dispose the engine on shutdown."""
        if not await verify_connection():
            logger.error("Database connection failed!")
            raise RuntimeError("Cannot connect to database")

        await init_database()
        logger.info(
            "Application startup complete",
            extra={"debug_mode": settings.debug},
        )

        yield

        await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Feed Reader Filters",
        description="Article filtering, saved filters and bulk rule application",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(saved_filters_router)
    app.include_router(articles_router)
    app.include_router(rules_router)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check with database status."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}
        try:
            engine = get_async_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100],
            }
        return health_status

    @app.exception_handler(ReaderException)
    async def reader_exception_handler(request: Request, exc: ReaderException) -> JSONResponse:
        """Map service exceptions to their HTTP status and error body."""
        if exc.status_code >= 500:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.error(
                f"{type(exc).__name__}: {exc.message}",
                extra={"request_id": request_id},
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed request bodies and parameters as HTTP 400."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Invalid request",
                "errors": errors,
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The traceback is logged server-side only. Debug mode adds the
        exception message to the response.
        """
        request_id = getattr(request.state, "request_id", "unknown")
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={"request_id": request_id},
        )

        content = {
            "error": "internal_error",
            "message": "Internal server error",
            "request_id": request_id,
        }
        if settings.debug:
            content["message"] = str(exc)
            content["exception_type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
