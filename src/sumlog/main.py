"""FastAPI application factory for SumLog.

This module creates and configures the FastAPI application with:
- Lifespan management for startup/shutdown events
- Middleware configuration (request ID, logging)
- Exception handlers (plain-text error bodies)
- API routers
"""

import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from sumlog.config import Settings, get_settings
from sumlog.core.exceptions import InvalidInputError, SumLogError
from sumlog.core.logging import (
    bind_request_id,
    clear_request_id,
    configure_logging,
    get_logger,
)
from sumlog.dependencies import AppResources, CalculationServiceDep

# Initialize logger for this module
logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Resolves connection parameters, then opens the database pool and the
    Redis client. Both are closed on shutdown, in reverse order, whatever
    happens in between. A configuration error propagates and aborts startup.

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application
    """
    from sumlog.core.database import Database
    from sumlog.core.resolver import load_connection_config
    from sumlog.repositories.history import HistoryLog
    from sumlog.services.cache import CacheAsideStore, create_redis_client
    from sumlog.services.calculator import CalculationService

    settings: Settings = app.state.settings

    # ========================================
    # Startup
    # ========================================
    configure_logging(settings)
    startup_logger = get_logger(__name__)

    async with AsyncExitStack() as stack:
        try:
            config = await load_connection_config(settings)
        except SumLogError as e:
            startup_logger.critical("Startup aborted", **e.to_log_dict())
            raise

        database = Database(
            config.database_url,
            pool_min=settings.database_pool_min,
            pool_max=settings.database_pool_max,
            echo=settings.debug,
        )
        stack.push_async_callback(database.close)

        redis = create_redis_client(config, timeout=settings.cache_timeout)
        stack.push_async_callback(redis.aclose)

        service = CalculationService(
            cache=CacheAsideStore(redis, timeout=settings.cache_timeout),
            history=HistoryLog(database, timeout=settings.database_timeout),
            history_limit=settings.history_limit,
        )
        app.state.resources = AppResources(
            settings=settings,
            database=database,
            redis=redis,
            service=service,
        )

        startup_logger.info(
            "Application starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.app_env.value,
            config_mode=settings.config_mode.value,
            debug=settings.debug,
        )

        yield

        # ========================================
        # Shutdown
        # ========================================
        startup_logger.info("Application shutting down", app_name=settings.app_name)
        app.state.resources = None


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Adds two numbers, caches the sum and logs every calculation.",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.resources = None

    configure_middleware(app)
    configure_exception_handlers(app)
    configure_routes(app)

    return app


def configure_middleware(app: FastAPI) -> None:
    """Configure application middleware.

    Args:
        app: The FastAPI application instance
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Any:
        """Log requests and responses with the request ID."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        bind_request_id(request_id)

        request_logger = get_logger("sumlog.request")
        start_time = time.perf_counter()

        request_logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
            )
            raise

        finally:
            clear_request_id()


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Error bodies are plain text and generic; diagnostic detail is logged
    server-side only.

    Args:
        app: The FastAPI application instance
    """
    exception_logger = get_logger("sumlog.exceptions")

    @app.exception_handler(SumLogError)
    async def sumlog_exception_handler(
        request: Request, exc: SumLogError
    ) -> PlainTextResponse:
        """Render SumLog errors with their status code and generic message."""
        if exc.status_code >= 500:
            exception_logger.error(
                "Application error", path=request.url.path, **exc.to_log_dict()
            )
        else:
            exception_logger.warning(
                "Client error", path=request.url.path, **exc.to_log_dict()
            )

        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> PlainTextResponse:
        """Treat a malformed request body as invalid input."""
        error = InvalidInputError(reason="malformed request body")
        exception_logger.warning(
            "Client error",
            path=request.url.path,
            validation_errors=str(exc.errors()),
            **error.to_log_dict(),
        )
        return PlainTextResponse(error.message, status_code=error.status_code)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> PlainTextResponse:
        """Handle unexpected exceptions with a generic 500."""
        exception_logger.exception(
            "Unhandled exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
        )
        return PlainTextResponse(
            INTERNAL_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


def configure_routes(app: FastAPI) -> None:
    """Configure application routes.

    Args:
        app: The FastAPI application instance
    """

    @app.get(
        "/",
        tags=["Health"],
        summary="Liveness probe",
        description="Returns 200 if the process is serving requests",
        response_class=PlainTextResponse,
    )
    async def liveness() -> str:
        """Liveness probe for container orchestration."""
        return "Hello World!\n"

    @app.get(
        "/health/ready",
        tags=["Health"],
        summary="Readiness probe",
        description="Reports whether the database and the cache answer",
    )
    async def readiness(service: CalculationServiceDep) -> dict[str, Any]:
        """Readiness probe checking dependent services."""
        db_ok = await service.history.ping()
        cache_ok = await service.cache.ping()

        overall_status = "ok" if (db_ok and cache_ok) else "error"

        return {
            "status": overall_status,
            "checks": {
                "database": "ok" if db_ok else "error",
                "cache": "ok" if cache_ok else "error",
            },
        }

    from sumlog.api.routes import router

    app.include_router(router, tags=["Calculations"])


# Create the application instance
app = create_app()


def cli() -> None:
    """CLI entry point for running the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "sumlog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development and settings.debug,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    cli()
