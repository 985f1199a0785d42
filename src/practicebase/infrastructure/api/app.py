"""FastAPI application factory and configuration.

The factory builds the stores, rule set and services once and keeps them on
``app.state``; the lifecycle is init with seed data, then serve.
"""

import asyncio
import random
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from practicebase.core.config import Settings, get_settings
from practicebase.core.errors import ServiceError
from practicebase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from practicebase.domain.services.collection_store import CollectionStore
from practicebase.domain.services.identity_service import IdentityService
from practicebase.domain.services.query_engine import QueryEngine
from practicebase.domain.services.record_service import RecordService, related_fetcher
from practicebase.domain.services.rule_resolver import RuleResolver
from practicebase.infrastructure.api.schemas import ErrorResponse, HealthResponse
from practicebase.infrastructure.persistence.seed_loader import (
    load_protected_data,
    load_rule_set,
    load_seed_data,
)

logger = get_logger(__name__)

# Simulated network delay bounds in seconds
THROTTLE_MIN = 0.5
THROTTLE_MAX = 1.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Starting PracticeBase",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        collections=len(app.state.store.list_collections()),
    )

    yield

    logger.info("Shutting down PracticeBase")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Loaded from the environment when omitted.

    Returns:
        FastAPI: Configured FastAPI application instance.

    Raises:
        SeedDataError: If a data or rules document cannot be loaded.
        RuleSyntaxError: If a rule expression cannot be parsed.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="In-memory REST data engine for practice front-ends",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_services(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_services(app: FastAPI, settings: Settings) -> None:
    """Build stores and services from the configured seed data and rules.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """
    store = CollectionStore(
        load_seed_data(settings), max_id_attempts=settings.max_id_attempts
    )
    protected_store = CollectionStore(
        load_protected_data(settings), max_id_attempts=settings.max_id_attempts
    )
    rule_set = load_rule_set(settings.rules_path)

    fetch_related = related_fetcher(store, protected_store)
    resolver = RuleResolver(rule_set, lookup=fetch_related)

    app.state.store = store
    app.state.protected_store = protected_store
    app.state.rule_set = rule_set
    app.state.identity_service = IdentityService(
        protected_store, identity_field=settings.identity_field
    )
    app.state.record_service = RecordService(
        store, resolver, QueryEngine(), fetch_related=fetch_related
    )

    logger.info("Services initialized", collections=store.list_collections())


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoint.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check() -> HealthResponse:
        """Returns 200 if the service is running."""
        settings = app.state.settings
        return HealthResponse(
            status="healthy", service=settings.app_name, version=settings.app_version
        )


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from practicebase.infrastructure.api.routes import data_router, users_router

    app.include_router(data_router, prefix="/data")
    app.include_router(users_router, prefix="/users")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=status_code, message=message).model_dump(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Map typed service failures to their status code."""
        logger.info(
            "Request failed",
            path=str(request.url.path),
            method=request.method,
            status_code=exc.status_code,
            error=exc.message,
            exc_type=type(exc).__name__,
        )
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Unknown routes and methods use the same error body."""
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        message = f"Server Error: {exc}" if app.state.settings.debug else "Server Error"
        return _error_response(500, message)


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all requests and add a correlation ID."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
            correlation_id=correlation_id,
        )

        try:
            if app.state.settings.throttle_enabled:
                await asyncio.sleep(random.uniform(THROTTLE_MIN, THROTTLE_MAX))

            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()
