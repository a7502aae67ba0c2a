"""Course Store API - Main Application."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.access.router import router as access_router
from src.access.service import AccessService
from src.activation.outbox import ActivationOutbox
from src.activation.worker import ActivationWorker
from src.auth.router import router as auth_router
from src.auth.service import AuthService
from src.config import Settings, get_settings
from src.core.context import get_request_id
from src.core.database import init_cassandra, shutdown_cassandra
from src.core.exceptions import ServiceError, code_for_status
from src.core.logging import configure_structlog, get_logger
from src.core.middleware import RequestContextMiddleware
from src.core.redis import close_redis, connect_redis
from src.core.state import AppContext
from src.courses.router import router as courses_router
from src.courses.seed import seed_sample_data
from src.courses.service import CourseService
from src.health.router import router as health_router
from src.purchases.router import router as purchases_router
from src.purchases.service import PurchaseService
from src.reviews.router import router as reviews_router
from src.reviews.service import ReviewService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def build_services(context: AppContext) -> None:
    """Create every store-backed service on an AppContext.

    Expects ``context.cassandra_session`` to be connected.
    """
    settings = context.settings
    session = context.cassandra_session
    keyspace = settings.cassandra_keyspace

    context.auth_service = AuthService(session=session, keyspace=keyspace)
    context.course_service = CourseService(session=session, keyspace=keyspace)
    context.access_service = AccessService(
        session=session,
        keyspace=keyspace,
        redis=context.redis,
        cache_ttl_seconds=settings.access_cache_ttl_seconds,
    )
    outbox = ActivationOutbox(session=session, keyspace=keyspace)
    context.purchase_service = PurchaseService(
        session=session,
        keyspace=keyspace,
        auth_service=context.auth_service,
        course_service=context.course_service,
        access_service=context.access_service,
        outbox=outbox,
        access_validity_days=settings.access_validity_days,
        activation_delay_seconds=settings.activation_delay_seconds,
    )
    context.review_service = ReviewService(
        session=session,
        keyspace=keyspace,
        course_service=context.course_service,
        access_service=context.access_service,
        list_limit=settings.reviews_list_limit,
    )
    context.activation_worker = ActivationWorker(
        outbox=outbox,
        activate=context.purchase_service.activate,
        poll_interval=settings.activation_poll_interval_seconds,
        max_attempts=settings.activation_max_attempts,
        retry_backoff=settings.activation_retry_backoff_seconds,
        batch_size=settings.activation_batch_size,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    context = AppContext(settings=settings)
    app.state.context = context

    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional - access checks fall back to the store
    if settings.redis_enabled:
        try:
            context.redis = await connect_redis(settings)
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running without Redis - access cache disabled",
            )

    try:
        context.cassandra_session = await asyncio.to_thread(init_cassandra)
        logger.info("cassandra_initialized")

        build_services(context)
        logger.info("services_initialized")

        if settings.should_seed_sample_data:
            await asyncio.to_thread(seed_sample_data, context.course_service)

        await context.activation_worker.start()
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    if context.activation_worker:
        await context.activation_worker.stop()
    await close_redis(context.redis)
    shutdown_cassandra()


def _error_body(
    request: Request,
    status_code: int,
    code: str,
    message: str,
) -> dict:
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    return {
        "error": True,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": request_id,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Global exception handlers (never expose stack traces)."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(
        request: Request, exc: ServiceError
    ) -> ORJSONResponse:
        """Domain errors carry their own status and code."""
        log = (
            logger.error
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log(
            "service_error",
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.code, exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request, exc.status_code, code_for_status(exc.status_code), message
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        content = _error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Validation error",
        )
        content["details"] = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=content,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged internally; the client gets a generic message.
        """
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                "An unexpected error occurred. Please try again later.",
            ),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course Store - API",
        debug=False,  # Never expose stack traces in responses
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(courses_router)
    app.include_router(access_router)
    app.include_router(purchases_router)
    app.include_router(reviews_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Course Store API",
            "version": settings.app_version,
        }

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    uvicorn.run(
        "src.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug and not settings.is_production,
    )
