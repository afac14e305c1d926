"""
Main FastAPI application entry point.
"""

import logging
import os
import platform
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_gateway.config import AppConfig, Environment, get_current_config, validate_startup_config
from chat_gateway.logging import setup_logging, get_logger, log_exception, LoggingMiddleware, ErrorLoggingMiddleware
from chat_gateway.models.errors import (
    ChatGatewayError,
    ErrorCodes,
    ErrorResponse,
    ExhaustedProvidersError,
    ValidationError,
)
from chat_gateway.models.requests import ChatRequest
from chat_gateway.models.responses import (
    CacheOverview,
    ChatResponse,
    HealthStatus,
    ModelsResponse,
    ProvidersOverview,
    StatsResponse,
)
from chat_gateway.services import ChatService, ProviderHealthRegistry, ResponseCache, build_providers


APP_VERSION = "0.1.0"

router = APIRouter()


def format_bytes(size: int) -> str:
    """Format a byte count in human-readable units."""
    if size <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def get_chat_service(request: Request) -> ChatService:
    """Dependency returning the chat service built at startup."""
    return request.app.state.chat_service


def _uptime(request: Request) -> float:
    return round(time.time() - request.app.state.started_at, 2)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config: AppConfig = app.state.config
    logger = get_logger("main")

    # Startup
    try:
        if app.state.configure_logging:
            setup_logging(
                environment=config.environment,
                log_level=config.api.log_level,
                enable_json=(config.environment == Environment.PRODUCTION)
            )

        owned_adapters = {}
        if app.state.chat_service is None:
            provider_configs, owned_adapters = await build_providers(config, probe_local=app.state.probe_local)
            registry = ProviderHealthRegistry(provider_configs, config.recovery)
            cache = ResponseCache(config.cache)
            if config.cache.warmup:
                cache.warmup()
            app.state.chat_service = ChatService(registry, cache, owned_adapters, config.chat)

        service: ChatService = app.state.chat_service
        service.registry.start_sweeper()

        logger.info(
            "Starting Chat Gateway",
            extra={
                "environment": config.environment.value,
                "debug_mode": config.debug,
                "fallback_order": list(service.registry.fallback_order),
                "api_host": config.api.host,
                "api_port": config.api.port,
                "log_level": config.api.log_level.value,
                "startup": True,
            }
        )

    except Exception as e:
        # Use basic logging if structured logging setup fails
        logging.basicConfig(level=logging.ERROR)
        log_exception(logger, f"Failed to initialize application: {e}", e)
        raise

    yield

    # Shutdown
    logger.info("Shutting down Chat Gateway", extra={"shutdown": True})
    await service.shutdown()
    await service.registry.shutdown()
    for adapter in owned_adapters.values():
        await adapter.aclose()


def _error_response(request: Request, status_code: int, error: ErrorResponse) -> JSONResponse:
    error.request_id = getattr(request.state, "request_id", None)
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """Translate gateway exceptions into ``ErrorResponse`` bodies."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return _error_response(request, 400, ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=exc.details or None,
        ))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return _error_response(request, 400, ErrorResponse(
            error_code=ErrorCodes.VALIDATION_ERROR,
            message="Invalid request body",
            details={"errors": [
                {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
                for error in exc.errors()
            ]},
        ))

    @app.exception_handler(ExhaustedProvidersError)
    async def handle_exhausted(request: Request, exc: ExhaustedProvidersError):
        details = {"last_error": exc.last_error}
        if request.app.state.config.environment != Environment.PRODUCTION:
            details["providers_status"] = exc.providers_status
        return _error_response(request, 503, ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=details,
        ))

    @app.exception_handler(ChatGatewayError)
    async def handle_gateway_error(request: Request, exc: ChatGatewayError):
        get_logger("errors").error(
            f"Gateway error: {exc.message}",
            extra={"error_code": exc.error_code}
        )
        return _error_response(request, 500, ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
        ))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        log_exception(
            get_logger("errors"),
            "Unhandled exception",
            exc,
            {"path": request.url.path, "request_id": getattr(request.state, "request_id", None)}
        )
        return _error_response(request, 500, ErrorResponse(
            error_code=ErrorCodes.INTERNAL_SERVER_ERROR,
            message="Internal server error",
        ))


@router.get("/")
async def root(request: Request):
    """Root endpoint returning basic API information."""
    config: AppConfig = request.app.state.config
    return {
        "message": "Chat Gateway",
        "version": APP_VERSION,
        "status": "running",
        "environment": config.environment.value,
        "debug": config.debug,
    }


@router.post("/api/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, service: ChatService = Depends(get_chat_service)):
    """Answer a chat message through the provider fallback chain."""
    return await service.handle(body)


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request, service: ChatService = Depends(get_chat_service)):
    """Health check endpoint with provider availability."""
    logger = get_logger("endpoints")
    config: AppConfig = request.app.state.config

    total = len(service.registry.fallback_order)
    healthy = service.registry.healthy_count()
    if total and healthy == total:
        status = "healthy"
    elif healthy:
        status = "degraded"
    else:
        status = "unhealthy"

    logger.info(
        "Health check performed",
        extra={"endpoint": "health", "status": status, "healthy_providers": healthy}
    )

    return HealthStatus(
        status=status,
        version=APP_VERSION,
        uptime=_uptime(request),
        environment=config.environment.value,
        healthy_providers=healthy,
        total_providers=total,
    )


@router.get("/api/stats", response_model=StatsResponse)
async def stats(request: Request, service: ChatService = Depends(get_chat_service)):
    """Operational statistics for providers and the response cache."""
    config: AppConfig = request.app.state.config
    snapshot = service.registry.status_snapshot()
    cache_stats = service.cache.stats()

    return StatsResponse(
        providers=ProvidersOverview(
            current=service.registry.best_available(),
            status=snapshot,
            available=sum(1 for view in snapshot if view.enabled and view.is_healthy),
            total=len(snapshot),
        ),
        cache=CacheOverview(
            **cache_stats.model_dump(),
            hit_rate_formatted=f"{cache_stats.hit_rate:.1f}%",
            total_size_formatted=format_bytes(cache_stats.total_size),
        ),
        system={
            "uptime": _uptime(request),
            "pid": os.getpid(),
            "python_version": platform.python_version(),
            "environment": config.environment.value,
            "version": APP_VERSION,
        },
    )


@router.get("/api/models", response_model=ModelsResponse)
async def models(service: ChatService = Depends(get_chat_service)):
    """Models offered by each enabled provider."""
    return ModelsResponse(providers={
        name: list(service.adapters[name].available_models)
        for name in service.registry.fallback_order
        if name in service.adapters
    })


def create_app(
    config: Optional[AppConfig] = None,
    chat_service: Optional[ChatService] = None,
    probe_local: bool = True,
    configure_logging: bool = True
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application configuration; loaded and validated from the environment when omitted
        chat_service: Prebuilt service; built from ``config`` at startup when omitted
        probe_local: Probe a local Ollama server when its enablement is not configured
        configure_logging: Install the logging configuration at startup
    """
    if config is None:
        validate_startup_config()
        config = get_current_config()

    app = FastAPI(
        title="Chat Gateway",
        description="Chat gateway routing requests across fallback answer providers",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.chat_service = chat_service
    app.state.probe_local = probe_local
    app.state.configure_logging = configure_logging
    app.state.started_at = time.time()

    # Add logging middleware first (to capture all requests)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorLoggingMiddleware)

    # Add CORS middleware with configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Load configuration for development server
    try:
        validate_startup_config()
        dev_config = get_current_config()

        uvicorn.run(
            "chat_gateway.main:app",
            host=dev_config.api.host,
            port=dev_config.api.port,
            reload=dev_config.debug,
            log_level=dev_config.api.log_level.value.lower(),
        )
    except Exception as e:
        print(f"Failed to start server: {e}")
        exit(1)
