"""
Shared FastAPI App Factory

Provides common app setup for production and test environments.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.reservation.driving_adapter.http_controller.auth.task_token import (
    verify_task_token,
)
from src.service.reservation.driving_adapter.http_controller.event_controller import (
    router as event_router,
)
from src.service.reservation.driving_adapter.http_controller.inventory_controller import (
    router as inventory_router,
)
from src.service.reservation.driving_adapter.http_controller.reservation_controller import (
    router as reservation_router,
)
from src.service.reservation.driving_adapter.http_controller.task_controller import (
    router as task_router,
)
from src.service.reservation.driving_adapter.http_controller.waitlist_controller import (
    router as waitlist_router,
)


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
    description: str = 'Ticket Reservation Engine',
    service_name: str = 'reservation-engine',
) -> FastAPI:
    """
    Create a configured FastAPI application.

    Args:
        lifespan: Async context manager for app lifespan (startup/shutdown)
        title_suffix: Optional suffix for app title (e.g., " (Test)")
        description: App description
        service_name: Service name for tracing

    Returns:
        Configured FastAPI application
    """
    title = f'{settings.PROJECT_NAME}{title_suffix}'

    app = FastAPI(
        title=title,
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Auto-instrument FastAPI (must be done before mounting routes)
    tracing_config = TracingConfig(service_name=service_name)
    tracing_config.instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(reservation_router, prefix='/api/reservation', tags=['reservation'])
    app.include_router(waitlist_router, prefix='/api/waitlist', tags=['waitlist'])
    app.include_router(inventory_router, prefix='/api/inventory', tags=['inventory'])
    app.include_router(event_router, prefix='/api/event', tags=['event'])
    app.include_router(
        task_router,
        prefix='/api/task',
        tags=['task'],
        dependencies=[Depends(verify_task_token)],
    )

    _register_common_endpoints(app)

    return app


def _register_common_endpoints(app: FastAPI) -> None:
    """Register health and metrics endpoints."""

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {'status': 'healthy', 'service': 'Ticket Reservation Engine'}

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
