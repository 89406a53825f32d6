"""
Production FastAPI Application

Reservation engine API plus the in-process deferred task worker.
Run the worker separately (task_worker/start_task_worker.py) and set
TASK_WORKER_ENABLED=false to scale API and scheduler independently.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.reservation.driving_adapter.task_worker.deferred_task_worker import (
    create_deferred_task_worker,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Reservation Engine] Starting up...')

    tracing = TracingConfig(service_name='reservation-engine')
    tracing.setup()
    Logger.base.info('📊 [Reservation Engine] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Reservation Engine] Dependency injection wired')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    if settings.DB_AUTO_CREATE_TABLES:
        await database.create_tables()
        Logger.base.info('🗄️  [Reservation Engine] Database tables ensured')

    async with anyio.create_task_group() as tg:
        if settings.TASK_WORKER_ENABLED:
            worker = create_deferred_task_worker(container)
            tg.start_soon(worker.run_forever)
            Logger.base.info('⏰ [Reservation Engine] Deferred task worker started')

        Logger.base.info('✅ [Reservation Engine] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Reservation Engine] Shutting down...')
        tg.cancel_scope.cancel()

    await database.dispose()
    Logger.base.info('🗄️  [Reservation Engine] Database engine disposed')

    tracing.shutdown()
    Logger.base.info('📊 [Reservation Engine] Tracing shutdown complete')

    container.unwire()
    Logger.base.info('👋 [Reservation Engine] Shutdown complete')


app = create_app(
    lifespan=lifespan,
    description='Ticket Reservation Engine - hold-then-commit reservations with FIFO waitlisting',
)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
