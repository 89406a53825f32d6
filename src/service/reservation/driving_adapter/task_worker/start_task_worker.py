"""
Standalone Deferred Task Worker

Runs the scheduler side of the reservation engine without the HTTP API, for:
- Independent scaling of API and worker processes
- Several workers sharing one database (tasks are leased, not broadcast)

Usage:
    PYTHONPATH=$PWD python src/service/reservation/driving_adapter/task_worker/start_task_worker.py
"""

import signal

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.reservation.driving_adapter.task_worker.deferred_task_worker import (
    create_deferred_task_worker,
)


async def run() -> None:
    tracing = TracingConfig(service_name='reservation-task-worker')
    tracing.setup()
    Logger.base.info('📊 [Standalone Task Worker] OpenTelemetry configured')

    database = container.database()
    tracing.instrument_sqlalchemy(engine=database.engine)
    if settings.DB_AUTO_CREATE_TABLES:
        await database.create_tables()

    worker = create_deferred_task_worker(container)

    try:
        async with anyio.create_task_group() as tg:

            async def stop_on_signal() -> None:
                with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
                    async for signum in signals:
                        Logger.base.info(f'🛑 [Standalone Task Worker] Received signal {signum}')
                        tg.cancel_scope.cancel()
                        return

            tg.start_soon(stop_on_signal)
            tg.start_soon(worker.run_forever)
    finally:
        await database.dispose()
        tracing.shutdown()
        Logger.base.info('👋 [Standalone Task Worker] Shutdown complete')


def main() -> None:
    Logger.base.info('🚀 [Standalone Task Worker] Starting...')
    anyio.run(run)


if __name__ == '__main__':
    main()
