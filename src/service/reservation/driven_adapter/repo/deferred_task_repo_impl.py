from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import and_, or_, select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_task_scheduler import IDeferredTaskRepo
from src.service.reservation.domain.entity.deferred_task_entity import DeferredTask
from src.service.reservation.domain.enum.deferred_task import (
    DeferredTaskName,
    DeferredTaskStatus,
)
from src.service.reservation.driven_adapter.model.deferred_task_model import DeferredTaskModel


class DeferredTaskRepoImpl(IDeferredTaskRepo):
    """Transactional outbox of deferred tasks, leased by the task worker"""

    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_task: DeferredTaskModel) -> DeferredTask:
        return DeferredTask(
            id=db_task.id,
            task_name=DeferredTaskName(db_task.task_name),
            payload=dict(db_task.payload),
            run_at=db_task.run_at,
            status=DeferredTaskStatus(db_task.status),
            attempts=db_task.attempts,
            locked_until=db_task.locked_until,
            last_error=db_task.last_error,
            created_at=db_task.created_at,
        )

    @Logger.io
    async def schedule(
        self, *, task_name: DeferredTaskName, payload: dict[str, Any], run_at: datetime
    ) -> DeferredTask:
        task = DeferredTask.create(
            task_name=task_name,
            payload=payload,
            run_at=run_at,
            now=datetime.now(timezone.utc),
        )
        self.session.add(
            DeferredTaskModel(
                id=task.id,
                task_name=task.task_name.value,
                payload=task.payload,
                run_at=task.run_at,
                status=task.status.value,
                attempts=task.attempts,
                created_at=task.created_at,
            )
        )
        await self.session.flush()
        return task

    @Logger.io
    async def claim_due(
        self, *, now: datetime, limit: int, lease_seconds: int
    ) -> List[DeferredTask]:
        result = await self.session.execute(
            select(DeferredTaskModel)
            .where(
                or_(
                    and_(
                        DeferredTaskModel.status == DeferredTaskStatus.PENDING.value,
                        DeferredTaskModel.run_at <= now,
                    ),
                    and_(
                        DeferredTaskModel.status == DeferredTaskStatus.RUNNING.value,
                        DeferredTaskModel.locked_until <= now,
                    ),
                )
            )
            .order_by(DeferredTaskModel.run_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )

        claimed: List[DeferredTask] = []
        for db_task in result.scalars().all():
            task = DeferredTaskRepoImpl._to_entity(db_task).mark_running(
                now=now, lease_seconds=lease_seconds
            )
            claimed.append(await self.update(task=task))
        return claimed

    @Logger.io
    async def get_by_id(self, *, task_id: str) -> Optional[DeferredTask]:
        result = await self.session.execute(
            select(DeferredTaskModel).where(DeferredTaskModel.id == task_id)
        )
        db_task = result.scalar_one_or_none()
        return DeferredTaskRepoImpl._to_entity(db_task) if db_task else None

    @Logger.io
    async def update(self, *, task: DeferredTask) -> DeferredTask:
        result = await self.session.execute(
            sql_update(DeferredTaskModel)
            .where(DeferredTaskModel.id == task.id)
            .values(
                status=task.status.value,
                attempts=task.attempts,
                run_at=task.run_at,
                locked_until=task.locked_until,
                last_error=task.last_error,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ValueError(f'Deferred task with id {task.id} not found')
        return task
