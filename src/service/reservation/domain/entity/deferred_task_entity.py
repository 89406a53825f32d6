from datetime import datetime, timedelta
from typing import Any, Optional

import attrs
import uuid_utils

from src.service.reservation.domain.enum.deferred_task import (
    DeferredTaskName,
    DeferredTaskStatus,
)


@attrs.define
class DeferredTask:
    """A named operation to run at-or-after run_at (at-least-once)"""

    id: str
    task_name: DeferredTaskName
    payload: dict[str, Any]
    run_at: datetime
    status: DeferredTaskStatus = DeferredTaskStatus.PENDING
    attempts: int = 0
    locked_until: Optional[datetime] = None
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        task_name: DeferredTaskName,
        payload: dict[str, Any],
        run_at: datetime,
        now: datetime,
    ) -> 'DeferredTask':
        return cls(
            id=str(uuid_utils.uuid7()),
            task_name=task_name,
            payload=payload,
            run_at=run_at,
            created_at=now,
        )

    def is_due(self, now: datetime) -> bool:
        if self.status == DeferredTaskStatus.PENDING:
            return self.run_at <= now
        # A running task whose lease lapsed belongs to a crashed worker
        return (
            self.status == DeferredTaskStatus.RUNNING
            and self.locked_until is not None
            and self.locked_until <= now
        )

    def mark_running(self, *, now: datetime, lease_seconds: int) -> 'DeferredTask':
        return attrs.evolve(
            self,
            status=DeferredTaskStatus.RUNNING,
            attempts=self.attempts + 1,
            locked_until=now + timedelta(seconds=lease_seconds),
        )

    def mark_done(self) -> 'DeferredTask':
        return attrs.evolve(self, status=DeferredTaskStatus.DONE, locked_until=None)

    def mark_failed(self, *, error: str) -> 'DeferredTask':
        return attrs.evolve(
            self, status=DeferredTaskStatus.FAILED, locked_until=None, last_error=error
        )

    def retry_later(self, *, error: str, run_at: datetime) -> 'DeferredTask':
        return attrs.evolve(
            self,
            status=DeferredTaskStatus.PENDING,
            locked_until=None,
            last_error=error,
            run_at=run_at,
        )
