"""
Deferred Task Scheduler Interfaces

ITaskScheduler is what use cases see: "run this named operation with this
payload at-or-after run_at". Tasks are written through the caller's unit of
work, so they only exist if the state change that needs them commits.

IDeferredTaskRepo adds the worker side: leasing due tasks and recording outcomes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from src.service.reservation.domain.entity.deferred_task_entity import DeferredTask
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName


class ITaskScheduler(ABC):
    @abstractmethod
    async def schedule(
        self, *, task_name: DeferredTaskName, payload: dict[str, Any], run_at: datetime
    ) -> DeferredTask:
        pass


class IDeferredTaskRepo(ITaskScheduler):
    @abstractmethod
    async def claim_due(
        self, *, now: datetime, limit: int, lease_seconds: int
    ) -> List[DeferredTask]:
        """
        Lease due tasks to the calling worker

        Due means pending with run_at <= now, or running with an expired lease.
        Claimed tasks are returned as running with attempts incremented.
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, task_id: str) -> Optional[DeferredTask]:
        pass

    @abstractmethod
    async def update(self, *, task: DeferredTask) -> DeferredTask:
        pass
