"""
Transaction Runner - bounded retry around one unit of work

Every reservation engine operation is a read-then-write over inventory,
reservations and waitlist entries. Under SERIALIZABLE isolation a concurrent
commit makes the losing transaction fail with a serialization error; the
runner replays the whole unit of work from scratch with exponential backoff
plus jitter, and gives up with AbortedError after max_attempts.
"""

import random
from typing import Awaitable, Callable, Optional, TypeVar

import anyio
from sqlalchemy.exc import DBAPIError

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import AbortedError, TransactionConflictError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics


T = TypeVar('T')

# serialization_failure, deadlock_detected, unique_violation (lazy inventory creation race)
RETRYABLE_SQLSTATES = frozenset({'40001', '40P01', '23505'})


def is_retryable_conflict(error: BaseException) -> bool:
    if isinstance(error, TransactionConflictError):
        return True
    if isinstance(error, DBAPIError):
        orig = error.orig
        sqlstate = getattr(orig, 'sqlstate', None) or getattr(orig, 'pgcode', None)
        if sqlstate in RETRYABLE_SQLSTATES:
            return True
        # SQLite reports writer contention as an OperationalError
        return 'database is locked' in str(orig).lower()
    return False


class TransactionRunner:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> None:
        self.uow_factory = uow_factory
        self.max_attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS
        self.base_delay = settings.TRANSACTION_RETRY_BASE_DELAY if base_delay is None else base_delay

    async def run(
        self, work: Callable[[AbstractUnitOfWork], Awaitable[T]], *, name: str = 'transaction'
    ) -> T:
        """
        Run `work` inside a fresh unit of work and commit it

        Args:
            work: Coroutine function receiving the unit of work; raising rolls back
            name: Label used in logs and metrics

        Returns:
            Whatever `work` returned, after a successful commit

        Raises:
            AbortedError: Conflicts persisted through every attempt
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.uow_factory() as uow:
                    result = await work(uow)
                    await uow.commit()
                return result
            except Exception as e:
                if not is_retryable_conflict(e):
                    raise

                reservation_metrics.record_transaction_retry(operation=name)
                if attempt >= self.max_attempts:
                    Logger.base.error(
                        f'💥 [TX] {name} aborted after {attempt} attempts: {type(e).__name__}'
                    )
                    raise AbortedError(
                        f'Transaction aborted after {attempt} attempts due to contention'
                    ) from e

                delay = self._backoff_delay(attempt)
                Logger.base.warning(
                    f'🔁 [TX] {name} conflict on attempt {attempt}/{self.max_attempts}, '
                    f'retrying in {delay:.3f}s'
                )
                await anyio.sleep(delay)

        # max_attempts < 1
        raise AbortedError(f'Transaction {name} was not attempted')

    def _backoff_delay(self, attempt: int) -> float:
        if self.base_delay <= 0:
            return 0.0
        ceiling = self.base_delay * (2 ** (attempt - 1))
        return random.uniform(ceiling / 2, ceiling)
