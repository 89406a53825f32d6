from enum import StrEnum


class DeferredTaskName(StrEnum):
    """Named operations the task worker knows how to dispatch"""

    PROCESS_RESERVATION = 'process_reservation'
    EXPIRE_RESERVATION = 'expire_reservation'
    EXPIRE_WAITLIST_NOTIFICATION = 'expire_waitlist_notification'


class DeferredTaskStatus(StrEnum):
    PENDING = 'pending'
    RUNNING = 'running'
    DONE = 'done'
    FAILED = 'failed'
