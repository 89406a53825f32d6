from enum import StrEnum


class WaitlistStatus(StrEnum):
    WAITING = 'waiting'
    NOTIFIED = 'notified'
    EXPIRED = 'expired'
    CLAIMED = 'claimed'
