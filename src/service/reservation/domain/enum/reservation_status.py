from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    EXPIRED = 'expired'
    # Stored value only; no engine operation transitions into it
    CANCELLED = 'cancelled'


class NotificationStatus(StrEnum):
    """Side-channel delivery state recorded on reservations and waitlist entries"""

    PENDING = 'pending'
    SENT = 'sent'
    FAILED = 'failed'
    SKIPPED = 'skipped'
