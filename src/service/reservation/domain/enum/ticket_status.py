from enum import StrEnum


class TicketStatus(StrEnum):
    ACTIVE = 'active'
