"""Reservation Service Interfaces"""

from src.service.reservation.app.interface.i_event_definition_repo import IEventDefinitionRepo
from src.service.reservation.app.interface.i_inventory_repo import IInventoryRepo
from src.service.reservation.app.interface.i_notifier import INotifier
from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.reservation.app.interface.i_task_scheduler import (
    IDeferredTaskRepo,
    ITaskScheduler,
)
from src.service.reservation.app.interface.i_ticket_repo import ITicketRepo
from src.service.reservation.app.interface.i_waitlist_repo import IWaitlistRepo

__all__ = [
    'IDeferredTaskRepo',
    'IEventDefinitionRepo',
    'IInventoryRepo',
    'INotifier',
    'IReservationRepo',
    'ITaskScheduler',
    'ITicketRepo',
    'IWaitlistRepo',
]
