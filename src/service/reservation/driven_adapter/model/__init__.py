"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.reservation.driven_adapter.model.deferred_task_model import DeferredTaskModel
from src.service.reservation.driven_adapter.model.event_definition_model import (
    EventDefinitionModel,
)
from src.service.reservation.driven_adapter.model.inventory_model import InventoryModel
from src.service.reservation.driven_adapter.model.reservation_model import ReservationModel
from src.service.reservation.driven_adapter.model.ticket_model import TicketModel
from src.service.reservation.driven_adapter.model.waitlist_entry_model import WaitlistEntryModel

__all__ = [
    'DeferredTaskModel',
    'EventDefinitionModel',
    'InventoryModel',
    'ReservationModel',
    'TicketModel',
    'WaitlistEntryModel',
]
