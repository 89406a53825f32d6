from datetime import datetime
from typing import Optional

import attrs
import uuid_utils

from src.service.reservation.domain.entity.event_definition_entity import (
    EventDefinition,
    TicketTypeDefinition,
)
from src.service.reservation.domain.enum.ticket_status import TicketStatus


@attrs.define
class Ticket:
    """One purchased unit, carrying a snapshot of the event definition at purchase time"""

    id: str
    event_id: str
    reservation_id: str
    owner_id: str
    promoter_id: str
    ticket_type: str
    price_amount: float
    price_currency: str
    purchased_at: datetime
    status: TicketStatus = TicketStatus.ACTIVE
    description: str = ''
    event_date_name: str = ''
    scan_start_time: Optional[datetime] = None
    scan_expiry_time: Optional[datetime] = None
    location_id: Optional[str] = None
    entrance_latitude: Optional[float] = None
    entrance_longitude: Optional[float] = None

    @classmethod
    def issue(
        cls,
        *,
        reservation_id: str,
        owner_id: str,
        event: EventDefinition,
        ticket_type: TicketTypeDefinition,
        now: datetime,
    ) -> 'Ticket':
        first_slot = ticket_type.valid_time_slots[0] if ticket_type.valid_time_slots else None
        first_date = event.first_date
        location = event.first_location

        if first_slot is not None:
            scan_start_time, scan_expiry_time = first_slot.start_time, first_slot.end_time
        elif first_date is not None:
            scan_start_time, scan_expiry_time = first_date.start_time, first_date.end_time
        else:
            scan_start_time = scan_expiry_time = None

        return cls(
            id=str(uuid_utils.uuid7()),
            event_id=event.id,
            reservation_id=reservation_id,
            owner_id=owner_id,
            promoter_id=event.primary_promoter_id,
            ticket_type=ticket_type.name,
            price_amount=ticket_type.price.amount,
            price_currency=ticket_type.price.currency,
            purchased_at=now,
            description=ticket_type.description or '',
            event_date_name=first_date.name if first_date else '',
            scan_start_time=scan_start_time,
            scan_expiry_time=scan_expiry_time,
            location_id=location.location_id if location else None,
            entrance_latitude=location.latitude if location else None,
            entrance_longitude=location.longitude if location else None,
        )
