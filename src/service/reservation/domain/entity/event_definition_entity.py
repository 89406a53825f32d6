"""
Event definition read by the reservation engine.

Only the parts the engine needs are modelled: ticket types seed inventory,
while dates, locations and promoters feed the ticket snapshot taken at purchase.
"""

from datetime import datetime
from typing import List, Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import InvalidArgumentError
from src.platform.logging.loguru_io import Logger


MAX_EVENT_NAME_LENGTH = 100
MAX_EVENT_DESCRIPTION_LENGTH = 200


@attrs.frozen
class EventDate:
    name: str
    start_time: datetime
    end_time: datetime


@attrs.frozen
class EventLocation:
    name: str
    date_name: str
    location_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@attrs.frozen
class TicketPrice:
    amount: float
    currency: str = 'USD'


@attrs.frozen
class TimeSlot:
    date_name: str
    start_time: datetime
    end_time: datetime


@attrs.frozen
class TicketTypeDefinition:
    name: str
    total_quantity: int
    price: TicketPrice
    description: str = ''
    valid_time_slots: List[TimeSlot] = attrs.field(factory=list)
    max_quantity_per_user: Optional[int] = None


@attrs.define
class EventDefinition:
    id: str
    name: str
    description: str
    promoter_ids: List[str]
    dates: List[EventDate]
    locations: List[EventLocation]
    ticket_types: List[TicketTypeDefinition]
    created_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        name: str,
        description: str,
        promoter_ids: List[str],
        dates: List[EventDate],
        locations: List[EventLocation],
        ticket_types: List[TicketTypeDefinition],
        now: datetime,
    ) -> 'EventDefinition':
        if not name or not name.strip():
            raise InvalidArgumentError('Event name is required')
        if len(name) > MAX_EVENT_NAME_LENGTH:
            raise InvalidArgumentError('Event name must be less than 100 characters')
        if not description or not description.strip():
            raise InvalidArgumentError('Event description is required')
        if len(description) > MAX_EVENT_DESCRIPTION_LENGTH:
            raise InvalidArgumentError('Event description must be less than 200 characters')
        if not dates:
            raise InvalidArgumentError('Event must have at least one date')
        if not locations:
            raise InvalidArgumentError('Event must have at least one location')
        if not ticket_types:
            raise InvalidArgumentError('Event must have at least one ticket type')
        if not promoter_ids:
            raise InvalidArgumentError('Event must have at least one promoter')

        for date in dates:
            if date.start_time >= date.end_time:
                raise InvalidArgumentError('Date start time must be before end time')
            if date.start_time <= now:
                raise InvalidArgumentError('Date start time must be in the future')

        dates_by_name = {date.name: date for date in dates}
        for location in locations:
            if not location.location_id and not location.name.strip():
                raise InvalidArgumentError('Location must have a name')
            if location.date_name not in dates_by_name:
                raise InvalidArgumentError(f'No date found for location: {location.name}')

        seen_names: set[str] = set()
        for ticket_type in ticket_types:
            cls._validate_ticket_type(ticket_type, dates_by_name=dates_by_name, now=now)
            if ticket_type.name in seen_names:
                raise InvalidArgumentError(f'Duplicate ticket type name: {ticket_type.name}')
            seen_names.add(ticket_type.name)

        return cls(
            id=str(uuid_utils.uuid7()),
            name=name.strip(),
            description=description.strip(),
            promoter_ids=list(promoter_ids),
            dates=list(dates),
            locations=list(locations),
            ticket_types=list(ticket_types),
            created_at=now,
        )

    @staticmethod
    def _validate_ticket_type(
        ticket_type: TicketTypeDefinition, *, dates_by_name: dict[str, EventDate], now: datetime
    ) -> None:
        if not ticket_type.name or not ticket_type.name.strip():
            raise InvalidArgumentError('Ticket name is required')
        if ticket_type.price.amount < 0:
            raise InvalidArgumentError('Ticket price cannot be negative')
        if ticket_type.total_quantity <= 0:
            raise InvalidArgumentError('Ticket quantity must be greater than zero')
        if ticket_type.max_quantity_per_user is not None and ticket_type.max_quantity_per_user <= 0:
            raise InvalidArgumentError('Ticket max quantity per user must be greater than zero')
        if not ticket_type.valid_time_slots:
            raise InvalidArgumentError('Ticket must have at least one valid time slot')

        for slot in ticket_type.valid_time_slots:
            if slot.start_time >= slot.end_time:
                raise InvalidArgumentError('Ticket time slot start time must be before end time')
            if slot.start_time <= now:
                raise InvalidArgumentError('Ticket time slot start time must be in the future')
            date = dates_by_name.get(slot.date_name)
            if date is None:
                raise InvalidArgumentError(f'No date found for ticket time slot: {slot.date_name}')
            if slot.start_time > date.start_time or slot.end_time > date.end_time:
                raise InvalidArgumentError(
                    'Ticket valid time must start and end before start and end of date respectively'
                )

    def find_ticket_type(self, ticket_type_id: str) -> Optional[TicketTypeDefinition]:
        return next((t for t in self.ticket_types if t.name == ticket_type_id), None)

    @property
    def first_date(self) -> Optional[EventDate]:
        return self.dates[0] if self.dates else None

    @property
    def first_location(self) -> Optional[EventLocation]:
        return self.locations[0] if self.locations else None

    @property
    def primary_promoter_id(self) -> str:
        return self.promoter_ids[0] if self.promoter_ids else 'unknown'
