"""
Event Definition Repository

Dates, locations and ticket types are stored as JSON documents on the
event row; datetimes inside them travel as ISO-8601 strings.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_event_definition_repo import IEventDefinitionRepo
from src.service.reservation.domain.entity.event_definition_entity import (
    EventDate,
    EventDefinition,
    EventLocation,
    TicketPrice,
    TicketTypeDefinition,
    TimeSlot,
)
from src.service.reservation.driven_adapter.model.event_definition_model import (
    EventDefinitionModel,
)


def _dump_date(date: EventDate) -> dict[str, Any]:
    return {
        'name': date.name,
        'start_time': date.start_time.isoformat(),
        'end_time': date.end_time.isoformat(),
    }


def _load_date(data: dict[str, Any]) -> EventDate:
    return EventDate(
        name=data['name'],
        start_time=datetime.fromisoformat(data['start_time']),
        end_time=datetime.fromisoformat(data['end_time']),
    )


def _dump_location(location: EventLocation) -> dict[str, Any]:
    return {
        'name': location.name,
        'date_name': location.date_name,
        'location_id': location.location_id,
        'latitude': location.latitude,
        'longitude': location.longitude,
    }


def _load_location(data: dict[str, Any]) -> EventLocation:
    return EventLocation(
        name=data['name'],
        date_name=data['date_name'],
        location_id=data.get('location_id'),
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
    )


def _dump_ticket_type(ticket_type: TicketTypeDefinition) -> dict[str, Any]:
    return {
        'name': ticket_type.name,
        'total_quantity': ticket_type.total_quantity,
        'price': {'amount': ticket_type.price.amount, 'currency': ticket_type.price.currency},
        'description': ticket_type.description,
        'valid_time_slots': [
            {
                'date_name': slot.date_name,
                'start_time': slot.start_time.isoformat(),
                'end_time': slot.end_time.isoformat(),
            }
            for slot in ticket_type.valid_time_slots
        ],
        'max_quantity_per_user': ticket_type.max_quantity_per_user,
    }


def _load_ticket_type(data: dict[str, Any]) -> TicketTypeDefinition:
    return TicketTypeDefinition(
        name=data['name'],
        total_quantity=data['total_quantity'],
        price=TicketPrice(
            amount=data['price']['amount'], currency=data['price'].get('currency', 'USD')
        ),
        description=data.get('description') or '',
        valid_time_slots=[
            TimeSlot(
                date_name=slot['date_name'],
                start_time=datetime.fromisoformat(slot['start_time']),
                end_time=datetime.fromisoformat(slot['end_time']),
            )
            for slot in data.get('valid_time_slots') or []
        ],
        max_quantity_per_user=data.get('max_quantity_per_user'),
    )


class EventDefinitionRepoImpl(IEventDefinitionRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_event: EventDefinitionModel) -> EventDefinition:
        return EventDefinition(
            id=db_event.id,
            name=db_event.name,
            description=db_event.description,
            promoter_ids=list(db_event.promoter_ids),
            dates=[_load_date(d) for d in db_event.dates],
            locations=[_load_location(loc) for loc in db_event.locations],
            ticket_types=[_load_ticket_type(t) for t in db_event.ticket_types],
            created_at=db_event.created_at,
        )

    @Logger.io
    async def get_by_id(self, *, event_id: str) -> Optional[EventDefinition]:
        result = await self.session.execute(
            select(EventDefinitionModel).where(EventDefinitionModel.id == event_id)
        )
        db_event = result.scalar_one_or_none()
        return EventDefinitionRepoImpl._to_entity(db_event) if db_event else None

    @Logger.io
    async def create(self, *, event: EventDefinition) -> EventDefinition:
        db_event = EventDefinitionModel(
            id=event.id,
            name=event.name,
            description=event.description,
            promoter_ids=list(event.promoter_ids),
            dates=[_dump_date(d) for d in event.dates],
            locations=[_dump_location(loc) for loc in event.locations],
            ticket_types=[_dump_ticket_type(t) for t in event.ticket_types],
            created_at=event.created_at,
        )
        self.session.add(db_event)
        await self.session.flush()
        return EventDefinitionRepoImpl._to_entity(db_event)
