from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.service.reservation.domain.entity.event_definition_entity import (
    EventDate,
    EventDefinition,
    EventLocation,
    TicketPrice,
    TicketTypeDefinition,
    TimeSlot,
)


def _assume_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class EventDateSchema(BaseModel):
    name: str
    start_time: datetime
    end_time: datetime

    @field_validator('start_time', 'end_time')
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class EventLocationSchema(BaseModel):
    name: str
    date_name: str
    location_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class TicketPriceSchema(BaseModel):
    amount: float
    currency: str = 'USD'


class TimeSlotSchema(BaseModel):
    date_name: str
    start_time: datetime
    end_time: datetime

    @field_validator('start_time', 'end_time')
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class TicketTypeSchema(BaseModel):
    name: str
    total_quantity: int
    price: TicketPriceSchema
    description: str = ''
    valid_time_slots: List[TimeSlotSchema] = Field(default_factory=list)
    max_quantity_per_user: Optional[int] = None


class EventCreateRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'name': 'Summer Festival',
                'description': 'Three stages, one night',
                'promoter_ids': ['promoter-1'],
                'dates': [
                    {
                        'name': 'Night 1',
                        'start_time': '2030-07-01T18:00:00Z',
                        'end_time': '2030-07-02T02:00:00Z',
                    }
                ],
                'locations': [{'name': 'Main Gate', 'date_name': 'Night 1'}],
                'ticket_types': [
                    {
                        'name': 'General Admission',
                        'total_quantity': 500,
                        'price': {'amount': 49.0, 'currency': 'USD'},
                        'valid_time_slots': [
                            {
                                'date_name': 'Night 1',
                                'start_time': '2030-07-01T18:00:00Z',
                                'end_time': '2030-07-02T02:00:00Z',
                            }
                        ],
                    }
                ],
            }
        },
    }

    name: str
    description: str
    promoter_ids: List[str]
    dates: List[EventDateSchema]
    locations: List[EventLocationSchema]
    ticket_types: List[TicketTypeSchema]

    def to_dates(self) -> List[EventDate]:
        return [EventDate(**d.model_dump()) for d in self.dates]

    def to_locations(self) -> List[EventLocation]:
        return [EventLocation(**loc.model_dump()) for loc in self.locations]

    def to_ticket_types(self) -> List[TicketTypeDefinition]:
        return [
            TicketTypeDefinition(
                name=t.name,
                total_quantity=t.total_quantity,
                price=TicketPrice(amount=t.price.amount, currency=t.price.currency),
                description=t.description,
                valid_time_slots=[TimeSlot(**slot.model_dump()) for slot in t.valid_time_slots],
                max_quantity_per_user=t.max_quantity_per_user,
            )
            for t in self.ticket_types
        ]


class EventResponse(BaseModel):
    id: str
    name: str
    description: str
    promoter_ids: List[str]
    dates: List[EventDateSchema]
    locations: List[EventLocationSchema]
    ticket_types: List[TicketTypeSchema]
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, event: EventDefinition) -> 'EventResponse':
        return cls(
            id=event.id,
            name=event.name,
            description=event.description,
            promoter_ids=event.promoter_ids,
            dates=[
                EventDateSchema(name=d.name, start_time=d.start_time, end_time=d.end_time)
                for d in event.dates
            ],
            locations=[
                EventLocationSchema(
                    name=loc.name,
                    date_name=loc.date_name,
                    location_id=loc.location_id,
                    latitude=loc.latitude,
                    longitude=loc.longitude,
                )
                for loc in event.locations
            ],
            ticket_types=[
                TicketTypeSchema(
                    name=t.name,
                    total_quantity=t.total_quantity,
                    price=TicketPriceSchema(amount=t.price.amount, currency=t.price.currency),
                    description=t.description,
                    valid_time_slots=[
                        TimeSlotSchema(
                            date_name=s.date_name, start_time=s.start_time, end_time=s.end_time
                        )
                        for s in t.valid_time_slots
                    ],
                    max_quantity_per_user=t.max_quantity_per_user,
                )
                for t in event.ticket_types
            ],
            created_at=event.created_at,
        )
