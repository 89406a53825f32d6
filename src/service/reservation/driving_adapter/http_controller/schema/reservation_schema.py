from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from src.service.reservation.domain.entity.inventory_entity import InventoryRecord
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry


class TicketLineSchema(BaseModel):
    ticket_type_id: str
    quantity: int


class ReservationRequest(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'event_id': '0192f3a4-7c1e-7b2d-9a40-5d6e7f809a1b',
                'tickets': [{'ticket_type_id': 'General Admission', 'quantity': 2}],
            }
        },
    }

    event_id: str
    tickets: List[TicketLineSchema]


class RequestReservationResponse(BaseModel):
    success: bool
    message: str
    task_id: Optional[str] = None


class ReservationResponse(BaseModel):
    id: str
    user_id: str
    event_id: str
    ticket_type_id: str
    quantity: int
    tickets: List[TicketLineSchema]
    reservation_time: datetime
    expiration_time: datetime
    status: str
    notification_status: str
    source_waitlist_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> 'ReservationResponse':
        return cls(
            id=reservation.id,
            user_id=reservation.user_id,
            event_id=reservation.event_id,
            ticket_type_id=reservation.ticket_type_id,
            quantity=reservation.quantity,
            tickets=[
                TicketLineSchema(ticket_type_id=line.ticket_type_id, quantity=line.quantity)
                for line in reservation.lines
            ],
            reservation_time=reservation.reservation_time,
            expiration_time=reservation.expiration_time,
            status=reservation.status.value,
            notification_status=reservation.notification_status.value,
            source_waitlist_id=reservation.source_waitlist_id,
            completed_at=reservation.completed_at,
            expired_at=reservation.expired_at,
        )


class CompletePurchaseResponse(BaseModel):
    success: bool
    ticket_count: int
    ticket_ids: List[str]


class WaitlistEntryResponse(BaseModel):
    id: str
    user_id: str
    event_id: str
    ticket_type_id: str
    quantity: int
    request_time: datetime
    notification_sent: bool
    notification_time: Optional[datetime] = None
    expiration_time: Optional[datetime] = None
    status: str
    notification_status: str
    claimed_reservation_id: Optional[str] = None

    @classmethod
    def from_entity(cls, entry: WaitlistEntry) -> 'WaitlistEntryResponse':
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            event_id=entry.event_id,
            ticket_type_id=entry.ticket_type_id,
            quantity=entry.quantity,
            request_time=entry.request_time,
            notification_sent=entry.notification_sent,
            notification_time=entry.notification_time,
            expiration_time=entry.expiration_time,
            status=entry.status.value,
            notification_status=entry.notification_status.value,
            claimed_reservation_id=entry.claimed_reservation_id,
        )


class ClaimWaitlistResponse(BaseModel):
    success: bool
    reservation_id: str
    expires_at: datetime


class InventoryResponse(BaseModel):
    event_id: str
    ticket_type_id: str
    total_quantity: int
    available_quantity: int
    reserved_quantity: int
    sold_quantity: int
    earmarked_quantity: int
    last_updated: Optional[datetime] = None

    @classmethod
    def from_entity(cls, record: InventoryRecord) -> 'InventoryResponse':
        return cls(
            event_id=record.event_id,
            ticket_type_id=record.ticket_type_id,
            total_quantity=record.total_quantity,
            available_quantity=record.available_quantity,
            reserved_quantity=record.reserved_quantity,
            sold_quantity=record.sold_quantity,
            earmarked_quantity=record.earmarked_quantity,
            last_updated=record.last_updated,
        )


# Scheduler-invoked task payloads


class ProcessReservationTaskRequest(BaseModel):
    request_id: Optional[str] = None
    user_id: str
    event_id: str
    tickets: List[TicketLineSchema]
    timestamp: Optional[int] = None  # epoch milliseconds

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


class ReserveResponse(BaseModel):
    success: bool
    reservation_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    waitlisted: bool = False
    waitlist_id: Optional[str] = None
    error: Optional[str] = None


class ReservationExpiryTaskRequest(BaseModel):
    reservation_id: str


class WaitlistNotificationExpiryTaskRequest(BaseModel):
    waitlist_id: str


class TaskResultResponse(BaseModel):
    success: bool
    expired: bool
