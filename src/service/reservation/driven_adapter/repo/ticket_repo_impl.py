from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_ticket_repo import ITicketRepo
from src.service.reservation.domain.entity.ticket_entity import Ticket
from src.service.reservation.domain.enum.ticket_status import TicketStatus
from src.service.reservation.driven_adapter.model.ticket_model import TicketModel


class TicketRepoImpl(ITicketRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_ticket: TicketModel) -> Ticket:
        return Ticket(
            id=db_ticket.id,
            event_id=db_ticket.event_id,
            reservation_id=db_ticket.reservation_id,
            owner_id=db_ticket.owner_id,
            promoter_id=db_ticket.promoter_id,
            ticket_type=db_ticket.ticket_type,
            price_amount=db_ticket.price_amount,
            price_currency=db_ticket.price_currency,
            purchased_at=db_ticket.purchased_at,
            status=TicketStatus(db_ticket.status),
            description=db_ticket.description,
            event_date_name=db_ticket.event_date_name or '',
            scan_start_time=db_ticket.scan_start_time,
            scan_expiry_time=db_ticket.scan_expiry_time,
            location_id=db_ticket.location_id,
            entrance_latitude=db_ticket.entrance_latitude,
            entrance_longitude=db_ticket.entrance_longitude,
        )

    @Logger.io
    async def create_many(self, *, tickets: List[Ticket]) -> List[Ticket]:
        db_tickets = [
            TicketModel(
                id=ticket.id,
                event_id=ticket.event_id,
                reservation_id=ticket.reservation_id,
                owner_id=ticket.owner_id,
                promoter_id=ticket.promoter_id,
                ticket_type=ticket.ticket_type,
                status=ticket.status.value,
                price_amount=ticket.price_amount,
                price_currency=ticket.price_currency,
                description=ticket.description,
                event_date_name=ticket.event_date_name,
                purchased_at=ticket.purchased_at,
                scan_start_time=ticket.scan_start_time,
                scan_expiry_time=ticket.scan_expiry_time,
                location_id=ticket.location_id,
                entrance_latitude=ticket.entrance_latitude,
                entrance_longitude=ticket.entrance_longitude,
            )
            for ticket in tickets
        ]
        self.session.add_all(db_tickets)
        await self.session.flush()
        return [TicketRepoImpl._to_entity(db_ticket) for db_ticket in db_tickets]

    @Logger.io
    async def list_by_reservation_id(self, *, reservation_id: str) -> List[Ticket]:
        result = await self.session.execute(
            select(TicketModel)
            .where(TicketModel.reservation_id == reservation_id)
            .order_by(TicketModel.id)
        )
        return [TicketRepoImpl._to_entity(db_ticket) for db_ticket in result.scalars().all()]
