from typing import Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_reservation_repo import IReservationRepo
from src.service.reservation.domain.entity.reservation_entity import Reservation
from src.service.reservation.domain.enum.reservation_status import (
    NotificationStatus,
    ReservationStatus,
)
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from src.service.reservation.driven_adapter.model.reservation_model import ReservationModel


class ReservationRepoImpl(IReservationRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_reservation: ReservationModel) -> Reservation:
        return Reservation(
            id=db_reservation.id,
            user_id=db_reservation.user_id,
            event_id=db_reservation.event_id,
            lines=[TicketLine.from_dict(line) for line in db_reservation.lines],
            reservation_time=db_reservation.reservation_time,
            expiration_time=db_reservation.expiration_time,
            status=ReservationStatus(db_reservation.status),
            notification_status=NotificationStatus(db_reservation.notification_status),
            source_waitlist_id=db_reservation.source_waitlist_id,
            completed_at=db_reservation.completed_at,
            expired_at=db_reservation.expired_at,
            request_id=db_reservation.request_id,
        )

    @Logger.io
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        result = await self.session.execute(
            select(ReservationModel)
            .where(ReservationModel.id == reservation_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_reservation = result.scalar_one_or_none()
        return ReservationRepoImpl._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def get_by_request_id(self, *, request_id: str) -> Optional[Reservation]:
        result = await self.session.execute(
            select(ReservationModel).where(ReservationModel.request_id == request_id)
        )
        db_reservation = result.scalar_one_or_none()
        return ReservationRepoImpl._to_entity(db_reservation) if db_reservation else None

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        db_reservation = ReservationModel(
            id=reservation.id,
            user_id=reservation.user_id,
            event_id=reservation.event_id,
            ticket_type_id=reservation.ticket_type_id,
            quantity=reservation.quantity,
            lines=[line.to_dict() for line in reservation.lines],
            reservation_time=reservation.reservation_time,
            expiration_time=reservation.expiration_time,
            status=reservation.status.value,
            notification_status=reservation.notification_status.value,
            source_waitlist_id=reservation.source_waitlist_id,
            completed_at=reservation.completed_at,
            expired_at=reservation.expired_at,
            request_id=reservation.request_id,
        )
        self.session.add(db_reservation)
        await self.session.flush()
        return ReservationRepoImpl._to_entity(db_reservation)

    @Logger.io
    async def update(self, *, reservation: Reservation) -> Reservation:
        result = await self.session.execute(
            sql_update(ReservationModel)
            .where(ReservationModel.id == reservation.id)
            .values(
                status=reservation.status.value,
                notification_status=reservation.notification_status.value,
                completed_at=reservation.completed_at,
                expired_at=reservation.expired_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ValueError(f'Reservation with id {reservation.id} not found')
        return reservation

    @Logger.io
    async def update_notification_status(
        self, *, reservation_id: str, notification_status: NotificationStatus
    ) -> None:
        await self.session.execute(
            sql_update(ReservationModel)
            .where(ReservationModel.id == reservation_id)
            .values(notification_status=notification_status.value)
            .execution_options(synchronize_session=False)
        )
