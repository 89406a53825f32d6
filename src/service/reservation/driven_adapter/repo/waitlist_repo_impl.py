from typing import List, Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_waitlist_repo import IWaitlistRepo
from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.reservation.domain.enum.reservation_status import NotificationStatus
from src.service.reservation.domain.enum.waitlist_status import WaitlistStatus
from src.service.reservation.driven_adapter.model.waitlist_entry_model import WaitlistEntryModel


class WaitlistRepoImpl(IWaitlistRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_entry: WaitlistEntryModel) -> WaitlistEntry:
        return WaitlistEntry(
            id=db_entry.id,
            user_id=db_entry.user_id,
            event_id=db_entry.event_id,
            ticket_type_id=db_entry.ticket_type_id,
            quantity=db_entry.quantity,
            request_time=db_entry.request_time,
            notification_sent=db_entry.notification_sent,
            notification_time=db_entry.notification_time,
            expiration_time=db_entry.expiration_time,
            status=WaitlistStatus(db_entry.status),
            notification_status=NotificationStatus(db_entry.notification_status),
            claimed_reservation_id=db_entry.claimed_reservation_id,
            request_id=db_entry.request_id,
        )

    @Logger.io
    async def get_by_id(self, *, waitlist_id: str) -> Optional[WaitlistEntry]:
        result = await self.session.execute(
            select(WaitlistEntryModel)
            .where(WaitlistEntryModel.id == waitlist_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        db_entry = result.scalar_one_or_none()
        return WaitlistRepoImpl._to_entity(db_entry) if db_entry else None

    @Logger.io
    async def get_by_request_id(self, *, request_id: str) -> Optional[WaitlistEntry]:
        result = await self.session.execute(
            select(WaitlistEntryModel).where(WaitlistEntryModel.request_id == request_id)
        )
        db_entry = result.scalar_one_or_none()
        return WaitlistRepoImpl._to_entity(db_entry) if db_entry else None

    @Logger.io
    async def create(self, *, entry: WaitlistEntry) -> WaitlistEntry:
        db_entry = WaitlistEntryModel(
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
            request_id=entry.request_id,
        )
        self.session.add(db_entry)
        await self.session.flush()
        return WaitlistRepoImpl._to_entity(db_entry)

    @Logger.io
    async def update(self, *, entry: WaitlistEntry) -> WaitlistEntry:
        result = await self.session.execute(
            sql_update(WaitlistEntryModel)
            .where(WaitlistEntryModel.id == entry.id)
            .values(
                notification_sent=entry.notification_sent,
                notification_time=entry.notification_time,
                expiration_time=entry.expiration_time,
                status=entry.status.value,
                notification_status=entry.notification_status.value,
                claimed_reservation_id=entry.claimed_reservation_id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ValueError(f'Waitlist entry with id {entry.id} not found')
        return entry

    @Logger.io
    async def list_waiting(
        self, *, event_id: str, ticket_type_id: str, limit: int
    ) -> List[WaitlistEntry]:
        result = await self.session.execute(
            select(WaitlistEntryModel)
            .where(
                WaitlistEntryModel.event_id == event_id,
                WaitlistEntryModel.ticket_type_id == ticket_type_id,
                WaitlistEntryModel.status == WaitlistStatus.WAITING.value,
            )
            # UUID7 ids are time ordered, so they break request_time ties in arrival order
            .order_by(WaitlistEntryModel.request_time.asc(), WaitlistEntryModel.id.asc())
            .limit(limit)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return [WaitlistRepoImpl._to_entity(db_entry) for db_entry in result.scalars().all()]

    @Logger.io
    async def update_notification_status(
        self, *, waitlist_id: str, notification_status: NotificationStatus
    ) -> None:
        await self.session.execute(
            sql_update(WaitlistEntryModel)
            .where(WaitlistEntryModel.id == waitlist_id)
            .values(notification_status=notification_status.value)
            .execution_options(synchronize_session=False)
        )
