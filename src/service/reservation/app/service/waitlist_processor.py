"""
Waitlist Processor

Redistributes freed capacity to the head of a (event, ticket type) waitlist.
Always runs inside the caller's unit of work, so "release + redistribute"
commits as one unit.
"""

from datetime import datetime
from typing import List, Optional

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import InternalError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.reservation_metrics import reservation_metrics
from src.service.reservation.domain.entity.inventory_entity import InventoryRecord
from src.service.reservation.domain.entity.waitlist_entry_entity import WaitlistEntry
from src.service.reservation.domain.enum.deferred_task import DeferredTaskName
from src.service.reservation.domain.value_object.notification_message import NotificationMessage


class WaitlistProcessor:
    def __init__(
        self, *, batch_size: Optional[int] = None, claim_minutes: Optional[int] = None
    ) -> None:
        self.batch_size = batch_size or settings.WAITLIST_BATCH_SIZE
        self.claim_minutes = claim_minutes or settings.WAITLIST_CLAIM_MINUTES

    @Logger.io
    async def process(
        self,
        *,
        uow: AbstractUnitOfWork,
        inventory: InventoryRecord,
        freed_quantity: int,
        now: datetime,
    ) -> List[NotificationMessage]:
        """
        Earmark freed capacity for waiting entries in request order

        Only full matches are served, and the scan stops at the first entry
        that does not fit: a smaller request further back is never served
        ahead of a larger one still waiting.

        Args:
            uow: The caller's open unit of work
            inventory: Current state of the partition's record (already persisted)
            freed_quantity: Units just returned to available
            now: Transaction time

        Returns:
            Notifications to deliver once the caller commits
        """
        if freed_quantity <= 0:
            return []

        entries = await uow.waitlist_repo.list_waiting(
            event_id=inventory.event_id,
            ticket_type_id=inventory.ticket_type_id,
            limit=self.batch_size,
        )
        if not entries:
            return []

        remaining = freed_quantity
        notifications: List[NotificationMessage] = []
        for entry in entries:
            if remaining <= 0:
                break
            if entry.quantity > remaining or not inventory.can_hold(entry.quantity):
                break

            inventory = inventory.earmark(quantity=entry.quantity, now=now)
            notified = entry.mark_notified(now=now, claim_minutes=self.claim_minutes)
            await uow.waitlist_repo.update(entry=notified)

            if notified.expiration_time is None:
                raise InternalError(
                    f'Waitlist entry {notified.id} was notified without a claim deadline'
                )
            await uow.task_scheduler.schedule(
                task_name=DeferredTaskName.EXPIRE_WAITLIST_NOTIFICATION,
                payload={'waitlist_id': notified.id},
                run_at=notified.expiration_time,
            )
            remaining -= entry.quantity

            notifications.append(
                NotificationMessage.waitlist_tickets_available(
                    user_id=notified.user_id,
                    waitlist_id=notified.id,
                    expires_at=notified.expiration_time,
                    claim_minutes=self.claim_minutes,
                )
            )
            Logger.base.info(
                f'📣 [WAITLIST] Earmarked {entry.quantity} x {inventory.ticket_type_id} '
                f'for waitlist entry {notified.id}'
            )

        if notifications:
            await uow.inventory_repo.update(record=inventory)
            reservation_metrics.record_waitlist_notified(count=len(notifications))

        return notifications

    @Logger.io
    async def expire_entry(
        self, *, uow: AbstractUnitOfWork, entry: WaitlistEntry, now: datetime
    ) -> List[NotificationMessage]:
        """
        Close a notified entry's claim window and pass its earmark down the queue
        """
        await uow.waitlist_repo.update(entry=entry.mark_expired())
        reservation_metrics.record_waitlist_expired()

        inventory = await uow.inventory_repo.get(
            event_id=entry.event_id, ticket_type_id=entry.ticket_type_id
        )
        if inventory is None:
            Logger.base.warning(
                f'⚠️ [WAITLIST] No inventory for {entry.event_id}/{entry.ticket_type_id}, '
                f'skipping redistribution of waitlist entry {entry.id}'
            )
            return []

        inventory = inventory.release_earmark(quantity=entry.quantity, now=now)
        await uow.inventory_repo.update(record=inventory)

        return await self.process(
            uow=uow, inventory=inventory, freed_quantity=entry.quantity, now=now
        )
