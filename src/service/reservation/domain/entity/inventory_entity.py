from datetime import datetime
from typing import Optional

import attrs

from src.platform.exception.exceptions import InternalError, InvalidArgumentError
from src.platform.logging.loguru_io import Logger


@attrs.define
class InventoryRecord:
    """
    Per (event, ticket type) counters.

    Every unit sits in exactly one bucket:
    available + reserved + sold + earmarked == total, all counters >= 0.
    Earmarked units were taken out of available for a notified waitlist entry
    and are not yet counted as reserved.
    """

    event_id: str
    ticket_type_id: str
    total_quantity: int
    available_quantity: int
    reserved_quantity: int = 0
    sold_quantity: int = 0
    earmarked_quantity: int = 0
    last_updated: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls, *, event_id: str, ticket_type_id: str, total_quantity: int, now: datetime
    ) -> 'InventoryRecord':
        if total_quantity < 0:
            raise InvalidArgumentError('total_quantity cannot be negative')
        return cls(
            event_id=event_id,
            ticket_type_id=ticket_type_id,
            total_quantity=total_quantity,
            available_quantity=total_quantity,
            last_updated=now,
        )

    def can_hold(self, quantity: int) -> bool:
        return self.available_quantity >= quantity

    @Logger.io
    def hold(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """available -> reserved"""
        if not self.can_hold(quantity):
            raise InternalError(
                f'Cannot hold {quantity} of {self.ticket_type_id}: '
                f'only {self.available_quantity} available'
            )
        return self._evolve(
            now,
            available_quantity=self.available_quantity - quantity,
            reserved_quantity=self.reserved_quantity + quantity,
        )

    @Logger.io
    def release_hold(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """reserved -> available"""
        return self._evolve(
            now,
            reserved_quantity=self.reserved_quantity - quantity,
            available_quantity=self.available_quantity + quantity,
        )

    @Logger.io
    def commit_sale(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """reserved -> sold"""
        return self._evolve(
            now,
            reserved_quantity=self.reserved_quantity - quantity,
            sold_quantity=self.sold_quantity + quantity,
        )

    @Logger.io
    def earmark(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """available -> earmarked"""
        return self._evolve(
            now,
            available_quantity=self.available_quantity - quantity,
            earmarked_quantity=self.earmarked_quantity + quantity,
        )

    @Logger.io
    def release_earmark(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """earmarked -> available"""
        return self._evolve(
            now,
            earmarked_quantity=self.earmarked_quantity - quantity,
            available_quantity=self.available_quantity + quantity,
        )

    @Logger.io
    def convert_earmark_to_hold(self, *, quantity: int, now: datetime) -> 'InventoryRecord':
        """earmarked -> reserved"""
        return self._evolve(
            now,
            earmarked_quantity=self.earmarked_quantity - quantity,
            reserved_quantity=self.reserved_quantity + quantity,
        )

    def check_invariant(self) -> None:
        counters = (
            self.available_quantity,
            self.reserved_quantity,
            self.sold_quantity,
            self.earmarked_quantity,
        )
        if any(counter < 0 for counter in counters) or sum(counters) != self.total_quantity:
            raise InternalError(
                f'Inventory invariant violated for {self.event_id}/{self.ticket_type_id}: '
                f'available={self.available_quantity} reserved={self.reserved_quantity} '
                f'sold={self.sold_quantity} earmarked={self.earmarked_quantity} '
                f'total={self.total_quantity}'
            )

    def _evolve(self, now: datetime, **changes: int) -> 'InventoryRecord':
        updated = attrs.evolve(self, last_updated=now, **changes)
        updated.check_invariant()
        return updated
