from typing import Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.interface.i_inventory_repo import IInventoryRepo
from src.service.reservation.domain.entity.inventory_entity import InventoryRecord
from src.service.reservation.driven_adapter.model.inventory_model import InventoryModel


class InventoryRepoImpl(IInventoryRepo):
    def __init__(self, *, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(db_record: InventoryModel) -> InventoryRecord:
        return InventoryRecord(
            event_id=db_record.event_id,
            ticket_type_id=db_record.ticket_type_id,
            total_quantity=db_record.total_quantity,
            available_quantity=db_record.available_quantity,
            reserved_quantity=db_record.reserved_quantity,
            sold_quantity=db_record.sold_quantity,
            earmarked_quantity=db_record.earmarked_quantity,
            last_updated=db_record.last_updated,
        )

    @Logger.io
    async def get(self, *, event_id: str, ticket_type_id: str) -> Optional[InventoryRecord]:
        result = await self.session.execute(
            select(InventoryModel)
            .where(
                InventoryModel.event_id == event_id,
                InventoryModel.ticket_type_id == ticket_type_id,
            )
            .with_for_update()
            # Core UPDATEs bypass the identity map; reload rows touched earlier in the session
            .execution_options(populate_existing=True)
        )
        db_record = result.scalar_one_or_none()
        return InventoryRepoImpl._to_entity(db_record) if db_record else None

    @Logger.io
    async def create(self, *, record: InventoryRecord) -> InventoryRecord:
        db_record = InventoryModel(
            event_id=record.event_id,
            ticket_type_id=record.ticket_type_id,
            total_quantity=record.total_quantity,
            available_quantity=record.available_quantity,
            reserved_quantity=record.reserved_quantity,
            sold_quantity=record.sold_quantity,
            earmarked_quantity=record.earmarked_quantity,
            last_updated=record.last_updated,
        )
        self.session.add(db_record)
        # A concurrent creator surfaces here as a unique violation, which the runner retries
        await self.session.flush()
        return InventoryRepoImpl._to_entity(db_record)

    @Logger.io
    async def update(self, *, record: InventoryRecord) -> InventoryRecord:
        result = await self.session.execute(
            sql_update(InventoryModel)
            .where(
                InventoryModel.event_id == record.event_id,
                InventoryModel.ticket_type_id == record.ticket_type_id,
            )
            .values(
                available_quantity=record.available_quantity,
                reserved_quantity=record.reserved_quantity,
                sold_quantity=record.sold_quantity,
                earmarked_quantity=record.earmarked_quantity,
                last_updated=record.last_updated,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ValueError(
                f'Inventory {record.event_id}/{record.ticket_type_id} not found for update'
            )
        return record
