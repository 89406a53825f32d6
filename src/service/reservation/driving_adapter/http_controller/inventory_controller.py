from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.query.get_inventory_use_case import GetInventoryUseCase
from src.service.reservation.driving_adapter.http_controller.schema.reservation_schema import (
    InventoryResponse,
)


router = APIRouter()


@router.get('/{event_id}/{ticket_type_id}')
@Logger.io
async def get_inventory(
    event_id: str,
    ticket_type_id: str,
    use_case: GetInventoryUseCase = Depends(GetInventoryUseCase.depends),
) -> InventoryResponse:
    record = await use_case.execute(event_id=event_id, ticket_type_id=ticket_type_id)
    return InventoryResponse.from_entity(record)
