from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.create_event_use_case import CreateEventUseCase
from src.service.reservation.app.query.get_event_use_case import GetEventUseCase
from src.service.reservation.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.reservation.driving_adapter.http_controller.schema.event_schema import (
    EventCreateRequest,
    EventResponse,
)


router = APIRouter()


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_event(
    request: EventCreateRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: CreateEventUseCase = Depends(CreateEventUseCase.depends),
) -> EventResponse:
    event = await use_case.create(
        name=request.name,
        description=request.description,
        promoter_ids=request.promoter_ids,
        dates=request.to_dates(),
        locations=request.to_locations(),
        ticket_types=request.to_ticket_types(),
    )
    return EventResponse.from_entity(event)


@router.get('/{event_id}')
@Logger.io
async def get_event(
    event_id: str,
    use_case: GetEventUseCase = Depends(GetEventUseCase.depends),
) -> EventResponse:
    event = await use_case.get_by_id(event_id=event_id)
    return EventResponse.from_entity(event)
