from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.complete_purchase_use_case import (
    CompletePurchaseUseCase,
)
from src.service.reservation.app.command.request_reservation_use_case import (
    RequestReservationUseCase,
)
from src.service.reservation.app.query.get_reservation_use_case import GetReservationUseCase
from src.service.reservation.domain.value_object.ticket_line import TicketLine
from src.service.reservation.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.reservation.driving_adapter.http_controller.schema.reservation_schema import (
    CompletePurchaseResponse,
    RequestReservationResponse,
    ReservationRequest,
    ReservationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/request', status_code=status.HTTP_202_ACCEPTED)
@Logger.io
async def request_reservation(
    request: ReservationRequest,
    user_id: str = Depends(get_current_user_id),
    use_case: RequestReservationUseCase = Depends(RequestReservationUseCase.depends),
) -> RequestReservationResponse:
    with tracer.start_as_current_span('controller.request_reservation') as span:
        span.set_attribute('event_id', request.event_id)
        span.set_attribute('user_id', user_id)

        result = await use_case.execute(
            user_id=user_id,
            event_id=request.event_id,
            lines=[
                TicketLine(ticket_type_id=line.ticket_type_id, quantity=line.quantity)
                for line in request.tickets
            ],
        )
        return RequestReservationResponse(
            success=result.success, message=result.message, task_id=result.task_id
        )


@router.post('/{reservation_id}/complete')
@Logger.io
async def complete_purchase(
    reservation_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: CompletePurchaseUseCase = Depends(CompletePurchaseUseCase.depends),
) -> CompletePurchaseResponse:
    result = await use_case.execute(user_id=user_id, reservation_id=reservation_id)
    return CompletePurchaseResponse(
        success=result.success, ticket_count=result.ticket_count, ticket_ids=result.ticket_ids
    )


@router.get('/{reservation_id}')
@Logger.io
async def get_reservation(
    reservation_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: GetReservationUseCase = Depends(GetReservationUseCase.depends),
) -> ReservationResponse:
    reservation = await use_case.execute(user_id=user_id, reservation_id=reservation_id)
    return ReservationResponse.from_entity(reservation)
