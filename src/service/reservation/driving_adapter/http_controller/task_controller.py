"""
Scheduler-invoked task endpoints

For deployments that drive the engine from an external task queue instead of
the in-process deferred task worker. Each endpoint runs the same handler the
worker would.
"""

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.expire_reservation_use_case import (
    ExpireReservationUseCase,
)
from src.service.reservation.app.command.expire_waitlist_notification_use_case import (
    ExpireWaitlistNotificationUseCase,
)
from src.service.reservation.app.command.process_reservation_use_case import (
    ProcessReservationUseCase,
)
from src.service.reservation.driving_adapter.http_controller.schema.reservation_schema import (
    ProcessReservationTaskRequest,
    ReservationExpiryTaskRequest,
    ReserveResponse,
    TaskResultResponse,
    WaitlistNotificationExpiryTaskRequest,
)


router = APIRouter()


@router.post('/process-reservation')
@Logger.io
async def process_reservation(
    request: ProcessReservationTaskRequest,
    use_case: ProcessReservationUseCase = Depends(ProcessReservationUseCase.depends),
) -> ReserveResponse:
    result = await use_case.process(payload=request.to_payload())
    return ReserveResponse(
        success=result.success,
        reservation_id=result.reservation_id,
        expires_at=result.expires_at,
        waitlisted=result.waitlisted,
        waitlist_id=result.waitlist_id,
        error=result.error,
    )


@router.post('/reservation-expiry')
@Logger.io
async def expire_reservation(
    request: ReservationExpiryTaskRequest,
    use_case: ExpireReservationUseCase = Depends(ExpireReservationUseCase.depends),
) -> TaskResultResponse:
    expired = await use_case.execute(reservation_id=request.reservation_id)
    return TaskResultResponse(success=True, expired=expired)


@router.post('/waitlist-notification-expiry')
@Logger.io
async def expire_waitlist_notification(
    request: WaitlistNotificationExpiryTaskRequest,
    use_case: ExpireWaitlistNotificationUseCase = Depends(
        ExpireWaitlistNotificationUseCase.depends
    ),
) -> TaskResultResponse:
    expired = await use_case.execute(waitlist_id=request.waitlist_id)
    return TaskResultResponse(success=True, expired=expired)
