from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.reservation.app.command.claim_waitlisted_tickets_use_case import (
    ClaimWaitlistedTicketsUseCase,
)
from src.service.reservation.app.query.get_waitlist_entry_use_case import (
    GetWaitlistEntryUseCase,
)
from src.service.reservation.driving_adapter.http_controller.auth.current_user import (
    get_current_user_id,
)
from src.service.reservation.driving_adapter.http_controller.schema.reservation_schema import (
    ClaimWaitlistResponse,
    WaitlistEntryResponse,
)


router = APIRouter()


@router.post('/{waitlist_id}/claim')
@Logger.io
async def claim_waitlisted_tickets(
    waitlist_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: ClaimWaitlistedTicketsUseCase = Depends(ClaimWaitlistedTicketsUseCase.depends),
) -> ClaimWaitlistResponse:
    result = await use_case.execute(user_id=user_id, waitlist_id=waitlist_id)
    return ClaimWaitlistResponse(
        success=result.success, reservation_id=result.reservation_id, expires_at=result.expires_at
    )


@router.get('/{waitlist_id}')
@Logger.io
async def get_waitlist_entry(
    waitlist_id: str,
    user_id: str = Depends(get_current_user_id),
    use_case: GetWaitlistEntryUseCase = Depends(GetWaitlistEntryUseCase.depends),
) -> WaitlistEntryResponse:
    entry = await use_case.execute(user_id=user_id, waitlist_id=waitlist_id)
    return WaitlistEntryResponse.from_entity(entry)
