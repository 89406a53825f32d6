"""Application layer DTOs"""

from src.service.reservation.app.dto.reservation_result_dto import (
    ClaimWaitlistResult,
    CompletePurchaseResult,
    RequestReservationResult,
    ReserveResult,
)

__all__ = [
    'ClaimWaitlistResult',
    'CompletePurchaseResult',
    'RequestReservationResult',
    'ReserveResult',
]
