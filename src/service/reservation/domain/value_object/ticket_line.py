import attrs

from src.platform.exception.exceptions import InvalidArgumentError


@attrs.frozen
class TicketLine:
    """One requested (ticket type, quantity) pair of a reservation"""

    ticket_type_id: str
    quantity: int

    def to_dict(self) -> dict[str, str | int]:
        return {'ticket_type_id': self.ticket_type_id, 'quantity': self.quantity}

    @classmethod
    def from_dict(cls, data: dict) -> 'TicketLine':
        return cls(ticket_type_id=str(data['ticket_type_id']), quantity=int(data['quantity']))


def validate_reservation_request(*, event_id: str, lines: list[TicketLine]) -> None:
    """
    Synchronous request validation, run before any transaction starts

    Raises:
        InvalidArgumentError: missing event, no lines, non-positive quantity
            or the same ticket type requested twice
    """
    if not event_id or not event_id.strip():
        raise InvalidArgumentError('event_id is required')
    if not lines:
        raise InvalidArgumentError('At least one ticket line is required')

    seen: set[str] = set()
    for line in lines:
        if not line.ticket_type_id:
            raise InvalidArgumentError('ticket_type_id is required')
        if line.quantity <= 0:
            raise InvalidArgumentError('quantity must be greater than zero')
        if line.ticket_type_id in seen:
            raise InvalidArgumentError(f'Ticket type {line.ticket_type_id} requested more than once')
        seen.add(line.ticket_type_id)
