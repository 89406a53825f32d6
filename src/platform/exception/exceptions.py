class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code: str = 'internal'

    def __init__(self, message: str, status_code: int = 500, code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class InvalidArgumentError(CustomBaseError):
    code = 'invalid-argument'

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class UnauthenticatedError(CustomBaseError):
    code = 'unauthenticated'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class PermissionDeniedError(CustomBaseError):
    code = 'permission-denied'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'not-found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class FailedPreconditionError(CustomBaseError):
    code = 'failed-precondition'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class AbortedError(CustomBaseError):
    code = 'aborted'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class InternalError(CustomBaseError):
    code = 'internal'

    def __init__(self, message: str) -> None:
        super().__init__(message, 500)


class TransactionConflictError(Exception):
    """Raised by a unit of work when a concurrent commit invalidated its reads"""
