"""Excepciones de dominio compartidas por todos los servicios"""


class DomainError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class UnauthenticatedError(DomainError):
    status_code = 401
    code = "unauthenticated"


class ForbiddenError(DomainError):
    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


class ConflictError(DomainError):
    status_code = 409
    code = "conflict"


class DuplicateBookingError(ConflictError):
    def __init__(self, message: str = "You already have a ticket for this event"):
        super().__init__(message)


class ValidationFailedError(DomainError):
    status_code = 400
    code = "validation_failed"


class InternalError(DomainError):
    status_code = 500
    code = "internal"
