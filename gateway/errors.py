"""
Error taxonomy for the gateway.

Every error carries the HTTP status, a stable machine-readable code and a
human-readable message. Route handlers and the transfer engine raise these;
the exception handlers in gateway.main render them into whichever response
envelope the route family uses.
"""


class GatewayError(Exception):
    """Base class for errors surfaced synchronously to API callers."""

    status_code = 500
    code = "SERVER_ERROR"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(GatewayError):
    """Malformed or missing input fields."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AmountLimitExceeded(ValidationFailed):
    code = "AMOUNT_LIMIT_EXCEEDED"


class InsufficientBalance(GatewayError):
    status_code = 400
    code = "INSUFFICIENT_BALANCE"


class Conflict(GatewayError):
    """State conflicts: duplicate idempotency key, duplicate account."""

    status_code = 409
    code = "CONFLICT"


class DuplicateTransfer(Conflict):
    code = "DUPLICATE_TRANSFER"


class NotFound(GatewayError):
    status_code = 404
    code = "NOT_FOUND"


class Unauthorized(GatewayError):
    """No credentials were presented, or they did not match."""

    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(GatewayError):
    """A token was presented but is invalid or expired."""

    status_code = 403
    code = "FORBIDDEN"
