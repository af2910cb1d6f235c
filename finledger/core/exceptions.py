"""Domain exceptions raised by the services and mapped to HTTP in main.py."""


class FinLedgerError(Exception):
    """Base exception for all finledger errors."""

    status_code = 500
    default_detail = "An unexpected error occurred."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(FinLedgerError):
    """Invalid or missing input (principal, rate, tenure, EMI day, ...)."""

    status_code = 422
    default_detail = "Invalid input."


class NotFoundError(FinLedgerError):
    status_code = 404
    default_detail = "Not found."


class ConflictError(FinLedgerError):
    status_code = 409
    default_detail = "Conflict with current state."


class AlreadyPaidError(ConflictError):
    default_detail = "Installment is already paid."


class InvariantViolation(FinLedgerError):
    """Server-side consistency guard. Never shown to the client verbatim."""

    default_detail = "Internal consistency check failed."
