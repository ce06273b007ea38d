"""Domain exceptions raised by the ledger and service layers.

Route handlers let these propagate; ``app.main`` renders them as JSON
bodies carrying a machine readable ``code``, the user facing ``message``
and an error toast.
"""


class LedgerError(Exception):
    """Base class for expected, user-visible failures."""

    status_code = 400
    code = "error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationFailed(LedgerError):
    """Input rejected before any write was attempted."""

    status_code = 400
    code = "validation_error"


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"


class StoreError(LedgerError):
    """A write to the database failed and was rolled back."""

    status_code = 503
    code = "store_error"


class AIServiceError(LedgerError):
    """The hosted language model could not produce a usable answer."""

    status_code = 502
    code = "ai_unavailable"
