class LedgerError(Exception):
    """
    Base class for failures raised inside the inventory ledger.

    Every subclass carries a ``kind`` that the ledger copies into the
    failed ``LedgerResult`` so callers can map it to their own status codes.
    """
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Empty or malformed batch, or a disallowed status transition."""
    kind = "validation"


class NotFoundError(LedgerError):
    """The identifier matched nothing. No state was changed."""
    kind = "not_found"


class PersistenceError(LedgerError):
    """The store could not be read or written, or the written file did not verify."""
    kind = "persistence"


class StoreUnreadableError(PersistenceError):
    """The store file exists but cannot be parsed as a workbook."""


class DependencyError(LedgerError):
    """An attachment or credential collaborator failed. The batch was not applied."""
    kind = "dependency"
