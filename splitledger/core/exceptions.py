class LedgerError(Exception):
    """Base class for errors raised by the settlement engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Bad input: nothing has been written."""


class NotFoundError(LedgerError):
    """A referenced user, group or expense does not exist."""


class ConsistencyError(LedgerError):
    """An internal invariant was broken, e.g. split amounts not adding up."""
