"""Domain-specific exceptions for the ledger core services."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class InsufficientFundsError(ValidationError):
    """Raised when an outcome transaction would exceed the current balance."""


class RecordNotFoundError(LookupError):
    """Raised when a transaction or category cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""
