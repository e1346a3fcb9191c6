"""Custom exception hierarchy for loan-ledger."""


class LoanLedgerError(Exception):
    """Base exception for all loan-ledger errors."""


class InvalidTermsError(LoanLedgerError):
    """Raised when principal, rate or duration cannot produce a schedule."""


class InvalidBorrowerError(LoanLedgerError):
    """Raised when a borrower has no name or no contact channel."""


class NotFoundError(LoanLedgerError):
    """Raised when a referenced entity does not exist."""


class LoanNotFoundError(NotFoundError):
    """Raised when a loan id is unknown to the store."""


class InstallmentNotFoundError(NotFoundError):
    """Raised when an installment index is outside the schedule."""


class PersistenceError(LoanLedgerError):
    """Raised when the storage backend fails."""


class ConcurrentUpdateError(PersistenceError):
    """Raised when a loan was modified since it was read."""


class ConfigurationError(LoanLedgerError):
    """Raised when configuration is invalid or missing."""


class SinkError(LoanLedgerError):
    """Raised when a sink operation fails."""
