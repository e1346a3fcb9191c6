"""Persistence interface the ledger depends on."""

from abc import ABC, abstractmethod

from loan_ledger.exceptions import ConcurrentUpdateError
from loan_ledger.models import Loan, UserProfile


class LoanStore(ABC):
    """Key-value persistence for loans and user profiles.

    ``save_loan`` is a full-record upsert guarded by ``Loan.version``: the
    incoming version must equal the stored one (0 for a loan not stored
    yet). The returned copy carries the incremented version.
    """

    @abstractmethod
    def get_loan(self, loan_id: str) -> Loan | None:
        """Get a loan by id, or None if it does not exist."""

    @abstractmethod
    def save_loan(self, loan: Loan) -> Loan:
        """Insert or overwrite a loan and return the stored copy."""

    @abstractmethod
    def list_loans(self) -> list[Loan]:
        """Get every stored loan; callers filter in memory."""

    @abstractmethod
    def delete_loan(self, loan_id: str) -> None:
        """Remove a loan."""

    @abstractmethod
    def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user profile by id, or None if it does not exist."""

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Insert or overwrite a user profile."""

    def close(self) -> None:
        """Release any underlying resources."""


def check_version(loan: Loan, stored_version: int) -> None:
    """Reject a write based on a stale read of the loan."""
    if loan.version != stored_version:
        raise ConcurrentUpdateError(
            f"Loan {loan.loan_id} is at version {stored_version}, "
            f"write was based on version {loan.version}"
        )
