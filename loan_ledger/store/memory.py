"""In-memory loan store."""

import copy
import threading
from dataclasses import dataclass, field, replace

from loan_ledger.exceptions import LoanNotFoundError
from loan_ledger.models import Loan, UserProfile
from loan_ledger.store.base import LoanStore, check_version


@dataclass
class InMemoryLoanStore(LoanStore):
    """Dict-backed store; records are copied on the way in and out."""

    loans: dict[str, Loan] = field(default_factory=dict)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_loan(self, loan_id: str) -> Loan | None:
        """Get a loan by id."""
        loan = self.loans.get(loan_id)
        return copy.deepcopy(loan) if loan is not None else None

    def save_loan(self, loan: Loan) -> Loan:
        """Upsert a loan after checking its version."""
        with self._lock:
            existing = self.loans.get(loan.loan_id)
            check_version(loan, existing.version if existing else 0)
            saved = replace(copy.deepcopy(loan), version=loan.version + 1)
            self.loans[loan.loan_id] = saved
        return copy.deepcopy(saved)

    def list_loans(self) -> list[Loan]:
        """Get all loans in insertion order."""
        return [copy.deepcopy(loan) for loan in self.loans.values()]

    def delete_loan(self, loan_id: str) -> None:
        """Remove a loan."""
        with self._lock:
            if self.loans.pop(loan_id, None) is None:
                raise LoanNotFoundError(f"Loan {loan_id} not found")

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user profile by id."""
        profile = self.profiles.get(user_id)
        return copy.deepcopy(profile) if profile is not None else None

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Upsert a user profile."""
        self.profiles[profile.user_id] = copy.deepcopy(profile)
        return copy.deepcopy(profile)

    def summary(self) -> dict[str, int]:
        """Return summary counts of stored records."""
        return {
            "loans": len(self.loans),
            "profiles": len(self.profiles),
            "installments": sum(len(loan.installments) for loan in self.loans.values()),
        }
