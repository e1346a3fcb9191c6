"""Domain models for the loan ledger."""

from loan_ledger.models.base import Event
from loan_ledger.models.enums import LoanStatus, ReminderType
from loan_ledger.models.loan import Borrower, Installment, Lender, Loan
from loan_ledger.models.user import UserProfile

__all__ = [
    "Borrower",
    "Event",
    "Installment",
    "Lender",
    "Loan",
    "LoanStatus",
    "ReminderType",
    "UserProfile",
]
