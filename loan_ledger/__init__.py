"""Peer-to-peer loan record keeping with reducing-balance EMI schedules."""

from loan_ledger.calculations import (
    compute_emi,
    days_until_due,
    generate_schedule,
    is_overdue,
    next_due_date,
    progress_percent,
    remaining_amount,
    total_amount,
    total_interest,
    total_paid,
)
from loan_ledger.ledger import LoanLedger
from loan_ledger.models import Borrower, Installment, Lender, Loan, LoanStatus

__version__ = "0.1.0"

__all__ = [
    "Borrower",
    "Installment",
    "Lender",
    "Loan",
    "LoanLedger",
    "LoanStatus",
    "compute_emi",
    "days_until_due",
    "generate_schedule",
    "is_overdue",
    "next_due_date",
    "progress_percent",
    "remaining_amount",
    "total_amount",
    "total_interest",
    "total_paid",
]
