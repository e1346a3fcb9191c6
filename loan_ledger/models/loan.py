"""Loan and installment models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from loan_ledger.models.enums import LoanStatus


@dataclass
class Lender:
    """Lender identity copied onto the loan at creation."""

    lender_id: str
    name: str


@dataclass
class Borrower:
    """Borrower snapshot (value copy, not a live profile reference)."""

    name: str
    email: str | None = None
    phone: str | None = None
    borrower_id: str | None = None  # Set when the borrower is also a user

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)


@dataclass
class Installment:
    """One month of an amortization schedule (EMI)."""

    month: int  # 1, 2, 3, ...
    emi: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal  # Outstanding after this installment
    due_date: date
    paid: bool = False
    paid_date: datetime | None = None


@dataclass
class Loan:
    """Loan record owning its installment schedule."""

    loan_id: str
    lender: Lender
    borrower: Borrower
    principal: Decimal
    annual_rate: Decimal  # Percent per year (12 means 1% per month)
    duration_months: int
    start_date: date
    installments: list[Installment]
    created_at: datetime
    updated_at: datetime
    status: LoanStatus = LoanStatus.ACTIVE
    version: int = 0  # Incremented on every successful save
