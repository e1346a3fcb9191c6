"""Pytest configuration and fixtures."""

from datetime import date, datetime

import pytest

from loan_ledger.ledger import LoanLedger
from loan_ledger.models import Borrower, Lender
from loan_ledger.store import InMemoryLoanStore


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return datetime(2026, 5, 10, 9, 30)


@pytest.fixture
def start_date() -> date:
    """Loan start date used across schedule tests."""
    return date(2025, 1, 15)


@pytest.fixture
def lender() -> Lender:
    """Sample lender."""
    return Lender(lender_id="user-lender-001", name="Asha Rao")


@pytest.fixture
def borrower() -> Borrower:
    """Sample borrower with both contact channels."""
    return Borrower(name="Vikram Shah", email="vikram@example.com", phone="+919800000001")


@pytest.fixture
def store() -> InMemoryLoanStore:
    """Create a fresh store for each test."""
    return InMemoryLoanStore()


@pytest.fixture
def ledger(store: InMemoryLoanStore) -> LoanLedger:
    """Ledger over the in-memory store, no event sink."""
    return LoanLedger(store)
