"""Sample lenders, borrowers and loans for demos and local testing."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from loan_ledger.calculations import days_until_due
from loan_ledger.generators.base import BaseGenerator
from loan_ledger.ledger import LoanLedger
from loan_ledger.models import Borrower, Lender, Loan, UserProfile

logger = logging.getLogger(__name__)


class LedgerGenerator(BaseGenerator):
    """Generate a plausible lending book through a ``LoanLedger``."""

    DURATIONS = [3, 6, 9, 12, 18, 24, 36]
    # Annual percent; zero-interest loans between friends are common
    RATES = [0, 0, 6, 8, 10, 12, 15, 18]
    # Probability an installment already due has been paid
    ON_TIME_RATE = 0.85

    def generate_lender(self) -> Lender:
        """Generate a lender identity."""
        return Lender(lender_id=f"user_{self.fake.uuid4()}", name=self.fake.name())

    def generate_borrower(self) -> Borrower:
        """Generate a borrower with at least one contact channel."""
        channel = self.rng.choice(["email", "phone", "both"])
        return Borrower(
            name=self.fake.name(),
            email=self.fake.email() if channel in ("email", "both") else None,
            phone=self.fake.phone_number() if channel in ("phone", "both") else None,
        )

    def generate_terms(self) -> tuple[Decimal, Decimal, int]:
        """Generate principal, annual rate percent and duration."""
        principal = Decimal(self.rng.randint(5, 200) * 1000)
        rate = Decimal(self.rng.choice(self.RATES))
        return principal, rate, self.rng.choice(self.DURATIONS)

    def generate_profile(self, lender: Lender, now: datetime | None = None) -> UserProfile:
        """Generate the user profile behind a lender."""
        return UserProfile(
            user_id=lender.lender_id,
            name=lender.name,
            email=self.fake.email(),
            created_at=self.days_before(now or datetime.now(), 30, 720),
        )

    def generate_loan(self, ledger: LoanLedger, lender: Lender, now: datetime | None = None) -> Loan:
        """Create one loan started up to a year ago, with past dues mostly paid.

        Parameters
        ----------
        ledger : LoanLedger
            Ledger the loan is created in.
        lender : Lender
            Owner of the loan.
        now : datetime | None
            Reference time; defaults to the current time.

        Returns
        -------
        Loan
            The stored loan after simulated payments.
        """
        now = now or datetime.now()
        principal, rate, months = self.generate_terms()
        start = (now - relativedelta(months=self.rng.randint(0, 12))).date()

        loan = ledger.create_loan(
            lender=lender,
            borrower=self.generate_borrower(),
            principal=principal,
            annual_rate=rate,
            duration_months=months,
            start_date=start,
            now=datetime.combine(start, now.time()),
        )

        for index, installment in enumerate(loan.installments):
            if days_until_due(installment.due_date, now) >= 0:
                break
            if self.chance(self.ON_TIME_RATE):
                paid_at = self.days_before(datetime.combine(installment.due_date, now.time()), 0, 3)
                loan = ledger.mark_installment_paid(loan.loan_id, index, now=paid_at)

        return loan

    def populate(
        self,
        ledger: LoanLedger,
        num_lenders: int = 2,
        loans_per_lender: int = 5,
        now: datetime | None = None,
    ) -> list[Loan]:
        """Fill a ledger with lenders, their profiles and loans."""
        loans: list[Loan] = []
        for _ in range(num_lenders):
            lender = self.generate_lender()
            ledger.store.save_profile(self.generate_profile(lender, now))
            for _ in range(loans_per_lender):
                loans.append(self.generate_loan(ledger, lender, now))

        logger.info("Generated %d loans for %d lenders", len(loans), num_lenders)
        return loans
