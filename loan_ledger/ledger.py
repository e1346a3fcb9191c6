"""Loan lifecycle on top of a store: creation, lookup and payments."""

import logging
import threading
import uuid
import weakref
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable

from loan_ledger.calculations import (
    LenderMetrics,
    apply_payment,
    generate_schedule,
    lender_metrics,
    validate_terms,
)
from loan_ledger.config import LedgerConfig
from loan_ledger.exceptions import InvalidBorrowerError, LoanNotFoundError, NotFoundError
from loan_ledger.models import Borrower, Event, Lender, Loan, LoanStatus, UserProfile
from loan_ledger.store import LoanStore, create_store

logger = logging.getLogger(__name__)


def new_loan_id() -> str:
    return f"loan_{uuid.uuid4().hex}"


class _LoanLock:
    """Per-loan mutex that a ``WeakValueDictionary`` can hold."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def __enter__(self) -> "_LoanLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._lock.release()


def validate_borrower(borrower: Borrower) -> None:
    """Require a name and at least one way to reach the borrower."""
    if not borrower.name or not borrower.name.strip():
        raise InvalidBorrowerError("Borrower name is required")
    if not borrower.has_contact:
        raise InvalidBorrowerError(f"Borrower {borrower.name!r} needs an email or a phone number")


class LoanLedger:
    """Create loans, record installment payments and query a lender's book.

    Payments on one loan are serialized by a per-loan lock. The store's
    version check rejects writes from stale reads; only the PostgreSQL
    store makes that check atomic across processes.
    """

    SOURCE = "loan-ledger"

    def __init__(
        self,
        store: LoanStore,
        sink: Any | None = None,
        topic_prefix: str = "loanledger",
        id_factory: Callable[[], str] = new_loan_id,
    ) -> None:
        """Initialize ledger.

        Parameters
        ----------
        store : LoanStore
            Where loans and profiles are persisted.
        sink : ConsoleSink | KafkaSink | None
            Receives ``loan.created``, ``installment.paid`` and
            ``loan.completed`` events when given.
        topic_prefix : str
            Prefix of the events topic.
        id_factory : Callable[[], str]
            Makes the id of each new loan; random UUIDs by default.
        """
        self.store = store
        self.sink = sink
        self.id_factory = id_factory
        self.events_topic = f"{topic_prefix}.events"
        # Entries vanish once no caller holds or waits on the lock
        self._locks: weakref.WeakValueDictionary[str, _LoanLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(cls, config: LedgerConfig, sink: Any | None = None) -> "LoanLedger":
        """Build a ledger with the store selected in ``config``."""
        prefix = config.kafka.topic_prefix if config.kafka else "loanledger"
        return cls(create_store(config), sink=sink, topic_prefix=prefix)

    def _lock_for(self, loan_id: str) -> _LoanLock:
        with self._locks_guard:
            lock = self._locks.get(loan_id)
            if lock is None:
                lock = self._locks[loan_id] = _LoanLock()
            return lock

    def _publish(self, event_type: str, loan: Loan, data: dict, at: datetime) -> None:
        if self.sink is None:
            return
        event = Event(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            event_time=at,
            source=self.SOURCE,
            subject=loan.loan_id,
            data=data,
            metadata={"lender_id": loan.lender.lender_id, "version": loan.version},
        )
        self.sink.send(self.events_topic, event)

    def create_loan(
        self,
        lender: Lender,
        borrower: Borrower,
        principal: Any,
        annual_rate: Any,
        duration_months: int,
        start_date: date | None = None,
        now: datetime | None = None,
    ) -> Loan:
        """Create a loan with its full repayment schedule and store it.

        Parameters
        ----------
        lender : Lender
            Authenticated lender creating the record.
        borrower : Borrower
            Counterparty; copied onto the loan.
        principal : Decimal | int | float | str
            Amount lent.
        annual_rate : Decimal | int | float | str
            Annual interest percent.
        duration_months : int
            Number of monthly installments.
        start_date : date | None
            Start of the loan; defaults to the creation date.
        now : datetime | None
            Creation timestamp; defaults to the current time.

        Returns
        -------
        Loan
            The stored loan, status ACTIVE.

        Raises
        ------
        InvalidTermsError
            If the terms cannot produce a schedule.
        InvalidBorrowerError
            If the borrower has no name or no contact.
        """
        principal, annual_rate, duration_months = validate_terms(principal, annual_rate, duration_months)
        validate_borrower(borrower)

        now = now or datetime.now()
        start_date = start_date or now.date()

        loan = Loan(
            loan_id=self.id_factory(),
            lender=replace(lender),
            borrower=replace(borrower),
            principal=principal,
            annual_rate=annual_rate,
            duration_months=duration_months,
            start_date=start_date,
            installments=generate_schedule(principal, annual_rate, duration_months, start_date),
            created_at=now,
            updated_at=now,
            status=LoanStatus.ACTIVE,
        )
        saved = self.store.save_loan(loan)

        logger.info(
            "Created loan %s: lender=%s borrower=%s principal=%s rate=%s%% months=%d emi=%s",
            saved.loan_id,
            lender.lender_id,
            borrower.name,
            principal,
            annual_rate,
            duration_months,
            saved.installments[0].emi,
            extra={"loan_id": saved.loan_id, "lender_id": lender.lender_id, "version": saved.version},
        )
        self._publish(
            "loan.created",
            saved,
            {
                "principal": principal,
                "annual_rate": annual_rate,
                "duration_months": duration_months,
                "emi": saved.installments[0].emi,
                "borrower_name": borrower.name,
            },
            now,
        )
        return saved

    def get_loan(self, loan_id: str) -> Loan:
        """Get a loan or raise ``LoanNotFoundError``."""
        loan = self.store.get_loan(loan_id)
        if loan is None:
            raise LoanNotFoundError(f"Loan {loan_id} not found")
        return loan

    def list_loans(
        self,
        lender_id: str | None = None,
        borrower_id: str | None = None,
        status: LoanStatus | None = None,
    ) -> list[Loan]:
        """List stored loans, filtering in memory."""
        loans = self.store.list_loans()
        if lender_id is not None:
            loans = [loan for loan in loans if loan.lender.lender_id == lender_id]
        if borrower_id is not None:
            loans = [loan for loan in loans if loan.borrower.borrower_id == borrower_id]
        if status is not None:
            loans = [loan for loan in loans if loan.status == status]
        return loans

    def active_loans(self, lender_id: str) -> list[Loan]:
        return self.list_loans(lender_id=lender_id, status=LoanStatus.ACTIVE)

    def metrics(self, lender_id: str) -> LenderMetrics:
        """Dashboard totals for one lender."""
        return lender_metrics(self.list_loans(lender_id=lender_id))

    def mark_installment_paid(
        self,
        loan_id: str,
        installment_index: int,
        now: datetime | None = None,
    ) -> Loan:
        """Record payment of one installment and return the updated loan.

        The loan becomes COMPLETED when its last unpaid installment is
        paid. Paying an already-paid installment changes nothing.

        Raises
        ------
        LoanNotFoundError
            If the loan does not exist.
        InstallmentNotFoundError
            If the index is outside the schedule.
        ConcurrentUpdateError
            If another writer updated the loan in between.
        """
        paid_at = now or datetime.now()

        with self._lock_for(loan_id):
            loan = self.get_loan(loan_id)
            updated = apply_payment(loan, installment_index, paid_at)
            if updated is loan:
                return loan
            saved = self.store.save_loan(updated)

        installment = saved.installments[installment_index]
        logger.info(
            "Installment %d of loan %s paid (%s)",
            installment.month,
            loan_id,
            installment.emi,
            extra={"loan_id": loan_id, "installment_index": installment_index, "version": saved.version},
        )
        self._publish(
            "installment.paid",
            saved,
            {"installment_index": installment_index, "month": installment.month, "emi": installment.emi},
            paid_at,
        )

        if loan.status == LoanStatus.ACTIVE and saved.status == LoanStatus.COMPLETED:
            logger.info("Loan %s completed", loan_id)
            self._publish("loan.completed", saved, {"principal": saved.principal}, paid_at)

        return saved

    def save_profile(
        self,
        user_id: str,
        name: str,
        email: str,
        now: datetime | None = None,
    ) -> UserProfile:
        """Create or update a user profile, keeping its creation time."""
        now = now or datetime.now()
        existing = self.store.get_profile(user_id)
        profile = UserProfile(
            user_id=user_id,
            name=name,
            email=email.lower(),
            created_at=existing.created_at if existing else now,
            updated_at=now if existing else None,
        )
        return self.store.save_profile(profile)

    def get_profile(self, user_id: str) -> UserProfile:
        """Get a user profile or raise ``NotFoundError``."""
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise NotFoundError(f"User {user_id} not found")
        return profile
