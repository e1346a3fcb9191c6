"""Read-only figures derived from a stored installment schedule."""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable, Sequence

from loan_ledger.calculations.amortization import ZERO, round_money, to_decimal
from loan_ledger.models import Installment, Loan, LoanStatus


def _as_datetime(now: date | datetime | None) -> datetime:
    if now is None:
        return datetime.now()
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def _as_date(now: date | datetime | None) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def total_interest(schedule: Sequence[Installment] | None) -> Decimal:
    """Sum of the interest component of every installment."""
    return round_money(sum((item.interest for item in schedule or ()), ZERO))


def total_amount(principal: Any, schedule: Sequence[Installment] | None) -> Decimal:
    """Principal plus all scheduled interest."""
    return round_money(to_decimal(principal, "principal") + total_interest(schedule))


def paid_count(schedule: Sequence[Installment] | None) -> int:
    return sum(1 for item in schedule or () if item.paid)


def progress_percent(schedule: Sequence[Installment] | None) -> Decimal:
    """Share of installments paid, 0 to 100 with two decimals."""
    if not schedule:
        return ZERO
    return round_money(Decimal(100) * paid_count(schedule) / len(schedule))


def total_paid(schedule: Sequence[Installment] | None) -> Decimal:
    """Sum of EMIs already paid."""
    return round_money(sum((item.emi for item in schedule or () if item.paid), ZERO))


def remaining_amount(schedule: Sequence[Installment] | None) -> Decimal:
    """Sum of EMIs still unpaid."""
    return round_money(sum((item.emi for item in schedule or () if not item.paid), ZERO))


def next_due_date(schedule: Sequence[Installment] | None) -> date | None:
    """Due date of the first unpaid installment, or None when fully paid."""
    for item in schedule or ():
        if not item.paid:
            return item.due_date
    return None


def days_until_due(due_date: date | datetime, now: date | datetime | None = None) -> int:
    """Whole days from ``now`` until ``due_date``, rounded up.

    A plain date counts from its midnight. Negative results mean the due
    date has passed: yesterday's due date gives -1 at any time today.
    """
    now = _as_datetime(now)
    if isinstance(due_date, datetime):
        due_at = due_date
    else:
        due_at = datetime.combine(due_date, time.min, tzinfo=now.tzinfo)

    delta = due_at - now
    # timedelta keeps seconds/microseconds non-negative, so any remainder
    # means the ceiling is one day above ``delta.days``.
    if delta.seconds or delta.microseconds:
        return delta.days + 1
    return delta.days


def is_overdue(installment: Installment, now: date | datetime | None = None) -> bool:
    """True when an unpaid installment's due date is already behind us.

    Compares calendar dates, so nothing is overdue on its due date; this
    agrees with ``days_until_due(...) < 0``.
    """
    if installment.paid:
        return False
    return _as_date(now) > installment.due_date


def overdue_installments(
    schedule: Sequence[Installment] | None,
    now: date | datetime | None = None,
) -> list[tuple[int, Installment]]:
    """Unpaid installments past their due date, with their schedule index."""
    return [
        (index, item)
        for index, item in enumerate(schedule or ())
        if is_overdue(item, now)
    ]


@dataclass
class LenderMetrics:
    """Portfolio totals for one lender's dashboard."""

    total_lent: Decimal
    interest_earned: Decimal
    expected_interest: Decimal
    average_return: Decimal  # Expected interest as percent of amount lent
    total_loans: int
    active_loans: int


def lender_metrics(loans: Iterable[Loan]) -> LenderMetrics:
    """Aggregate principal and interest across a lender's loans."""
    loans = list(loans)
    total_lent = sum((loan.principal for loan in loans), ZERO)
    expected = sum((total_interest(loan.installments) for loan in loans), ZERO)
    earned = sum(
        (item.interest for loan in loans for item in loan.installments if item.paid),
        ZERO,
    )
    average_return = round_money(expected / total_lent * 100) if total_lent > 0 else ZERO

    return LenderMetrics(
        total_lent=round_money(total_lent),
        interest_earned=round_money(earned),
        expected_interest=round_money(expected),
        average_return=average_return,
        total_loans=len(loans),
        active_loans=sum(1 for loan in loans if loan.status == LoanStatus.ACTIVE),
    )
