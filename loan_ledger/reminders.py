"""Classify upcoming and overdue installments for payment reminders.

Delivery (email, SMS, push) belongs to whoever consumes the published
reminders; this module only decides which installments need one.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from loan_ledger.calculations.aggregates import days_until_due
from loan_ledger.models import Installment, Loan, LoanStatus, ReminderType

logger = logging.getLogger(__name__)

# Lead time in days -> reminder sent on exactly that day
LEAD_TIMES: dict[int, ReminderType] = {
    7: ReminderType.SEVEN_DAY,
    3: ReminderType.THREE_DAY,
    1: ReminderType.ONE_DAY,
}

DEFAULT_THRESHOLDS = tuple(LEAD_TIMES)

TITLES: dict[ReminderType, str] = {
    ReminderType.SEVEN_DAY: "Loan Payment Reminder",
    ReminderType.THREE_DAY: "Urgent: Loan Payment Reminder",
    ReminderType.ONE_DAY: "URGENT: Payment Due Tomorrow",
    ReminderType.OVERDUE: "OVERDUE: Payment Required",
}


@dataclass
class Reminder:
    """One installment that needs a reminder today."""

    reminder_type: ReminderType
    loan_id: str
    borrower_name: str
    installment_index: int  # 0-based position in the schedule
    emi: Decimal
    due_date: date
    days_until_due: int
    title: str
    body: str


def reminder_type(
    installment: Installment,
    now: date | datetime | None = None,
    thresholds: Iterable[int] = DEFAULT_THRESHOLDS,
) -> ReminderType | None:
    """Decide which reminder, if any, an installment needs at ``now``.

    Overdue installments always get one; upcoming ones only on the exact
    lead-time days listed in ``thresholds``.
    """
    if installment.paid:
        return None

    days = days_until_due(installment.due_date, now)
    if days < 0:
        return ReminderType.OVERDUE
    if days in thresholds:
        return LEAD_TIMES.get(days)
    return None


def _body(kind: ReminderType, amount: str, borrower: str, days: int) -> str:
    if kind == ReminderType.OVERDUE:
        overdue = abs(days)
        return f"EMI of {amount} for {borrower} is {overdue} day{'s' if overdue != 1 else ''} overdue"
    if kind == ReminderType.ONE_DAY:
        return f"EMI of {amount} for {borrower} is due tomorrow!"
    return f"EMI of {amount} for {borrower} is due in {days} days"


def collect_reminders(
    loans: Iterable[Loan],
    now: date | datetime | None = None,
    thresholds: Iterable[int] = DEFAULT_THRESHOLDS,
    currency_symbol: str = "₹",
) -> dict[ReminderType, list[Reminder]]:
    """Group every installment that needs a reminder by reminder type.

    Completed loans are skipped.
    """
    now = now or datetime.now()
    thresholds = tuple(thresholds)
    grouped: dict[ReminderType, list[Reminder]] = {kind: [] for kind in ReminderType}

    for loan in loans:
        if loan.status == LoanStatus.COMPLETED or not loan.installments:
            continue

        for index, installment in enumerate(loan.installments):
            kind = reminder_type(installment, now, thresholds)
            if kind is None:
                continue

            days = days_until_due(installment.due_date, now)
            amount = f"{currency_symbol}{installment.emi:,.2f}"
            grouped[kind].append(
                Reminder(
                    reminder_type=kind,
                    loan_id=loan.loan_id,
                    borrower_name=loan.borrower.name,
                    installment_index=index,
                    emi=installment.emi,
                    due_date=installment.due_date,
                    days_until_due=days,
                    title=TITLES[kind],
                    body=_body(kind, amount, loan.borrower.name, days),
                )
            )

    return grouped


def dispatch_reminders(
    reminders: dict[ReminderType, list[Reminder]],
    sink: Any,
    topic: str,
) -> int:
    """Publish collected reminders to a sink in one batch.

    Returns
    -------
    int
        Number of reminders published.
    """
    batch = [reminder for kind in ReminderType for reminder in reminders.get(kind, [])]
    if batch:
        sink.write_batch(topic, batch)
    logger.info(
        "Dispatched %d reminders (%s)",
        len(batch),
        ", ".join(f"{kind.value}={len(reminders.get(kind, []))}" for kind in ReminderType),
        extra={"topic": topic, "count": len(batch)},
    )
    return len(batch)
