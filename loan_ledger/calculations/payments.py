"""Installment payment state transitions."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Sequence

from loan_ledger.exceptions import InstallmentNotFoundError
from loan_ledger.models import Installment, Loan, LoanStatus

logger = logging.getLogger(__name__)


def derive_status(schedule: Sequence[Installment]) -> LoanStatus:
    """COMPLETED once every installment is paid, ACTIVE otherwise."""
    if schedule and all(item.paid for item in schedule):
        return LoanStatus.COMPLETED
    return LoanStatus.ACTIVE


def apply_payment(loan: Loan, index: int, paid_at: datetime) -> Loan:
    """Mark one installment paid and re-derive the loan status.

    The input loan is left untouched; a new ``Loan`` with a new schedule
    list is returned. Paying an installment that is already paid returns
    the loan unchanged and keeps its original paid date.

    Parameters
    ----------
    loan : Loan
        Loan as read from the store.
    index : int
        0-based position in the schedule.
    paid_at : datetime
        Payment timestamp, also used as the new ``updated_at``.

    Raises
    ------
    InstallmentNotFoundError
        If ``index`` is not a position in the schedule.
    """
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(loan.installments):
        raise InstallmentNotFoundError(
            f"Installment {index!r} not found on loan {loan.loan_id} "
            f"({len(loan.installments)} installments)"
        )

    target = loan.installments[index]
    if target.paid:
        logger.debug("Installment %d of loan %s already paid on %s", index, loan.loan_id, target.paid_date)
        return loan

    installments = list(loan.installments)
    installments[index] = replace(target, paid=True, paid_date=paid_at)

    # A completed loan stays completed.
    status = loan.status if loan.status == LoanStatus.COMPLETED else derive_status(installments)

    return replace(loan, installments=installments, status=status, updated_at=paid_at)
