"""Reducing-balance amortization: EMI formula and schedule generation.

All arithmetic runs on ``Decimal`` inside a fixed 28-digit context so a
schedule generated on one machine is identical on any other. Stored
figures are quantized to cents with ``ROUND_HALF_UP``.
"""

import logging
from datetime import date, datetime
from decimal import (
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
    localcontext,
)
from typing import Any

from dateutil.relativedelta import relativedelta

from loan_ledger.exceptions import InvalidTermsError
from loan_ledger.models import Installment

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

_ARITHMETIC = Context(prec=28, rounding=ROUND_HALF_EVEN)


def round_money(value: Decimal) -> Decimal:
    """Quantize an amount to cents, ties away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, name: str = "value") -> Decimal:
    """Coerce an int, float, str or Decimal to a finite ``Decimal``.

    Raises
    ------
    InvalidTermsError
        If the value is not numeric or not finite.
    """
    if isinstance(value, bool):
        raise InvalidTermsError(f"{name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidTermsError(f"{name} must be a number, got {value!r}") from e
    if not result.is_finite():
        raise InvalidTermsError(f"{name} must be finite, got {value!r}")
    return result


def validate_terms(
    principal: Any,
    annual_rate_percent: Any,
    months: Any,
) -> tuple[Decimal, Decimal, int]:
    """Check loan terms before they reach the amortization loop.

    Returns
    -------
    tuple[Decimal, Decimal, int]
        Normalized principal, annual rate percent and month count.
    """
    principal = to_decimal(principal, "principal")
    annual_rate = to_decimal(annual_rate_percent, "annual_rate_percent")

    if isinstance(months, bool) or not isinstance(months, int):
        raise InvalidTermsError(f"months must be a whole number, got {months!r}")
    if principal <= 0:
        raise InvalidTermsError(f"principal must be positive, got {principal}")
    if annual_rate < 0:
        raise InvalidTermsError(f"annual_rate_percent must not be negative, got {annual_rate}")
    if months <= 0:
        raise InvalidTermsError(f"months must be positive, got {months}")

    return principal, annual_rate, months


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Convert an annual percentage (12 = 12%) to a monthly fraction (0.01)."""
    return annual_rate_percent / 12 / 100


def _installment_amount(principal: Decimal, annual_rate: Decimal, months: int) -> Decimal:
    # Zero-rate loans keep the exact quotient so the balance lands on zero.
    if annual_rate == 0:
        return principal / months

    rate = monthly_rate(annual_rate)
    growth = (1 + rate) ** months
    return round_money(principal * rate * growth / (growth - 1))


def compute_emi(principal: Any, annual_rate_percent: Any, months: Any) -> Decimal:
    """Compute the fixed monthly installment for a reducing-balance loan.

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate.
    A zero rate gives P / n.

    Parameters
    ----------
    principal : Decimal | int | float | str
        Amount lent, must be positive.
    annual_rate_percent : Decimal | int | float | str
        Annual interest in percent, may be zero.
    months : int
        Number of monthly installments, must be positive.

    Returns
    -------
    Decimal
        Installment amount rounded to cents.

    Raises
    ------
    InvalidTermsError
        If any of the terms is out of range.
    """
    principal, annual_rate, months = validate_terms(principal, annual_rate_percent, months)
    with localcontext(_ARITHMETIC):
        return round_money(_installment_amount(principal, annual_rate, months))


def generate_schedule(
    principal: Any,
    annual_rate_percent: Any,
    months: Any,
    start_date: date | None = None,
) -> list[Installment]:
    """Generate the full amortization schedule for a loan.

    Interest for each month is charged on the running balance, so later
    installments carry more principal. The installment is the cent-rounded
    EMI, so the last balance may keep a few cents of rounding residue.
    Each due date is the previous one advanced by one calendar month
    (end-of-month dates clamp to the last day of the shorter month and the
    chain continues from there).

    Parameters
    ----------
    principal : Decimal | int | float | str
        Amount lent.
    annual_rate_percent : Decimal | int | float | str
        Annual interest in percent.
    months : int
        Number of installments.
    start_date : date | None
        Date the loan starts; defaults to today. The first installment
        falls due one month later.

    Returns
    -------
    list[Installment]
        Unpaid installments in month order.
    """
    principal, annual_rate, months = validate_terms(principal, annual_rate_percent, months)

    if start_date is None:
        start_date = date.today()
    elif isinstance(start_date, datetime):
        start_date = start_date.date()

    schedule: list[Installment] = []
    with localcontext(_ARITHMETIC):
        rate = monthly_rate(annual_rate)
        emi = _installment_amount(principal, annual_rate, months)

        balance = principal
        current_date = start_date
        for month in range(1, months + 1):
            interest = balance * rate
            principal_portion = emi - interest
            balance = max(ZERO, balance - principal_portion)
            due_date = current_date + relativedelta(months=1)

            schedule.append(
                Installment(
                    month=month,
                    emi=round_money(emi),
                    principal=round_money(principal_portion),
                    interest=round_money(interest),
                    balance=round_money(balance),
                    due_date=due_date,
                )
            )
            current_date = due_date

    logger.debug(
        "Generated %d installments: principal=%s rate=%s%% emi=%s",
        months,
        principal,
        annual_rate,
        schedule[0].emi,
    )
    return schedule
