"""Amortization engine, schedule aggregates and payment transitions."""

from loan_ledger.calculations.aggregates import (
    LenderMetrics,
    days_until_due,
    is_overdue,
    lender_metrics,
    next_due_date,
    overdue_installments,
    paid_count,
    progress_percent,
    remaining_amount,
    total_amount,
    total_interest,
    total_paid,
)
from loan_ledger.calculations.amortization import (
    compute_emi,
    generate_schedule,
    monthly_rate,
    round_money,
    validate_terms,
)
from loan_ledger.calculations.payments import apply_payment, derive_status

__all__ = [
    "LenderMetrics",
    "apply_payment",
    "compute_emi",
    "days_until_due",
    "derive_status",
    "generate_schedule",
    "is_overdue",
    "lender_metrics",
    "monthly_rate",
    "next_due_date",
    "overdue_installments",
    "paid_count",
    "progress_percent",
    "remaining_amount",
    "round_money",
    "total_amount",
    "total_interest",
    "total_paid",
    "validate_terms",
]
