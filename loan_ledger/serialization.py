"""Conversion between ledger dataclasses and JSON-compatible documents."""

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from loan_ledger.models import (
    Borrower,
    Installment,
    Lender,
    Loan,
    LoanStatus,
    UserProfile,
)


def to_dict(obj: Any) -> dict:
    """Convert object to dictionary."""
    if is_dataclass(obj):
        return dataclass_to_dict(obj)
    elif isinstance(obj, dict):
        return {k: serialize_value(v) for k, v in obj.items()}
    else:
        return {"value": str(obj)}


def dataclass_to_dict(obj: Any) -> dict:
    """Convert dataclass to dict with proper serialization."""
    result = {}
    for key, value in asdict(obj).items():
        result[key] = serialize_value(value)
    return result


def serialize_value(value: Any) -> Any:
    """Serialize a value for JSON output.

    Decimals are written as strings so amounts survive a round trip
    without binary float drift.
    """
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, date):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def installment_from_dict(data: dict) -> Installment:
    """Rebuild an installment from its stored document."""
    return Installment(
        month=int(data["month"]),
        emi=Decimal(data["emi"]),
        principal=Decimal(data["principal"]),
        interest=Decimal(data["interest"]),
        balance=Decimal(data["balance"]),
        due_date=date.fromisoformat(data["due_date"]),
        paid=bool(data.get("paid", False)),
        paid_date=_parse_datetime(data.get("paid_date")),
    )


def loan_from_dict(data: dict) -> Loan:
    """Rebuild a loan (with its schedule) from its stored document."""
    return Loan(
        loan_id=data["loan_id"],
        lender=Lender(**data["lender"]),
        borrower=Borrower(**data["borrower"]),
        principal=Decimal(data["principal"]),
        annual_rate=Decimal(data["annual_rate"]),
        duration_months=int(data["duration_months"]),
        start_date=date.fromisoformat(data["start_date"]),
        installments=[installment_from_dict(item) for item in data["installments"]],
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
        status=LoanStatus(data.get("status", LoanStatus.ACTIVE.value)),
        version=int(data.get("version", 0)),
    )


def profile_from_dict(data: dict) -> UserProfile:
    """Rebuild a user profile from its stored document."""
    return UserProfile(
        user_id=data["user_id"],
        name=data["name"],
        email=data["email"],
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=_parse_datetime(data.get("updated_at")),
    )
