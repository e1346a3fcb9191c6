"""Enumeration types for ledger entities."""

from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ReminderType(str, Enum):
    SEVEN_DAY = "7day"
    THREE_DAY = "3day"
    ONE_DAY = "1day"
    OVERDUE = "overdue"
