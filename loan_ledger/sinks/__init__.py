"""Output sinks for ledger events and reminders."""

from loan_ledger.sinks.console import ConsoleSink
from loan_ledger.sinks.kafka import KafkaSink

__all__ = ["ConsoleSink", "KafkaSink"]
