#!/usr/bin/env python3
"""Collect today's EMI reminders from the configured store and publish them.

Reminders go to Kafka when KAFKA_BOOTSTRAP_SERVERS is set, otherwise to
stdout. Storage is selected with LEDGER_STORAGE / LEDGER_JSON_PATH /
POSTGRES_* (see loan_ledger.config).

Usage:
    LEDGER_STORAGE=json LEDGER_JSON_PATH=local/ledger.json python scripts/send_reminders.py
    python scripts/send_reminders.py --lender user_123
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loan_ledger.config import LedgerConfig
from loan_ledger.ledger import LoanLedger
from loan_ledger.logging import setup_logging
from loan_ledger.reminders import collect_reminders, dispatch_reminders
from loan_ledger.sinks import ConsoleSink, KafkaSink

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Publish EMI payment reminders")
    parser.add_argument(
        "--lender",
        type=str,
        default=None,
        help="Only remind for this lender's loans",
    )
    args = parser.parse_args()

    config = LedgerConfig.from_env()
    setup_logging(config.log_level, config.log_format)

    ledger = LoanLedger.from_config(config)
    if config.kafka:
        sink = KafkaSink(config.kafka)
        topic = config.kafka.topic(config.reminders.topic)
    else:
        sink = ConsoleSink()
        topic = config.reminders.topic

    try:
        reminders = collect_reminders(
            ledger.list_loans(lender_id=args.lender),
            thresholds=config.reminders.thresholds,
            currency_symbol=config.reminders.currency_symbol,
        )
        dispatch_reminders(reminders, sink, topic)
    finally:
        sink.close()
        ledger.store.close()


if __name__ == "__main__":
    main()
