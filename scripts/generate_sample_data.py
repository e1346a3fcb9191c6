#!/usr/bin/env python3
"""Generate a sample lending book into a JSON ledger file.

Usage:
    python scripts/generate_sample_data.py
    python scripts/generate_sample_data.py --lenders 3 --loans 10 --output local/ledger.json
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loan_ledger.calculations import progress_percent
from loan_ledger.generators import LedgerGenerator
from loan_ledger.ledger import LoanLedger
from loan_ledger.logging import setup_logging
from loan_ledger.store import JsonFileLoanStore

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Generate a sample loan ledger")
    parser.add_argument(
        "--lenders",
        type=int,
        default=2,
        help="Number of lenders to generate (default: 2)",
    )
    parser.add_argument(
        "--loans",
        type=int,
        default=5,
        help="Loans per lender (default: 5)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("local/ledger.json"),
        help="Ledger file to write (default: local/ledger.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        help="Log level (default: INFO)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    if args.output.exists():
        logger.info("Appending to existing ledger %s", args.output)

    ledger = LoanLedger(JsonFileLoanStore(args.output, pretty=True))
    loans = LedgerGenerator(seed=args.seed).populate(
        ledger,
        num_lenders=args.lenders,
        loans_per_lender=args.loans,
    )

    for loan in loans:
        logger.info(
            "  %s  %-24s %10s @ %5s%% x %2d  %s  %6s%% paid",
            loan.loan_id,
            loan.borrower.name,
            loan.principal,
            loan.annual_rate,
            loan.duration_months,
            loan.status.value,
            progress_percent(loan.installments),
        )
    logger.info("Wrote %d loans to %s", len(loans), args.output)


if __name__ == "__main__":
    main()
