"""Sample data generators."""

from loan_ledger.generators.ledger import LedgerGenerator

__all__ = ["LedgerGenerator"]
