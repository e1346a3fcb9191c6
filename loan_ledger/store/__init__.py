"""Persistence backends for loans and user profiles."""

from loan_ledger.config import LedgerConfig
from loan_ledger.exceptions import ConfigurationError
from loan_ledger.store.base import LoanStore
from loan_ledger.store.json_file import JsonFileLoanStore
from loan_ledger.store.memory import InMemoryLoanStore


def create_store(config: LedgerConfig) -> LoanStore:
    """Build the store selected by ``config.storage.backend``."""
    backend = config.storage.backend
    if backend == "memory":
        return InMemoryLoanStore()
    if backend == "json":
        return JsonFileLoanStore(config.storage.json_path)
    if backend == "postgres":
        from loan_ledger.store.postgres import PostgresLoanStore

        return PostgresLoanStore(config.postgres.connection_string)
    raise ConfigurationError(f"Unknown storage backend {backend!r}")


__all__ = ["InMemoryLoanStore", "JsonFileLoanStore", "LoanStore", "create_store"]
