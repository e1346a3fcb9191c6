"""JSON file store for single-device, local use."""

import json
import logging
import os
import tempfile
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from loan_ledger.exceptions import LoanNotFoundError, PersistenceError
from loan_ledger.models import Loan, UserProfile
from loan_ledger.serialization import loan_from_dict, profile_from_dict, to_dict
from loan_ledger.store.base import LoanStore, check_version

logger = logging.getLogger(__name__)

LOANS_KEY = "loans"
USERS_KEY = "users"


class JsonFileLoanStore(LoanStore):
    """Keep loans and profiles in one JSON document on disk.

    The file holds two maps, ``loans`` (loan id -> loan) and ``users``
    (user id -> profile). Every write replaces the whole file atomically.

    The version check and the write run under a lock private to this store
    object, so stale writes are caught between threads and between store
    objects that take turns on the file. Two writers in other processes
    (or other store objects) at the same moment can still both pass the
    check; use the PostgreSQL store when several processes share a ledger.
    """

    def __init__(self, path: str | Path, pretty: bool = False) -> None:
        """Initialize JSON file store.

        Parameters
        ----------
        path : str | Path
            File to read and write. Created on first save.
        pretty : bool
            Indent the JSON output.
        """
        self.path = Path(path)
        self.pretty = pretty
        self._lock = threading.Lock()

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {LOANS_KEY: {}, USERS_KEY: {}}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read ledger file {self.path}: {e}") from e
        data.setdefault(LOANS_KEY, {})
        data.setdefault(USERS_KEY, {})
        return data

    def _write(self, data: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                if self.pretty:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                else:
                    json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write ledger file {self.path}: {e}") from e

    def get_loan(self, loan_id: str) -> Loan | None:
        """Get a loan by id."""
        document = self._read()[LOANS_KEY].get(loan_id)
        return loan_from_dict(document) if document is not None else None

    def save_loan(self, loan: Loan) -> Loan:
        """Upsert a loan after checking its version."""
        with self._lock:
            data = self._read()
            existing = data[LOANS_KEY].get(loan.loan_id)
            check_version(loan, int(existing.get("version", 0)) if existing else 0)

            saved = replace(loan, version=loan.version + 1)
            data[LOANS_KEY][loan.loan_id] = to_dict(saved)
            self._write(data)

        logger.debug("Saved loan %s (version %d) to %s", loan.loan_id, saved.version, self.path)
        return saved

    def list_loans(self) -> list[Loan]:
        """Get all loans in file order."""
        return [loan_from_dict(document) for document in self._read()[LOANS_KEY].values()]

    def delete_loan(self, loan_id: str) -> None:
        """Remove a loan."""
        with self._lock:
            data = self._read()
            if data[LOANS_KEY].pop(loan_id, None) is None:
                raise LoanNotFoundError(f"Loan {loan_id} not found")
            self._write(data)

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user profile by id."""
        document = self._read()[USERS_KEY].get(user_id)
        return profile_from_dict(document) if document is not None else None

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Upsert a user profile."""
        with self._lock:
            data = self._read()
            data[USERS_KEY][profile.user_id] = to_dict(profile)
            self._write(data)
        return profile
