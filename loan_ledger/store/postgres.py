"""PostgreSQL document store for loans shared across devices."""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Iterator

import psycopg
from psycopg.types.json import Jsonb

from loan_ledger.exceptions import LoanNotFoundError, PersistenceError
from loan_ledger.models import Loan, UserProfile
from loan_ledger.serialization import loan_from_dict, profile_from_dict, to_dict
from loan_ledger.store.base import LoanStore, check_version

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS loans (
    loan_id TEXT PRIMARY KEY,
    lender_id TEXT NOT NULL,
    status TEXT NOT NULL,
    version INTEGER NOT NULL,
    document JSONB NOT NULL,
    updated_at TIMESTAMP NOT NULL
);
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id TEXT PRIMARY KEY,
    document JSONB NOT NULL
);
"""

INSERT_LOAN_SQL = """
INSERT INTO loans (loan_id, lender_id, status, version, document, updated_at)
VALUES (%s, %s, %s, %s, %s, %s)
ON CONFLICT (loan_id) DO NOTHING
"""

UPDATE_LOAN_SQL = """
UPDATE loans
SET lender_id = %s, status = %s, version = %s, document = %s, updated_at = %s
WHERE loan_id = %s AND version = %s
"""

UPSERT_PROFILE_SQL = """
INSERT INTO user_profiles (user_id, document)
VALUES (%s, %s)
ON CONFLICT (user_id) DO UPDATE SET document = EXCLUDED.document
"""


class PostgresLoanStore(LoanStore):
    """Store each loan as a JSONB document with a version column.

    Writes use a conditional ``UPDATE ... WHERE version = %s`` so two
    processes updating the same loan cannot silently overwrite each other.
    """

    def __init__(
        self,
        conninfo: str | None = None,
        connection: Any | None = None,
        create_schema: bool = True,
    ) -> None:
        """Initialize PostgreSQL store.

        Parameters
        ----------
        conninfo : str | None
            libpq connection string, used when ``connection`` is not given.
        connection : psycopg.Connection | None
            Existing connection to use instead of opening one.
        create_schema : bool
            Create the tables if they do not exist.
        """
        if connection is None:
            if conninfo is None:
                raise PersistenceError("Either conninfo or connection is required")
            try:
                connection = psycopg.connect(conninfo, autocommit=True)
            except psycopg.Error as e:
                raise PersistenceError(f"Cannot connect to PostgreSQL: {e}") from e

        self._conn = connection
        if create_schema:
            with self._cursor() as cur:
                cur.execute(SCHEMA_SQL)
            logger.info("Ledger tables ready")

    @contextmanager
    def _cursor(self, transaction: bool = False) -> Iterator[Any]:
        try:
            if transaction:
                with self._conn.transaction():
                    with self._conn.cursor() as cur:
                        yield cur
            else:
                with self._conn.cursor() as cur:
                    yield cur
        except psycopg.Error as e:
            raise PersistenceError(f"PostgreSQL operation failed: {e}") from e

    def get_loan(self, loan_id: str) -> Loan | None:
        """Get a loan by id."""
        with self._cursor() as cur:
            cur.execute("SELECT document, version FROM loans WHERE loan_id = %s", (loan_id,))
            row = cur.fetchone()
        if row is None:
            return None
        document, version = row
        return replace(loan_from_dict(document), version=version)

    def save_loan(self, loan: Loan) -> Loan:
        """Insert a new loan or update a stored one at the expected version."""
        saved = replace(loan, version=loan.version + 1)
        document = Jsonb(to_dict(saved))

        with self._cursor(transaction=True) as cur:
            if loan.version == 0:
                cur.execute(
                    INSERT_LOAN_SQL,
                    (loan.loan_id, loan.lender.lender_id, saved.status.value, saved.version, document, saved.updated_at),
                )
            else:
                cur.execute(
                    UPDATE_LOAN_SQL,
                    (loan.lender.lender_id, saved.status.value, saved.version, document, saved.updated_at, loan.loan_id, loan.version),
                )
            if cur.rowcount != 1:
                cur.execute("SELECT version FROM loans WHERE loan_id = %s", (loan.loan_id,))
                row = cur.fetchone()
                check_version(loan, row[0] if row else 0)
                raise PersistenceError(f"Loan {loan.loan_id} was not written")

        logger.debug("Saved loan %s (version %d)", loan.loan_id, saved.version)
        return saved

    def list_loans(self) -> list[Loan]:
        """Get all loans ordered by id."""
        with self._cursor() as cur:
            cur.execute("SELECT document, version FROM loans ORDER BY loan_id")
            rows = cur.fetchall()
        return [replace(loan_from_dict(document), version=version) for document, version in rows]

    def delete_loan(self, loan_id: str) -> None:
        """Remove a loan."""
        with self._cursor(transaction=True) as cur:
            cur.execute("DELETE FROM loans WHERE loan_id = %s", (loan_id,))
            if cur.rowcount == 0:
                raise LoanNotFoundError(f"Loan {loan_id} not found")

    def get_profile(self, user_id: str) -> UserProfile | None:
        """Get a user profile by id."""
        with self._cursor() as cur:
            cur.execute("SELECT document FROM user_profiles WHERE user_id = %s", (user_id,))
            row = cur.fetchone()
        return profile_from_dict(row[0]) if row else None

    def save_profile(self, profile: UserProfile) -> UserProfile:
        """Upsert a user profile."""
        with self._cursor(transaction=True) as cur:
            cur.execute(UPSERT_PROFILE_SQL, (profile.user_id, Jsonb(to_dict(profile))))
        return profile

    def close(self) -> None:
        """Close the connection."""
        self._conn.close()
