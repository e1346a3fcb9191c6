"""Tests for the loan stores."""

import json
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import psycopg
import pytest

from loan_ledger.calculations import apply_payment, generate_schedule
from loan_ledger.config import LedgerConfig, PostgresConfig, StorageConfig
from loan_ledger.exceptions import (
    ConcurrentUpdateError,
    ConfigurationError,
    LoanNotFoundError,
    PersistenceError,
)
from loan_ledger.models import Borrower, Lender, Loan, LoanStatus, UserProfile
from loan_ledger.serialization import to_dict
from loan_ledger.store import InMemoryLoanStore, JsonFileLoanStore, create_store
from loan_ledger.store.postgres import (
    INSERT_LOAN_SQL,
    SCHEMA_SQL,
    UPDATE_LOAN_SQL,
    PostgresLoanStore,
)

CREATED = datetime(2025, 1, 15, 10, 0)


@pytest.fixture
def loan(lender: Lender, borrower: Borrower, start_date: date) -> Loan:
    """Unsaved 6-month loan."""
    return Loan(
        loan_id="loan_0001",
        lender=lender,
        borrower=borrower,
        principal=Decimal("10000"),
        annual_rate=Decimal("12"),
        duration_months=6,
        start_date=start_date,
        installments=generate_schedule(10000, 12, 6, start_date),
        created_at=CREATED,
        updated_at=CREATED,
    )


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(user_id="user-1", name="Asha Rao", email="asha@example.com", created_at=CREATED)


class TestInMemoryLoanStore:
    """Tests for InMemoryLoanStore."""

    def test_save_and_get(self, store: InMemoryLoanStore, loan: Loan) -> None:
        saved = store.save_loan(loan)

        assert saved.version == 1
        assert store.get_loan(loan.loan_id) == saved

    def test_get_missing(self, store: InMemoryLoanStore) -> None:
        assert store.get_loan("loan_missing") is None

    def test_returns_copies(self, store: InMemoryLoanStore, loan: Loan) -> None:
        store.save_loan(loan)

        fetched = store.get_loan(loan.loan_id)
        fetched.installments[0].paid = True

        assert store.get_loan(loan.loan_id).installments[0].paid is False
        assert loan.version == 0

    def test_update_bumps_version(self, store: InMemoryLoanStore, loan: Loan) -> None:
        saved = store.save_loan(loan)
        paid = apply_payment(saved, 0, datetime(2025, 2, 10, 12, 0))

        updated = store.save_loan(paid)

        assert updated.version == 2
        assert store.get_loan(loan.loan_id).installments[0].paid is True

    def test_stale_version_rejected(self, store: InMemoryLoanStore, loan: Loan) -> None:
        saved = store.save_loan(loan)
        store.save_loan(saved)

        with pytest.raises(ConcurrentUpdateError, match="version 2"):
            store.save_loan(saved)

    def test_duplicate_insert_rejected(self, store: InMemoryLoanStore, loan: Loan) -> None:
        store.save_loan(loan)

        with pytest.raises(ConcurrentUpdateError):
            store.save_loan(loan)

    def test_list_and_delete(self, store: InMemoryLoanStore, loan: Loan) -> None:
        store.save_loan(loan)
        assert [item.loan_id for item in store.list_loans()] == [loan.loan_id]

        store.delete_loan(loan.loan_id)

        assert store.list_loans() == []
        with pytest.raises(LoanNotFoundError):
            store.delete_loan(loan.loan_id)

    def test_profiles(self, store: InMemoryLoanStore, profile: UserProfile) -> None:
        assert store.get_profile("user-1") is None

        store.save_profile(profile)

        assert store.get_profile("user-1") == profile

    def test_summary(self, store: InMemoryLoanStore, loan: Loan, profile: UserProfile) -> None:
        store.save_loan(loan)
        store.save_profile(profile)

        assert store.summary() == {"loans": 1, "profiles": 1, "installments": 6}


class TestJsonFileLoanStore:
    """Tests for JsonFileLoanStore."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json")

        assert store.list_loans() == []
        assert store.get_loan("loan_0001") is None
        assert store.get_profile("user-1") is None

    def test_round_trip(self, tmp_path: Path, loan: Loan) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json")
        paid = apply_payment(store.save_loan(loan), 2, datetime(2025, 4, 14, 8, 30))
        saved = store.save_loan(paid)

        reopened = JsonFileLoanStore(tmp_path / "ledger.json")
        fetched = reopened.get_loan(loan.loan_id)

        assert fetched == saved
        assert fetched.version == 2
        assert fetched.installments[2].paid_date == datetime(2025, 4, 14, 8, 30)
        assert fetched.installments[0].emi == loan.installments[0].emi

    def test_document_layout(self, tmp_path: Path, loan: Loan, profile: UserProfile) -> None:
        path = tmp_path / "nested" / "ledger.json"
        store = JsonFileLoanStore(path)
        store.save_loan(loan)
        store.save_profile(profile)

        data = json.loads(path.read_text(encoding="utf-8"))

        assert set(data) == {"loans", "users"}
        document = data["loans"]["loan_0001"]
        assert document["principal"] == "10000"
        assert document["status"] == "active"
        assert document["version"] == 1
        assert document["installments"][0]["due_date"] == "2025-02-15"
        assert data["users"]["user-1"]["email"] == "asha@example.com"

    def test_no_temp_files_left(self, tmp_path: Path, loan: Loan) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json", pretty=True)
        store.save_loan(loan)

        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_stale_version_rejected(self, tmp_path: Path, loan: Loan) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json")
        saved = store.save_loan(loan)
        store.save_loan(saved)

        with pytest.raises(ConcurrentUpdateError):
            store.save_loan(saved)

    def test_stale_write_from_second_handle_rejected(self, tmp_path: Path, loan: Loan) -> None:
        """Two store objects on one file see each other's versions."""
        first = JsonFileLoanStore(tmp_path / "ledger.json")
        second = JsonFileLoanStore(tmp_path / "ledger.json")
        saved = first.save_loan(loan)
        stale = second.get_loan(loan.loan_id)

        first.save_loan(saved)

        with pytest.raises(ConcurrentUpdateError):
            second.save_loan(stale)
        assert second.get_loan(loan.loan_id).version == 2

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceError, match="Cannot read"):
            JsonFileLoanStore(path).list_loans()

    def test_delete(self, tmp_path: Path, loan: Loan) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json")
        store.save_loan(loan)

        store.delete_loan(loan.loan_id)

        assert store.get_loan(loan.loan_id) is None
        with pytest.raises(LoanNotFoundError):
            store.delete_loan(loan.loan_id)

    def test_profile_round_trip(self, tmp_path: Path, profile: UserProfile) -> None:
        store = JsonFileLoanStore(tmp_path / "ledger.json")
        store.save_profile(profile)

        assert JsonFileLoanStore(tmp_path / "ledger.json").get_profile("user-1") == profile


@pytest.fixture
def mock_cursor() -> MagicMock:
    cursor = MagicMock()
    cursor.rowcount = 1
    return cursor


@pytest.fixture
def mock_conn(mock_cursor: MagicMock) -> MagicMock:
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = mock_cursor
    return conn


class TestPostgresLoanStore:
    """Tests for PostgresLoanStore using a mocked connection."""

    def test_creates_schema(self, mock_conn: MagicMock, mock_cursor: MagicMock) -> None:
        PostgresLoanStore(connection=mock_conn)

        mock_cursor.execute.assert_called_once_with(SCHEMA_SQL)

    def test_skip_schema(self, mock_conn: MagicMock, mock_cursor: MagicMock) -> None:
        PostgresLoanStore(connection=mock_conn, create_schema=False)

        mock_cursor.execute.assert_not_called()

    def test_requires_connection_info(self) -> None:
        with pytest.raises(PersistenceError):
            PostgresLoanStore()

    def test_connect_failure(self) -> None:
        with patch("loan_ledger.store.postgres.psycopg.connect", side_effect=psycopg.OperationalError("refused")):
            with pytest.raises(PersistenceError, match="Cannot connect"):
                PostgresLoanStore("postgresql://localhost/loanledger")

    def test_insert_new_loan(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)

        saved = store.save_loan(loan)

        assert saved.version == 1
        sql, params = mock_cursor.execute.call_args[0]
        assert sql == INSERT_LOAN_SQL
        assert params[:4] == ("loan_0001", "user-lender-001", "active", 1)
        assert params[4].obj["version"] == 1
        assert params[4].obj["principal"] == "10000"
        mock_conn.transaction.assert_called_once()

    def test_update_checks_version(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        stored = replace(loan, version=4)

        saved = store.save_loan(stored)

        assert saved.version == 5
        sql, params = mock_cursor.execute.call_args[0]
        assert sql == UPDATE_LOAN_SQL
        assert params[-2:] == ("loan_0001", 4)

    def test_update_conflict(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.rowcount = 0
        mock_cursor.fetchone.return_value = (5,)

        with pytest.raises(ConcurrentUpdateError, match="version 5"):
            store.save_loan(replace(loan, version=4))

    def test_insert_conflict(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.rowcount = 0
        mock_cursor.fetchone.return_value = (1,)

        with pytest.raises(ConcurrentUpdateError):
            store.save_loan(loan)

    def test_get_loan(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.fetchone.return_value = (to_dict(loan), 3)

        fetched = store.get_loan(loan.loan_id)

        assert fetched.version == 3
        assert fetched.installments == loan.installments
        assert fetched.status == LoanStatus.ACTIVE

    def test_get_missing_loan(self, mock_conn: MagicMock, mock_cursor: MagicMock) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.fetchone.return_value = None

        assert store.get_loan("loan_missing") is None

    def test_list_loans(self, mock_conn: MagicMock, mock_cursor: MagicMock, loan: Loan) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.fetchall.return_value = [(to_dict(loan), 2)]

        loans = store.list_loans()

        assert [(item.loan_id, item.version) for item in loans] == [("loan_0001", 2)]

    def test_delete_missing(self, mock_conn: MagicMock, mock_cursor: MagicMock) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.rowcount = 0

        with pytest.raises(LoanNotFoundError):
            store.delete_loan("loan_missing")

    def test_profiles(self, mock_conn: MagicMock, mock_cursor: MagicMock, profile: UserProfile) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        store.save_profile(profile)
        mock_cursor.fetchone.return_value = (to_dict(profile),)

        assert store.get_profile("user-1") == profile

    def test_database_error_wrapped(self, mock_conn: MagicMock, mock_cursor: MagicMock) -> None:
        store = PostgresLoanStore(connection=mock_conn, create_schema=False)
        mock_cursor.execute.side_effect = psycopg.OperationalError("server closed the connection")

        with pytest.raises(PersistenceError, match="server closed"):
            store.get_loan("loan_0001")

    def test_close(self, mock_conn: MagicMock) -> None:
        PostgresLoanStore(connection=mock_conn, create_schema=False).close()

        mock_conn.close.assert_called_once()


class TestCreateStore:
    """Tests for the store factory."""

    def test_memory(self) -> None:
        assert isinstance(create_store(LedgerConfig()), InMemoryLoanStore)

    def test_json(self, tmp_path: Path) -> None:
        config = LedgerConfig(storage=StorageConfig(backend="json", json_path=tmp_path / "book.json"))

        store = create_store(config)

        assert isinstance(store, JsonFileLoanStore)
        assert store.path == tmp_path / "book.json"

    def test_postgres(self) -> None:
        config = LedgerConfig(storage=StorageConfig(backend="postgres"), postgres=PostgresConfig(host="db"))

        with patch("loan_ledger.store.postgres.psycopg.connect") as mock_connect:
            store = create_store(config)

        assert isinstance(store, PostgresLoanStore)
        mock_connect.assert_called_once_with("postgresql://postgres:postgres@db:5432/loanledger", autocommit=True)

    def test_unknown_backend(self) -> None:
        config = LedgerConfig()
        config.storage.backend = "sqlite"

        with pytest.raises(ConfigurationError):
            create_store(config)
