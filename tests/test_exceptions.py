"""Tests for custom exception hierarchy."""

from loan_ledger.exceptions import (
    ConcurrentUpdateError,
    ConfigurationError,
    InstallmentNotFoundError,
    InvalidBorrowerError,
    InvalidTermsError,
    LoanLedgerError,
    LoanNotFoundError,
    NotFoundError,
    PersistenceError,
    SinkError,
)


class TestExceptionHierarchy:
    """Test exception inheritance chain."""

    def test_loan_ledger_error_is_exception(self) -> None:
        assert isinstance(LoanLedgerError("test"), Exception)

    def test_invalid_terms_is_loan_ledger_error(self) -> None:
        assert isinstance(InvalidTermsError("test"), LoanLedgerError)

    def test_invalid_borrower_is_loan_ledger_error(self) -> None:
        assert isinstance(InvalidBorrowerError("test"), LoanLedgerError)

    def test_loan_not_found_is_not_found(self) -> None:
        err = LoanNotFoundError("test")
        assert isinstance(err, NotFoundError)
        assert isinstance(err, LoanLedgerError)

    def test_installment_not_found_is_not_found(self) -> None:
        assert isinstance(InstallmentNotFoundError("test"), NotFoundError)

    def test_concurrent_update_is_persistence_error(self) -> None:
        err = ConcurrentUpdateError("test")
        assert isinstance(err, PersistenceError)
        assert isinstance(err, LoanLedgerError)

    def test_input_errors_are_not_not_found(self) -> None:
        assert not isinstance(InvalidTermsError("test"), NotFoundError)
        assert not isinstance(InvalidTermsError("test"), PersistenceError)

    def test_configuration_error_is_loan_ledger_error(self) -> None:
        assert isinstance(ConfigurationError("test"), LoanLedgerError)

    def test_sink_error_is_loan_ledger_error(self) -> None:
        assert isinstance(SinkError("test"), LoanLedgerError)

    def test_exception_message(self) -> None:
        err = LoanNotFoundError("Loan loan_001 not found")
        assert str(err) == "Loan loan_001 not found"
