"""Tests for settings, logging setup and amount parsing helpers."""

import logging
import sys
from decimal import Decimal

import pytest

from ledgercore.config import LedgerSettings, parse_currency_policy, parse_log_level
from ledgercore.database.factories import create_database
from ledgercore.domain.balance import CurrencyPolicy
from ledgercore.logging_config import StderrHandler, setup_logging
from ledgercore.utils.amount_parser import parse_amount


class TestLedgerSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        settings = LedgerSettings.from_env({})
        assert settings.database_url is None
        assert settings.database_path is None
        assert settings.currency_policy is CurrencyPolicy.PER_CURRENCY
        assert settings.log_level == logging.WARNING

    def test_from_env(self):
        settings = LedgerSettings.from_env(
            {
                "LEDGER_DATABASE_URL": "sqlite:///:memory:",
                "LEDGER_DB_PATH": "/tmp/ledger.db",
                "LEDGER_CURRENCY_POLICY": "SINGLE-CURRENCY",
                "LEDGER_LOG_LEVEL": "debug",
            }
        )
        assert settings.database_url == "sqlite:///:memory:"
        assert settings.database_path == "/tmp/ledger.db"
        assert settings.currency_policy is CurrencyPolicy.SINGLE_CURRENCY
        assert settings.log_level == logging.DEBUG

    def test_empty_values_fall_back(self):
        settings = LedgerSettings.from_env({"LEDGER_DATABASE_URL": "", "LEDGER_LOG_LEVEL": ""})
        assert settings.database_url is None
        assert settings.log_level == logging.WARNING

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown currency policy 'netted'"):
            LedgerSettings.from_env({"LEDGER_CURRENCY_POLICY": "netted"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("LEDGER_CURRENCY_POLICY", "single_currency")
        assert LedgerSettings.from_env().currency_policy is CurrencyPolicy.SINGLE_CURRENCY


class TestParsers:
    """Tests for individual setting parsers."""

    def test_policy_names(self):
        assert parse_currency_policy(" per_currency ") is CurrencyPolicy.PER_CURRENCY

    def test_numeric_log_level(self):
        assert parse_log_level("15") == 15

    def test_unknown_log_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            parse_log_level("chatty")


class TestCreateDatabase:
    """Tests for store factories."""

    def test_url_wins_over_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
        url = f"sqlite:///{tmp_path / 'from-url.db'}"
        store = create_database(database_url=url, database_path=str(tmp_path / "ignored.db"))
        assert store.database_url == url
        store.disconnect()

    def test_env_url(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'env.db'}"
        monkeypatch.setenv("LEDGER_DATABASE_URL", url)
        store = create_database()
        assert store.database_url == url
        store.disconnect()

    def test_path_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LEDGER_DATABASE_URL", raising=False)
        path = tmp_path / "file.db"
        store = create_database(database_path=str(path))
        assert store.database_url == f"sqlite:///{path}"
        store.disconnect()


@pytest.fixture(autouse=True)
def restore_ledger_logger():
    logger = logging.getLogger("ledgercore")
    level, handlers = logger.level, list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.handlers[:] = handlers


class TestSetupLogging:
    """Tests for CLI logging setup."""

    def test_single_handler_after_repeated_setup(self):
        logger = setup_logging(logging.INFO)
        setup_logging(logging.DEBUG)
        handlers = [h for h in logger.handlers if isinstance(h, StderrHandler)]
        assert len(handlers) == 1
        assert logger.level == logging.DEBUG

    def test_quiets_sqlalchemy(self):
        setup_logging(logging.DEBUG)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_handler_writes_to_current_stderr(self, capsys):
        logger = setup_logging(logging.INFO)
        logger.info("posting committed")
        assert "posting committed" in capsys.readouterr().err
        assert StderrHandler().stream is sys.stderr


class TestParseAmount:
    """Tests for amount string parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("123.45", Decimal("123.45")),
            ("$1,234.56", Decimal("1234.56")),
            ("1_000", Decimal("1000")),
            ("(10.00)", Decimal("-10.00")),
            ("-5", Decimal("-5")),
            ("0.000000000000000001", Decimal("1E-18")),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "ten", "1.2.3"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)
