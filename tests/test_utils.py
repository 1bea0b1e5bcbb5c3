"""
Unit tests for the helpers under utils/.
"""

import json
from datetime import date

import pytest

from models.category import CategoryBudget
from models.ledger import Ledger
from models.transaction import Transaction
from utils import app_config
from utils.currency import coerce_amount, format_currency, format_percent, format_signed, parse_amount
from utils.date_helpers import (
    format_display_date,
    friendly_month,
    parse_date,
    parse_display_date,
    short_date,
)
from utils.exceptions import NotFoundError, PersistenceError, TrackerError, ValidationError
from utils.ids import next_transaction_id, slugify


class TestCoerceAmount:
    @pytest.mark.parametrize("raw,expected", [
        (12, 12.0),
        ("12.346", 12.35),
        (" 1,250.50 ", 1250.5),
        ("", 0.0),
        ("abc", 0.0),
        (None, 0.0),
        (-4, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (True, 0.0),
    ])
    def test_coerce(self, raw, expected):
        assert coerce_amount(raw) == expected

    def test_parse_amount_strips_separators(self):
        assert parse_amount(" 1,200.50 ") == 1200.5
        assert parse_amount(7) == 7.0

    @pytest.mark.parametrize("raw", ["", "abc", None, True])
    def test_parse_amount_rejects(self, raw):
        with pytest.raises((TypeError, ValueError)):
            parse_amount(raw)


class TestFormatting:
    def test_format_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(3, "€") == "€3.00"

    def test_format_signed(self):
        assert format_signed(20) == "+$20.00"
        assert format_signed(-20) == "-$20.00"

    def test_format_percent(self):
        assert format_percent(49.0) == "49.0%"


class TestIds:
    def test_slugify(self):
        assert slugify("Mobile bill") == "mobile-bill"
        assert slugify("  Affirm 1 ") == "affirm-1"
        assert slugify("Send to India!") == "send-to-india"
        assert slugify("***") == ""

    def test_next_id_uses_clock(self):
        assert next_transaction_id([], 5000) == "5000"

    def test_next_id_stays_ahead_of_existing(self):
        assert next_transaction_id(["5000", "7000"], 6000) == "7001"
        assert next_transaction_id(["legacy-id", "10"], 3) == "11"


class TestDateHelpers:
    def test_parse_date(self):
        assert parse_date("2024-03-07") == date(2024, 3, 7)
        assert parse_date("2024/03/07") == date(2024, 3, 7)
        assert parse_date("2024-13-01") is None
        assert parse_date("") is None
        assert parse_date(None) is None

    def test_display_round_trip(self):
        shown = format_display_date("2024-03-07", "DD/MM/YYYY")
        assert shown == "07/03/2024"
        assert parse_display_date(shown, "DD/MM/YYYY") == date(2024, 3, 7)

    def test_display_parse_falls_back_to_iso(self):
        assert parse_display_date("2024-03-07", "MM/DD/YYYY") == date(2024, 3, 7)

    def test_short_date(self):
        assert short_date("2024-01-05") == "Jan 5"
        assert short_date("garbage") == "garbage"

    def test_friendly_month(self):
        assert friendly_month("2026-02") == "February 2026"
        assert friendly_month("nope") == "nope"


class TestAppConfig:
    def test_missing_config_is_empty(self, tmp_path):
        assert app_config.load_config(tmp_path / "none.json") == {}

    def test_corrupt_config_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops", encoding="utf-8")
        assert app_config.load_config(path) == {}

    def test_db_folder_round_trip(self, tmp_path):
        path = tmp_path / "cfg" / "config.json"
        app_config.set_db_folder("/data/money", path)
        assert app_config.get_db_folder(path) == "/data/money"
        app_config.set_db_folder(None, path)
        assert app_config.get_db_folder(path) is None

    def test_log_settings(self, tmp_path):
        path = tmp_path / "config.json"
        assert app_config.get_log_settings(path) == ("INFO", None)
        path.write_text(json.dumps({"log_level": "debug", "log_file": "t.log"}), encoding="utf-8")
        assert app_config.get_log_settings(path) == ("DEBUG", "t.log")
        path.write_text(json.dumps({"log_level": "chatty"}), encoding="utf-8")
        assert app_config.get_log_settings(path) == ("INFO", None)


class TestExceptions:
    def test_details_in_message(self):
        error = ValidationError("Bad amount", {"amount": -1})
        assert error.message == "Bad amount"
        assert str(error) == "Bad amount (amount=-1)"

    def test_builtin_compatibility(self):
        assert isinstance(ValidationError("x"), ValueError)
        assert isinstance(NotFoundError("x"), LookupError)
        assert isinstance(PersistenceError("x"), TrackerError)

    def test_original_error_kept(self):
        cause = OSError("disk")
        error = PersistenceError("save failed", original_error=cause)
        assert error.original_error is cause
        assert error.details == {}


class TestLedgerModel:
    def test_reconcile_ignores_orphans(self):
        ledger = Ledger(
            categories=[CategoryBudget(id="a", name="A", planned_amount=10)],
            transactions=[
                Transaction(id="1", date="2024-03-01", category_id="a", amount=4),
                Transaction(id="2", date="2024-03-01", category_id="gone", amount=6),
            ],
        )
        ledger.reconcile()
        assert ledger.get_category("a").actual_amount == 4.0
        assert [t.id for t in ledger.orphaned_transactions()] == ["2"]

    def test_category_status(self):
        c = CategoryBudget(id="a", name="A", planned_amount=10, actual_amount=10)
        assert c.status == "under"
        assert c.difference == 0.0
        assert c.percentage == 1.0
        c.actual_amount = 10.01
        assert c.status == "over"
        assert CategoryBudget(id="b", name="B").percentage == 0.0
