"""
Tests for the ledger snapshot format and its sqlite storage.
"""

import json

import pytest

from database.ledger_dao import (
    LedgerDAO,
    deserialize_ledger,
    ledger_from_dict,
    ledger_to_dict,
    serialize_ledger,
)
from models.category import CategoryBudget
from models.income import Income
from models.ledger import Ledger
from models.transaction import Transaction
from utils.exceptions import PersistenceError


@pytest.fixture
def sample_ledger():
    ledger = Ledger(
        income=Income(name="Holiday Inn", amount=1500.0),
        categories=[
            CategoryBudget(id="rent", name="Rent", planned_amount=450.0, color_hex="#FF6384"),
            CategoryBudget(id="food", name="Food", planned_amount=100.0, color_hex="#36A2EB"),
            CategoryBudget(id="gas", name="Gas", planned_amount=100.0, color_hex="#FFCE56"),
        ],
        transactions=[
            Transaction(id="1", date="2024-03-01", category_id="rent", amount=450.0),
            Transaction(id="2", date="2024-03-02", category_id="food", amount=23.45, notes="market"),
            Transaction(id="3", date="2024-03-02", category_id="food", amount=11.0),
            Transaction(id="4", date="2024-03-03", category_id="gas", amount=40.0),
            Transaction(id="5", date="2024-03-04", category_id="gas", amount=35.5, notes="trip"),
        ],
    )
    ledger.reconcile()
    return ledger


class TestSnapshotFormat:
    """Converting a ledger to and from its JSON snapshot."""

    def test_to_dict_shape(self, sample_ledger):
        data = ledger_to_dict(sample_ledger)
        assert data["income"] == {"name": "Holiday Inn", "amount": 1500.0}
        assert data["categories"][1] == {
            "id": "food", "name": "Food", "planned": 100.0, "actual": 34.45, "color": "#36A2EB",
        }
        assert data["transactions"][1] == {
            "id": "2", "date": "2024-03-02", "categoryId": "food", "amount": 23.45, "notes": "market",
        }

    def test_round_trip_preserves_ledger(self, sample_ledger):
        restored = deserialize_ledger(serialize_ledger(sample_ledger))
        assert restored == sample_ledger

    def test_stored_actuals_are_rebuilt(self, sample_ledger):
        """An actual that disagrees with the log is corrected on load."""
        data = ledger_to_dict(sample_ledger)
        data["categories"][0]["actual"] = 9999
        restored = ledger_from_dict(data)
        assert restored.get_category("rent").actual_amount == 450.0

    def test_not_a_dict(self):
        with pytest.raises(PersistenceError):
            ledger_from_dict(["not", "a", "ledger"])

    def test_invalid_json(self):
        with pytest.raises(PersistenceError) as exc_info:
            deserialize_ledger("{broken")
        assert exc_info.value.original_error is not None

    def test_invalid_entries_dropped(self):
        data = {
            "income": {"name": "Job", "amount": "oops"},
            "categories": [
                {"id": "food", "name": "Food", "planned": 50},
                {"id": "food", "name": "Food again", "planned": 10},
                {"name": "  "},
                "junk",
            ],
            "transactions": [
                {"id": "1", "date": "2024-03-01", "categoryId": "food", "amount": 5},
                {"id": "1", "date": "2024-03-01", "categoryId": "food", "amount": 5},
                {"id": "2", "date": "not a date", "categoryId": "food", "amount": 5},
                {"id": "3", "date": "2024-03-01", "categoryId": "food", "amount": -1},
                {"id": "4", "date": "2024-03-01", "amount": 5},
            ],
        }
        ledger = ledger_from_dict(data)
        assert ledger.income.amount == 0.0
        assert [c.name for c in ledger.categories] == ["Food"]
        assert [t.id for t in ledger.transactions] == ["1"]
        assert ledger.get_category("food").actual_amount == 5.0

    def test_legacy_browser_shape(self):
        """The browser tracker saved 'expenses' and keyed transactions by category name."""
        data = {
            "income": {"name": "Holiday Inn", "amount": 1500},
            "expenses": [
                {"category": "Rent", "planned": 450, "actual": 450},
                {"category": "Mobile bill", "planned": 140, "actual": 0},
            ],
            "transactions": [
                {"id": 1709251200000, "date": "2024-03-01", "category": "Rent", "amount": 450, "notes": ""},
                {"id": 1709251200001, "date": "2024-03-01", "category": "Mobile bill", "amount": 70},
            ],
        }
        ledger = ledger_from_dict(data)
        assert [c.id for c in ledger.categories] == ["rent", "mobile-bill"]
        assert ledger.get_category("mobile-bill").actual_amount == 70.0
        assert ledger.transactions[0].id == "1709251200000"
        assert ledger.orphaned_transactions() == []


class TestLedgerDAO:
    """Snapshot storage in sqlite."""

    def test_load_empty(self, ledger_dao):
        assert ledger_dao.load() is None

    def test_save_and_load(self, ledger_dao, sample_ledger):
        ledger_dao.save(sample_ledger)
        assert ledger_dao.load() == sample_ledger

    def test_save_overwrites(self, ledger_dao, sample_ledger):
        ledger_dao.save(sample_ledger)
        sample_ledger.transactions.clear()
        sample_ledger.reconcile()
        ledger_dao.save(sample_ledger)

        loaded = ledger_dao.load()
        assert loaded.transactions == []
        rows = ledger_dao._db.get_connection().execute("SELECT COUNT(*) AS n FROM snapshots").fetchone()
        assert rows["n"] == 1

    def test_snapshot_is_plain_json(self, db, ledger_dao, sample_ledger):
        ledger_dao.save(sample_ledger)
        row = db.get_connection().execute(
            "SELECT value FROM snapshots WHERE key = 'ledger'"
        ).fetchone()
        data = json.loads(row["value"])
        assert len(data["categories"]) == 3
        assert len(data["transactions"]) == 5

    def test_separate_keys_are_independent(self, db, sample_ledger):
        LedgerDAO(db, key="a").save(sample_ledger)
        assert LedgerDAO(db, key="b").load() is None

    def test_clear(self, ledger_dao, sample_ledger):
        ledger_dao.save(sample_ledger)
        ledger_dao.clear()
        assert ledger_dao.load() is None

    def test_missing_table_raises_persistence_error(self, tmp_path, sample_ledger):
        """sqlite failures surface as PersistenceError."""
        from database.db_manager import DatabaseManager

        manager = DatabaseManager(str(tmp_path / "t.db"))
        manager.initialize()
        conn = manager.get_connection()
        conn.execute("DROP TABLE snapshots")
        conn.commit()

        dao = LedgerDAO(manager)
        with pytest.raises(PersistenceError):
            dao.save(sample_ledger)
        with pytest.raises(PersistenceError):
            dao.load()
        manager.close()
