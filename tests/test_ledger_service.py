"""
Tests for LedgerService: income, categories, transactions and the month reset.

Every test runs against a real sqlite snapshot in a temporary folder, except
the persistence failure tests which swap in a mock DAO.
"""

from unittest.mock import Mock

import pytest

from database.ledger_dao import LedgerDAO, serialize_ledger
from services.ledger_service import LedgerService, default_ledger
from utils.constants import DEFAULT_CATEGORIES, DEFAULT_INCOME
from utils.exceptions import NotFoundError, PersistenceError, ValidationError


def _actual(svc, category_id):
    return svc.ledger.get_category(category_id).actual_amount


class TestLoad:
    """Seeding and restoring the ledger."""

    def test_first_load_seeds_defaults(self, service):
        """A fresh database starts with the stock categories and income."""
        ledger = service.ledger
        assert [c.name for c in ledger.categories] == [c["name"] for c in DEFAULT_CATEGORIES]
        assert ledger.income.name == DEFAULT_INCOME["name"]
        assert ledger.income.amount == DEFAULT_INCOME["amount"]
        assert ledger.transactions == []
        assert all(c.actual_amount == 0 for c in ledger.categories)

    def test_first_load_persists_defaults(self, service, ledger_dao):
        """The seeded ledger is written so the next session finds it."""
        stored = ledger_dao.load()
        assert stored is not None
        assert len(stored.categories) == len(DEFAULT_CATEGORIES)

    def test_default_ids_are_slugs(self):
        """Stock category ids are derived from their names."""
        ids = [c.id for c in default_ledger().categories]
        assert "mobile-bill" in ids
        assert "affirm-1" in ids
        assert len(ids) == len(set(ids))

    def test_reload_restores_state(self, service, ledger_dao, clock):
        """State written by one session is read back by the next."""
        service.set_income("Day job", 2000)
        service.record_transaction("food", 42.5, date="2024-03-02", notes="groceries")

        fresh = LedgerService(ledger_dao, clock_ms=clock)
        fresh.load()
        assert fresh.ledger.income.name == "Day job"
        assert fresh.ledger.income.amount == 2000.0
        assert len(fresh.ledger.transactions) == 1
        assert _actual(fresh, "food") == 42.5

    def test_corrupt_snapshot_falls_back_to_defaults(self, db, ledger_dao, clock):
        """An unreadable snapshot is reported and the session starts from defaults."""
        conn = db.get_connection()
        conn.execute("INSERT INTO snapshots(key, value) VALUES ('ledger', '{not json')")
        conn.commit()

        svc = LedgerService(ledger_dao, clock_ms=clock)
        svc.load()
        assert isinstance(svc.last_persistence_error, PersistenceError)
        assert len(svc.ledger.categories) == len(DEFAULT_CATEGORIES)

        # The broken snapshot is left alone until the user changes something
        row = conn.execute("SELECT value FROM snapshots WHERE key = 'ledger'").fetchone()
        assert row["value"] == "{not json"

    def test_ledger_before_load_raises(self, ledger_dao):
        """Accessing the ledger before load() is a programming error."""
        svc = LedgerService(ledger_dao)
        assert not svc.is_loaded
        with pytest.raises(RuntimeError):
            _ = svc.ledger


class TestIncome:
    """Income source and amount."""

    def test_set_income(self, service):
        income = service.set_income("  Freelance  ", "1234.567")
        assert income.name == "Freelance"
        assert income.amount == 1234.57

    def test_invalid_income_amount_becomes_zero(self, service):
        """Non-numeric or negative input is stored as zero rather than rejected."""
        assert service.set_income("x", "abc").amount == 0.0
        assert service.set_income("x", -50).amount == 0.0
        assert service.set_income("x", float("nan")).amount == 0.0


class TestPlannedAmounts:
    """Editing a category's plan."""

    def test_set_planned_amount(self, service):
        category = service.set_planned_amount("rent", "500")
        assert category.planned_amount == 500.0
        assert service.ledger.get_category("rent").difference == 500.0

    def test_invalid_planned_becomes_zero(self, service):
        assert service.set_planned_amount("rent", "lots").planned_amount == 0.0
        assert service.set_planned_amount("rent", -10).planned_amount == 0.0

    def test_unknown_category_is_ignored(self, service):
        """Editing a category that does not exist changes nothing."""
        before = [(c.id, c.planned_amount) for c in service.ledger.categories]
        assert service.set_planned_amount("does-not-exist", 99) is None
        assert [(c.id, c.planned_amount) for c in service.ledger.categories] == before

    def test_planned_change_keeps_actual(self, service):
        """Changing the plan never touches the spent amount."""
        service.record_transaction("gas", 30, date="2024-03-01")
        service.set_planned_amount("gas", 10)
        gas = service.ledger.get_category("gas")
        assert gas.actual_amount == 30.0
        assert gas.status == "over"
        assert gas.difference == -20.0


class TestCategories:
    """Adding, renaming and removing categories."""

    def test_add_category(self, service):
        category = service.add_category("Gym Membership", "35")
        assert category.id == "gym-membership"
        assert category.planned_amount == 35.0
        assert category.actual_amount == 0.0
        assert service.ledger.categories[-1] is category

    def test_add_category_rejects_blank_name(self, service):
        count = len(service.ledger.categories)
        with pytest.raises(ValidationError):
            service.add_category("   ")
        assert len(service.ledger.categories) == count

    def test_add_category_rejects_symbol_only_name(self, service):
        with pytest.raises(ValidationError):
            service.add_category("!!!")

    def test_add_category_rejects_duplicate(self, service):
        with pytest.raises(ValidationError):
            service.add_category("rent")
        with pytest.raises(ValidationError):
            service.add_category("Something", category_id="food")

    def test_rename_keeps_transactions_attached(self, service):
        """Renaming changes the label only; spending stays with the category."""
        service.record_transaction("wifi", 20, date="2024-03-01")
        service.rename_category("wifi", "Internet")
        category = service.ledger.get_category("wifi")
        assert category.name == "Internet"
        assert category.actual_amount == 20.0
        assert service.category_name("wifi") == "Internet"
        assert service.orphaned_transactions() == []

    def test_rename_unknown_category(self, service):
        with pytest.raises(NotFoundError):
            service.rename_category("nope", "Whatever")

    def test_rename_to_existing_name_rejected(self, service):
        with pytest.raises(ValidationError):
            service.rename_category("wifi", "Rent")

    def test_remove_category_leaves_orphans(self, service):
        """Transactions of a removed category stay in the log and are reported."""
        tx = service.record_transaction("subscriptions", 15, date="2024-03-04")
        service.remove_category("subscriptions")

        assert service.ledger.get_category("subscriptions") is None
        assert service.orphaned_transactions() == [tx]
        assert service.category_name("subscriptions") == "subscriptions"
        totals = service.compute_totals()
        assert totals.total_actual == 0.0

    def test_remove_unknown_category(self, service):
        with pytest.raises(NotFoundError):
            service.remove_category("nope")


class TestTransactions:
    """Recording and deleting transactions."""

    def test_record_updates_actual(self, service):
        service.record_transaction("food", 12.25, date="2024-03-01")
        service.record_transaction("food", 7.75, date="2024-03-02")
        assert _actual(service, "food") == 20.0

    def test_actual_always_matches_log(self, service):
        """After any sequence of mutations each actual equals its transactions' sum."""
        a = service.record_transaction("food", 10, date="2024-03-01")
        service.record_transaction("gas", 25.5, date="2024-03-01")
        service.record_transaction("food", 4.1, date="2024-03-02")
        service.delete_transaction(a.id)
        service.set_planned_amount("food", 1)

        for c in service.ledger.categories:
            expected = round(sum(
                t.amount for t in service.ledger.transactions if t.category_id == c.id
            ), 2)
            assert c.actual_amount == expected

    def test_record_defaults_to_today(self, service, monkeypatch):
        monkeypatch.setattr("services.ledger_service.today_str", lambda: "2024-05-06")
        tx = service.record_transaction("food", 5)
        assert tx.date == "2024-05-06"

    def test_record_normalizes_date(self, service):
        tx = service.record_transaction("food", 5, date="2024/3/7")
        assert tx.date == "2024-03-07"

    @pytest.mark.parametrize("amount", [0, -5, "abc", "", None, float("inf"), True, 0.001])
    def test_record_rejects_bad_amount(self, service, amount):
        """A rejected amount leaves the ledger exactly as it was."""
        before = serialize_ledger(service.ledger)
        with pytest.raises(ValidationError):
            service.record_transaction("food", amount, date="2024-03-01")
        assert serialize_ledger(service.ledger) == before

    @pytest.mark.parametrize("bad_date", ["", "yesterday", "2024-02-30", 20240301])
    def test_record_rejects_bad_date(self, service, bad_date):
        before = serialize_ledger(service.ledger)
        with pytest.raises(ValidationError):
            service.record_transaction("food", 5, date=bad_date)
        assert serialize_ledger(service.ledger) == before

    def test_record_accepts_thousands_separator(self, service):
        """Amounts parse like the planned and income entries do."""
        tx = service.record_transaction("rent", " 1,200.50 ", date="2024-03-01")
        assert tx.amount == 1200.5
        assert _actual(service, "rent") == 1200.5

    def test_record_rejects_blank_category(self, service):
        with pytest.raises(ValidationError):
            service.record_transaction("  ", 5, date="2024-03-01")

    def test_record_against_unknown_category_is_orphaned(self, service):
        """The log accepts it, but no category's actual moves."""
        before = [c.actual_amount for c in service.ledger.categories]
        tx = service.record_transaction("vacation", 300, date="2024-03-01")
        assert [c.actual_amount for c in service.ledger.categories] == before
        assert service.orphaned_transactions() == [tx]

    def test_ids_are_unique_and_increasing(self, service, clock):
        """Transactions recorded within the same millisecond still get distinct ids."""
        ids = [service.record_transaction("food", 1, date="2024-03-01").id for _ in range(5)]
        assert len(set(ids)) == 5
        assert [int(i) for i in ids] == sorted(int(i) for i in ids)
        assert ids[0] == str(clock.now)

    def test_ids_survive_clock_going_backwards(self, service, clock):
        first = service.record_transaction("food", 1, date="2024-03-01")
        clock.now -= 10_000
        second = service.record_transaction("food", 1, date="2024-03-01")
        assert int(second.id) > int(first.id)

    def test_delete_transaction(self, service):
        tx = service.record_transaction("rent", 450, date="2024-03-01")
        removed = service.delete_transaction(tx.id)
        assert removed == tx
        assert service.ledger.transactions == []
        assert _actual(service, "rent") == 0.0

    def test_delete_unknown_transaction(self, service):
        service.record_transaction("rent", 450, date="2024-03-01")
        with pytest.raises(NotFoundError):
            service.delete_transaction("123")
        assert len(service.ledger.transactions) == 1

    def test_get_transactions_newest_first(self, service, clock):
        service.record_transaction("food", 1, date="2024-03-01")
        clock.now += 1
        service.record_transaction("food", 2, date="2024-03-05")
        clock.now += 1
        service.record_transaction("food", 3, date="2024-03-01")

        amounts = [t.amount for t in service.get_transactions()]
        assert amounts == [2.0, 3.0, 1.0]
        assert [t.amount for t in service.get_transactions(limit=2)] == [2.0, 3.0]


class TestResetPeriod:
    """Starting a new month."""

    def test_reset_requires_confirmation(self, service):
        service.record_transaction("food", 10, date="2024-03-01")
        with pytest.raises(ValidationError):
            service.reset_period()
        with pytest.raises(ValidationError):
            service.reset_period(confirmed="yes")
        assert len(service.ledger.transactions) == 1

    def test_reset_clears_transactions_keeps_plan(self, service, ledger_dao):
        service.set_income("Job", 3000)
        service.set_planned_amount("food", 250)
        service.record_transaction("food", 10, date="2024-03-01")
        service.record_transaction("rent", 450, date="2024-03-01")

        service.reset_period(confirmed=True)

        ledger = service.ledger
        assert ledger.transactions == []
        assert all(c.actual_amount == 0 for c in ledger.categories)
        assert ledger.get_category("food").planned_amount == 250.0
        assert ledger.income.amount == 3000.0
        assert ledger_dao.load().transactions == []

    def test_second_reset_changes_nothing(self, service):
        service.record_transaction("food", 10, date="2024-03-01")
        service.reset_period(confirmed=True)
        once = serialize_ledger(service.ledger)
        service.reset_period(confirmed=True)
        assert serialize_ledger(service.ledger) == once


class TestTotals:
    """Totals computed through the service."""

    def test_totals(self, service):
        service.set_income("Job", 1000)
        for c in list(service.ledger.categories):
            service.remove_category(c.id)
        service.add_category("A", 300)
        service.add_category("B", 200)
        service.record_transaction("a", 350, date="2024-03-01")
        service.record_transaction("b", 50, date="2024-03-01")

        totals = service.compute_totals()
        assert totals.total_planned == 500.0
        assert totals.total_actual == 400.0
        assert totals.money_left == 600.0
        assert totals.savings_rate == pytest.approx(60.0)
        assert totals.total_difference == 100.0

    def test_totals_do_not_mutate(self, service):
        before = service.ledger.categories[0].actual_amount
        service.compute_totals()
        service.compute_totals()
        assert service.ledger.categories[0].actual_amount == before

    def test_record_then_delete_rent(self, service):
        """Rent 450 against 1500 income saves 70%; deleting it restores the plan."""
        for c in list(service.ledger.categories):
            service.remove_category(c.id)
        service.add_category("Rent", 450)
        service.add_category("Food", 100)
        service.set_income("Holiday Inn", 1500)

        tx = service.record_transaction("rent", 450, date="2024-01-05")
        totals = service.compute_totals()
        assert _actual(service, "rent") == 450.0
        assert totals.total_planned == 550.0
        assert totals.money_left == 1050.0
        assert totals.savings_rate == 70.0
        assert totals.total_difference == 100.0

        service.delete_transaction(tx.id)
        assert _actual(service, "rent") == 0.0
        assert service.ledger.transactions == []


class TestPersistenceFailures:
    """A failing store never loses or rolls back the in-memory change."""

    def _service_with_failing_save(self):
        dao = Mock(spec=LedgerDAO)
        dao.load.return_value = default_ledger()
        dao.save.side_effect = PersistenceError("disk full")
        svc = LedgerService(dao, clock_ms=lambda: 5)
        svc.load()
        return svc, dao

    def test_mutation_survives_failed_save(self):
        svc, dao = self._service_with_failing_save()
        tx = svc.record_transaction("food", 9.99, date="2024-03-01")

        assert dao.save.called
        assert svc.ledger.transactions == [tx]
        assert svc.ledger.get_category("food").actual_amount == 9.99
        assert isinstance(svc.last_persistence_error, PersistenceError)

    def test_error_clears_after_successful_save(self):
        svc, dao = self._service_with_failing_save()
        svc.set_income("Job", 10)
        assert svc.last_persistence_error is not None

        dao.save.side_effect = None
        svc.set_income("Job", 20)
        assert svc.last_persistence_error is None

    def test_failed_seed_save_is_reported(self):
        dao = Mock(spec=LedgerDAO)
        dao.load.return_value = None
        dao.save.side_effect = PersistenceError("read-only")
        svc = LedgerService(dao)
        svc.load()
        assert svc.last_persistence_error is not None
        assert len(svc.ledger.categories) == len(DEFAULT_CATEGORIES)
