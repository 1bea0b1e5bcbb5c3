import logging
import math
from typing import Callable

from database.ledger_dao import LedgerDAO
from models.category import CategoryBudget
from models.export_snapshot import LedgerTotals
from models.income import Income
from models.ledger import Ledger
from models.transaction import Transaction
from utils.constants import CHART_COLORS, DEFAULT_CATEGORIES, DEFAULT_INCOME
from utils.currency import coerce_amount, parse_amount
from utils.date_helpers import format_date, parse_date, today_str
from utils.exceptions import NotFoundError, PersistenceError, ValidationError
from utils.ids import next_transaction_id, now_ms, slugify

logger = logging.getLogger(__name__)


def default_ledger() -> Ledger:
    """Ledger seeded with the stock categories and income."""
    categories = [
        CategoryBudget(
            id=slugify(c["name"]),
            name=c["name"],
            planned_amount=c["planned"],
            color_hex=CHART_COLORS[i % len(CHART_COLORS)],
        )
        for i, c in enumerate(DEFAULT_CATEGORIES)
    ]
    return Ledger(income=Income(**DEFAULT_INCOME), categories=categories)


class LedgerService:
    """Owns the session's Ledger and every operation that mutates it.

    Each mutation validates first, changes the in-memory ledger, recomputes
    the per-category actuals from the transaction log and then saves a
    snapshot. A failed save is logged and kept in ``last_persistence_error``;
    the in-memory ledger stays the source of truth for the session.
    """

    def __init__(self, ledger_dao: LedgerDAO, clock_ms: Callable[[], int] = now_ms):
        self._dao = ledger_dao
        self._clock_ms = clock_ms
        self._ledger: Ledger | None = None
        self.last_persistence_error: PersistenceError | None = None

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def load(self) -> Ledger:
        """Load the persisted snapshot, seeding defaults when there is none."""
        try:
            ledger = self._dao.load()
        except PersistenceError as e:
            logger.error("Failed to load ledger, starting from defaults: %s", e)
            self.last_persistence_error = e
            self._ledger = default_ledger()
            return self._ledger

        if ledger is None:
            logger.info("No saved ledger found; seeding default categories")
            self._ledger = default_ledger()
            self._persist()
        else:
            self._ledger = ledger
            logger.info(
                "Loaded ledger with %d categories and %d transactions",
                len(ledger.categories), len(ledger.transactions),
            )
        return self._ledger

    def replace_ledger(self, ledger: Ledger):
        """Swap in a whole ledger (backup restore) and persist it."""
        ledger.reconcile()
        self._ledger = ledger
        self._persist()

    @property
    def is_loaded(self) -> bool:
        return self._ledger is not None

    @property
    def ledger(self) -> Ledger:
        if self._ledger is None:
            raise RuntimeError("Ledger has not been loaded; call load() first.")
        return self._ledger

    # ── Income & categories ──────────────────────────────────────────────────

    def set_income(self, name: str, amount) -> Income:
        ledger = self.ledger
        ledger.income = Income(name=(name or "").strip(), amount=coerce_amount(amount))
        logger.info("Income set to %s (%.2f)", ledger.income.name, ledger.income.amount)
        self._commit()
        return ledger.income

    def set_planned_amount(self, category_id: str, amount) -> CategoryBudget | None:
        """Unknown category ids are ignored."""
        category = self.ledger.get_category(category_id)
        if category is None:
            logger.debug("set_planned_amount ignored for unknown category %r", category_id)
            return None
        category.planned_amount = coerce_amount(amount)
        self._commit()
        return category

    def add_category(
        self, name: str, planned_amount=0.0, category_id: str | None = None
    ) -> CategoryBudget:
        ledger = self.ledger
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name cannot be empty.")
        cat_id = (category_id or "").strip() or slugify(name)
        if not cat_id:
            raise ValidationError("Category name must contain letters or digits.", {"name": name})
        if ledger.get_category(cat_id) is not None:
            raise ValidationError(f"A category with id '{cat_id}' already exists.", {"id": cat_id})
        if any(c.name.lower() == name.lower() for c in ledger.categories):
            raise ValidationError(f"A category named '{name}' already exists.")

        category = CategoryBudget(
            id=cat_id,
            name=name,
            planned_amount=coerce_amount(planned_amount),
            color_hex=CHART_COLORS[len(ledger.categories) % len(CHART_COLORS)],
        )
        ledger.categories.append(category)
        logger.info("Added category %s (%s)", cat_id, name)
        self._commit()
        return category

    def rename_category(self, category_id: str, new_name: str) -> CategoryBudget:
        """Only the display name changes; transactions keep resolving by id."""
        ledger = self.ledger
        category = ledger.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found.", {"id": category_id})
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValidationError("Category name cannot be empty.")
        if any(c.id != category_id and c.name.lower() == new_name.lower() for c in ledger.categories):
            raise ValidationError(f"A category named '{new_name}' already exists.")
        category.name = new_name
        logger.info("Renamed category %s to %s", category_id, new_name)
        self._commit()
        return category

    def remove_category(self, category_id: str) -> CategoryBudget:
        """Remove a category. Its transactions stay in the log as orphans."""
        ledger = self.ledger
        category = ledger.get_category(category_id)
        if category is None:
            raise NotFoundError("Category not found.", {"id": category_id})
        ledger.categories.remove(category)
        orphaned = sum(1 for t in ledger.transactions if t.category_id == category_id)
        if orphaned:
            logger.warning(
                "Removed category %s; %d transaction(s) now reference a missing category",
                category_id, orphaned,
            )
        else:
            logger.info("Removed category %s", category_id)
        self._commit()
        return category

    # ── Transactions ─────────────────────────────────────────────────────────

    def record_transaction(
        self,
        category_id: str,
        amount,
        date: str | None = None,
        notes: str = "",
    ) -> Transaction:
        """Validate and append a transaction. Nothing changes if validation fails."""
        ledger = self.ledger
        tx_date, value = self._validate_transaction(category_id, amount, date)

        tx = Transaction(
            id=next_transaction_id((t.id for t in ledger.transactions), self._clock_ms()),
            date=tx_date,
            category_id=category_id.strip(),
            amount=round(value, 2),
            notes=(notes or "").strip(),
        )
        ledger.transactions.append(tx)
        if ledger.get_category(tx.category_id) is None:
            logger.warning("Recorded transaction %s for unknown category %r", tx.id, tx.category_id)
        else:
            logger.info("Recorded %.2f to %s on %s", tx.amount, tx.category_id, tx.date)
        self._commit()
        return tx

    def delete_transaction(self, transaction_id: str) -> Transaction:
        ledger = self.ledger
        tx = ledger.get_transaction(str(transaction_id))
        if tx is None:
            raise NotFoundError("Transaction not found.", {"id": transaction_id})
        ledger.transactions.remove(tx)
        logger.info("Deleted transaction %s (%.2f from %s)", tx.id, tx.amount, tx.category_id)
        self._commit()
        return tx

    def get_transactions(self, limit: int | None = None) -> list[Transaction]:
        """Transactions newest first."""
        ordered = self.ledger.sorted_transactions()
        return ordered[:limit] if limit is not None else ordered

    def orphaned_transactions(self) -> list[Transaction]:
        return self.ledger.orphaned_transactions()

    def category_name(self, category_id: str) -> str:
        category = self.ledger.get_category(category_id)
        return category.name if category else category_id

    # ── Period ───────────────────────────────────────────────────────────────

    def reset_period(self, confirmed: bool = False):
        """Clear every transaction and actual; planned amounts and income stay.

        This cannot be undone, so the caller must pass ``confirmed=True``
        after asking the user.
        """
        if confirmed is not True:
            raise ValidationError("Resetting the month must be explicitly confirmed.")
        ledger = self.ledger
        cleared = len(ledger.transactions)
        ledger.transactions.clear()
        logger.info("Period reset; %d transaction(s) cleared", cleared)
        self._commit()

    def reconcile(self) -> Ledger:
        """Rebuild all actual amounts from the transaction log and save."""
        self._commit()
        return self.ledger

    def compute_totals(self) -> LedgerTotals:
        from services.report_service import compute_totals
        return compute_totals(self.ledger)

    # ── Internals ────────────────────────────────────────────────────────────

    def _validate_transaction(self, category_id, amount, date) -> tuple[str, float]:
        if not isinstance(category_id, str) or not category_id.strip():
            raise ValidationError("Please choose a category.")

        try:
            value = parse_amount(amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number.", {"amount": amount})
        if not math.isfinite(value) or round(value, 2) <= 0:
            raise ValidationError("Amount must be positive.", {"amount": amount})

        if date is None:
            return today_str(), value
        parsed = parse_date(date) if isinstance(date, str) else None
        if parsed is None:
            raise ValidationError("Invalid date. Use YYYY-MM-DD.", {"date": date})
        return format_date(parsed), value

    def _commit(self):
        self.ledger.reconcile()
        self._persist()

    def _persist(self):
        try:
            self._dao.save(self.ledger)
        except PersistenceError as e:
            logger.error("Failed to save ledger: %s", e)
            self.last_persistence_error = e
        else:
            self.last_persistence_error = None
