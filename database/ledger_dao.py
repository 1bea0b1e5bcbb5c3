"""Persists the whole ledger as one JSON snapshot row under a fixed key."""
import json
import logging
import sqlite3

from database.db_manager import DatabaseManager
from models.category import CategoryBudget
from models.income import Income
from models.ledger import Ledger
from models.transaction import Transaction
from utils.constants import CHART_COLORS, SNAPSHOT_KEY, SNAPSHOT_VERSION
from utils.currency import coerce_amount
from utils.date_helpers import format_date, parse_date
from utils.exceptions import PersistenceError
from utils.ids import slugify

logger = logging.getLogger(__name__)


def ledger_to_dict(ledger: Ledger) -> dict:
    return {
        "version": SNAPSHOT_VERSION,
        "income": {"name": ledger.income.name, "amount": ledger.income.amount},
        "categories": [
            {
                "id": c.id,
                "name": c.name,
                "planned": c.planned_amount,
                "actual": c.actual_amount,
                "color": c.color_hex,
            }
            for c in ledger.categories
        ],
        "transactions": [
            {
                "id": t.id,
                "date": t.date,
                "categoryId": t.category_id,
                "amount": t.amount,
                "notes": t.notes,
            }
            for t in ledger.transactions
        ],
    }


def ledger_from_dict(data: dict) -> Ledger:
    """Build a Ledger from a snapshot dict.

    Also accepts the browser export shape (``expenses`` with ``category`` names
    and transactions keyed by ``category``). Entries that would break the
    ledger invariants (blank names, duplicate ids, non-positive amounts, bad
    dates) are dropped with a warning. Stored actuals are ignored and rebuilt
    from the transactions.
    """
    if not isinstance(data, dict):
        raise PersistenceError("Snapshot is not a JSON object.")

    raw_income = data.get("income") or {}
    if not isinstance(raw_income, dict):
        raw_income = {"amount": raw_income}
    income = Income(
        name=str(raw_income.get("name") or ""),
        amount=coerce_amount(raw_income.get("amount")),
    )

    raw_categories = data.get("categories")
    if raw_categories is None:
        raw_categories = data.get("expenses") or []
    categories: list[CategoryBudget] = []
    seen: set[str] = set()
    for idx, raw in enumerate(raw_categories if isinstance(raw_categories, list) else []):
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name") or raw.get("category") or "").strip()
        cat_id = str(raw.get("id") or slugify(name))
        if not name or not cat_id or cat_id in seen:
            logger.warning("Skipping invalid category entry %r", raw)
            continue
        seen.add(cat_id)
        categories.append(CategoryBudget(
            id=cat_id,
            name=name,
            planned_amount=coerce_amount(raw.get("planned")),
            color_hex=str(raw.get("color") or CHART_COLORS[idx % len(CHART_COLORS)]),
        ))

    raw_transactions = data.get("transactions") or []
    transactions: list[Transaction] = []
    seen_tx: set[str] = set()
    for raw in raw_transactions if isinstance(raw_transactions, list) else []:
        if not isinstance(raw, dict):
            continue
        tx_id = str(raw.get("id") or "")
        d = parse_date(str(raw.get("date") or ""))
        amount = coerce_amount(raw.get("amount"))
        category_id = raw.get("categoryId")
        if category_id is None and raw.get("category") is not None:
            legacy = str(raw["category"])
            category_id = legacy if legacy in seen else slugify(legacy)
        category_id = str(category_id or "")
        if not tx_id or tx_id in seen_tx or d is None or amount <= 0 or not category_id:
            logger.warning("Skipping invalid transaction entry %r", raw)
            continue
        seen_tx.add(tx_id)
        transactions.append(Transaction(
            id=tx_id,
            date=format_date(d),
            category_id=category_id,
            amount=amount,
            notes=str(raw.get("notes") or ""),
        ))

    ledger = Ledger(income=income, categories=categories, transactions=transactions)
    ledger.reconcile()
    return ledger


def serialize_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger_to_dict(ledger), sort_keys=True)


def deserialize_ledger(text: str) -> Ledger:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistenceError("Stored ledger snapshot is not valid JSON.", original_error=e) from e
    return ledger_from_dict(data)


class LedgerDAO:
    def __init__(self, db: DatabaseManager, key: str = SNAPSHOT_KEY):
        self._db = db
        self._key = key

    def load(self) -> Ledger | None:
        """Return the stored ledger, or None when nothing has been saved yet."""
        try:
            row = self._db.get_connection().execute(
                "SELECT value FROM snapshots WHERE key = ?", (self._key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(
                "Could not read ledger snapshot.", {"key": self._key}, e
            ) from e
        if row is None:
            return None
        return deserialize_ledger(row["value"])

    def save(self, ledger: Ledger):
        payload = serialize_ledger(ledger)
        try:
            conn = self._db.get_connection()
            conn.execute(
                """INSERT INTO snapshots(key, value, updated_at)
                   VALUES (?, ?, datetime('now'))
                   ON CONFLICT(key)
                   DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                (self._key, payload),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                "Could not write ledger snapshot.", {"key": self._key}, e
            ) from e

    def clear(self):
        try:
            conn = self._db.get_connection()
            conn.execute("DELETE FROM snapshots WHERE key = ?", (self._key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                "Could not delete ledger snapshot.", {"key": self._key}, e
            ) from e
