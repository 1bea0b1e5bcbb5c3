from dataclasses import dataclass, field

from models.category import CategoryBudget
from models.income import Income
from models.transaction import Transaction


@dataclass
class Ledger:
    """Aggregate root: income, the ordered category list and the transaction log.

    ``CategoryBudget.actual_amount`` is never edited directly. It is rebuilt
    from ``transactions`` by ``reconcile()``, which every mutation path calls,
    so each category's actual always equals the sum of its transactions.
    """

    income: Income = field(default_factory=Income)
    categories: list[CategoryBudget] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)

    def get_category(self, category_id: str) -> CategoryBudget | None:
        return next((c for c in self.categories if c.id == category_id), None)

    def get_transaction(self, transaction_id: str) -> Transaction | None:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    def category_ids(self) -> set[str]:
        return {c.id for c in self.categories}

    def reconcile(self) -> None:
        """Recompute every category's actual amount from the transaction log."""
        sums: dict[str, float] = {}
        for t in self.transactions:
            sums[t.category_id] = sums.get(t.category_id, 0.0) + t.amount
        for c in self.categories:
            c.actual_amount = max(0.0, round(sums.get(c.id, 0.0), 2))

    def orphaned_transactions(self) -> list[Transaction]:
        """Transactions whose category no longer exists."""
        known = self.category_ids()
        return [t for t in self.transactions if t.category_id not in known]

    def sorted_transactions(self) -> list[Transaction]:
        """Newest first; same-day entries ordered by id (creation time)."""
        return sorted(
            self.transactions,
            key=lambda t: (t.date, int(t.id) if t.id.isdigit() else 0, t.id),
            reverse=True,
        )
