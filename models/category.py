from dataclasses import dataclass


@dataclass
class CategoryBudget:
    id: str                     # stable slug, never changes after creation
    name: str                   # display label, freely renamable
    planned_amount: float = 0.0
    actual_amount: float = 0.0  # derived from the transaction log, see Ledger.reconcile()
    color_hex: str = "#888888"

    @property
    def difference(self) -> float:
        return round(self.planned_amount - self.actual_amount, 2)

    @property
    def status(self) -> str:
        """'under' while spending is within plan, 'over' once it exceeds it."""
        return "under" if self.difference >= 0 else "over"

    @property
    def percentage(self) -> float:
        if self.planned_amount <= 0:
            return 0.0
        return self.actual_amount / self.planned_amount
