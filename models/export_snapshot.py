from dataclasses import dataclass, field

from models.income import Income
from models.transaction import Transaction


@dataclass(frozen=True)
class CategoryRow:
    category_id: str
    category: str       # display name
    planned: float
    actual: float
    difference: float   # planned - actual
    status: str         # 'under' | 'over'


@dataclass(frozen=True)
class LedgerTotals:
    income: float
    total_planned: float
    total_actual: float
    money_left: float
    savings_rate: float         # percent of income, 0 when income is 0
    total_difference: float
    rows: tuple[CategoryRow, ...] = ()


@dataclass(frozen=True)
class ExportSnapshot:
    """Read-only view handed to the CSV/PDF writers."""
    income: Income
    totals: LedgerTotals
    per_category_rows: tuple[CategoryRow, ...]
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
