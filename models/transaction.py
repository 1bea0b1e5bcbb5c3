from dataclasses import dataclass


@dataclass(frozen=True)
class Transaction:
    id: str             # epoch milliseconds, strictly increasing per ledger
    date: str           # 'YYYY-MM-DD'
    category_id: str
    amount: float       # always > 0
    notes: str = ""
