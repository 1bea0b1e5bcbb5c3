from dataclasses import dataclass


@dataclass
class Income:
    name: str = ""
    amount: float = 0.0
