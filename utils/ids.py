import re
import time
from typing import Iterable

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """'Mobile bill' -> 'mobile-bill'. Returns '' for names without letters or digits."""
    return _SLUG_STRIP.sub("-", (name or "").strip().lower()).strip("-")


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def next_transaction_id(existing_ids: Iterable[str], clock_ms: int | None = None) -> str:
    """Timestamp id that is strictly greater than every numeric id already used.

    Two transactions recorded in the same millisecond (or after the clock went
    backwards) still get distinct, increasing ids.
    """
    stamp = clock_ms if clock_ms is not None else now_ms()
    highest = max((int(i) for i in existing_ids if str(i).isdigit()), default=0)
    return str(max(stamp, highest + 1))
