import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from database.db_manager import DatabaseManager
from database.ledger_dao import LedgerDAO
from services.ledger_service import LedgerService


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "tracker.db"))
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def ledger_dao(db):
    return LedgerDAO(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(ledger_dao, clock):
    svc = LedgerService(ledger_dao, clock_ms=clock)
    svc.load()
    return svc
