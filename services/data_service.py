"""Full backup and restore of the ledger as JSON."""
import logging
from datetime import datetime

from database.ledger_dao import ledger_from_dict, ledger_to_dict
from services.ledger_service import LedgerService
from utils.exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)


class DataService:
    def __init__(self, ledger_service: LedgerService):
        self._ledger_svc = ledger_service

    # ── Export ────────────────────────────────────────────────────────────────

    def export_json(self) -> dict:
        """Return a full export dict (caller writes to disk)."""
        data = ledger_to_dict(self._ledger_svc.ledger)
        data["export_version"] = 1
        data["exported_at"] = datetime.now().isoformat()
        return data

    # ── Import ────────────────────────────────────────────────────────────────

    def import_json(self, data: dict) -> dict:
        """Replace the current ledger with a previously exported one.

        Accepts both this app's export and the browser tracker's saved state.
        Returns stats dict with counts of imported entities.
        """
        if not isinstance(data, dict):
            raise ValidationError("Backup file does not contain a JSON object.")
        if "categories" not in data and "expenses" not in data:
            raise ValidationError("Backup file has no categories.")
        try:
            ledger = ledger_from_dict(data)
        except PersistenceError as e:
            raise ValidationError(str(e), original_error=e) from e

        self._ledger_svc.replace_ledger(ledger)
        stats = {
            "categories": len(ledger.categories),
            "transactions": len(ledger.transactions),
        }
        logger.info("Imported backup: %s", stats)
        return stats
