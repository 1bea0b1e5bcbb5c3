import logging
import os
import sys
import customtkinter as ctk

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.ledger_dao import LedgerDAO

from services.ledger_service import LedgerService
from services.report_service import ReportService
from services.data_service import DataService
from services.auth_service import AuthService

from ui.app_window import AppWindow
from ui.components.login_dialog import LoginDialog
from utils.app_config import get_db_folder, get_log_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Log to stdout and, when configured, to a file as well."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def main():
    # ── Bootstrap: logging and DB folder from pre-DB config ──────────────────
    level, log_file = get_log_settings()
    setup_logging(level, log_file)
    db_folder = get_db_folder()

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open(db_folder=db_folder)
    ledger_dao = LedgerDAO(db)

    # ── Services ─────────────────────────────────────────────────────────────
    ledger_svc = LedgerService(ledger_dao)
    report_svc = ReportService(ledger_svc)
    data_svc = DataService(ledger_svc)
    auth_svc = AuthService(db)

    # ── Appearance ───────────────────────────────────────────────────────────
    appearance = db.get_setting("appearance_mode", "system")
    date_format = db.get_setting("date_format", "YYYY-MM-DD")
    currency_symbol = db.get_setting("currency_symbol", "$")
    ctk.set_appearance_mode(appearance)
    ctk.set_default_color_theme("blue")

    # ── Sign in before anything from the ledger is shown ─────────────────────
    login = LoginDialog(auth_svc)
    login.mainloop()
    if not login.authorized:
        logger.info("Sign-in cancelled; exiting")
        db.close()
        return

    ledger_svc.load()

    # ── Launch UI ────────────────────────────────────────────────────────────
    app = AppWindow(
        ledger_service=ledger_svc,
        report_service=report_svc,
        data_service=data_svc,
        auth_service=auth_svc,
        db=db,
        date_format=date_format,
        currency_symbol=currency_symbol,
    )

    def on_close():
        db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()


if __name__ == "__main__":
    main()
