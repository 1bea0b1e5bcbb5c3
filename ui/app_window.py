import customtkinter as ctk

from database.db_manager import DatabaseManager
from services.auth_service import AuthService
from services.data_service import DataService
from services.ledger_service import LedgerService
from services.report_service import ReportService
from ui.components.alert_banner import AlertBanner
from ui.tabs.budget_tab import BudgetTab
from ui.tabs.dashboard_tab import DashboardTab
from ui.tabs.reports_tab import ReportsTab
from ui.tabs.settings_tab import SettingsTab
from ui.tabs.transactions_tab import TransactionsTab
from utils.constants import APP_HEIGHT, APP_NAME, APP_WIDTH
from utils.currency import format_currency


_REFRESH_SCOPES: dict[str, set[str]] = {
    "transaction": {"dashboard", "budget", "transactions", "reports"},
    "budget":      {"dashboard", "budget", "reports"},
    "income":      {"dashboard", "budget", "reports"},
    "category":    {"dashboard", "budget", "transactions", "reports"},
    "reset":       {"dashboard", "budget", "transactions", "reports"},
    "full":        {"dashboard", "budget", "transactions", "reports", "settings"},
}


class AppWindow(ctk.CTk):
    def __init__(
        self,
        ledger_service: LedgerService,
        report_service: ReportService,
        data_service: DataService,
        auth_service: AuthService,
        db: DatabaseManager,
        date_format: str = "YYYY-MM-DD",
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._ledger_svc = ledger_service
        self._report_svc = report_service
        self._data_svc = data_service
        self._auth_svc = auth_service
        self._db = db
        self._date_format = date_format
        self._symbol = currency_symbol

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_header_bar()
        self._build_banner_area()
        self._build_tabs()
        self._update_header()

        # A failed load leaves the error on the service; surface it once drawn
        if self._ledger_svc.last_persistence_error is not None:
            self.after(200, self._show_persistence_banner)

    # ── Header bar ──────────────────────────────────────────────────────────
    def _build_header_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray85", "gray15"), corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkLabel(
            bar, text=APP_NAME, font=ctk.CTkFont(size=15, weight="bold"),
        ).pack(side="left", padx=(12, 4), pady=8)

        self._income_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._income_label.pack(side="left", padx=(12, 8))

        self._left_label = ctk.CTkLabel(bar, text="", font=ctk.CTkFont(weight="bold"))
        self._left_label.pack(side="right", padx=12)

    def _update_header(self):
        income = self._ledger_svc.ledger.income
        self._income_label.configure(
            text=f"Income: {income.name or '—'} {format_currency(income.amount, self._symbol)}"
        )
        totals = self._ledger_svc.compute_totals()
        self._left_label.configure(
            text=f"Money left: {format_currency(totals.money_left, self._symbol)}",
            text_color="#4CAF50" if totals.money_left >= 0 else "#F44336",
        )

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=1, column=0, sticky="ew", padx=8)

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 8))

        for tab_name in ["Dashboard", "Budget", "Transactions", "Reports", "Settings"]:
            self._tabview.add(tab_name)
            self._tabview.tab(tab_name).grid_columnconfigure(0, weight=1)
            self._tabview.tab(tab_name).grid_rowconfigure(0, weight=1)

        self._dashboard_tab = DashboardTab(
            self._tabview.tab("Dashboard"),
            ledger_service=self._ledger_svc,
            report_service=self._report_svc,
            currency_symbol=self._symbol,
        )
        self._dashboard_tab.grid(row=0, column=0, sticky="nsew")

        self._budget_tab = BudgetTab(
            self._tabview.tab("Budget"),
            ledger_service=self._ledger_svc,
            notify_refresh=self.notify_tabs_refresh,
            currency_symbol=self._symbol,
        )
        self._budget_tab.grid(row=0, column=0, sticky="nsew")

        self._transactions_tab = TransactionsTab(
            self._tabview.tab("Transactions"),
            ledger_service=self._ledger_svc,
            notify_refresh=self.notify_tabs_refresh,
            date_format=self._date_format,
            currency_symbol=self._symbol,
        )
        self._transactions_tab.grid(row=0, column=0, sticky="nsew")

        self._reports_tab = ReportsTab(
            self._tabview.tab("Reports"),
            report_service=self._report_svc,
            currency_symbol=self._symbol,
        )
        self._reports_tab.grid(row=0, column=0, sticky="nsew")

        self._settings_tab = SettingsTab(
            self._tabview.tab("Settings"),
            db=self._db,
            data_service=self._data_svc,
            auth_service=self._auth_svc,
            notify_refresh=self.notify_tabs_refresh,
        )
        self._settings_tab.grid(row=0, column=0, sticky="nsew")

    # ── Refresh ──────────────────────────────────────────────────────────────
    def notify_tabs_refresh(self, scope: str = "full"):
        tabs = _REFRESH_SCOPES.get(scope, _REFRESH_SCOPES["full"])
        if "dashboard"    in tabs: self._dashboard_tab.refresh()
        if "budget"       in tabs: self._budget_tab.refresh()
        if "transactions" in tabs: self._transactions_tab.refresh()
        if "reports"      in tabs: self._reports_tab.refresh()
        if "settings"     in tabs: self._settings_tab.refresh()
        self._update_header()

        if self._ledger_svc.last_persistence_error is not None:
            self._show_persistence_banner()
        else:
            self._clear_banners()

    # ── Banners ──────────────────────────────────────────────────────────────
    def _clear_banners(self):
        for w in self._banner_frame.winfo_children():
            w.destroy()

    def _show_persistence_banner(self):
        self._clear_banners()
        error = self._ledger_svc.last_persistence_error
        if error is None:
            return
        AlertBanner(
            self._banner_frame,
            message=f"Changes could not be saved: {error.message}. "
                    "They are kept for this session only.",
            severity="error",
            action_text="Retry",
            action_cmd=self._retry_save,
        ).pack(fill="x", pady=2)

    def _retry_save(self):
        self._ledger_svc.reconcile()
        self.notify_tabs_refresh("full")
