import customtkinter as ctk

from services.ledger_service import LedgerService
from services.report_service import ReportService
from utils.constants import OVER_COLOR, UNDER_COLOR
from utils.currency import format_currency, format_percent
from utils.date_helpers import current_month_str, friendly_month, short_date

_RECENT_COUNT = 10


class DashboardTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        ledger_service: LedgerService,
        report_service: ReportService,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._ledger_svc = ledger_service
        self._report_svc = report_service
        self._symbol = currency_symbol

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        ctk.CTkLabel(
            self, text=friendly_month(current_month_str()),
            font=ctk.CTkFont(size=15, weight="bold"),
        ).grid(row=0, column=0, sticky="w", padx=22, pady=(12, 0))

        self._card_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._card_frame.grid(row=1, column=0, sticky="ew", padx=16, pady=12)
        self._card_frame.grid_columnconfigure((0, 1, 2, 3), weight=1)

        self._build_bottom_section()
        self._load()

    def refresh(self):
        self._load()

    def _build_bottom_section(self):
        bottom = ctk.CTkFrame(self, fg_color="transparent")
        bottom.grid(row=2, column=0, sticky="nsew", padx=16, pady=(0, 12))
        bottom.grid_columnconfigure(0, weight=1)
        bottom.grid_columnconfigure(1, weight=1)
        bottom.grid_rowconfigure(0, weight=1)

        self._recent_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Recent Transactions", height=240
        )
        self._recent_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 8))

        self._budget_frame = ctk.CTkScrollableFrame(
            bottom, label_text="Planned vs Actual", height=240
        )
        self._budget_frame.grid(row=0, column=1, sticky="nsew", padx=(8, 0))

    def _load(self):
        totals = self._report_svc.get_summary()

        for w in self._card_frame.winfo_children():
            w.destroy()
        left_color = UNDER_COLOR if totals.money_left >= 0 else OVER_COLOR
        cards = [
            ("Total Income",   format_currency(totals.income, self._symbol),       "#2196F3"),
            ("Total Expenses", format_currency(totals.total_actual, self._symbol), OVER_COLOR),
            ("Money Left",     format_currency(totals.money_left, self._symbol),   left_color),
            ("Savings Rate",   format_percent(totals.savings_rate),                left_color),
        ]
        for col, (label, text, color) in enumerate(cards):
            self._make_card(col, label, text, color)

        for w in self._recent_frame.winfo_children():
            w.destroy()
        recent = self._ledger_svc.get_transactions(limit=_RECENT_COUNT)
        if not recent:
            ctk.CTkLabel(
                self._recent_frame, text="No transactions logged yet",
                text_color="gray60",
            ).pack(pady=20)
        for idx, tx in enumerate(recent):
            bg = ("gray90", "gray20") if idx % 2 == 0 else ("gray86", "gray24")
            f = ctk.CTkFrame(self._recent_frame, fg_color=bg, corner_radius=4)
            f.pack(fill="x", pady=1)
            f.grid_columnconfigure(1, weight=1)
            ctk.CTkLabel(f, text=short_date(tx.date), width=60, anchor="w").grid(
                row=0, column=0, padx=6, pady=3
            )
            ctk.CTkLabel(
                f, text=self._ledger_svc.category_name(tx.category_id), anchor="w"
            ).grid(row=0, column=1, padx=4, sticky="ew")
            ctk.CTkLabel(
                f, text=f"-{format_currency(tx.amount, self._symbol)}",
                text_color=OVER_COLOR, anchor="e", width=100,
            ).grid(row=0, column=2, padx=6)

        for w in self._budget_frame.winfo_children():
            w.destroy()
        for c in self._ledger_svc.ledger.categories:
            pct = min(c.percentage, 1.0)
            bar_color = UNDER_COLOR if pct < 0.8 else ("#FF9800" if c.status == "under" else OVER_COLOR)
            f = ctk.CTkFrame(self._budget_frame, fg_color="transparent")
            f.pack(fill="x", pady=4, padx=4)
            top_row = ctk.CTkFrame(f, fg_color="transparent")
            top_row.pack(fill="x")
            ctk.CTkLabel(top_row, text=c.name, anchor="w").pack(side="left")
            ctk.CTkLabel(
                top_row,
                text=f"{format_currency(c.actual_amount, self._symbol)} / "
                     f"{format_currency(c.planned_amount, self._symbol)}",
                anchor="e", text_color="gray60",
            ).pack(side="right")
            bar = ctk.CTkProgressBar(f, progress_color=bar_color)
            bar.pack(fill="x", pady=2)
            bar.set(pct)

    def _make_card(self, col, label, text, color):
        card = ctk.CTkFrame(self._card_frame, fg_color=("gray90", "gray20"), corner_radius=10)
        card.grid(row=0, column=col, padx=6, sticky="ew")
        card.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            card, text=label, font=ctk.CTkFont(size=12), text_color="gray60",
        ).grid(row=0, column=0, pady=(12, 0), padx=16)
        ctk.CTkLabel(
            card, text=text, font=ctk.CTkFont(size=20, weight="bold"), text_color=color,
        ).grid(row=1, column=0, pady=(4, 12), padx=16)
