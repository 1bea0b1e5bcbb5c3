import customtkinter as ctk

from models.transaction import Transaction
from services.ledger_service import LedgerService
from ui.components.confirm_dialog import ConfirmDialog
from ui.components.transaction_form import TransactionForm
from utils.constants import OVER_COLOR
from utils.currency import format_currency
from utils.date_helpers import format_display_date

_MAX_RENDERED_ROWS = 100


class TransactionsTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        ledger_service: LedgerService,
        notify_refresh,
        date_format: str = "YYYY-MM-DD",
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = ledger_service
        self._notify_refresh = notify_refresh
        self._date_format = date_format
        self._symbol = currency_symbol

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._form = TransactionForm(
            self, ledger_service,
            on_saved=lambda: self._notify_refresh("transaction"),
            date_format=date_format,
        )
        self._form.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        self._build_header()
        self._build_list()
        self._load()

    def refresh(self):
        self._form.refresh_categories()
        self._load()

    def _build_header(self):
        hdr = ctk.CTkFrame(self, fg_color=("gray82", "gray22"), corner_radius=0)
        hdr.grid(row=1, column=0, sticky="ew", padx=8, pady=(8, 0))
        cols = [("Date", 100), ("Category", 160), ("Amount", 100), ("Notes", 300), ("", 50)]
        for i, (label, width) in enumerate(cols):
            ctk.CTkLabel(
                hdr, text=label, width=width, anchor="w",
                font=ctk.CTkFont(weight="bold"),
            ).grid(row=0, column=i, padx=4, pady=4, sticky="w")

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=2, column=0, sticky="nsew", padx=8, pady=(0, 8))
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        for w in self._scroll.winfo_children():
            w.destroy()

        rows = self._svc.get_transactions()
        if not rows:
            ctk.CTkLabel(
                self._scroll, text="No transactions logged this month.",
                text_color="gray60",
            ).grid(row=0, column=0, pady=20)
            return

        for idx, tx in enumerate(rows[:_MAX_RENDERED_ROWS]):
            self._add_row(idx, tx)

        if len(rows) > _MAX_RENDERED_ROWS:
            ctk.CTkLabel(
                self._scroll,
                text=f"Showing the latest {_MAX_RENDERED_ROWS} of {len(rows)} transactions.",
                text_color="gray60",
                font=ctk.CTkFont(size=11),
            ).grid(row=_MAX_RENDERED_ROWS, column=0, pady=8)

    def _add_row(self, idx: int, tx: Transaction):
        bg = ("gray92", "gray17") if idx % 2 == 0 else ("gray88", "gray21")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", pady=1, padx=2)

        ctk.CTkLabel(
            row, text=format_display_date(tx.date, self._date_format), width=100, anchor="w"
        ).grid(row=0, column=0, padx=4, pady=4)

        category = self._svc.ledger.get_category(tx.category_id)
        if category is None:
            cat_text, cat_color = f"{tx.category_id} (removed)", "#FF9800"
        else:
            cat_text, cat_color = category.name, ("gray10", "gray90")
        ctk.CTkLabel(row, text=cat_text, width=160, anchor="w", text_color=cat_color).grid(
            row=0, column=1, padx=4
        )

        ctk.CTkLabel(
            row, text=format_currency(tx.amount, self._symbol), width=100, anchor="e",
            text_color=OVER_COLOR,
        ).grid(row=0, column=2, padx=4)

        ctk.CTkLabel(row, text=tx.notes or "—", width=300, anchor="w").grid(
            row=0, column=3, padx=4
        )

        ctk.CTkButton(
            row, text="Del", width=44, height=24,
            fg_color="#F44336", hover_color="#D32F2F",
            command=lambda t=tx: self._delete_tx(t),
        ).grid(row=0, column=4, padx=(4, 6))

    def _delete_tx(self, tx: Transaction):
        dlg = ConfirmDialog(
            self.winfo_toplevel(),
            "Delete Transaction",
            f"Delete {format_currency(tx.amount, self._symbol)} from "
            f"{self._svc.category_name(tx.category_id)}?",
            confirm_text="Delete",
        )
        if dlg.result:
            self._svc.delete_transaction(tx.id)
            self._notify_refresh("transaction")
