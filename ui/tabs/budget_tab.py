import customtkinter as ctk

from services.ledger_service import LedgerService
from ui.components.category_form import CategoryForm
from ui.components.confirm_dialog import ConfirmDialog
from utils.constants import OVER_COLOR, UNDER_COLOR
from utils.currency import format_currency, format_signed


class BudgetTab(ctk.CTkFrame):
    """Income plus the per-category plan. Actuals are read-only here; they
    come from the transaction log."""

    def __init__(
        self,
        master,
        ledger_service: LedgerService,
        notify_refresh,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._svc = ledger_service
        self._notify_refresh = notify_refresh
        self._symbol = currency_symbol

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_income_bar()
        self._build_toolbar()
        self._build_list()
        self._load()

    def refresh(self):
        self._load()

    def _build_income_bar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkLabel(bar, text="Income source:").pack(side="left", padx=(12, 4), pady=8)
        self._income_name_var = ctk.StringVar()
        name_entry = ctk.CTkEntry(bar, textvariable=self._income_name_var, width=180)
        name_entry.pack(side="left", padx=(0, 12))

        ctk.CTkLabel(bar, text="Amount:").pack(side="left", padx=(0, 4))
        self._income_amount_var = ctk.StringVar()
        amount_entry = ctk.CTkEntry(bar, textvariable=self._income_amount_var, width=110)
        amount_entry.pack(side="left", padx=(0, 12))

        for entry in (name_entry, amount_entry):
            entry.bind("<Return>", lambda _e: self._save_income())
            entry.bind("<FocusOut>", lambda _e: self._save_income())

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color="transparent")
        bar.grid(row=1, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkButton(bar, text="+ Add Category", command=self._open_add).pack(side="left", padx=4)
        ctk.CTkButton(
            bar, text="Reset Month", width=110,
            fg_color="#F44336", hover_color="#C62828",
            command=self._reset_month,
        ).pack(side="right", padx=4)

        self._totals_label = ctk.CTkLabel(bar, text="", text_color="gray60")
        self._totals_label.pack(side="left", padx=12)

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self)
        self._scroll.grid(row=2, column=0, sticky="nsew", padx=8, pady=8)
        self._scroll.grid_columnconfigure(0, weight=1)

    def _load(self):
        ledger = self._svc.ledger
        self._income_name_var.set(ledger.income.name)
        self._income_amount_var.set(f"{ledger.income.amount:.2f}")

        totals = self._svc.compute_totals()
        self._totals_label.configure(
            text=f"Planned {format_currency(totals.total_planned, self._symbol)}  |  "
                 f"Spent {format_currency(totals.total_actual, self._symbol)}  |  "
                 f"Left {format_currency(totals.money_left, self._symbol)}"
        )

        for w in self._scroll.winfo_children():
            w.destroy()

        hdr = ctk.CTkFrame(self._scroll, fg_color="transparent")
        hdr.grid(row=0, column=0, sticky="ew", padx=4)
        self._configure_columns(hdr)
        for col, text in enumerate(["Category", "Planned", "Actual", "Difference", ""]):
            ctk.CTkLabel(
                hdr, text=text, font=ctk.CTkFont(weight="bold"), anchor="w",
            ).grid(row=0, column=col, padx=6, sticky="w")

        if not ledger.categories:
            ctk.CTkLabel(
                self._scroll,
                text="No categories yet. Click '+ Add Category' to create one.",
                text_color="gray60",
            ).grid(row=1, column=0, pady=40)
            return

        for idx, c in enumerate(ledger.categories, start=1):
            self._add_row(idx, c)

    @staticmethod
    def _configure_columns(frame):
        frame.grid_columnconfigure(0, weight=1, minsize=180)
        for col, size in ((1, 120), (2, 110), (3, 110), (4, 150)):
            frame.grid_columnconfigure(col, minsize=size)

    def _add_row(self, idx, c):
        bg = ("gray90", "gray20") if idx % 2 else ("gray86", "gray24")
        row = ctk.CTkFrame(self._scroll, fg_color=bg, corner_radius=4)
        row.grid(row=idx, column=0, sticky="ew", padx=4, pady=1)
        self._configure_columns(row)

        ctk.CTkLabel(row, text=c.name, anchor="w").grid(row=0, column=0, padx=6, pady=4, sticky="w")

        planned_var = ctk.StringVar(value=f"{c.planned_amount:.2f}")
        planned_entry = ctk.CTkEntry(row, textvariable=planned_var, width=100)
        planned_entry.grid(row=0, column=1, padx=6, sticky="w")
        commit = lambda _e, cid=c.id, var=planned_var: self._save_planned(cid, var)
        planned_entry.bind("<Return>", commit)
        planned_entry.bind("<FocusOut>", commit)

        ctk.CTkLabel(
            row, text=format_currency(c.actual_amount, self._symbol), anchor="w",
        ).grid(row=0, column=2, padx=6, sticky="w")

        diff_color = UNDER_COLOR if c.status == "under" else OVER_COLOR
        ctk.CTkLabel(
            row, text=format_signed(c.difference, self._symbol),
            text_color=diff_color, anchor="w",
        ).grid(row=0, column=3, padx=6, sticky="w")

        btns = ctk.CTkFrame(row, fg_color="transparent")
        btns.grid(row=0, column=4, padx=6, sticky="e")
        ctk.CTkButton(
            btns, text="Rename", width=60, height=24,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda cat=c: self._open_rename(cat),
        ).pack(side="left", padx=(0, 4))
        ctk.CTkButton(
            btns, text="✕", width=28, height=24,
            fg_color="transparent", text_color="#F44336",
            hover_color=("gray80", "gray30"),
            command=lambda cat=c: self._remove(cat),
        ).pack(side="left")

    def _save_income(self):
        income = self._svc.ledger.income
        name = self._income_name_var.get().strip()
        amount = self._income_amount_var.get()
        if name == income.name and amount == f"{income.amount:.2f}":
            return
        self._svc.set_income(name, amount)
        self._notify_refresh("income")

    def _save_planned(self, category_id, var):
        category = self._svc.ledger.get_category(category_id)
        if category is None or var.get() == f"{category.planned_amount:.2f}":
            return
        self._svc.set_planned_amount(category_id, var.get())
        self._notify_refresh("budget")

    def _open_add(self):
        form = CategoryForm(self.winfo_toplevel(), self._svc)
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("category")

    def _open_rename(self, category):
        form = CategoryForm(self.winfo_toplevel(), self._svc, category=category)
        self.wait_window(form)
        if form.saved:
            self._notify_refresh("category")

    def _remove(self, category):
        count = sum(1 for t in self._svc.ledger.transactions if t.category_id == category.id)
        message = f"Remove category '{category.name}'?"
        if count:
            message += (
                f"\n\n{count} logged transaction(s) will stay in the log "
                "without a category."
            )
        dlg = ConfirmDialog(self.winfo_toplevel(), "Remove Category", message, confirm_text="Remove")
        if dlg.result:
            self._svc.remove_category(category.id)
            self._notify_refresh("category")

    def _reset_month(self):
        dlg = ConfirmDialog(
            self.winfo_toplevel(),
            "Reset Month",
            "Clear every logged transaction for a new month?\n\n"
            "Planned amounts and income are kept. This cannot be undone.",
            confirm_text="Reset",
        )
        if dlg.result:
            self._svc.reset_period(confirmed=True)
            self._notify_refresh("reset")
