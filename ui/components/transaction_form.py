import customtkinter as ctk

from services.ledger_service import LedgerService
from ui.components.date_picker import DatePickerWidget


class TransactionForm(ctk.CTkFrame):
    """Inline 'log a transaction' form: date, category, amount, notes."""

    def __init__(
        self,
        master,
        ledger_service: LedgerService,
        on_saved,           # callable, called after a transaction is recorded
        date_format: str = "YYYY-MM-DD",
        **kwargs,
    ):
        super().__init__(master, fg_color=("gray88", "gray18"), corner_radius=8, **kwargs)
        self._svc = ledger_service
        self._on_saved = on_saved

        self.grid_columnconfigure(7, weight=1)

        ctk.CTkLabel(self, text="Date:").grid(row=0, column=0, padx=(12, 4), pady=8)
        self._date_picker = DatePickerWidget(self, date_format=date_format)
        self._date_picker.grid(row=0, column=1, padx=(0, 12), pady=8)

        ctk.CTkLabel(self, text="Category:").grid(row=0, column=2, padx=(0, 4))
        self._cat_var = ctk.StringVar()
        self._cat_combo = ctk.CTkComboBox(
            self, values=[], variable=self._cat_var, width=160, state="readonly"
        )
        self._cat_combo.grid(row=0, column=3, padx=(0, 12))

        ctk.CTkLabel(self, text="Amount:").grid(row=0, column=4, padx=(0, 4))
        self._amount_var = ctk.StringVar()
        amount_entry = ctk.CTkEntry(self, textvariable=self._amount_var, width=90)
        amount_entry.grid(row=0, column=5, padx=(0, 12))
        amount_entry.bind("<Return>", lambda _e: self._on_save())

        ctk.CTkLabel(self, text="Notes:").grid(row=0, column=6, padx=(0, 4))
        self._notes_var = ctk.StringVar()
        ctk.CTkEntry(self, textvariable=self._notes_var).grid(
            row=0, column=7, padx=(0, 12), sticky="ew"
        )

        ctk.CTkButton(self, text="+ Add", width=80, command=self._on_save).grid(
            row=0, column=8, padx=(0, 12)
        )

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336", anchor="w"
        ).grid(row=1, column=0, columnspan=9, padx=12, pady=(0, 6), sticky="ew")

        self.refresh_categories()

    def refresh_categories(self):
        """Reload the category dropdown (names may have changed)."""
        self._cats = list(self._svc.ledger.categories)
        names = [c.name for c in self._cats]
        self._cat_combo.configure(values=names)
        if self._cat_var.get() not in names:
            self._cat_var.set(names[0] if names else "")

    def _on_save(self):
        cat = next((c for c in self._cats if c.name == self._cat_var.get()), None)
        if cat is None:
            self._error_var.set("Please select a category.")
            return
        if not self._date_picker.is_valid():
            self._error_var.set("Invalid date.")
            return
        try:
            self._svc.record_transaction(
                category_id=cat.id,
                amount=self._amount_var.get(),
                date=self._date_picker.get(),
                notes=self._notes_var.get(),
            )
        except ValueError as e:
            self._error_var.set(str(e))
            return

        self._error_var.set("")
        self._amount_var.set("")
        self._notes_var.set("")
        self._date_picker.reset()
        self._on_saved()
