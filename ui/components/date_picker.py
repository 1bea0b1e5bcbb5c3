import tkinter as tk
from datetime import date

import customtkinter as ctk
from tkcalendar import Calendar

from utils.date_helpers import (
    format_date, format_display_date, parse_date, parse_display_date, today_str,
)


class DatePickerWidget(ctk.CTkFrame):
    """Entry in the user's display format plus a calendar popup.

    .get() returns YYYY-MM-DD (or '' when blank) so the ledger only ever sees
    ISO dates; .reset() puts the entry back on today.
    """

    def __init__(
        self,
        master,
        initial_date: str | None = None,
        date_format: str = "YYYY-MM-DD",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self.grid_columnconfigure(0, weight=1)

        self._date_format = date_format
        self._popup: ctk.CTkToplevel | None = None
        self._var = tk.StringVar(
            value=format_display_date(initial_date or today_str(), date_format)
        )

        self._entry = ctk.CTkEntry(self, textvariable=self._var, width=110)
        self._entry.grid(row=0, column=0, sticky="ew")
        self._entry.bind("<FocusOut>", self._on_focus_out)
        self._entry.bind("<Return>", self._on_focus_out)

        ctk.CTkButton(
            self, text="📅", width=32, command=self._toggle_popup
        ).grid(row=0, column=1, padx=(4, 0))

    def _parse(self) -> date | None:
        raw = self._var.get().strip()
        if not raw:
            return None
        d = parse_display_date(raw, self._date_format)
        if d is None:
            d = parse_date(raw.replace("/", "-").replace(".", "-"))
        return d

    def get(self) -> str:
        """Return date as YYYY-MM-DD for storage, '' if blank, raw text if invalid."""
        raw = self._var.get().strip()
        d = self._parse()
        return format_date(d) if d else raw

    def is_valid(self) -> bool:
        return self._parse() is not None

    def reset(self):
        self._var.set(format_display_date(today_str(), self._date_format))
        self._entry.configure(border_color=("gray65", "gray35"))

    def _on_focus_out(self, _event=None):
        d = self._parse()
        if d is not None:
            self._var.set(format_display_date(format_date(d), self._date_format))
            self._entry.configure(border_color=("gray65", "gray35"))
        elif self._var.get().strip():
            self._entry.configure(border_color="#F44336")

    def _toggle_popup(self):
        if self._popup and self._popup.winfo_exists():
            self._popup.destroy()
            self._popup = None
            return

        popup = ctk.CTkToplevel(self)
        popup.overrideredirect(True)
        popup.resizable(False, False)
        self._popup = popup

        current = self._parse() or date.today()
        is_dark = ctk.get_appearance_mode() == "Dark"
        bg = "#2b2b2b" if is_dark else "#ffffff"
        fg = "#ffffff" if is_dark else "#000000"
        cal = Calendar(
            popup,
            selectmode="day",
            year=current.year,
            month=current.month,
            day=current.day,
            date_pattern="yyyy-mm-dd",
            background=bg,
            foreground=fg,
            headersbackground=bg,
            headersforeground=fg,
            selectbackground="#1f6aa5",
            othermonthforeground="gray60",
        )
        cal.pack(padx=4, pady=4)
        cal.bind("<<CalendarSelected>>", lambda e: self._on_selected(cal))

        self._entry.update_idletasks()
        x = self._entry.winfo_rootx()
        y = self._entry.winfo_rooty() + self._entry.winfo_height() + 2
        popup.geometry(f"+{x}+{y}")

    def _on_selected(self, cal: Calendar):
        self._var.set(format_display_date(cal.get_date(), self._date_format))
        self._entry.configure(border_color=("gray65", "gray35"))
        if self._popup:
            self._popup.destroy()
            self._popup = None
