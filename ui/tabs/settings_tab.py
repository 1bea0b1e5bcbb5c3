import json
import logging
from tkinter import filedialog, messagebox

import customtkinter as ctk

from database.db_manager import DatabaseManager
from services.auth_service import AuthService
from services.data_service import DataService
from ui.components.confirm_dialog import ConfirmDialog
from utils.app_config import get_db_folder, set_db_folder
from utils.date_helpers import DATE_FORMAT_OPTIONS

logger = logging.getLogger(__name__)

_DEFAULT_FOLDER_TEXT = "(default: app folder)"
_APPEARANCE_MODES = ["System", "Light", "Dark"]
_OK_COLOR = "#4CAF50"
_ERROR_COLOR = "#F44336"


class SettingsTab(ctk.CTkFrame):
    """Preferences stored in app_settings, plus backup/restore, the sign-in
    password and the pre-DB folder choice kept in the bootstrap config."""

    def __init__(
        self,
        master,
        db: DatabaseManager,
        data_service: DataService,
        auth_service: AuthService,
        notify_refresh,
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._db = db
        self._data_svc = data_service
        self._auth_svc = auth_service
        self._notify_refresh = notify_refresh

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(0, weight=1)

        body = ctk.CTkScrollableFrame(self, fg_color="transparent")
        body.grid(row=0, column=0, sticky="nsew")
        body.grid_columnconfigure(0, weight=1)

        builders = [
            ("Preferences", self._build_preferences),
            ("Backup / Restore", self._build_backup),
            ("Change Password", self._build_password),
            ("Database Folder", self._build_db_folder),
        ]
        for row, (title, build) in enumerate(builders):
            build(self._card(body, title, row))

    def refresh(self):
        for key, var in self._pref_vars.items():
            value = self._db.get_setting(key, self._pref_defaults[key])
            var.set(value.title() if key == "appearance_mode" else value)

    # ── Preferences ──────────────────────────────────────────────────────────

    def _build_preferences(self, card):
        self._pref_defaults = {
            "appearance_mode": "system",
            "currency_symbol": "$",
            "date_format": "YYYY-MM-DD",
        }
        self._pref_vars: dict[str, ctk.StringVar] = {}

        fields = [
            ("appearance_mode", "Appearance", _APPEARANCE_MODES),
            ("currency_symbol", "Currency symbol", None),
            ("date_format", "Date format", DATE_FORMAT_OPTIONS),
        ]
        for r, (key, label, choices) in enumerate(fields):
            ctk.CTkLabel(card, text=f"{label}:", width=130, anchor="e").grid(
                row=r, column=0, padx=(8, 6), pady=5, sticky="e"
            )
            var = ctk.StringVar()
            self._pref_vars[key] = var
            if choices:
                widget = ctk.CTkOptionMenu(card, values=choices, variable=var, width=170)
            else:
                widget = ctk.CTkEntry(card, textvariable=var, width=70)
            widget.grid(row=r, column=1, padx=4, pady=5, sticky="w")
        self.refresh()

        footer = ctk.CTkFrame(card, fg_color="transparent")
        footer.grid(row=len(fields), column=0, columnspan=2, sticky="w", padx=8, pady=(6, 4))
        ctk.CTkButton(footer, text="Save Preferences", width=140, command=self._save_preferences).pack(
            side="left"
        )
        self._pref_status = ctk.CTkLabel(
            footer, text="Currency and date format apply after a restart.",
            text_color="gray60", font=ctk.CTkFont(size=11),
        )
        self._pref_status.pack(side="left", padx=12)

    def _save_preferences(self):
        values = {key: var.get().strip() for key, var in self._pref_vars.items()}
        values["appearance_mode"] = values["appearance_mode"].lower() or "system"
        values["currency_symbol"] = values["currency_symbol"] or "$"
        for key, value in values.items():
            self._db.set_setting(key, value)
        ctk.set_appearance_mode(values["appearance_mode"])
        logger.info("Preferences saved: %s", values)
        self._pref_status.configure(text="Preferences saved.", text_color=_OK_COLOR)

    # ── Backup / Restore ─────────────────────────────────────────────────────

    def _build_backup(self, card):
        ctk.CTkButton(card, text="Export Backup (JSON)", width=160, command=self._export_json).grid(
            row=0, column=0, padx=(8, 4), pady=6, sticky="w"
        )
        ctk.CTkButton(
            card, text="Restore from JSON…", width=150,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self._import_json,
        ).grid(row=0, column=1, padx=4, pady=6, sticky="w")

        self._backup_status = ctk.CTkLabel(card, text="", font=ctk.CTkFont(size=11), anchor="w")
        self._backup_status.grid(row=1, column=0, columnspan=2, sticky="w", padx=8)

    def _export_json(self):
        path = filedialog.asksaveasfilename(
            title="Export Backup",
            defaultextension=".json",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._data_svc.export_json(), f, indent=2)
        except OSError as e:
            logger.error("Backup export to %s failed: %s", path, e)
            messagebox.showerror("Export Failed", str(e))
            return
        self._backup_status.configure(text=f"Backup written to {path}", text_color=_OK_COLOR)

    def _import_json(self):
        path = filedialog.askopenfilename(
            title="Restore from JSON",
            filetypes=[("JSON files", "*.json"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            messagebox.showerror("Restore Failed", f"Could not read file:\n{e}")
            return

        dlg = ConfirmDialog(
            self.winfo_toplevel(),
            "Restore Backup",
            "Replace the current budget and every logged transaction with the "
            "contents of this backup?",
            confirm_text="Replace",
        )
        if not dlg.result:
            return

        try:
            stats = self._data_svc.import_json(data)
        except ValueError as e:
            messagebox.showerror("Restore Failed", str(e))
            return
        self._notify_refresh("full")
        self._backup_status.configure(
            text=f"Restored {stats['categories']} categories and {stats['transactions']} transactions.",
            text_color=_OK_COLOR,
        )

    # ── Password ─────────────────────────────────────────────────────────────

    def _build_password(self, card):
        self._pw_vars = [ctk.StringVar() for _ in range(3)]
        for r, (label, var) in enumerate(zip(("Current", "New", "Confirm new"), self._pw_vars)):
            ctk.CTkLabel(card, text=f"{label}:", width=130, anchor="e").grid(
                row=r, column=0, padx=(8, 6), pady=4, sticky="e"
            )
            ctk.CTkEntry(card, textvariable=var, show="•", width=220).grid(
                row=r, column=1, padx=4, pady=4, sticky="w"
            )

        footer = ctk.CTkFrame(card, fg_color="transparent")
        footer.grid(row=3, column=0, columnspan=2, sticky="w", padx=8, pady=(6, 4))
        ctk.CTkButton(footer, text="Update Password", width=140, command=self._change_password).pack(
            side="left"
        )
        self._pw_status = ctk.CTkLabel(footer, text="", font=ctk.CTkFont(size=11))
        self._pw_status.pack(side="left", padx=12)

    def _change_password(self):
        old, new, confirm = (v.get() for v in self._pw_vars)
        if new != confirm:
            self._pw_status.configure(text="New passwords do not match.", text_color=_ERROR_COLOR)
            return
        try:
            self._auth_svc.change_password(old, new)
        except ValueError as e:
            self._pw_status.configure(text=str(e), text_color=_ERROR_COLOR)
            return
        for var in self._pw_vars:
            var.set("")
        self._pw_status.configure(text="Password updated.", text_color=_OK_COLOR)

    # ── Database folder ──────────────────────────────────────────────────────

    def _build_db_folder(self, card):
        self._folder_label = ctk.CTkLabel(
            card, text=get_db_folder() or _DEFAULT_FOLDER_TEXT, anchor="w",
        )
        self._folder_label.grid(row=0, column=0, columnspan=2, sticky="ew", padx=8, pady=(2, 6))

        ctk.CTkButton(card, text="Choose Folder…", width=130, command=self._choose_db_folder).grid(
            row=1, column=0, padx=(8, 4), sticky="w"
        )
        ctk.CTkButton(
            card, text="Use Default", width=110,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=lambda: self._apply_db_folder(None),
        ).grid(row=1, column=1, padx=4, sticky="w")

        self._folder_note = ctk.CTkLabel(
            card, text="", text_color="#FF9800", font=ctk.CTkFont(size=11), anchor="w",
        )
        self._folder_note.grid(row=2, column=0, columnspan=2, sticky="w", padx=8, pady=(4, 0))

    def _choose_db_folder(self):
        folder = filedialog.askdirectory(title="Choose DB folder")
        if folder:
            self._apply_db_folder(folder)

    def _apply_db_folder(self, folder: str | None):
        set_db_folder(folder)
        self._folder_label.configure(text=folder or _DEFAULT_FOLDER_TEXT)
        self._folder_note.configure(text="The new folder is used after a restart.")

    # ── Layout ───────────────────────────────────────────────────────────────

    def _card(self, parent, title: str, row: int) -> ctk.CTkFrame:
        outer = ctk.CTkFrame(parent, corner_radius=8)
        outer.grid(row=row, column=0, sticky="ew", padx=12, pady=8)
        outer.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(
            outer, text=title, font=ctk.CTkFont(size=14, weight="bold"), anchor="w",
        ).grid(row=0, column=0, sticky="w", padx=12, pady=(10, 4))

        inner = ctk.CTkFrame(outer, fg_color="transparent")
        inner.grid(row=1, column=0, sticky="ew", padx=4, pady=(0, 10))
        return inner
