import customtkinter as ctk

from services.auth_service import AuthService, Credentials
from utils.constants import APP_NAME


class LoginDialog(ctk.CTk):
    """Sign-in window shown before the main app.

    On first run (no stored credentials) it asks the user to create them.
    Check ``.authorized`` after ``mainloop()`` returns.
    """

    def __init__(self, auth_service: AuthService, **kwargs):
        super().__init__(**kwargs)
        self._svc = auth_service
        self._first_run = not auth_service.has_credentials()
        self.authorized = False

        self.title(APP_NAME)
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        heading = "Create your login" if self._first_run else "Sign in"
        ctk.CTkLabel(
            self, text=heading, font=ctk.CTkFont(size=16, weight="bold"),
        ).grid(row=0, column=0, columnspan=2, padx=24, pady=(20, 8))

        r = 1
        ctk.CTkLabel(self, text="Email:").grid(row=r, column=0, padx=(24, 8), pady=4, sticky="e")
        self._email_var = ctk.StringVar()
        email_entry = ctk.CTkEntry(self, textvariable=self._email_var, width=240)
        email_entry.grid(row=r, column=1, padx=(0, 24), pady=4, sticky="ew")
        r += 1

        ctk.CTkLabel(self, text="Password:").grid(row=r, column=0, padx=(24, 8), pady=4, sticky="e")
        self._password_var = ctk.StringVar()
        pw_entry = ctk.CTkEntry(self, textvariable=self._password_var, show="•", width=240)
        pw_entry.grid(row=r, column=1, padx=(0, 24), pady=4, sticky="ew")
        pw_entry.bind("<Return>", lambda _e: self._on_submit())
        r += 1

        if self._first_run:
            ctk.CTkLabel(self, text="Confirm:").grid(row=r, column=0, padx=(24, 8), pady=4, sticky="e")
            self._confirm_var = ctk.StringVar()
            ctk.CTkEntry(self, textvariable=self._confirm_var, show="•", width=240).grid(
                row=r, column=1, padx=(0, 24), pady=4, sticky="ew"
            )
            r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var, text_color="#F44336",
            wraplength=300, anchor="w",
        ).grid(row=r, column=0, columnspan=2, padx=24, pady=(4, 0), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=24, pady=(8, 20), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Quit", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        ctk.CTkButton(
            btn_frame, text="Create" if self._first_run else "Sign In", width=110,
            command=self._on_submit,
        ).pack(side="right")

        email_entry.focus_set()

    def _on_submit(self):
        email = self._email_var.get()
        password = self._password_var.get()
        if self._first_run:
            if password != self._confirm_var.get():
                self._error_var.set("Passwords do not match.")
                return
            try:
                self._svc.set_credentials(email, password)
            except ValueError as e:
                self._error_var.set(str(e))
                return
        elif not self._svc.is_authorized(Credentials(email, password)):
            self._error_var.set("Invalid email or password. Please try again.")
            self._password_var.set("")
            return

        self.authorized = True
        self.destroy()
