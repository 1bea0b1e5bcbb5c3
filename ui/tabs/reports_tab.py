import csv
import logging
import tkinter as tk
from tkinter import filedialog, messagebox

import customtkinter as ctk
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from services.report_service import ReportService, export_filename
from utils.constants import ACTUAL_COLOR, PLANNED_COLOR
from utils.currency import format_currency, format_percent

logger = logging.getLogger(__name__)


class ReportsTab(ctk.CTkFrame):
    def __init__(
        self,
        master,
        report_service: ReportService,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(master, fg_color="transparent", **kwargs)
        self._report_svc = report_service
        self._symbol = currency_symbol

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(2, weight=1)

        self._build_toolbar()
        self._build_summary()
        self._build_charts()
        self._load()

    def refresh(self):
        self._load()

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=("gray88", "gray18"), corner_radius=8)
        bar.grid(row=0, column=0, sticky="ew", padx=8, pady=(8, 0))

        ctk.CTkLabel(
            bar, text="This Month", font=ctk.CTkFont(size=13, weight="bold"),
        ).pack(side="left", padx=12, pady=8)

        ctk.CTkButton(bar, text="Export PDF", command=self._export_pdf).pack(side="right", padx=(4, 8))
        ctk.CTkButton(bar, text="Export Excel", command=self._export_xlsx).pack(side="right", padx=4)
        ctk.CTkButton(
            bar, text="Export Transactions CSV", command=self._export_transactions_csv,
        ).pack(side="right", padx=4)
        ctk.CTkButton(bar, text="Export Budget CSV", command=self._export_csv).pack(side="right", padx=4)

    def _build_summary(self):
        self._summary_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._summary_frame.grid(row=1, column=0, sticky="ew", padx=16, pady=10)
        self._summary_frame.grid_columnconfigure((0, 1, 2, 3), weight=1)

    def _build_charts(self):
        charts = ctk.CTkFrame(self, fg_color="transparent")
        charts.grid(row=2, column=0, sticky="nsew", padx=16, pady=(0, 12))
        charts.grid_columnconfigure(0, weight=2)
        charts.grid_columnconfigure(1, weight=3)
        charts.grid_rowconfigure(0, weight=1)

        pie_card, self._pie_fig, self._pie_ax, self._pie_mpl = self._chart_card(
            charts, 0, "Expense Breakdown", (3, 3)
        )
        self._legend_frame = ctk.CTkFrame(pie_card, fg_color="transparent")
        self._legend_frame.pack(fill="x", padx=8, pady=(0, 8))

        _, self._bar_fig, self._bar_ax, self._bar_mpl = self._chart_card(
            charts, 1, "Planned vs Actual", (5, 3)
        )

    @staticmethod
    def _chart_card(parent, column: int, title: str, figsize):
        """Rounded card holding a titled matplotlib canvas."""
        card = ctk.CTkFrame(parent, fg_color=("gray90", "gray20"), corner_radius=8)
        card.grid(row=0, column=column, sticky="nsew", padx=(0, 8) if column == 0 else 0)
        ctk.CTkLabel(card, text=title, font=ctk.CTkFont(size=13, weight="bold")).pack(pady=(10, 0))
        fig = Figure(figsize=figsize, dpi=80, tight_layout=True)
        ax = fig.add_subplot(111)
        canvas = FigureCanvasTkAgg(fig, master=card)
        canvas.get_tk_widget().pack(fill="both", expand=True, padx=8, pady=(4, 10))
        return card, fig, ax, canvas

    @staticmethod
    def _style_ax(ax, fig):
        dark = ctk.get_appearance_mode() == "Dark"
        bg, fg = ("#2b2b2b", "#aaaaaa") if dark else ("#e4e4e4", "#444444")
        fig.patch.set_facecolor(bg)
        ax.set_facecolor(bg)
        ax.tick_params(colors=fg, labelsize=8)
        for spine in ax.spines.values():
            spine.set_edgecolor(fg)

    def _load(self):
        for w in self._summary_frame.winfo_children():
            w.destroy()
        totals = self._report_svc.get_summary()
        left_color = "#4CAF50" if totals.money_left >= 0 else "#F44336"
        for i, (label, text, color) in enumerate([
            ("Planned", format_currency(totals.total_planned, self._symbol), PLANNED_COLOR),
            ("Spent", format_currency(totals.total_actual, self._symbol), ACTUAL_COLOR),
            ("Money Left", format_currency(totals.money_left, self._symbol), left_color),
            ("Savings Rate", format_percent(totals.savings_rate), left_color),
        ]):
            card = ctk.CTkFrame(
                self._summary_frame, fg_color=("gray90", "gray20"), corner_radius=10
            )
            card.grid(row=0, column=i, padx=6, sticky="ew")
            ctk.CTkLabel(card, text=label, text_color="gray60").pack(pady=(10, 0), padx=16)
            ctk.CTkLabel(
                card, text=text,
                font=ctk.CTkFont(size=18, weight="bold"),
                text_color=color,
            ).pack(pady=(4, 10), padx=16)

        breakdown = self._report_svc.get_expense_breakdown()
        self.after(50, lambda b=breakdown: self._draw_pie_chart(b))
        self.after(50, self._draw_bar_chart)

        for w in self._legend_frame.winfo_children():
            w.destroy()
        for item in breakdown:
            row = ctk.CTkFrame(self._legend_frame, fg_color="transparent")
            row.pack(fill="x", pady=1)
            tk.Label(row, bg=item["color_hex"], width=2).pack(side="left", padx=(0, 4))
            ctk.CTkLabel(
                row, text=f"{item['category']}: {format_currency(item['total'], self._symbol)}",
                anchor="w", font=ctk.CTkFont(size=11),
            ).pack(side="left")

    def _draw_bar_chart(self):
        ax = self._bar_ax
        ax.clear()
        self._style_ax(ax, self._bar_fig)

        series = self._report_svc.get_comparison_series()
        if not series["labels"]:
            ax.text(0.5, 0.5, "No categories", ha="center", va="center",
                    transform=ax.transAxes, color="gray")
            self._bar_mpl.draw_idle()
            return

        y = list(range(len(series["labels"])))
        h = 0.4
        ax.barh([i - h / 2 for i in y], series["planned"], h, color=PLANNED_COLOR, label="Planned")
        ax.barh([i + h / 2 for i in y], series["actual"], h, color=ACTUAL_COLOR, label="Actual")
        ax.set_yticks(y)
        ax.set_yticklabels(series["labels"])
        ax.invert_yaxis()
        ax.xaxis.set_major_formatter(
            lambda v, _: f"{v/1000:.0f}k" if abs(v) >= 1000 else f"{v:.0f}"
        )
        ax.legend(loc="lower right", fontsize=8)
        self._bar_mpl.draw_idle()

    def _draw_pie_chart(self, breakdown):
        ax = self._pie_ax
        ax.clear()
        self._style_ax(ax, self._pie_fig)

        if not breakdown:
            ax.text(0.5, 0.5, "No expense data", ha="center", va="center",
                    transform=ax.transAxes, color="gray")
            self._pie_mpl.draw_idle()
            return

        ax.pie(
            [d["total"] for d in breakdown],
            colors=[d["color_hex"] for d in breakdown],
            startangle=90,
            wedgeprops={"width": 0.45},
        )
        ax.set_aspect("equal")
        self._pie_mpl.draw_idle()

    # ── Export ────────────────────────────────────────────────────────────────

    def _export_csv(self):
        self._write_csv(self._report_svc.export_csv_rows(), export_filename("csv"))

    def _export_transactions_csv(self):
        initial = export_filename("csv").replace("Budget", "Transactions", 1)
        self._write_csv(self._report_svc.export_transactions_rows(), initial)

    def _write_csv(self, rows, initial_file):
        path = filedialog.asksaveasfilename(
            defaultextension=".csv",
            filetypes=[("CSV files", "*.csv")],
            initialfile=initial_file,
        )
        if not path:
            return
        try:
            with open(path, "w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerows(rows)
        except OSError as e:
            logger.error("CSV export to %s failed: %s", path, e)
            messagebox.showerror("Export Failed", str(e))
            return
        logger.info("Exported %d CSV rows to %s", len(rows) - 1, path)

    def _export_pdf(self):
        path = filedialog.asksaveasfilename(
            defaultextension=".pdf",
            filetypes=[("PDF files", "*.pdf")],
            initialfile=export_filename("pdf"),
        )
        if not path:
            return
        try:
            self._report_svc.export_pdf(path, symbol=self._symbol)
        except OSError as e:
            logger.error("PDF export to %s failed: %s", path, e)
            messagebox.showerror("Export Failed", str(e))

    def _export_xlsx(self):
        path = filedialog.asksaveasfilename(
            defaultextension=".xlsx",
            filetypes=[("Excel workbooks", "*.xlsx")],
            initialfile=export_filename("xlsx"),
        )
        if not path:
            return
        try:
            self._report_svc.export_xlsx(path)
        except OSError as e:
            logger.error("Excel export to %s failed: %s", path, e)
            messagebox.showerror("Export Failed", str(e))
