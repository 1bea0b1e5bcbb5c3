import logging
from datetime import date

from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from models.export_snapshot import CategoryRow, ExportSnapshot, LedgerTotals
from models.income import Income
from models.ledger import Ledger
from services.ledger_service import LedgerService
from utils.constants import ACTUAL_COLOR, APP_NAME, PLANNED_COLOR
from utils.currency import format_currency, format_percent
from utils.date_helpers import today

logger = logging.getLogger(__name__)

_TX_ROWS_PER_PAGE = 40
_MONEY_FORMAT = '"$"#,##0.00'
_HEADER_FILL = PatternFill(start_color="E5E7EB", end_color="E5E7EB", fill_type="solid")


def _style_header(ws, row: int):
    for cell in ws[row]:
        cell.font = Font(bold=True)
        cell.fill = _HEADER_FILL


def _set_widths(ws, widths):
    for i, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def compute_totals(ledger: Ledger) -> LedgerTotals:
    """Pure aggregation over the ledger; never mutates it."""
    rows = tuple(
        CategoryRow(
            category_id=c.id,
            category=c.name,
            planned=c.planned_amount,
            actual=c.actual_amount,
            difference=c.difference,
            status=c.status,
        )
        for c in ledger.categories
    )
    income = ledger.income.amount
    total_planned = round(sum(r.planned for r in rows), 2)
    total_actual = round(sum(r.actual for r in rows), 2)
    money_left = round(income - total_actual, 2)
    savings_rate = (money_left / income) * 100 if income > 0 else 0.0
    return LedgerTotals(
        income=income,
        total_planned=total_planned,
        total_actual=total_actual,
        money_left=money_left,
        savings_rate=savings_rate,
        total_difference=round(total_planned - total_actual, 2),
        rows=rows,
    )


def export_filename(extension: str, on: date | None = None) -> str:
    """e.g. 'Monthly_Budget_January_2024.csv'."""
    d = on or today()
    return f"Monthly_Budget_{d.strftime('%B')}_{d.year}.{extension}"


class ReportService:
    def __init__(self, ledger_service: LedgerService):
        self._ledger_svc = ledger_service

    def get_summary(self) -> LedgerTotals:
        return compute_totals(self._ledger_svc.ledger)

    def get_expense_breakdown(self) -> list[dict]:
        """Return [{category, total, color_hex}, ...] for the doughnut chart.

        Categories without spending are left out.
        """
        return [
            {"category": c.name, "total": c.actual_amount, "color_hex": c.color_hex}
            for c in self._ledger_svc.ledger.categories
            if c.actual_amount > 0
        ]

    def get_comparison_series(self) -> dict:
        """Return {labels, planned, actual} for the planned vs actual bar chart."""
        categories = self._ledger_svc.ledger.categories
        return {
            "labels": [c.name for c in categories],
            "planned": [c.planned_amount for c in categories],
            "actual": [c.actual_amount for c in categories],
        }

    def build_export_snapshot(self) -> ExportSnapshot:
        ledger = self._ledger_svc.ledger
        totals = compute_totals(ledger)
        return ExportSnapshot(
            income=Income(name=ledger.income.name, amount=ledger.income.amount),
            totals=totals,
            per_category_rows=totals.rows,
            transactions=tuple(ledger.sorted_transactions()),
        )

    def export_csv_rows(self) -> list[list[str]]:
        """Category,Planned,Actual,Difference rows plus a TOTAL row."""
        snap = self.build_export_snapshot()
        rows = [["Category", "Planned", "Actual", "Difference"]]
        for r in snap.per_category_rows:
            rows.append([r.category, f"{r.planned:.2f}", f"{r.actual:.2f}", f"{r.difference:.2f}"])
        t = snap.totals
        rows.append(["TOTAL", f"{t.total_planned:.2f}", f"{t.total_actual:.2f}", f"{t.total_difference:.2f}"])
        return rows

    def export_transactions_rows(self) -> list[list[str]]:
        snap = self.build_export_snapshot()
        rows = [["Date", "Category", "Amount", "Notes"]]
        for tx in snap.transactions:
            rows.append([
                tx.date,
                self._ledger_svc.category_name(tx.category_id),
                f"{tx.amount:.2f}",
                tx.notes,
            ])
        return rows

    def export_pdf(self, path: str, symbol: str = "$"):
        """Write a summary, budget table and charts to a multi-page PDF."""
        snap = self.build_export_snapshot()
        t = snap.totals
        with PdfPages(path) as pdf:
            fig = Figure(figsize=(8.5, 11))
            ax = fig.add_subplot(111)
            ax.axis("off")
            ax.set_title(f"{APP_NAME}: Monthly Budget Summary", fontsize=14, loc="left")
            summary = [
                ["Total Income", format_currency(t.income, symbol)],
                ["Total Planned Expenses", format_currency(t.total_planned, symbol)],
                ["Total Actual Expenses", format_currency(t.total_actual, symbol)],
                ["Money Left", format_currency(t.money_left, symbol)],
                ["Savings Rate", format_percent(t.savings_rate)],
            ]
            budget = [
                [r.category, format_currency(r.planned, symbol),
                 format_currency(r.actual, symbol), format_currency(r.difference, symbol)]
                for r in snap.per_category_rows
            ]
            budget.append([
                "TOTAL", format_currency(t.total_planned, symbol),
                format_currency(t.total_actual, symbol),
                format_currency(t.total_difference, symbol),
            ])
            ax.table(cellText=summary, colLabels=["Metric", "Value"],
                     loc="upper left", bbox=[0, 0.72, 0.6, 0.22])
            ax.table(cellText=budget, colLabels=["Category", "Planned", "Actual", "Difference"],
                     loc="lower left", bbox=[0, 0.0, 1.0, 0.66])
            pdf.savefig(fig)

            fig = Figure(figsize=(8.5, 11))
            pie_ax = fig.add_subplot(211)
            breakdown = self.get_expense_breakdown()
            if breakdown:
                pie_ax.pie(
                    [d["total"] for d in breakdown],
                    labels=[d["category"] for d in breakdown],
                    colors=[d["color_hex"] for d in breakdown],
                    startangle=90,
                    wedgeprops={"width": 0.45},
                )
                pie_ax.set_aspect("equal")
            else:
                pie_ax.text(0.5, 0.5, "No expense data", ha="center", va="center",
                            transform=pie_ax.transAxes)
                pie_ax.axis("off")
            pie_ax.set_title("Expense Breakdown")

            bar_ax = fig.add_subplot(212)
            series = self.get_comparison_series()
            y = list(range(len(series["labels"])))
            h = 0.4
            bar_ax.barh([i - h / 2 for i in y], series["planned"], h, color=PLANNED_COLOR, label="Planned")
            bar_ax.barh([i + h / 2 for i in y], series["actual"], h, color=ACTUAL_COLOR, label="Actual")
            bar_ax.set_yticks(y)
            bar_ax.set_yticklabels(series["labels"], fontsize=8)
            bar_ax.invert_yaxis()
            bar_ax.legend(loc="lower right")
            bar_ax.set_title("Planned vs Actual")
            fig.tight_layout()
            pdf.savefig(fig)

            tx_rows = self.export_transactions_rows()
            header, body = tx_rows[0], tx_rows[1:]
            for start in range(0, len(body), _TX_ROWS_PER_PAGE):
                fig = Figure(figsize=(8.5, 11))
                ax = fig.add_subplot(111)
                ax.axis("off")
                ax.set_title("Transactions", loc="left")
                ax.table(cellText=body[start:start + _TX_ROWS_PER_PAGE], colLabels=header, loc="upper left")
                pdf.savefig(fig)

        logger.info("Exported PDF report to %s", path)

    def export_xlsx(self, path: str):
        """Write Summary, Monthly Budget and Transactions sheets to a workbook."""
        snap = self.build_export_snapshot()
        t = snap.totals
        wb = Workbook()

        ws = wb.active
        ws.title = "Summary"
        ws.append(["Monthly Budget Summary"])
        ws.append([])
        ws.append(["Metric", "Value"])
        for label, value in [
            ("Total Income", t.income),
            ("Total Planned Expenses", t.total_planned),
            ("Total Actual Expenses", t.total_actual),
            ("Money Left", t.money_left),
        ]:
            ws.append([label, value])
            ws.cell(row=ws.max_row, column=2).number_format = _MONEY_FORMAT
        ws.append(["Savings Rate", round(t.savings_rate / 100, 4)])
        ws.cell(row=ws.max_row, column=2).number_format = "0.0%"
        ws["A1"].font = Font(bold=True, size=14)
        _style_header(ws, 3)
        _set_widths(ws, [25, 20])

        ws = wb.create_sheet("Monthly Budget")
        ws.append(["Category", "Planned", "Actual", "Difference"])
        for r in snap.per_category_rows:
            ws.append([r.category, r.planned, r.actual, r.difference])
        ws.append([])
        ws.append(["TOTAL", t.total_planned, t.total_actual, t.total_difference])
        for cell in ws[ws.max_row]:
            cell.font = Font(bold=True)
        for row in ws.iter_rows(min_row=2, min_col=2, max_col=4):
            for cell in row:
                cell.number_format = _MONEY_FORMAT
        _style_header(ws, 1)
        _set_widths(ws, [20, 12, 12, 12])

        ws = wb.create_sheet("Transactions")
        ws.append(["Date", "Category", "Amount", "Notes"])
        for tx in snap.transactions:
            ws.append([tx.date, self._ledger_svc.category_name(tx.category_id), tx.amount, tx.notes])
            ws.cell(row=ws.max_row, column=3).number_format = _MONEY_FORMAT
        _style_header(ws, 1)
        _set_widths(ws, [12, 20, 12, 30])

        wb.save(path)
        logger.info("Exported workbook with %d transactions to %s", len(snap.transactions), path)
