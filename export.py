import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from currency import DEFAULT_CURRENCY, format_amount
from records import ExpenseRecord

HEADERS = ["Date", "Description", "Category", "Amount"]
SORT_KEYS = ("date", "description", "category", "amount")


@dataclass
class ExpenseFilters:
    category: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    def is_active(self) -> bool:
        return any(v is not None for v in (self.category, self.start_date, self.end_date, self.min_amount, self.max_amount))


def filter_expenses(expenses: List[ExpenseRecord], filters: Optional[ExpenseFilters] = None) -> List[ExpenseRecord]:
    if filters is None:
        return list(expenses)
    out = []
    for e in expenses:
        if filters.category and e.category != filters.category:
            continue
        if filters.start_date and e.date < filters.start_date:
            continue
        if filters.end_date and e.date > filters.end_date:
            continue
        if filters.min_amount is not None and e.amount < filters.min_amount:
            continue
        if filters.max_amount is not None and e.amount > filters.max_amount:
            continue
        out.append(e)
    return out


def sort_expenses(expenses: List[ExpenseRecord], key: Optional[str] = None, ascending: bool = True) -> List[ExpenseRecord]:
    """Sort by one column; without a key the newest expense comes first."""
    if key is None:
        return sorted(expenses, key=lambda e: e.date, reverse=True)
    if key not in SORT_KEYS:
        raise ValueError(f"Cannot sort by {key!r}")
    return sorted(expenses, key=lambda e: getattr(e, key), reverse=not ascending)


def _total(expenses: List[ExpenseRecord]) -> float:
    return sum(e.amount for e in expenses)


def expenses_to_csv(expenses: List[ExpenseRecord]) -> str:
    si = io.StringIO()
    writer = csv.writer(si, lineterminator="\n")
    writer.writerow(HEADERS)
    for e in expenses:
        writer.writerow([e.date.isoformat(), e.description, e.category, e.amount])
    writer.writerow(["", "", "Total", _total(expenses)])
    return si.getvalue()


def expenses_to_pdf(expenses: List[ExpenseRecord], filters: Optional[ExpenseFilters] = None, currency: str = DEFAULT_CURRENCY) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title="Expense Report")
    styles = getSampleStyleSheet()

    story = [Paragraph("Expense Report", styles["Title"])]
    if filters and (filters.start_date or filters.end_date):
        start = filters.start_date.isoformat() if filters.start_date else "All"
        end = filters.end_date.isoformat() if filters.end_date else "All"
        story.append(Paragraph(f"Date Range: {start} to {end}", styles["Normal"]))
    if filters and filters.category:
        story.append(Paragraph(f"Category: {filters.category.capitalize()}", styles["Normal"]))
    story.append(Spacer(1, 12))

    rows = [HEADERS]
    for e in expenses:
        rows.append([
            e.date.strftime("%m/%d/%Y"),
            e.description,
            e.category.capitalize(),
            format_amount(e.amount, currency),
        ])
    rows.append(["", "", "Total", format_amount(_total(expenses), currency)])

    # header row repeats on every page
    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(46 / 255, 125 / 255, 50 / 255)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("BACKGROUND", (0, -1), (-1, -1), colors.Color(240 / 255, 240 / 255, 240 / 255)),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (3, 0), (3, -1), "RIGHT"),
    ]))
    story.append(table)

    doc.build(story)
    return buffer.getvalue()
