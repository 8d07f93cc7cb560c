"""Dashboard figures derived from the locally mirrored expenses and budgets.

Everything here is a pure function of its inputs and is recomputed on every
render; nothing is persisted.
"""
import calendar
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional

from records import BudgetRecord, ExpenseRecord

ALERT_THRESHOLD = 80


@dataclass
class BudgetStatus:
    category: str
    budget: float
    spent: float
    remaining: float
    percentage: int


@dataclass
class DailyTotal:
    day: date
    label: str
    total: float


@dataclass
class DashboardData:
    total: float
    month_total: float
    week_total: float
    daily_average: float
    spending_by_category: Dict[str, float]
    budget_status: List[BudgetStatus]
    budget_alerts: List[BudgetStatus]
    daily_totals: List[DailyTotal]
    recent_transactions: List[ExpenseRecord] = field(default_factory=list)


def _sum(expenses: List[ExpenseRecord]) -> float:
    return sum(e.amount for e in expenses)


def current_month_expenses(expenses: List[ExpenseRecord], today: Optional[date] = None) -> List[ExpenseRecord]:
    today = today or date.today()
    first = today.replace(day=1)
    last = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    return [e for e in expenses if first <= e.date <= last]


def last_7_days_expenses(expenses: List[ExpenseRecord], today: Optional[date] = None) -> List[ExpenseRecord]:
    today = today or date.today()
    since = today - timedelta(days=7)
    return [e for e in expenses if since <= e.date <= today]


def category_totals(expenses: List[ExpenseRecord]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    return totals


def budget_status(budgets: List[BudgetRecord], expenses: List[ExpenseRecord]) -> List[BudgetStatus]:
    """Spend against each budget. ``percentage`` is not clamped."""
    spending = category_totals(expenses)
    status = []
    for b in budgets:
        spent = spending.get(b.category, 0.0)
        # halves round up
        percentage = math.floor(spent / b.amount * 100 + 0.5) if b.amount > 0 else 0
        status.append(BudgetStatus(b.category, b.amount, spent, b.amount - spent, percentage))
    return status


def budget_alerts(status: List[BudgetStatus], threshold: int = ALERT_THRESHOLD) -> List[BudgetStatus]:
    return [s for s in status if s.percentage >= threshold]


def clamp_percent(percentage: float) -> float:
    return min(percentage, 100)


def daily_totals(expenses: List[ExpenseRecord], today: Optional[date] = None, days: int = 7) -> List[DailyTotal]:
    today = today or date.today()
    out = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        total = _sum([e for e in expenses if e.date == day])
        out.append(DailyTotal(day, day.strftime("%a"), total))
    return out


def recent_transactions(expenses: List[ExpenseRecord], limit: int = 5) -> List[ExpenseRecord]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)[:limit]


def build_dashboard(expenses: List[ExpenseRecord], budgets: List[BudgetRecord], today: Optional[date] = None) -> DashboardData:
    today = today or date.today()
    month = current_month_expenses(expenses, today)
    status = budget_status(budgets, month)
    return DashboardData(
        total=_sum(expenses),
        month_total=_sum(month),
        week_total=_sum(last_7_days_expenses(expenses, today)),
        daily_average=_sum(month) / max(today.day, 1),
        spending_by_category=category_totals(month),
        budget_status=status,
        budget_alerts=budget_alerts(status),
        daily_totals=daily_totals(expenses, today),
        recent_transactions=recent_transactions(expenses),
    )
