from datetime import date

import pytest

from dashboard import (
    ALERT_THRESHOLD,
    budget_alerts,
    budget_status,
    build_dashboard,
    category_totals,
    clamp_percent,
    current_month_expenses,
    daily_totals,
    last_7_days_expenses,
    recent_transactions,
)
from records import BudgetRecord, ExpenseRecord

TODAY = date(2024, 3, 15)


@pytest.fixture
def expenses():
    return [
        ExpenseRecord(1, "Rent", 900, "housing", date(2024, 3, 1)),
        ExpenseRecord(2, "Groceries", 60, "food", date(2024, 3, 10)),
        ExpenseRecord(3, "Cinema", 25, "entertainment", date(2024, 3, 14)),
        ExpenseRecord(4, "Lunch", 15, "food", date(2024, 3, 15)),
        ExpenseRecord(5, "Flights", 300, "travel", date(2024, 2, 28)),
        ExpenseRecord(6, "Future", 10, "other", date(2024, 3, 31)),
    ]


def test_current_month(expenses):
    ids = [e.id for e in current_month_expenses(expenses, TODAY)]
    assert ids == [1, 2, 3, 4, 6]


def test_last_7_days(expenses):
    ids = [e.id for e in last_7_days_expenses(expenses, TODAY)]
    assert ids == [2, 3, 4]


def test_category_totals(expenses):
    totals = category_totals(expenses)
    assert totals["food"] == 75
    assert totals["housing"] == 900
    assert category_totals([]) == {}


def test_budget_status_is_unclamped():
    budgets = [BudgetRecord("food", 50), BudgetRecord("travel", 400), BudgetRecord("health", 100)]
    spent = [
        ExpenseRecord(1, "a", 60, "food", TODAY),
        ExpenseRecord(2, "b", 300, "travel", TODAY),
    ]
    status = {s.category: s for s in budget_status(budgets, spent)}
    assert status["food"].percentage == 120
    assert status["food"].remaining == -10
    assert status["travel"].percentage == 75
    assert status["health"].spent == 0
    assert status["health"].percentage == 0
    assert clamp_percent(status["food"].percentage) == 100
    assert clamp_percent(75) == 75


def test_budget_alerts_threshold():
    budgets = [BudgetRecord("food", 100), BudgetRecord("travel", 100), BudgetRecord("other", 100)]
    spent = [
        ExpenseRecord(1, "a", 80, "food", TODAY),
        ExpenseRecord(2, "b", 79, "travel", TODAY),
        ExpenseRecord(3, "c", 150, "other", TODAY),
    ]
    alerts = budget_alerts(budget_status(budgets, spent))
    assert ALERT_THRESHOLD == 80
    assert [a.category for a in alerts] == ["food", "other"]


def test_daily_totals(expenses):
    days = daily_totals(expenses, TODAY)
    assert len(days) == 7
    assert days[0].day == date(2024, 3, 9)
    assert days[-1].day == TODAY
    assert days[-1].label == "Fri"
    assert [d.total for d in days] == [0, 60, 0, 0, 0, 25, 15]


def test_recent_transactions(expenses):
    assert [e.id for e in recent_transactions(expenses, limit=3)] == [6, 4, 3]


def test_build_dashboard(expenses):
    data = build_dashboard(expenses, [BudgetRecord("food", 100)], TODAY)
    assert data.total == 1310
    assert data.month_total == 1010
    assert data.week_total == 100
    assert data.daily_average == pytest.approx(1010 / 15)
    assert data.spending_by_category["food"] == 75
    assert "travel" not in data.spending_by_category
    assert data.budget_status[0].percentage == 75
    assert data.budget_alerts == []
    assert len(data.recent_transactions) == 5


def test_budget_percentage_rounds_halves_up():
    budgets = [BudgetRecord("food", 100), BudgetRecord("travel", 8)]
    spent = [
        ExpenseRecord(1, "a", 12.5, "food", TODAY),
        ExpenseRecord(2, "b", 1, "travel", TODAY),
    ]
    status = {s.category: s for s in budget_status(budgets, spent)}
    assert status["food"].percentage == 13
    assert status["travel"].percentage == 13


def test_daily_average_on_first_of_month():
    first = date(2024, 3, 1)
    data = build_dashboard([ExpenseRecord(1, "Rent", 900, "housing", first)], [], first)
    assert data.daily_average == 900
