"""Client-side record types and the mapping to and from API documents."""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional


@dataclass
class ExpenseRecord:
    id: Optional[int]
    description: str
    amount: float
    category: str
    date: date


@dataclass
class BudgetRecord:
    category: str
    amount: float
    id: Optional[int] = None


@dataclass
class UserProfile:
    id: int
    email: str
    name: str
    currency: str = "USD"


def _to_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    # API dates are ISO timestamps; only the calendar day matters here
    return date.fromisoformat(str(value)[:10])


def expense_from_api(doc: Dict[str, Any]) -> ExpenseRecord:
    return ExpenseRecord(
        id=doc.get("id"),
        description=doc.get("description", ""),
        amount=float(doc.get("amount", 0)),
        category=doc.get("category", "other"),
        date=_to_date(doc["date"]),
    )


def expense_to_api(expense: ExpenseRecord) -> Dict[str, Any]:
    return {
        "description": expense.description,
        "amount": expense.amount,
        "category": expense.category,
        "date": expense.date.isoformat(),
    }


def budget_from_api(doc: Dict[str, Any]) -> BudgetRecord:
    return BudgetRecord(
        id=doc.get("id"),
        category=doc["category"],
        amount=float(doc.get("amount", 0)),
    )


def user_from_api(doc: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=doc["id"],
        email=doc["email"],
        name=doc.get("name") or "",
        currency=doc.get("currency") or "USD",
    )
