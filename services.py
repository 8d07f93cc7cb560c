"""Business operations behind the REST routes.

Every function takes an open session and the id of the authenticated caller;
the caller id is the only scoping key used for queries.
"""
import logging
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import utcnow
from errors import ConflictError, InvalidCredentials, NotFoundError, ServerError, ValidationError
from models import CATEGORIES, Budget, Expense, User
from schemas import (
    BudgetIn,
    BudgetSummary,
    CategorySummary,
    ExpenseIn,
    SignupIn,
    is_date_only,
    parse_iso_datetime,
)
from security import AuthService

logger = logging.getLogger(__name__)


def _commit(db: Session, action: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error %s", action)
        raise ServerError(f"Error {action}")


# ---------- Auth ----------

def signup_user(db: Session, auth: AuthService, payload: SignupIn) -> User:
    if db.query(User).filter(User.email == payload.email).first():
        raise ValidationError("Email already registered")
    user = User(
        email=payload.email,
        hashed_password=auth.get_password_hash(payload.password),
        name=payload.name,
        currency=payload.currency,
    )
    db.add(user)
    try:
        _commit(db, "creating user")
    except IntegrityError:
        raise ValidationError("Email already registered")
    db.refresh(user)
    logger.info("New user signed up: id=%s", user.id)
    return user


def authenticate_user(db: Session, auth: AuthService, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    # same error for unknown email and wrong password
    if not user or not auth.verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", email)
        raise InvalidCredentials()
    return user


# ---------- Date range ----------

def _apply_date_range(query, start: Optional[str], end: Optional[str]):
    try:
        if start:
            query = query.filter(Expense.date >= parse_iso_datetime(start))
        if end:
            end_at = parse_iso_datetime(end)
            if is_date_only(end):
                # a bare end date includes the whole day
                try:
                    query = query.filter(Expense.date < end_at + timedelta(days=1))
                except OverflowError:
                    query = query.filter(Expense.date <= end_at.replace(hour=23, minute=59, second=59, microsecond=999999))
            else:
                query = query.filter(Expense.date <= end_at)
    except ValueError:
        raise ValidationError("Invalid date format. Use ISO 8601 (YYYY-MM-DD)")
    return query


# ---------- Expenses ----------

def list_expenses(db: Session, owner_id: int, start: Optional[str] = None, end: Optional[str] = None) -> List[Expense]:
    q = db.query(Expense).filter(Expense.user_id == owner_id)
    q = _apply_date_range(q, start, end)
    return q.order_by(Expense.date.desc(), Expense.id.desc()).all()


def get_expense(db: Session, owner_id: int, expense_id: int) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id, Expense.user_id == owner_id).first()
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def create_expense(db: Session, owner_id: int, payload: ExpenseIn) -> Expense:
    expense = Expense(
        user_id=owner_id,
        description=payload.description,
        amount=payload.amount,
        category=payload.category.value,
        date=payload.date or utcnow(),
    )
    db.add(expense)
    _commit(db, "creating expense")
    db.refresh(expense)
    return expense


def update_expense(db: Session, owner_id: int, expense_id: int, payload: ExpenseIn) -> Expense:
    expense = get_expense(db, owner_id, expense_id)
    expense.description = payload.description
    expense.amount = payload.amount
    expense.category = payload.category.value
    if payload.date is not None:
        expense.date = payload.date
    _commit(db, "updating expense")
    db.refresh(expense)
    return expense


def delete_expense(db: Session, owner_id: int, expense_id: int):
    expense = get_expense(db, owner_id, expense_id)
    db.delete(expense)
    _commit(db, "deleting expense")


def _spending_by_category(db: Session, owner_id: int, start: Optional[str], end: Optional[str]):
    q = db.query(
        Expense.category,
        func.sum(Expense.amount).label("total"),
        func.count(Expense.id).label("count"),
    ).filter(Expense.user_id == owner_id)
    q = _apply_date_range(q, start, end)
    return q.group_by(Expense.category).all()


def expense_summary(db: Session, owner_id: int, start: Optional[str] = None, end: Optional[str] = None) -> List[CategorySummary]:
    rows = _spending_by_category(db, owner_id, start, end)
    summary = [
        CategorySummary(category=r[0], total_amount=float(r[1] or 0), count=int(r[2]))
        for r in rows
    ]
    summary.sort(key=lambda s: s.total_amount, reverse=True)
    return summary


# ---------- Budgets ----------

def _check_category(category: str) -> str:
    if category not in CATEGORIES:
        raise NotFoundError("Budget not found for this category")
    return category


def list_budgets(db: Session, owner_id: int) -> List[Budget]:
    return db.query(Budget).filter(Budget.user_id == owner_id).order_by(Budget.category).all()


def get_budget(db: Session, owner_id: int, category: str) -> Budget:
    _check_category(category)
    budget = db.query(Budget).filter(Budget.user_id == owner_id, Budget.category == category).first()
    if budget is None:
        raise NotFoundError("Budget not found for this category")
    return budget


def create_budget(db: Session, owner_id: int, payload: BudgetIn) -> Budget:
    category = payload.category.value
    duplicate = ConflictError("Budget for this category already exists. Use update instead.")
    existing = db.query(Budget).filter(Budget.user_id == owner_id, Budget.category == category).first()
    if existing:
        raise duplicate
    budget = Budget(user_id=owner_id, category=category, amount=payload.amount)
    db.add(budget)
    try:
        _commit(db, "creating budget")
    except IntegrityError:
        raise duplicate
    db.refresh(budget)
    return budget


def update_budget(db: Session, owner_id: int, category: str, amount: float) -> Budget:
    budget = get_budget(db, owner_id, category)
    budget.amount = amount
    _commit(db, "updating budget")
    db.refresh(budget)
    return budget


def delete_budget(db: Session, owner_id: int, category: str):
    budget = get_budget(db, owner_id, category)
    db.delete(budget)
    _commit(db, "deleting budget")


def percent_used(spent: float, budgeted: float) -> str:
    """Share of the budget spent, capped at 100 for progress bars."""
    percent = (spent / budgeted) * 100 if budgeted > 0 else 0.0
    return f"{min(percent, 100):.2f}"


def budget_summary(db: Session, owner_id: int, start: Optional[str] = None, end: Optional[str] = None) -> List[BudgetSummary]:
    spending: Dict[str, float] = {
        r[0]: float(r[1] or 0) for r in _spending_by_category(db, owner_id, start, end)
    }
    summary = []
    for budget in list_budgets(db, owner_id):
        spent = spending.get(budget.category, 0.0)
        summary.append(BudgetSummary(
            category=budget.category,
            budgeted=budget.amount,
            spent=spent,
            remaining=budget.amount - spent,
            percent_used=percent_used(spent, budget.amount),
        ))
    return summary
