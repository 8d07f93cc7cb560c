"""
Request and response schemas

Pydantic models for everything that crosses the HTTP boundary. Response
models read straight from the ORM rows (``from_attributes``) and emit the
camelCase field names the client expects.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from currency import DEFAULT_CURRENCY, normalize_currency
from models import Category

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


def parse_iso_datetime(value: str) -> datetime:
    """Parse ``2024-01-05`` or a full ISO 8601 timestamp into naive UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError("Invalid date format. Use ISO 8601")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def is_date_only(value: str) -> bool:
    return len(value.strip()) == 10


# ---------- Auth ----------

class SignupIn(BaseModel):
    name: TrimmedStr
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    currency: str = DEFAULT_CURRENCY

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("currency")
    @classmethod
    def check_currency(cls, v: str) -> str:
        return normalize_currency(v)


class LoginIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    currency: str


class AuthOut(BaseModel):
    user: UserOut
    token: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str


class MessageOut(BaseModel):
    message: str


# ---------- Expenses ----------

class ExpenseIn(BaseModel):
    description: TrimmedStr
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Expense amount, must be positive")
    category: Category
    date: Optional[datetime] = Field(None, description="When the expense happened, defaults to now")

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        if isinstance(v, str):
            return parse_iso_datetime(v)
        return v


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    amount: float
    category: str
    date: datetime
    user_id: int = Field(serialization_alias="userId")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class CategorySummary(BaseModel):
    category: str
    total_amount: float = Field(serialization_alias="totalAmount")
    count: int


# ---------- Budgets ----------

class BudgetIn(BaseModel):
    category: Category
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Monthly budget for the category")


class BudgetUpdate(BaseModel):
    amount: float = Field(..., gt=0, allow_inf_nan=False)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    amount: float
    user_id: int = Field(serialization_alias="userId")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class BudgetSummary(BaseModel):
    category: str
    budgeted: float
    spent: float
    remaining: float
    percent_used: str = Field(serialization_alias="percentUsed")
