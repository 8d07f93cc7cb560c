"""HTTP client and local state mirror for the expense tracker API.

``ApiClient`` speaks the REST surface and maps responses into the record
types from ``records``. ``AuthSession`` and ``ExpenseStore`` keep the
in-memory state a UI renders from; they are plain objects handed to each
other explicitly.
"""
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from errors import AppError, AuthenticationError, NetworkError, error_for_status
from records import (
    BudgetRecord,
    ExpenseRecord,
    UserProfile,
    budget_from_api,
    expense_from_api,
    expense_to_api,
    user_from_api,
)

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:11000"


# ---------- HTTP ----------

class ApiClient:
    def __init__(self, http: httpx.Client, token: Optional[str] = None):
        self.http = http
        self.token = token

    @classmethod
    def connect(cls, base_url: str = DEFAULT_SERVER_URL, timeout: float = 10.0) -> "ApiClient":
        return cls(httpx.Client(base_url=base_url, timeout=timeout))

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, json_body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.http.request(method, path, headers=self._headers(), json=json_body, params=params or None)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(str(e))
        if response.is_error:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            raise error_for_status(response.status_code, message)
        return response.json()

    @staticmethod
    def _range(start: Optional[date], end: Optional[date]) -> Dict[str, Optional[str]]:
        return {
            "startDate": start.isoformat() if start else None,
            "endDate": end.isoformat() if end else None,
        }

    # auth
    def signup(self, name: str, email: str, password: str, currency: str = "USD") -> Tuple[UserProfile, str]:
        data = self._request("POST", "/api/auth/signup", {"name": name, "email": email, "password": password, "currency": currency})
        return user_from_api(data["user"]), data["token"]

    def login(self, email: str, password: str) -> Tuple[UserProfile, str]:
        data = self._request("POST", "/api/auth/login", {"email": email, "password": password})
        return user_from_api(data["user"]), data["token"]

    # expenses
    def list_expenses(self, start: Optional[date] = None, end: Optional[date] = None) -> List[ExpenseRecord]:
        return [expense_from_api(d) for d in self._request("GET", "/api/expense", params=self._range(start, end))]

    def get_expense(self, expense_id: int) -> ExpenseRecord:
        return expense_from_api(self._request("GET", f"/api/expense/{expense_id}"))

    def create_expense(self, expense: ExpenseRecord) -> ExpenseRecord:
        return expense_from_api(self._request("POST", "/api/expense", expense_to_api(expense)))

    def update_expense(self, expense: ExpenseRecord) -> ExpenseRecord:
        return expense_from_api(self._request("PUT", f"/api/expense/{expense.id}", expense_to_api(expense)))

    def delete_expense(self, expense_id: int) -> str:
        return self._request("DELETE", f"/api/expense/{expense_id}")["message"]

    def expense_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/expense/summary/categories", params=self._range(start, end))

    # budgets
    def list_budgets(self) -> List[BudgetRecord]:
        return [budget_from_api(d) for d in self._request("GET", "/api/budget")]

    def create_budget(self, category: str, amount: float) -> BudgetRecord:
        return budget_from_api(self._request("POST", "/api/budget", {"category": category, "amount": amount}))

    def update_budget(self, category: str, amount: float) -> BudgetRecord:
        return budget_from_api(self._request("PUT", f"/api/budget/{category}", {"amount": amount}))

    def delete_budget(self, category: str) -> str:
        return self._request("DELETE", f"/api/budget/{category}")["message"]

    def budget_summary(self, start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/budget/summary", params=self._range(start, end))


# ---------- Session persistence ----------

class SessionCache:
    """Token and profile kept on disk so a restart can restore the login."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def save(self, token: str, user: UserProfile):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "user": asdict(user)}))

    def load(self) -> Optional[Tuple[str, UserProfile]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
            return data["token"], UserProfile(**data["user"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Ignoring unreadable session cache at %s", self.path)
            return None

    def clear(self):
        if self.path.exists():
            self.path.unlink()


# ---------- Auth ----------

@dataclass
class AuthState:
    is_authenticated: bool = False
    user: Optional[UserProfile] = None
    token: Optional[str] = None
    error: Optional[str] = None


class AuthSession:
    def __init__(self, api: ApiClient, cache: Optional[SessionCache] = None):
        self.api = api
        self.cache = cache
        self.state = AuthState()
        self._listeners: List[Callable[[AuthState], None]] = []

    def subscribe(self, listener: Callable[[AuthState], None]):
        self._listeners.append(listener)

    def _notify(self):
        for listener in self._listeners:
            listener(self.state)

    def _logged_in(self, user: UserProfile, token: str):
        self.api.token = token
        self.state = AuthState(is_authenticated=True, user=user, token=token)
        if self.cache:
            self.cache.save(token, user)
        self._notify()

    def restore(self) -> bool:
        cached = self.cache.load() if self.cache else None
        if not cached:
            return False
        token, user = cached
        self._logged_in(user, token)
        return True

    def login(self, email: str, password: str) -> bool:
        try:
            user, token = self.api.login(email, password)
        except NetworkError:
            self.state.error = "Login failed. Please check your connection."
            return False
        except AppError as e:
            self.state.error = e.message or "Login failed"
            return False
        self._logged_in(user, token)
        return True

    def register(self, name: str, email: str, password: str, currency: str = "USD") -> bool:
        try:
            user, token = self.api.signup(name, email, password, currency)
        except NetworkError:
            self.state.error = "Registration failed. Please check your connection."
            return False
        except AppError as e:
            self.state.error = e.message or "Registration failed"
            return False
        self._logged_in(user, token)
        return True

    def logout(self):
        if self.cache:
            self.cache.clear()
        self.api.token = None
        was_authenticated = self.state.is_authenticated
        self.state = AuthState(error=self.state.error)
        if was_authenticated:
            self._notify()

    def clear_error(self):
        self.state.error = None


# ---------- Expenses & budgets ----------

@dataclass
class DateRange:
    start_date: date
    end_date: date

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> "DateRange":
        today = today or date.today()
        return cls(today.replace(day=1), today)


@dataclass
class ExpenseState:
    date_range: DateRange
    expenses: List[ExpenseRecord] = field(default_factory=list)
    budgets: List[BudgetRecord] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[str] = None


class ExpenseStore:
    def __init__(self, api: ApiClient, auth: AuthSession, today: Optional[date] = None):
        self.api = api
        self.auth = auth
        self.state = ExpenseState(date_range=DateRange.current_month(today))
        auth.subscribe(self._on_auth_change)

    def _on_auth_change(self, auth_state: AuthState):
        if auth_state.is_authenticated:
            self.refresh_data()
        else:
            self.state.expenses = []
            self.state.budgets = []

    def _run(self, action: Callable[[], None], failure: str) -> bool:
        if not self.auth.state.is_authenticated:
            return False
        self.state.is_loading = True
        try:
            action()
            return True
        except AuthenticationError as e:
            # expired or revoked token: back to the login screen
            self.state.error = e.message
            self.auth.logout()
            return False
        except NetworkError as e:
            logger.warning("%s: %s", failure, e.message)
            self.state.error = failure
            return False
        except AppError as e:
            logger.warning("%s: %s", failure, e.message)
            self.state.error = e.message or failure
            return False
        finally:
            self.state.is_loading = False

    def fetch_expenses(self) -> bool:
        def action():
            dr = self.state.date_range
            self.state.expenses = self.api.list_expenses(dr.start_date, dr.end_date)
        return self._run(action, "Failed to load expenses")

    def fetch_budgets(self) -> bool:
        def action():
            self.state.budgets = self.api.list_budgets()
        return self._run(action, "Failed to load budgets")

    def refresh_data(self) -> bool:
        expenses_ok = self.fetch_expenses()
        budgets_ok = self.fetch_budgets()
        return expenses_ok and budgets_ok

    def set_date_range(self, date_range: DateRange) -> bool:
        self.state.date_range = date_range
        return self.fetch_expenses()

    def add_expense(self, expense: ExpenseRecord) -> bool:
        def action():
            self.state.expenses = self.state.expenses + [self.api.create_expense(expense)]
        self.state.error = None
        return self._run(action, "Failed to add expense")

    def update_expense(self, expense: ExpenseRecord) -> bool:
        def action():
            saved = self.api.update_expense(expense)
            self.state.expenses = [saved if e.id == saved.id else e for e in self.state.expenses]
        self.state.error = None
        return self._run(action, "Failed to update expense")

    def delete_expense(self, expense_id: int) -> bool:
        def action():
            self.api.delete_expense(expense_id)
            self.state.expenses = [e for e in self.state.expenses if e.id != expense_id]
        self.state.error = None
        return self._run(action, "Failed to delete expense")

    def add_budget(self, category: str, amount: float) -> bool:
        def action():
            self.state.budgets = self.state.budgets + [self.api.create_budget(category, amount)]
        self.state.error = None
        return self._run(action, "Failed to add budget")

    def update_budget(self, category: str, amount: float) -> bool:
        def action():
            saved = self.api.update_budget(category, amount)
            self.state.budgets = [saved if b.category == saved.category else b for b in self.state.budgets]
        self.state.error = None
        return self._run(action, "Failed to update budget")

    def delete_budget(self, category: str) -> bool:
        def action():
            self.api.delete_budget(category)
            self.state.budgets = [b for b in self.state.budgets if b.category != category]
        self.state.error = None
        return self._run(action, "Failed to delete budget")
