# main.py
import logging
import os
import time
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

import services
from config import Settings, configure_logging
from database import get_db, init_db, make_engine, make_session_factory, utcnow
from errors import AppError
from models import User
from schemas import (
    AuthOut,
    BudgetIn,
    BudgetOut,
    BudgetSummary,
    BudgetUpdate,
    CategorySummary,
    ExpenseIn,
    ExpenseOut,
    LoginIn,
    MessageOut,
    SignupIn,
    TokenOut,
    UserOut,
)
from security import AuthService, get_auth, get_current_user

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
expense_router = APIRouter(prefix="/api/expense", tags=["expenses"])
budget_router = APIRouter(prefix="/api/budget", tags=["budgets"])


# ---------- AUTH ENDPOINTS ----------
@auth_router.post("/signup", response_model=AuthOut, status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db), auth: AuthService = Depends(get_auth)):
    user = services.signup_user(db, auth, payload)
    return {"user": UserOut.model_validate(user), "token": auth.issue_token(user.id)}


@auth_router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db), auth: AuthService = Depends(get_auth)):
    user = services.authenticate_user(db, auth, payload.email, payload.password)
    logger.info("User %s logged in", user.id)
    return {"user": UserOut.model_validate(user), "token": auth.issue_token(user.id)}


@auth_router.post("/token", response_model=TokenOut)
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db), auth: AuthService = Depends(get_auth)):
    user = services.authenticate_user(db, auth, form_data.username, form_data.password)
    return {"access_token": auth.issue_token(user.id), "token_type": "bearer"}


@auth_router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


# ---------- EXPENSE ENDPOINTS ----------
@expense_router.get("", response_model=List[ExpenseOut])
def list_expenses(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.list_expenses(db, current_user.id, start_date, end_date)


@expense_router.get("/summary/categories", response_model=List[CategorySummary])
def expense_summary(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.expense_summary(db, current_user.id, start_date, end_date)


@expense_router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.get_expense(db, current_user.id, expense_id)


@expense_router.post("", response_model=ExpenseOut, status_code=201)
def create_expense(payload: ExpenseIn, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.create_expense(db, current_user.id, payload)


@expense_router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(expense_id: int, payload: ExpenseIn, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.update_expense(db, current_user.id, expense_id, payload)


@expense_router.delete("/{expense_id}", response_model=MessageOut)
def delete_expense(expense_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    services.delete_expense(db, current_user.id, expense_id)
    return {"message": "Expense deleted successfully"}


# ---------- BUDGET ENDPOINTS ----------
@budget_router.get("", response_model=List[BudgetOut])
def list_budgets(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.list_budgets(db, current_user.id)


@budget_router.get("/summary", response_model=List[BudgetSummary])
def budget_summary(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return services.budget_summary(db, current_user.id, start_date, end_date)


@budget_router.post("", response_model=BudgetOut, status_code=201)
def create_budget(payload: BudgetIn, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.create_budget(db, current_user.id, payload)


@budget_router.put("/{category}", response_model=BudgetOut)
def update_budget(category: str, payload: BudgetUpdate, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return services.update_budget(db, current_user.id, category, payload.amount)


@budget_router.delete("/{category}", response_model=MessageOut)
def delete_budget(category: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    services.delete_budget(db, current_user.id, category)
    return {"message": "Budget deleted successfully"}


# ---------- ERROR HANDLERS ----------
async def handle_app_error(request: Request, exc: AppError):
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")) or "body"
        message = f"{field}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    logger.warning("%s %s -> 400: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"message": message})


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# ---------- APP ----------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(title="Expense Tracker API")

    engine = make_engine(settings.database_url)
    init_db(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.auth = AuthService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed)
        return response

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth_router)
    app.include_router(expense_router)
    app.include_router(budget_router)

    # ---------- SIMPLE HEALTH CHECK ----------
    @app.get("/health")
    def health():
        return {"status": "ok", "time": utcnow().isoformat()}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 11000))
    uvicorn.run(app, host="0.0.0.0", port=port)
