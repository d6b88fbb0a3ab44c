from fastapi import FastAPI, APIRouter, Depends, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from typing import Optional
import logging

import crud
import reports
import schemas
from config import Settings, load_settings
from database import Database, get_db
from errors import ExpenseTrackerError, InvalidDateRangeError
from reports import Granularity

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ───────────────────────────────────────────────────────────────────

def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeError(start_date, end_date)


def _resolve_range(start_date: Optional[date], end_date: Optional[date]) -> tuple[date, date]:
    """Fill missing bounds from the current calendar month."""
    month_start, month_end = reports.current_month_range()
    start = start_date or month_start
    end = end_date or month_end
    _check_range(start, end)
    return start, end


def _to_responses(expenses) -> list[schemas.ExpenseResponse]:
    return [schemas.ExpenseResponse.model_validate(e) for e in expenses]


def _breakdown_items(breakdown: reports.CategoryBreakdown) -> list[schemas.BreakdownItem]:
    return [schemas.BreakdownItem.model_validate(e) for e in breakdown.sorted_by_amount()]


def _stats(report: reports.SummaryReport) -> schemas.SummaryStats:
    busiest = None
    if report.busiest_day is not None:
        key, amount = report.busiest_day
        busiest = schemas.BucketTotal(key=key, amount=amount)
    top = schemas.BreakdownItem.model_validate(report.top_category) if report.top_category else None
    return schemas.SummaryStats(
        daily_average=report.daily_average,
        active_days=report.active_days,
        busiest_day=busiest,
        top_category=top,
    )


def _buckets(buckets: dict[str, Decimal]) -> list[schemas.BucketTotal]:
    return [schemas.BucketTotal(key=k, amount=v) for k, v in buckets.items()]


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/", tags=["Health"])
def root():
    return {"status": "ok", "message": "Expense Tracker API is running."}


@router.get("/health", tags=["Health"])
def health():
    return {"status": "healthy"}


# ── Categories ────────────────────────────────────────────────────────────────

@router.get(
    "/categories",
    response_model=list[schemas.CategoryResponse],
    tags=["Categories"],
    summary="List all categories",
)
def list_categories(db: Session = Depends(get_db)):
    """Returns every category sorted by name, for forms and filter dropdowns."""
    return crud.list_categories(db)


@router.post(
    "/categories",
    response_model=schemas.CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Categories"],
    summary="Create a category",
)
def create_category(category_in: schemas.CategoryCreate, db: Session = Depends(get_db)):
    """
    Create a new category.

    - `name` must be unique; a duplicate is rejected with **409 Conflict**.
    - `color` and `icon` are defaulted when omitted.
    """
    return crud.create_category(db, category_in)


# ── Expenses ──────────────────────────────────────────────────────────────────

@router.get(
    "/expenses",
    response_model=schemas.ExpenseListResponse,
    tags=["Expenses"],
    summary="List expenses with optional filters",
)
def list_expenses(
    category: Optional[str] = Query(default=None, description="Filter by category id"),
    start_date: Optional[date] = Query(default=None, description="Earliest expense date (inclusive)"),
    end_date: Optional[date] = Query(default=None, description="Latest expense date (inclusive)"),
    sort_date_desc: bool = Query(default=True, description="Sort by date descending (newest first)"),
    db: Session = Depends(get_db),
):
    """
    Retrieve expenses.

    - Filter by `category` id and an inclusive `start_date`/`end_date` range.
    - Response includes a running `total` of the filtered result set.
    """
    _check_range(start_date, end_date)
    expenses = crud.get_expenses(
        db, category_id=category, start_date=start_date, end_date=end_date, sort_desc=sort_date_desc
    )
    items = _to_responses(expenses)
    total = sum((e.amount for e in items), Decimal("0.00"))
    return schemas.ExpenseListResponse(expenses=items, total=total, count=len(items))


@router.get(
    "/expenses/summary",
    response_model=schemas.SummaryResponse,
    tags=["Reports"],
    summary="Bucket sums and category breakdown over a date range",
)
def expense_summary(
    start_date: Optional[date] = Query(default=None, description="Defaults to the first day of this month"),
    end_date: Optional[date] = Query(default=None, description="Defaults to the last day of this month"),
    period: Granularity = Query(default=Granularity.day, description="Bucket granularity"),
    db: Session = Depends(get_db),
):
    start, end = _resolve_range(start_date, end_date)
    items = _to_responses(crud.get_expenses(db, start_date=start, end_date=end, sort_desc=False))
    report = reports.summarize(items, start_date=start, end_date=end, granularity=period)
    return schemas.SummaryResponse(
        start_date=start,
        end_date=end,
        period=report.granularity.value,
        buckets=_buckets(report.buckets),
        breakdown=_breakdown_items(report.breakdown),
        total=report.total,
        count=report.count,
        stats=_stats(report),
    )


@router.get(
    "/expenses/{expense_id}",
    response_model=schemas.ExpenseResponse,
    tags=["Expenses"],
    summary="Get one expense",
)
def get_expense(expense_id: str, db: Session = Depends(get_db)):
    return crud.get_expense(db, expense_id)


@router.post(
    "/expenses",
    response_model=schemas.ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Expenses"],
    summary="Create a new expense",
)
def create_expense(expense_in: schemas.ExpenseCreate, db: Session = Depends(get_db)):
    """
    Create a new expense entry.

    - `amount` must be greater than zero.
    - `category_id` must reference an existing category.
    - `payment_method` defaults to `cash`.
    """
    return crud.create_expense(db, expense_in)


@router.put(
    "/expenses/{expense_id}",
    response_model=schemas.ExpenseResponse,
    tags=["Expenses"],
    summary="Replace an expense",
)
def update_expense(expense_id: str, expense_in: schemas.ExpenseUpdate, db: Session = Depends(get_db)):
    """Full replacement: every field is required as on create. `updated_at` is refreshed."""
    return crud.update_expense(db, expense_id, expense_in)


@router.delete(
    "/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    tags=["Expenses"],
    summary="Delete an expense",
)
def delete_expense(expense_id: str, db: Session = Depends(get_db)):
    crud.delete_expense(db, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Current-month views ───────────────────────────────────────────────────────

@router.get(
    "/dashboard",
    response_model=schemas.DashboardResponse,
    tags=["Reports"],
    summary="This month's expenses with category breakdown",
)
def dashboard(db: Session = Depends(get_db)):
    start, end = reports.current_month_range()
    items = _to_responses(crud.get_expenses(db, start_date=start, end_date=end, sort_desc=True))
    breakdown = reports.category_breakdown(items)
    return schemas.DashboardResponse(
        start_date=start,
        end_date=end,
        expenses=items,
        breakdown=_breakdown_items(breakdown),
        total=breakdown.total,
    )


@router.get(
    "/analytics",
    response_model=schemas.AnalyticsResponse,
    tags=["Reports"],
    summary="This month's daily trend and statistics",
)
def analytics(db: Session = Depends(get_db)):
    start, end = reports.current_month_range()
    items = _to_responses(crud.get_expenses(db, start_date=start, end_date=end, sort_desc=False))
    report = reports.summarize(items, start_date=start, end_date=end, granularity=Granularity.day)
    return schemas.AnalyticsResponse(
        start_date=start,
        end_date=end,
        daily=_buckets(report.buckets),
        breakdown=_breakdown_items(report.breakdown),
        total=report.total,
        stats=_stats(report),
    )


# ── Application ───────────────────────────────────────────────────────────────

async def handle_tracker_error(request: Request, exc: ExpenseTrackerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again later."},
    )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create all tables on startup if they don't exist
        database.create_all()
        if settings.seed_categories:
            with database.session() as db:
                crud.seed_categories(db)
        yield
        database.dispose()

    app = FastAPI(
        title="Expense Tracker API",
        description="Personal expense tracking with category breakdowns and date-range summaries.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ExpenseTrackerError, handle_tracker_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
