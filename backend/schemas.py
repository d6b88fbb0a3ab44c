from pydantic import BaseModel, Field, field_validator
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Optional

from models import DEFAULT_PAYMENT_METHOD


# ── Categories ────────────────────────────────────────────────────────────────

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = Field(default=None, max_length=16)

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category name cannot be blank or whitespace")
        return v.strip()


class CategoryRef(BaseModel):
    id: str
    name: str
    color: str
    icon: Optional[str] = None

    model_config = {"from_attributes": True}


class CategoryResponse(CategoryRef):
    created_at: datetime


# ── Expenses ──────────────────────────────────────────────────────────────────

class ExpenseBase(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Must be a positive value")
    category_id: str = Field(..., min_length=1, max_length=36)
    description: Optional[str] = Field(default=None, max_length=1000)
    expense_date: date
    payment_method: Optional[str] = Field(default=DEFAULT_PAYMENT_METHOD, max_length=50)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_must_be_positive(cls, v):
        try:
            val = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            raise ValueError("Amount must be a valid number")
        if not val.is_finite() or val <= 0:
            raise ValueError("Amount must be greater than zero")
        return val

    @field_validator("category_id")
    @classmethod
    def category_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Category cannot be blank or whitespace")
        return v.strip()

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("payment_method")
    @classmethod
    def default_payment_method(cls, v: Optional[str]) -> str:
        return (v or "").strip() or DEFAULT_PAYMENT_METHOD


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(ExpenseBase):
    """Full replacement of every editable field."""


class ExpenseResponse(BaseModel):
    id: str
    amount: Decimal
    category_id: str
    category: Optional[CategoryRef] = None
    description: Optional[str] = None
    expense_date: date
    payment_method: str = DEFAULT_PAYMENT_METHOD
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    total: Decimal
    count: int


# ── Reports ───────────────────────────────────────────────────────────────────

class BucketTotal(BaseModel):
    key: str
    amount: Decimal


class BreakdownItem(BaseModel):
    name: str
    amount: Decimal
    count: int
    color: str
    icon: str
    percentage: Decimal

    model_config = {"from_attributes": True}


class SummaryStats(BaseModel):
    daily_average: Decimal
    active_days: int
    busiest_day: Optional[BucketTotal] = None
    top_category: Optional[BreakdownItem] = None


class SummaryResponse(BaseModel):
    start_date: date
    end_date: date
    period: str
    buckets: list[BucketTotal]
    breakdown: list[BreakdownItem]
    total: Decimal
    count: int
    stats: SummaryStats


class DashboardResponse(BaseModel):
    start_date: date
    end_date: date
    expenses: list[ExpenseResponse]
    breakdown: list[BreakdownItem]
    total: Decimal


class AnalyticsResponse(BaseModel):
    start_date: date
    end_date: date
    daily: list[BucketTotal]
    breakdown: list[BreakdownItem]
    total: Decimal
    stats: SummaryStats
