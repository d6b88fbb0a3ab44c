"""
Aggregation over expense records: time-bucket sums, category breakdown and the
derived statistics shown on the summary, dashboard and analytics views.

Every function here is pure. Inputs are never mutated and well-formed input,
including an empty sequence, never raises.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from models import DEFAULT_COLOR, DEFAULT_ICON
from schemas import ExpenseResponse

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
TENTH = Decimal("0.1")


class Granularity(str, Enum):
    day = "day"
    month = "month"
    year = "year"


@dataclass(frozen=True)
class CategoryMeta:
    name: str
    color: str
    icon: str


# Stands in for a record whose category metadata is missing.
UNKNOWN_CATEGORY = CategoryMeta(name="Uncategorized", color=DEFAULT_COLOR, icon=DEFAULT_ICON)


@dataclass
class BreakdownEntry:
    name: str
    amount: Decimal
    count: int
    color: str
    icon: str
    percentage: Decimal = ZERO


@dataclass
class CategoryBreakdown:
    entries: dict[str, BreakdownEntry] = field(default_factory=dict)
    total: Decimal = ZERO

    def sorted_by_amount(self) -> list[BreakdownEntry]:
        """Entries by amount, largest first; ties keep first-encountered order."""
        return sorted(self.entries.values(), key=lambda e: e.amount, reverse=True)


@dataclass(frozen=True)
class SummaryReport:
    start_date: date
    end_date: date
    granularity: Granularity
    buckets: dict[str, Decimal]
    breakdown: CategoryBreakdown
    count: int
    daily_average: Decimal
    active_days: int
    busiest_day: Optional[tuple[str, Decimal]]
    top_category: Optional[BreakdownEntry]

    @property
    def total(self) -> Decimal:
        return self.breakdown.total


def category_meta(record: ExpenseResponse) -> CategoryMeta:
    cat = record.category
    if cat is None or not (cat.name or "").strip():
        return UNKNOWN_CATEGORY
    return CategoryMeta(name=cat.name, color=cat.color or DEFAULT_COLOR, icon=cat.icon or DEFAULT_ICON)


def bucket_key(expense_date: date, granularity: Granularity) -> str:
    g = Granularity(granularity)
    if g is Granularity.day:
        return expense_date.isoformat()
    if g is Granularity.month:
        return f"{expense_date.year:04d}-{expense_date.month:02d}"
    return f"{expense_date.year:04d}"


def bucket_sum(records: Iterable[ExpenseResponse], granularity: Granularity = Granularity.day) -> dict[str, Decimal]:
    """
    Sum amounts per time bucket.

    Only buckets that hold at least one record appear (no zero-filling). Keys
    are zero-padded ISO prefixes, so sorting them lexically is chronological;
    the result is always returned in chronological order regardless of the
    input order.
    """
    sums: dict[str, Decimal] = {}
    for r in records:
        key = bucket_key(r.expense_date, granularity)
        sums[key] = sums.get(key, ZERO) + Decimal(r.amount)
    return {k: sums[k] for k in sorted(sums)}


def percentage(part: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return ZERO
    return (Decimal(part) / Decimal(total) * 100).quantize(TENTH, rounding=ROUND_HALF_UP)


def category_breakdown(records: Iterable[ExpenseResponse]) -> CategoryBreakdown:
    """
    Per-category amount, count and share of the grand total.

    Color and icon come from the first record seen for a category. Entries keep
    first-encountered order; use `CategoryBreakdown.sorted_by_amount` for display.
    """
    entries: dict[str, BreakdownEntry] = {}
    total = ZERO
    for r in records:
        meta = category_meta(r)
        entry = entries.get(meta.name)
        if entry is None:
            entry = BreakdownEntry(name=meta.name, amount=ZERO, count=0, color=meta.color, icon=meta.icon)
            entries[meta.name] = entry
        amount = Decimal(r.amount)
        entry.amount += amount
        entry.count += 1
        total += amount

    for entry in entries.values():
        entry.percentage = percentage(entry.amount, total)
    return CategoryBreakdown(entries=entries, total=total)


def daily_average(total: Decimal, day_buckets: dict[str, Decimal]) -> Decimal:
    days = len(day_buckets) or 1
    return (Decimal(total) / days).quantize(CENT, rounding=ROUND_HALF_UP)


def busiest_day(day_buckets: dict[str, Decimal]) -> Optional[tuple[str, Decimal]]:
    best: Optional[tuple[str, Decimal]] = None
    for key, amount in day_buckets.items():
        if best is None or amount > best[1]:
            best = (key, amount)
    return best


def top_category(breakdown: CategoryBreakdown) -> Optional[BreakdownEntry]:
    best: Optional[BreakdownEntry] = None
    for entry in breakdown.entries.values():
        if best is None or entry.amount > best.amount:
            best = entry
    return best


def current_month_range(today: Optional[date] = None) -> tuple[date, date]:
    d = today or date.today()
    last_day = calendar.monthrange(d.year, d.month)[1]
    return date(d.year, d.month, 1), date(d.year, d.month, last_day)


def summarize(
    records: Sequence[ExpenseResponse],
    *,
    start_date: date,
    end_date: date,
    granularity: Granularity = Granularity.day,
) -> SummaryReport:
    """Bucket sums at `granularity`; the statistics always use day buckets."""
    g = Granularity(granularity)
    days = bucket_sum(records, Granularity.day)
    buckets = days if g is Granularity.day else bucket_sum(records, g)
    breakdown = category_breakdown(records)
    return SummaryReport(
        start_date=start_date,
        end_date=end_date,
        granularity=g,
        buckets=buckets,
        breakdown=breakdown,
        count=len(records),
        daily_average=daily_average(breakdown.total, days),
        active_days=len(days),
        busiest_day=busiest_day(days),
        top_category=top_category(breakdown),
    )
