"""
Tenny Ledger: spending aggregation
Dashboard month summary, category breakdown and report figures, computed over
an already-fetched list of transactions.
"""
from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from tenny.models.transaction import Transaction

NO_CATEGORY = "Uncategorized"


@dataclass
class CategorySummary:
    category: str
    amount: float
    percentage: float = 0.0


@dataclass
class MonthSummary:
    total: float
    count: int
    days_in_month: int
    elapsed_days: int
    remaining_days: int
    daily_average: float
    projected_total: float
    top_categories: List[CategorySummary] = field(default_factory=list)


@dataclass
class ReportSummary:
    total: float
    count: int
    average_transaction: float
    top_category: str
    top_amount: float
    categories: List[CategorySummary] = field(default_factory=list)


def total_spent(transactions: Iterable[Transaction]) -> float:
    return sum(t.amount for t in transactions)


def percentage_of(amount: float, total: float) -> float:
    if not total:
        return 0.0
    return amount / total * 100


def category_breakdown(transactions: Iterable[Transaction], top_n: Optional[int] = None) -> List[CategorySummary]:
    """Amount per category label, largest first. Ties keep first-seen order."""
    sums: Dict[str, float] = defaultdict(float)
    for t in transactions:
        sums[t.category or NO_CATEGORY] += t.amount

    overall = sum(sums.values())
    rows = [CategorySummary(cat, amt, percentage_of(amt, overall)) for cat, amt in sums.items()]
    rows.sort(key=lambda r: r.amount, reverse=True)
    return rows[:top_n] if top_n is not None else rows


def month_bounds(today: date) -> Tuple[str, str]:
    last = calendar.monthrange(today.year, today.month)[1]
    return date(today.year, today.month, 1).isoformat(), date(today.year, today.month, last).isoformat()


def month_summary(transactions: List[Transaction], today: date, top_n: int = 3) -> MonthSummary:
    """
    Month-to-date figures for the dashboard.

    elapsed = day of month (D), remaining = days_in_month - D
    projected = total + (total / D) * remaining
    """
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    elapsed = today.day
    remaining = days_in_month - elapsed
    total = total_spent(transactions)
    daily_average = total / elapsed
    return MonthSummary(
        total=total,
        count=len(transactions),
        days_in_month=days_in_month,
        elapsed_days=elapsed,
        remaining_days=remaining,
        daily_average=daily_average,
        projected_total=total + daily_average * remaining,
        top_categories=category_breakdown(transactions, top_n=top_n),
    )


def report_summary(transactions: List[Transaction]) -> ReportSummary:
    categories = category_breakdown(transactions)
    total = total_spent(transactions)
    count = len(transactions)
    top = categories[0] if categories else None
    return ReportSummary(
        total=total,
        count=count,
        average_transaction=total / count if count else 0.0,
        top_category=top.category if top else "None",
        top_amount=top.amount if top else 0.0,
        categories=categories,
    )


def monthly_totals(transactions: Iterable[Transaction]) -> List[Tuple[str, float]]:
    """(YYYY-MM, amount) pairs in chronological order."""
    sums: Dict[str, float] = defaultdict(float)
    for t in transactions:
        sums[t.date[:7]] += t.amount
    return sorted(sums.items())
