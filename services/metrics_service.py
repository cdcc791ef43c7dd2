"""
services/metrics_service.py
---------------------------
Derived metrics over a ledger snapshot.

Everything here is a pure function of the records passed in and is
recomputed on every call; nothing is cached or persisted.
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from models.expense import Expense
from models.snapshot import BudgetStatus, CategoryShare

WARNING_THRESHOLD = 70.0
CRITICAL_THRESHOLD = 90.0


def total_spent(records: Iterable[Expense]) -> float:
    return sum((e.amount for e in records), 0.0)


def month_spent(records: Iterable[Expense], now: Optional[datetime] = None) -> float:
    """Sum of amounts dated in the calendar month (and year) of `now`."""
    now = now or datetime.now()
    return sum(
        (e.amount for e in records if e.date.year == now.year and e.date.month == now.month),
        0.0,
    )


def percent_of(part: float, whole: float) -> float:
    """`part` as a percentage of `whole`; 0.0 when `whole` is not positive."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def category_breakdown(records: Iterable[Expense]) -> dict[str, float]:
    """Category -> summed amount, in order of first appearance."""
    totals: dict[str, float] = {}
    for e in records:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    return totals


def ranked_categories(records: Sequence[Expense]) -> list[CategoryShare]:
    """
    Category totals sorted by descending amount.

    Ties keep first-appearance order (sorted() is stable).
    """
    totals = category_breakdown(records)
    grand_total = sum(totals.values(), 0.0)
    ranked = sorted(totals.items(), key=lambda item: -item[1])
    return [
        CategoryShare(category=cat, amount=amount, percent=percent_of(amount, grand_total))
        for cat, amount in ranked
    ]


def highest_expense(records: Iterable[Expense]) -> Optional[Expense]:
    """The record with the largest amount; the earliest one in list order wins ties."""
    highest = None
    for e in records:
        if highest is None or e.amount > highest.amount:
            highest = e
    return highest


def recent(records: Sequence[Expense], limit: int = 5) -> list[Expense]:
    return list(records[:limit])


def budget_health(percent_used: float) -> str:
    if percent_used > CRITICAL_THRESHOLD:
        return "critical"
    if percent_used > WARNING_THRESHOLD:
        return "warning"
    return "healthy"


def budget_status(
    records: Sequence[Expense], budget: float, now: Optional[datetime] = None
) -> BudgetStatus:
    """Budget usage card: spent, remaining, percentage and health."""
    spent = total_spent(records)
    used = percent_of(spent, budget)
    return BudgetStatus(
        budget=budget,
        total_spent=spent,
        month_spent=month_spent(records, now),
        remaining=budget - spent,
        percent_used=used,
        health=budget_health(used),
        highest=highest_expense(records),
    )
