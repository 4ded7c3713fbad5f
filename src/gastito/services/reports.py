"""Análisis de gastos: tendencias mensuales, categorías, comparativas y predicción."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from gastito.services.balances import ZERO, Expense, to_decimal

DEFAULT_CATEGORY = "otros"


@dataclass(frozen=True, slots=True)
class MonthlyTotal:
    year: int
    month: int
    total: Decimal
    count: int


@dataclass(frozen=True, slots=True)
class CategoryStats:
    category: str
    total: Decimal
    count: int
    average: Decimal
    frequency: Decimal


@dataclass(frozen=True, slots=True)
class PeriodStats:
    total: Decimal
    count: int
    average: Decimal


@dataclass(frozen=True, slots=True)
class MonthComparison:
    current: PeriodStats
    previous: PeriodStats
    difference: Decimal
    percentage: Decimal
    trend: str


@dataclass(frozen=True, slots=True)
class Prediction:
    next_month: Decimal
    confidence: str
    trend: str
    slope: Decimal = ZERO
    average: Decimal = ZERO


def monthly_trends(expenses: Sequence[Expense]) -> list[MonthlyTotal]:
    buckets: dict[tuple[int, int], list[Decimal]] = {}
    for expense in expenses:
        if expense.spent_on is None:
            continue
        key = (expense.spent_on.year, expense.spent_on.month)
        buckets.setdefault(key, []).append(to_decimal(expense.amount))

    return [
        MonthlyTotal(year=year, month=month, total=sum(amounts, ZERO), count=len(amounts))
        for (year, month), amounts in sorted(buckets.items())
    ]


def category_breakdown(expenses: Sequence[Expense]) -> list[CategoryStats]:
    buckets: dict[str, list[Decimal]] = {}
    for expense in expenses:
        buckets.setdefault(expense.category or DEFAULT_CATEGORY, []).append(to_decimal(expense.amount))

    overall = Decimal(len(expenses))
    stats = []
    for category, amounts in buckets.items():
        total = sum(amounts, ZERO)
        count = len(amounts)
        stats.append(
            CategoryStats(
                category=category,
                total=total,
                count=count,
                average=total / count,
                frequency=Decimal(count) / overall,
            )
        )
    stats.sort(key=lambda item: item.total, reverse=True)
    return stats


def _period_stats(expenses: Sequence[Expense], year: int, month: int) -> PeriodStats:
    amounts = [
        to_decimal(expense.amount)
        for expense in expenses
        if expense.spent_on is not None
        and expense.spent_on.year == year
        and expense.spent_on.month == month
    ]
    total = sum(amounts, ZERO)
    return PeriodStats(total=total, count=len(amounts), average=total / len(amounts) if amounts else ZERO)


def compare_months(expenses: Sequence[Expense], today: date) -> MonthComparison:
    if today.month == 1:
        prev_year, prev_month = today.year - 1, 12
    else:
        prev_year, prev_month = today.year, today.month - 1

    current = _period_stats(expenses, today.year, today.month)
    previous = _period_stats(expenses, prev_year, prev_month)

    difference = current.total - previous.total
    percentage = difference / previous.total * 100 if previous.total > 0 else ZERO

    return MonthComparison(
        current=current,
        previous=previous,
        difference=difference,
        percentage=percentage,
        trend="up" if difference > 0 else "down",
    )


def predict_next_month(expenses: Sequence[Expense]) -> Prediction:
    """Regresión lineal simple sobre los totales mensuales (x = 1..n)."""
    totals = [item.total for item in monthly_trends(expenses)]

    if len(totals) < 2:
        return Prediction(
            next_month=totals[0] if totals else ZERO,
            confidence="baja",
            trend="estable",
        )

    n = Decimal(len(totals))
    sum_x = n * (n + 1) / 2
    sum_y = sum(totals, ZERO)
    sum_xy = sum((value * (index + 1) for index, value in enumerate(totals)), ZERO)
    sum_x2 = n * (n + 1) * (2 * n + 1) / 6

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    prediction = slope * (n + 1) + intercept
    average = sum_y / n
    variance = sum(((value - average) ** 2 for value in totals), ZERO) / n

    if variance < average * Decimal("0.1"):
        confidence = "alta"
    elif variance < average * Decimal("0.3"):
        confidence = "media"
    else:
        confidence = "baja"

    if slope > 0:
        trend = "creciente"
    elif slope < 0:
        trend = "decreciente"
    else:
        trend = "estable"

    return Prediction(
        next_month=max(ZERO, prediction),
        confidence=confidence,
        trend=trend,
        slope=slope,
        average=average,
    )
