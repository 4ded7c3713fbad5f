from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Sequence

from gastito.services.balances import ZERO, Expense, to_decimal
from gastito.services.recurring import add_months


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


BUDGET_PERIOD_ALIASES = {
    "semanal": BudgetPeriod.WEEKLY,
    "mensual": BudgetPeriod.MONTHLY,
    "anual": BudgetPeriod.YEARLY,
}


def parse_budget_period(value: str) -> BudgetPeriod:
    text = value.strip().lower()
    if text in BUDGET_PERIOD_ALIASES:
        return BUDGET_PERIOD_ALIASES[text]
    try:
        return BudgetPeriod(text)
    except ValueError as exc:
        raise ValueError("Periodo no soportado, usa weekly, monthly o yearly") from exc


@dataclass(frozen=True, slots=True)
class Budget:
    name: str
    amount: Decimal
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date] = None

    @property
    def window_end(self) -> date:
        if self.end_date is not None:
            return self.end_date
        if self.period == BudgetPeriod.WEEKLY:
            return self.start_date + timedelta(days=6)
        if self.period == BudgetPeriod.YEARLY:
            return add_months(self.start_date, 12) - timedelta(days=1)
        return add_months(self.start_date, 1) - timedelta(days=1)


@dataclass(frozen=True, slots=True)
class BudgetProgress:
    budget: Budget
    spent: Decimal
    remaining: Decimal
    progress: Decimal
    exceeded: bool


def budget_progress(budget: Budget, expenses: Sequence[Expense]) -> BudgetProgress:
    start, end = budget.start_date, budget.window_end
    spent = sum(
        (
            to_decimal(expense.amount)
            for expense in expenses
            if expense.spent_on is not None and start <= expense.spent_on <= end
        ),
        ZERO,
    )
    amount = to_decimal(budget.amount)
    progress = spent / amount * 100 if amount > 0 else ZERO
    return BudgetProgress(
        budget=budget,
        spent=spent,
        remaining=amount - spent,
        progress=progress,
        exceeded=spent > amount,
    )
