from datetime import date
from decimal import Decimal

import pytest

from gastito.services.balances import make_expense
from gastito.services.budgets import Budget, BudgetPeriod, budget_progress, parse_budget_period


def test_monthly_budget_window_and_progress():
    budget = Budget(name="Súper", amount=Decimal("200"), period=BudgetPeriod.MONTHLY, start_date=date(2025, 3, 1))
    expenses = [
        make_expense(150, payer_id=1, spent_on=date(2025, 3, 5)),
        make_expense(100, payer_id=2, spent_on=date(2025, 3, 31)),
        make_expense(999, payer_id=1, spent_on=date(2025, 4, 1)),
        make_expense(999, payer_id=1, spent_on=date(2025, 2, 28)),
        make_expense(999, payer_id=1),
    ]

    progress = budget_progress(budget, expenses)

    assert budget.window_end == date(2025, 3, 31)
    assert progress.spent == Decimal("250")
    assert progress.remaining == Decimal("-50")
    assert progress.progress == Decimal("125")
    assert progress.exceeded is True


def test_weekly_and_yearly_windows():
    weekly = Budget(name="Salidas", amount=Decimal("50"), period=BudgetPeriod.WEEKLY, start_date=date(2025, 6, 2))
    yearly = Budget(name="Viajes", amount=Decimal("5000"), period=BudgetPeriod.YEARLY, start_date=date(2025, 1, 1))

    assert weekly.window_end == date(2025, 6, 8)
    assert yearly.window_end == date(2025, 12, 31)


def test_explicit_end_date_and_zero_amount():
    budget = Budget(
        name="Vacío",
        amount=Decimal("0"),
        period=BudgetPeriod.MONTHLY,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 10),
    )

    progress = budget_progress(budget, [make_expense(5, payer_id=1, spent_on=date(2025, 1, 15))])

    assert progress.spent == 0
    assert progress.progress == 0
    assert progress.exceeded is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("weekly", BudgetPeriod.WEEKLY),
        (" Monthly ", BudgetPeriod.MONTHLY),
        ("YEARLY", BudgetPeriod.YEARLY),
        ("mensual", BudgetPeriod.MONTHLY),
        ("Semanal", BudgetPeriod.WEEKLY),
        ("anual", BudgetPeriod.YEARLY),
    ],
)
def test_parse_budget_period(raw, expected):
    assert parse_budget_period(raw) == expected


def test_parse_budget_period_unknown():
    with pytest.raises(ValueError, match="Periodo no soportado"):
        parse_budget_period("diario")
