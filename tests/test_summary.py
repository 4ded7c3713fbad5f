from datetime import date
from decimal import Decimal

from gastito.services.balances import Member, make_expense
from gastito.services.budgets import Budget, BudgetPeriod, budget_progress
from gastito.services.reports import category_breakdown, compare_months, predict_next_month
from gastito.services.settlement import compute_balances_and_settlement
from gastito.services.summary import (
    format_amount,
    format_budget_progress,
    format_categories,
    format_prediction,
    format_settlement,
)

A = Member(id=1, label="Ana")
B = Member(id=2, label="Beto")
C = Member(id=3, label="Carla")


def test_format_amount():
    assert format_amount(Decimal("1234.5")) == "$1,234.50"
    assert format_amount(Decimal("-33.333333")) == "-$33.33"
    assert format_amount(Decimal("-0.001"), "€") == "€0.00"


def test_format_settlement_with_transfers():
    result = compute_balances_and_settlement([A, B, C], [make_expense(90, payer_id=1)])

    text = format_settlement("Casa", result)

    assert "Casa" in text
    assert "Total: $90.00" in text
    assert "Promedio por persona: $30.00" in text
    assert "Beto → Ana: $30.00" in text
    assert "Carla → Ana: $30.00" in text
    assert "Algunos miembros no han registrado gastos" in text


def test_format_settlement_all_square():
    result = compute_balances_and_settlement([A, B], [make_expense(50, payer_id=1), make_expense(50, payer_id=2)])

    text = format_settlement("Viaje", result)

    assert "¡Todos cuadrados!" in text
    assert "Pagos pendientes" not in text


def test_format_prediction():
    expenses = [
        make_expense(100, payer_id=1, spent_on=date(2025, 2, 1)),
        make_expense(150, payer_id=1, spent_on=date(2025, 3, 1)),
    ]

    text = format_prediction(predict_next_month(expenses), compare_months(expenses, date(2025, 3, 20)))

    assert "Este mes: $150.00" in text
    assert "Mes anterior: $100.00" in text
    assert "(50.0%)" in text
    assert "Próximo mes: $200.00" in text
    assert "creciente" in text


def test_format_budget_progress():
    budget = Budget(name="Súper", amount=Decimal("200"), period=BudgetPeriod.MONTHLY, start_date=date(2025, 3, 1))
    progress = budget_progress(budget, [make_expense(50, payer_id=1, spent_on=date(2025, 3, 3))])

    text = format_budget_progress(progress)

    assert "Súper" in text
    assert "$50.00 de $200.00 (25.0%)" in text
    assert "Restante: $150.00" in text
    assert "dentro del presupuesto" in text


def test_user_values_are_html_escaped():
    heart = Member(id=1, label="Ana <3")
    result = compute_balances_and_settlement([heart, B], [make_expense(40, payer_id=1)])

    text = format_settlement("Casa & <b>", result)

    assert "Ana &lt;3" in text
    assert "Ana <3" not in text
    assert "Beto → Ana &lt;3: $20.00" in text
    assert "Casa &amp; &lt;b&gt;" in text


def test_format_categories_escapes_and_limits():
    expenses = [make_expense(10 + n, payer_id=1, category=f"cat{n}") for n in range(6)]
    expenses.append(make_expense(100, payer_id=1, category="<script>"))

    text = format_categories(category_breakdown(expenses), limit=3)

    assert "• &lt;script&gt;: $100.00 (1)" in text
    assert "<script>" not in text
    assert text.count("•") == 3


def test_format_budget_progress_escapes_name():
    budget = Budget(name="Súper <&>", amount=Decimal("100"), period=BudgetPeriod.WEEKLY, start_date=date(2025, 3, 1))

    text = format_budget_progress(budget_progress(budget, []))

    assert "<b>Súper &lt;&amp;&gt;</b>" in text
