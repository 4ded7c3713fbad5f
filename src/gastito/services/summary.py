from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from aiogram.utils.text_decorations import html_decoration

from gastito.services.balances import Member
from gastito.services.budgets import BudgetProgress
from gastito.services.reports import CategoryStats, MonthComparison, Prediction
from gastito.services.settlement import SettlementResult

CENTS = Decimal("0.01")


def format_amount(value: Decimal, currency: str = "$") -> str:
    quantized = value.quantize(CENTS, rounding=ROUND_HALF_UP)
    if quantized == 0:
        quantized = abs(quantized)
    sign = "-" if quantized < 0 else ""
    return f"{sign}{currency}{abs(quantized):,.2f}"


def member_label(member: Member) -> str:
    return html_decoration.quote(member.label or str(member.id))


def format_settlement(group_name: str, result: SettlementResult, currency: str = "$") -> str:
    sheet = result.sheet
    lines = [
        f"<b>Análisis de deudas: {html_decoration.quote(group_name)}</b>",
        f"Total: {format_amount(sheet.total, currency)}",
        f"Promedio por persona: {format_amount(sheet.equal_share, currency)} ({len(sheet.balances)} miembros)",
        "",
        "<b>Balance de miembros</b>",
    ]
    for entry in sheet.balances:
        lines.append(
            f"• {member_label(entry.member)}: {format_amount(entry.balance, currency)} "
            f"(pagó {format_amount(entry.total_paid, currency)} en {entry.expense_count} gastos)"
        )

    lines.append("")
    if result.is_settled:
        lines.append("¡Todos cuadrados! ✅")
    else:
        lines.append(f"<b>Pagos pendientes ({len(result.transfers)})</b>")
        for transfer in result.transfers:
            lines.append(
                f"• {member_label(transfer.from_member)} → {member_label(transfer.to_member)}: "
                f"{format_amount(transfer.amount, currency)}"
            )

    if any(entry.expense_count == 0 for entry in sheet.balances) and sheet.total > 0:
        lines.append("")
        lines.append("⚠️ Algunos miembros no han registrado gastos aún")
    return "\n".join(lines)


def format_prediction(prediction: Prediction, comparison: MonthComparison, currency: str = "$") -> str:
    arrow = "📈" if comparison.trend == "up" else "📉"
    return "\n".join(
        [
            "<b>Comparativa mensual</b>",
            f"Este mes: {format_amount(comparison.current.total, currency)} ({comparison.current.count} gastos)",
            f"Mes anterior: {format_amount(comparison.previous.total, currency)} ({comparison.previous.count} gastos)",
            f"{arrow} Diferencia: {format_amount(comparison.difference, currency)} "
            f"({comparison.percentage.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%)",
            "",
            "<b>Predicción</b>",
            f"Próximo mes: {format_amount(prediction.next_month, currency)}",
            f"Tendencia: {prediction.trend}, confianza {prediction.confidence}",
        ]
    )


def format_budget_progress(progress: BudgetProgress, currency: str = "$") -> str:
    budget = progress.budget
    percent = progress.progress.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    status = "⚠️ excedido" if progress.exceeded else "✅ dentro del presupuesto"
    return (
        f"<b>{html_decoration.quote(budget.name)}</b> ({budget.start_date:%d.%m.%Y} – {budget.window_end:%d.%m.%Y})\n"
        f"Gastado: {format_amount(progress.spent, currency)} de {format_amount(budget.amount, currency)} "
        f"({percent}%)\n"
        f"Restante: {format_amount(progress.remaining, currency)} · {status}"
    )


def format_categories(stats: list[CategoryStats], currency: str = "$", limit: int = 5) -> str:
    lines = ["<b>Por categoría</b>"]
    for item in stats[:limit]:
        lines.append(
            f"• {html_decoration.quote(item.category)}: {format_amount(item.total, currency)} ({item.count})"
        )
    return "\n".join(lines)
