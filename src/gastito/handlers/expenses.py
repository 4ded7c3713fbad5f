from __future__ import annotations

from datetime import date, datetime

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration

from gastito.config import get_settings
from gastito.db.repo import GastitoRepository, get_global_repository
from gastito.logging import get_logger
from gastito.services.authz import assert_expense_payer, assert_group_admin, assert_group_member
from gastito.services.budgets import BudgetPeriod, budget_progress, parse_budget_period
from gastito.services.recurring import FREQUENCY_LABELS, parse_frequency
from gastito.services.reports import category_breakdown, compare_months, predict_next_month
from gastito.services.settlement import compute_balances_and_settlement
from gastito.services.summary import (
    format_amount,
    format_budget_progress,
    format_categories,
    format_prediction,
    format_settlement,
)
from gastito.utils.parse import parse_amount, parse_date, parse_id, split_command_args

expenses_router = Router()

log = get_logger(__name__)


async def _current_user_id(repo: GastitoRepository, message: Message) -> int | None:
    user = message.from_user
    if not user:
        return None
    return await repo.ensure_user(user.id, user.username, user.full_name)


def _today() -> date:
    return datetime.now(get_settings().zoneinfo).date()


@expenses_router.message(Command("addexpense"))
async def cmd_addexpense(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    parts = split_command_args(message.text)
    if len(parts) < 3:
        await message.answer("Uso: /addexpense [grupo] | [monto] | [categoría] | [descripción] | [fecha]")
        return

    try:
        group_id = parse_id(parts[0])
        amount = parse_amount(parts[1])
        spent_on = parse_date(parts[4]) if len(parts) > 4 and parts[4] else _today()
    except ValueError as exc:
        await message.answer(html_decoration.quote(str(exc)))
        return

    category = parts[2] or "otros"
    description = parts[3] if len(parts) > 3 and parts[3] else None

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, group_id)

    expense = await repo.create_group_expense(
        group_id=group_id,
        paid_by=user_id,
        amount=amount,
        category=category,
        description=description,
        spent_on=spent_on,
    )
    await message.answer(
        f"💸 Gasto #{expense['id']} registrado: {format_amount(amount, get_settings().currency)} "
        f"en {html_decoration.quote(category)} ({spent_on:%d.%m.%Y})"
    )


@expenses_router.message(Command("balances", "settle"))
async def cmd_balances(message: Message) -> None:
    repo = get_global_repository()
    settings = get_settings()
    if not message.text:
        return
    parts = split_command_args(message.text)
    try:
        group_id = parse_id(parts[0]) if parts else None
    except ValueError:
        group_id = None
    if group_id is None:
        await message.answer("Uso: /balances [grupo]")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, group_id)

    group = await repo.get_group(group_id)
    members = await repo.load_members(group_id)
    expenses = await repo.load_expenses(group_id)
    if not expenses:
        await message.answer("No hay gastos registrados en este grupo todavía.")
        return

    result = compute_balances_and_settlement(members, expenses, settings.settlement_epsilon)
    name = group["name"] if group else f"#{group_id}"
    await message.answer(format_settlement(name, result, settings.currency))


@expenses_router.message(Command("report"))
async def cmd_report(message: Message) -> None:
    repo = get_global_repository()
    settings = get_settings()
    if not message.text:
        return
    parts = split_command_args(message.text)
    try:
        group_id = parse_id(parts[0]) if parts else None
    except ValueError:
        group_id = None
    if group_id is None:
        await message.answer("Uso: /report [grupo]")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, group_id)

    expenses = await repo.load_expenses(group_id)
    if not expenses:
        await message.answer("No hay gastos registrados en este grupo todavía.")
        return

    today = _today()
    sections = [format_prediction(predict_next_month(expenses), compare_months(expenses, today), settings.currency)]
    sections.append(format_categories(category_breakdown(expenses), settings.currency))

    for budget in await repo.list_group_budgets(group_id):
        sections.append(format_budget_progress(budget_progress(budget.to_budget(), expenses), settings.currency))

    await message.answer("\n\n".join(sections))


@expenses_router.message(Command("budget"))
async def cmd_budget(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    parts = split_command_args(message.text)
    if len(parts) < 3:
        await message.answer("Uso: /budget [grupo] | [nombre] | [monto] | [weekly/monthly/yearly]")
        return

    try:
        group_id = parse_id(parts[0])
        amount = parse_amount(parts[2])
        period = parse_budget_period(parts[3]) if len(parts) > 3 and parts[3] else BudgetPeriod.MONTHLY
    except ValueError as exc:
        await message.answer(f"Datos inválidos: {html_decoration.quote(str(exc))}")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_admin(repo.db, user_id, group_id)

    budget = await repo.create_group_budget(
        group_id=group_id,
        name=parts[1],
        amount=amount,
        period=period.value,
        start_date=_today(),
        created_by=user_id,
    )
    window_end = budget.to_budget().window_end
    await message.answer(
        f"📊 Presupuesto #{budget.id} <b>{html_decoration.quote(budget.name)}</b> creado hasta el {window_end:%d.%m.%Y}"
    )


@expenses_router.message(Command("recurring"))
async def cmd_recurring(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    parts = split_command_args(message.text)
    if len(parts) < 5:
        await message.answer(
            "Uso: /recurring [grupo] | [monto] | [categoría] | [mensual/semanal/quincenal/anual] | [primera fecha]"
        )
        return

    try:
        group_id = parse_id(parts[0])
        amount = parse_amount(parts[1])
        frequency = parse_frequency(parts[3])
        first_date = parse_date(parts[4])
    except ValueError as exc:
        await message.answer(html_decoration.quote(str(exc)))
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, group_id)

    recurring = await repo.create_recurring_expense(
        group_id=group_id,
        created_by=user_id,
        amount=amount,
        category=parts[2] or "otros",
        description=None,
        frequency=frequency,
        next_date=first_date,
    )
    await message.answer(
        f"🔁 Gasto recurrente #{recurring.id}: {format_amount(amount, get_settings().currency)} "
        f"{FREQUENCY_LABELS[frequency]}, desde el {first_date:%d.%m.%Y}"
    )


@expenses_router.message(Command("pause", "resume"))
async def cmd_toggle_recurring(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    active = message.text.lstrip("/").startswith("resume")
    parts = split_command_args(message.text)
    try:
        recurring_id = parse_id(parts[0]) if parts else None
    except ValueError:
        recurring_id = None
    if recurring_id is None:
        await message.answer("Uso: /pause [id] o /resume [id]")
        return

    recurring = await repo.get_recurring_expense(recurring_id)
    if recurring is None:
        await message.answer("Gasto recurrente no encontrado")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, recurring.group_id)

    await repo.set_recurring_active(recurring_id, active)
    await message.answer(f"🔁 Gasto recurrente #{recurring_id} {'reanudado' if active else 'pausado'}")


def _first_id(text: str) -> int | None:
    parts = split_command_args(text)
    try:
        return parse_id(parts[0]) if parts else None
    except ValueError:
        return None


@expenses_router.message(Command("delexpense"))
async def cmd_delexpense(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    expense_id = _first_id(message.text)
    if expense_id is None:
        await message.answer("Uso: /delexpense [id]")
        return

    expense = await repo.get_group_expense(expense_id)
    if expense is None:
        await message.answer("Gasto no encontrado")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_member(repo.db, user_id, expense["group_id"])
    assert_expense_payer(expense["paid_by"], user_id)

    await repo.delete_group_expense(expense_id)
    log.info("expense.deleted", expense_id=expense_id, group_id=expense["group_id"], user_id=user_id)
    await message.answer(f"🗑 Gasto #{expense_id} borrado")


@expenses_router.message(Command("delbudget"))
async def cmd_delbudget(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    budget_id = _first_id(message.text)
    if budget_id is None:
        await message.answer("Uso: /delbudget [id]")
        return

    budget = await repo.get_group_budget(budget_id)
    if budget is None:
        await message.answer("Presupuesto no encontrado")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_admin(repo.db, user_id, budget.group_id)

    await repo.delete_group_budget(budget_id)
    log.info("budget.deleted", budget_id=budget_id, group_id=budget.group_id, user_id=user_id)
    await message.answer(f"🗑 Presupuesto #{budget_id} <b>{html_decoration.quote(budget.name)}</b> borrado")


@expenses_router.message(Command("delrecurring"))
async def cmd_delrecurring(message: Message) -> None:
    repo = get_global_repository()
    if not message.text:
        return
    recurring_id = _first_id(message.text)
    if recurring_id is None:
        await message.answer("Uso: /delrecurring [id]")
        return

    recurring = await repo.get_recurring_expense(recurring_id)
    if recurring is None:
        await message.answer("Gasto recurrente no encontrado")
        return

    user_id = await _current_user_id(repo, message)
    if user_id is None:
        return
    await assert_group_admin(repo.db, user_id, recurring.group_id)

    await repo.delete_recurring_expense(recurring_id)
    log.info("recurring.deleted", recurring_id=recurring_id, group_id=recurring.group_id, user_id=user_id)
    await message.answer(f"🗑 Gasto recurrente #{recurring_id} borrado; los gastos ya generados se conservan")
