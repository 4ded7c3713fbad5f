from __future__ import annotations

from datetime import datetime, timezone

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart, ExceptionTypeFilter
from aiogram.types import ErrorEvent, Message
from aiogram.utils.text_decorations import html_decoration

from gastito.db.repo import get_global_repository
from gastito.logging import get_logger
from gastito.services.authz import AuthorizationError
from gastito.services.balances import InvalidInput

basic_router = Router()

log = get_logger(__name__)

HELP_TEXT = (
    "<b>📖 Comandos</b>\n\n"
    "<b>Grupos:</b>\n"
    "/newgroup [nombre] | [descripción] - crear grupo\n"
    "/mygroups - tus grupos\n"
    "/invitelink [grupo] - enlace de invitación (admin)\n\n"
    "<b>Gastos:</b>\n"
    "/addexpense [grupo] | [monto] | [categoría] | [descripción] | [fecha]\n"
    "/balances [grupo] - quién le debe a quién\n"
    "/report [grupo] - tendencias y predicción\n"
    "/budget [grupo] | [nombre] | [monto] | [weekly/monthly/yearly]\n"
    "/recurring [grupo] | [monto] | [categoría] | [mensual/semanal/quincenal/anual] | [fecha]\n"
    "/pause [id] y /resume [id] - pausar o reanudar un gasto recurrente\n\n"
    "<b>Borrar:</b>\n"
    "/delexpense [id] - borrar un gasto que pagaste tú\n"
    "/delbudget [id] - borrar un presupuesto (admin)\n"
    "/delrecurring [id] - borrar un gasto recurrente (admin)"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return

    if command.args and command.args.startswith("invite_"):
        await _join_by_invite(message, command.args[len("invite_"):])
        return

    await message.answer(
        f"👋 ¡Hola, {html_decoration.quote(user.first_name)}!\n\n"
        "Soy <b>gasTITO</b>: llevo las cuentas de tu familia o grupo y te digo quién le debe a quién.\n\n"
        + HELP_TEXT
    )


async def _join_by_invite(message: Message, token: str) -> None:
    user = message.from_user
    assert user
    repo = get_global_repository()

    invite = await repo.get_invite_link_by_token(token)
    if invite is None or not invite.is_usable(datetime.now(timezone.utc)):
        await message.answer("❌ La invitación no existe o ya expiró. Pide un enlace nuevo.")
        return

    group = await repo.get_group(invite.group_id)
    if group is None:
        await message.answer("❌ El grupo ya no existe.")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    members = await repo.list_group_members(invite.group_id)
    if any(row["user_id"] == user_id for row in members):
        await message.answer(f"✅ Ya eres miembro de <b>{html_decoration.quote(group['name'])}</b>.")
        return

    await repo.add_member(invite.group_id, user_id)
    await repo.increment_invite_use(invite.id)
    log.info("group.joined", group_id=invite.group_id, user_id=user_id)
    await message.answer(f"🎉 Te uniste al grupo <b>{html_decoration.quote(group['name'])}</b> (#{group['id']}).")


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.errors(ExceptionTypeFilter(AuthorizationError, InvalidInput))
async def on_user_error(event: ErrorEvent) -> None:
    log.info("handler.rejected", error=str(event.exception))
    message = event.update.message
    if message:
        await message.answer(f"⛔ {html_decoration.quote(str(event.exception))}")
