from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration

from gastito.db.repo import get_global_repository
from gastito.services.authz import assert_group_admin
from gastito.utils.parse import parse_id, split_command_args

groups_router = Router()

INVITE_TTL = timedelta(days=7)


@groups_router.message(Command("newgroup"))
async def cmd_newgroup(message: Message) -> None:
    repo = get_global_repository()
    user = message.from_user
    if not message.text or not user:
        return

    parts = split_command_args(message.text)
    if not parts or not parts[0]:
        await message.answer("Uso: /newgroup [nombre] | [descripción]")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    description = parts[1] if len(parts) > 1 and parts[1] else None
    group = await repo.create_group(parts[0], description, user_id)
    await message.answer(
        f"✅ Grupo creado: #{group['id']} <b>{html_decoration.quote(group['name'])}</b>\n"
        f"Invita a tu familia con /invitelink {group['id']}"
    )


@groups_router.message(Command("mygroups"))
async def cmd_mygroups(message: Message) -> None:
    repo = get_global_repository()
    user = message.from_user
    if not user:
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    groups = await repo.list_user_groups(user_id)
    if not groups:
        await message.answer("Aún no tienes grupos. Crea uno con /newgroup")
        return

    lines = ["<b>Tus grupos</b>"]
    for group in groups:
        role = "admin" if group["user_role"] == "admin" else "miembro"
        lines.append(f"#{group['id']} {html_decoration.quote(group['name'])} · {group['member_count']} miembros · {role}")
    await message.answer("\n".join(lines))


@groups_router.message(Command("invitelink"))
async def cmd_invitelink(message: Message) -> None:
    repo = get_global_repository()
    user = message.from_user
    if not message.text or not user:
        return

    parts = split_command_args(message.text)
    try:
        group_id = parse_id(parts[0]) if parts else None
    except ValueError:
        group_id = None
    if group_id is None:
        await message.answer("Uso: /invitelink [grupo]")
        return

    user_id = await repo.ensure_user(user.id, user.username, user.full_name)
    await assert_group_admin(repo.db, user_id, group_id)

    invite = await repo.add_invite_link(
        group_id=group_id,
        token=secrets.token_urlsafe(16),
        max_uses=None,
        expires_at=datetime.now(timezone.utc) + INVITE_TTL,
    )
    me = await message.bot.get_me()
    await message.answer(
        "🔗 Comparte este enlace (válido 7 días):\n"
        f"https://t.me/{me.username}?start=invite_{invite.token}"
    )
