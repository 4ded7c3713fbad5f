from __future__ import annotations

from enum import Enum
from typing import Optional, Protocol


class Repository(Protocol):
    async def fetchval(self, query: str, *args: object) -> object: ...


class GroupRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class AuthorizationError(PermissionError):
    pass


async def get_member_role(repo: Repository, user_id: int, group_id: int) -> Optional[GroupRole]:
    role = await repo.fetchval(
        "SELECT role FROM group_members WHERE group_id = $1 AND user_id = $2",
        group_id,
        user_id,
    )
    if role is None:
        return None
    return GroupRole(role)


async def is_group_admin(repo: Repository, user_id: int, group_id: int) -> bool:
    return await get_member_role(repo, user_id, group_id) == GroupRole.ADMIN


async def assert_group_member(repo: Repository, user_id: int, group_id: int) -> GroupRole:
    role = await get_member_role(repo, user_id, group_id)
    if role is None:
        raise AuthorizationError("No tienes acceso a este grupo.")
    return role


async def assert_group_admin(repo: Repository, user_id: int, group_id: int) -> None:
    if not await is_group_admin(repo, user_id, group_id):
        raise AuthorizationError("Solo los administradores del grupo pueden hacer esto.")


def assert_expense_payer(paid_by: int, user_id: int) -> None:
    if paid_by != user_id:
        raise AuthorizationError("Solo quien pagó el gasto puede borrarlo.")
