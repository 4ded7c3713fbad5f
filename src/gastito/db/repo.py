from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, AsyncIterator, Iterable, Optional

import asyncpg

from gastito.db.models import GroupBudget, GroupInviteLink, RecurringExpense
from gastito.logging import get_logger, sql_logger
from gastito.services.authz import GroupRole
from gastito.services.balances import Expense, Member, make_expense
from gastito.services.recurring import Frequency


class Connection:
    """Conexión del pool con una transacción abierta; mismo API que Database."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        sql_logger.info("sql.fetch", query=query, args=args, tx=True)
        return await self._conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        sql_logger.info("sql.fetchrow", query=query, args=args, tx=True)
        return await self._conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        sql_logger.info("sql.fetchval", query=query, args=args, tx=True)
        return await self._conn.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        sql_logger.info("sql.execute", query=query, args=args, tx=True)
        return await self._conn.execute(query, *args)

    async def executemany(self, command: str, args: Iterable[Iterable[Any]]) -> None:
        sql_logger.info("sql.executemany", query=command, tx=True)
        await self._conn.executemany(command, args)


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg espera el esquema postgresql/postgres, sin "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Connection]:
        """
        Toma una conexión del pool y abre una transacción.

        Si el bloque lanza una excepción se hace rollback de todo lo escrito.
        """
        await self._ensure_pool()
        assert self._pool
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                yield Connection(conn)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query, args=args)
        return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await self._pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        return await self._pool.execute(query, *args)

    async def executemany(self, command: str, args: Iterable[Iterable[Any]]) -> None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.executemany", query=command)
        await self._pool.executemany(command, args)

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


def member_from_record(row: Any) -> Member:
    label = row["full_name"] or (f"@{row['username']}" if row["username"] else None)
    return Member(id=row["user_id"], label=label or f"#{row['user_id']}")


def expense_from_record(row: Any) -> Expense:
    return make_expense(
        amount=row["amount"],
        payer_id=row["paid_by"],
        category=row["category"],
        spent_on=row["spent_on"],
        description=row["description"],
    )


def _affected_rows(status: str) -> int:
    # asyncpg devuelve la etiqueta del comando, p. ej. "DELETE 1"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class GastitoRepository:
    def __init__(self, db: Database | Connection) -> None:
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[GastitoRepository]:
        assert isinstance(self.db, Database), "ya estamos dentro de una transacción"
        async with self.db.transaction() as conn:
            yield GastitoRepository(conn)

    async def ensure_user(self, tg_id: int, username: Optional[str], full_name: Optional[str]) -> int:
        row = await self.db.fetchrow(
            """
            INSERT INTO users (tg_id, username, full_name)
            VALUES ($1, $2, $3)
            ON CONFLICT (tg_id) DO UPDATE
                SET username = EXCLUDED.username,
                    full_name = EXCLUDED.full_name
            RETURNING id
            """,
            tg_id,
            username,
            full_name,
        )
        assert row is not None
        return int(row["id"])

    async def create_group(self, name: str, description: Optional[str], created_by: int) -> asyncpg.Record:
        row = await self.db.fetchrow(
            """
            INSERT INTO expense_groups (name, description, created_by)
            VALUES ($1, $2, $3)
            RETURNING *
            """,
            name,
            description,
            created_by,
        )
        assert row is not None
        await self.add_member(row["id"], created_by, GroupRole.ADMIN)
        return row

    async def get_group(self, group_id: int) -> asyncpg.Record | None:
        return await self.db.fetchrow("SELECT * FROM expense_groups WHERE id = $1", group_id)

    async def list_user_groups(self, user_id: int) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT g.*, gm.role AS user_role,
                   (SELECT COUNT(*) FROM group_members m WHERE m.group_id = g.id) AS member_count
            FROM expense_groups g
            JOIN group_members gm ON gm.group_id = g.id
            WHERE gm.user_id = $1
            ORDER BY g.created_at DESC
            """,
            user_id,
        )

    async def add_member(self, group_id: int, user_id: int, role: GroupRole = GroupRole.MEMBER) -> None:
        await self.db.execute(
            """
            INSERT INTO group_members (group_id, user_id, role)
            VALUES ($1, $2, $3)
            ON CONFLICT (group_id, user_id) DO NOTHING
            """,
            group_id,
            user_id,
            role.value,
        )

    async def list_group_members(self, group_id: int) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT gm.user_id, gm.role, gm.joined_at, u.tg_id, u.username, u.full_name
            FROM group_members gm
            JOIN users u ON u.id = gm.user_id
            WHERE gm.group_id = $1
            ORDER BY gm.joined_at, gm.user_id
            """,
            group_id,
        )

    async def load_members(self, group_id: int) -> list[Member]:
        return [member_from_record(row) for row in await self.list_group_members(group_id)]

    async def add_invite_link(
        self,
        group_id: int,
        token: str,
        max_uses: Optional[int],
        expires_at: Optional[datetime],
    ) -> GroupInviteLink:
        row = await self.db.fetchrow(
            """
            INSERT INTO group_invite_links (group_id, token, max_uses, expires_at)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            group_id,
            token,
            max_uses,
            expires_at,
        )
        assert row is not None
        return GroupInviteLink.from_record(row)

    async def get_invite_link_by_token(self, token: str) -> GroupInviteLink | None:
        row = await self.db.fetchrow(
            "SELECT * FROM group_invite_links WHERE token = $1",
            token,
        )
        return GroupInviteLink.from_record(row) if row else None

    async def increment_invite_use(self, invite_id: int) -> None:
        await self.db.execute(
            "UPDATE group_invite_links SET uses = uses + 1 WHERE id = $1",
            invite_id,
        )

    async def create_group_expense(
        self,
        group_id: int,
        paid_by: int,
        amount: Decimal,
        category: str,
        description: Optional[str],
        spent_on: date,
        recurring_id: Optional[int] = None,
    ) -> asyncpg.Record:
        row = await self.db.fetchrow(
            """
            INSERT INTO group_expenses (group_id, paid_by, amount, category, description, spent_on, recurring_id)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *
            """,
            group_id,
            paid_by,
            amount,
            category,
            description,
            spent_on,
            recurring_id,
        )
        assert row is not None
        return row

    async def list_group_expenses(self, group_id: int) -> list[asyncpg.Record]:
        return await self.db.fetch(
            """
            SELECT * FROM group_expenses
            WHERE group_id = $1
            ORDER BY spent_on, id
            """,
            group_id,
        )

    async def load_expenses(self, group_id: int) -> list[Expense]:
        return [expense_from_record(row) for row in await self.list_group_expenses(group_id)]

    async def get_group_expense(self, expense_id: int) -> asyncpg.Record | None:
        return await self.db.fetchrow("SELECT * FROM group_expenses WHERE id = $1", expense_id)

    async def delete_group_expense(self, expense_id: int) -> bool:
        status = await self.db.execute("DELETE FROM group_expenses WHERE id = $1", expense_id)
        return _affected_rows(status) > 0

    async def create_group_budget(
        self,
        group_id: int,
        name: str,
        amount: Decimal,
        period: str,
        start_date: date,
        created_by: int,
    ) -> GroupBudget:
        row = await self.db.fetchrow(
            """
            INSERT INTO group_budgets (group_id, name, amount, period, start_date, created_by)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            group_id,
            name,
            amount,
            period,
            start_date,
            created_by,
        )
        assert row is not None
        return GroupBudget.from_record(row)

    async def list_group_budgets(self, group_id: int) -> list[GroupBudget]:
        rows = await self.db.fetch(
            "SELECT * FROM group_budgets WHERE group_id = $1 ORDER BY start_date DESC, id DESC",
            group_id,
        )
        return [GroupBudget.from_record(row) for row in rows]

    async def get_group_budget(self, budget_id: int) -> GroupBudget | None:
        row = await self.db.fetchrow("SELECT * FROM group_budgets WHERE id = $1", budget_id)
        return GroupBudget.from_record(row) if row else None

    async def delete_group_budget(self, budget_id: int) -> bool:
        status = await self.db.execute("DELETE FROM group_budgets WHERE id = $1", budget_id)
        return _affected_rows(status) > 0

    async def create_recurring_expense(
        self,
        group_id: int,
        created_by: int,
        amount: Decimal,
        category: str,
        description: Optional[str],
        frequency: Frequency,
        next_date: date,
    ) -> RecurringExpense:
        row = await self.db.fetchrow(
            """
            INSERT INTO recurring_expenses (group_id, created_by, amount, category, description, frequency, next_date)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING *
            """,
            group_id,
            created_by,
            amount,
            category,
            description,
            frequency.value,
            next_date,
        )
        assert row is not None
        return RecurringExpense.from_record(row)

    async def get_recurring_expense(self, recurring_id: int) -> RecurringExpense | None:
        row = await self.db.fetchrow("SELECT * FROM recurring_expenses WHERE id = $1", recurring_id)
        return RecurringExpense.from_record(row) if row else None

    async def set_recurring_active(self, recurring_id: int, active: bool) -> None:
        await self.db.execute(
            "UPDATE recurring_expenses SET active = $1 WHERE id = $2",
            active,
            recurring_id,
        )

    async def delete_recurring_expense(self, recurring_id: int) -> bool:
        # los gastos ya generados se quedan: la FK los deja con recurring_id = NULL
        status = await self.db.execute("DELETE FROM recurring_expenses WHERE id = $1", recurring_id)
        return _affected_rows(status) > 0

    async def fetch_due_recurring(self, today: date) -> list[RecurringExpense]:
        rows = await self.db.fetch(
            """
            SELECT * FROM recurring_expenses
            WHERE active = true AND next_date <= $1
            ORDER BY next_date, id
            """,
            today,
        )
        return [RecurringExpense.from_record(row) for row in rows]

    async def advance_recurring(self, recurring_id: int, last_date: date, next_date: date) -> None:
        await self.db.execute(
            "UPDATE recurring_expenses SET last_date = $1, next_date = $2 WHERE id = $3",
            last_date,
            next_date,
            recurring_id,
        )


_global_repo: GastitoRepository | None = None


def set_global_repository(repo: GastitoRepository) -> None:
    global _global_repo
    _global_repo = repo


def get_global_repository() -> GastitoRepository:
    if _global_repo is None:
        raise RuntimeError("El repositorio no está inicializado")
    return _global_repo
