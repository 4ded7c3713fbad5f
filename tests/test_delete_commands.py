from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from gastito.db.models import GroupBudget, RecurringExpense
from gastito.db.repo import set_global_repository
from gastito.handlers.expenses import cmd_delbudget, cmd_delexpense, cmd_delrecurring
from gastito.services.authz import AuthorizationError
from gastito.services.budgets import BudgetPeriod
from gastito.services.recurring import Frequency

ADMIN, MEMBER = 1, 2


class RolesDB:
    def __init__(self, roles: dict[tuple[int, int], str]) -> None:
        self.roles = roles

    async def fetchval(self, query: str, *args: object) -> object:
        group_id, user_id = args
        return self.roles.get((group_id, user_id))


class StubRepo:
    def __init__(self) -> None:
        self.db = RolesDB({(5, ADMIN): "admin", (5, MEMBER): "member"})
        self.expenses = {10: {"id": 10, "group_id": 5, "paid_by": MEMBER}}
        self.budgets = {
            20: GroupBudget(
                id=20,
                group_id=5,
                name="Súper <casa>",
                amount=Decimal("300"),
                period=BudgetPeriod.MONTHLY,
                start_date=date(2025, 3, 1),
                end_date=None,
            )
        }
        self.recurring = {
            30: RecurringExpense(
                id=30,
                group_id=5,
                created_by=MEMBER,
                amount=Decimal("99"),
                category="internet",
                description=None,
                frequency=Frequency.MONTHLY,
                next_date=date(2025, 4, 1),
                last_date=None,
                active=True,
            )
        }

    async def ensure_user(self, tg_id, username, full_name) -> int:
        return tg_id

    async def get_group_expense(self, expense_id):
        return self.expenses.get(expense_id)

    async def delete_group_expense(self, expense_id) -> bool:
        return self.expenses.pop(expense_id, None) is not None

    async def get_group_budget(self, budget_id):
        return self.budgets.get(budget_id)

    async def delete_group_budget(self, budget_id) -> bool:
        return self.budgets.pop(budget_id, None) is not None

    async def get_recurring_expense(self, recurring_id):
        return self.recurring.get(recurring_id)

    async def delete_recurring_expense(self, recurring_id) -> bool:
        return self.recurring.pop(recurring_id, None) is not None


class FakeMessage:
    def __init__(self, text: str, user_id: int) -> None:
        self.text = text
        self.from_user = SimpleNamespace(id=user_id, username=None, full_name=f"user{user_id}")
        self.answers: list[str] = []

    async def answer(self, text: str, **kwargs) -> None:
        self.answers.append(text)


@pytest.fixture
def repo() -> StubRepo:
    stub = StubRepo()
    set_global_repository(stub)  # type: ignore[arg-type]
    return stub


@pytest.mark.asyncio
async def test_delexpense_by_payer(repo):
    message = FakeMessage("/delexpense 10", MEMBER)

    await cmd_delexpense(message)  # type: ignore[arg-type]

    assert 10 not in repo.expenses
    assert message.answers == ["🗑 Gasto #10 borrado"]


@pytest.mark.asyncio
async def test_delexpense_rejects_other_members_even_admin(repo):
    with pytest.raises(AuthorizationError):
        await cmd_delexpense(FakeMessage("/delexpense 10", ADMIN))  # type: ignore[arg-type]

    assert 10 in repo.expenses


@pytest.mark.asyncio
async def test_delexpense_usage_and_missing(repo):
    usage = FakeMessage("/delexpense", MEMBER)
    missing = FakeMessage("/delexpense 99", MEMBER)

    await cmd_delexpense(usage)  # type: ignore[arg-type]
    await cmd_delexpense(missing)  # type: ignore[arg-type]

    assert usage.answers == ["Uso: /delexpense [id]"]
    assert missing.answers == ["Gasto no encontrado"]


@pytest.mark.asyncio
async def test_delbudget_admin_only(repo):
    with pytest.raises(AuthorizationError):
        await cmd_delbudget(FakeMessage("/delbudget 20", MEMBER))  # type: ignore[arg-type]
    assert 20 in repo.budgets

    message = FakeMessage("/delbudget #20", ADMIN)
    await cmd_delbudget(message)  # type: ignore[arg-type]

    assert 20 not in repo.budgets
    assert message.answers == ["🗑 Presupuesto #20 <b>Súper &lt;casa&gt;</b> borrado"]


@pytest.mark.asyncio
async def test_delrecurring_admin_only(repo):
    with pytest.raises(AuthorizationError):
        await cmd_delrecurring(FakeMessage("/delrecurring 30", MEMBER))  # type: ignore[arg-type]
    assert 30 in repo.recurring

    message = FakeMessage("/delrecurring 30", ADMIN)
    await cmd_delrecurring(message)  # type: ignore[arg-type]

    assert 30 not in repo.recurring
    assert message.answers[0].startswith("🗑 Gasto recurrente #30 borrado")
