from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Hashable, Iterable, Optional, Sequence, Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")


class InvalidInput(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class Member:
    id: Hashable
    label: str


@dataclass(frozen=True, slots=True)
class Expense:
    amount: Decimal
    payer_id: Hashable
    category: Optional[str] = None
    spent_on: Optional[date] = None
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MemberBalance:
    member: Member
    total_paid: Decimal
    balance: Decimal
    expense_count: int
    average_expense: Decimal


@dataclass(frozen=True, slots=True)
class BalanceSheet:
    total: Decimal
    equal_share: Decimal
    balances: tuple[MemberBalance, ...]

    def as_mapping(self) -> dict[Hashable, Decimal]:
        return {entry.member.id: entry.balance for entry in self.balances}


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # float -> str para que 0.1 siga siendo 0.1
    return Decimal(str(value))


def make_expense(
    amount: Number,
    payer_id: Hashable,
    category: Optional[str] = None,
    spent_on: Optional[date] = None,
    description: Optional[str] = None,
) -> Expense:
    return Expense(
        amount=to_decimal(amount),
        payer_id=payer_id,
        category=category,
        spent_on=spent_on,
        description=description,
    )


def _validate(members: Sequence[Member], expenses: Iterable[Expense]) -> None:
    if not members:
        raise InvalidInput("members must not be empty")

    seen: set[Hashable] = set()
    for member in members:
        if member.id in seen:
            raise InvalidInput(f"member {member.id!r} appears more than once")
        seen.add(member.id)

    for expense in expenses:
        if expense.payer_id not in seen:
            raise InvalidInput(f"expense payer {expense.payer_id!r} is not a group member")
        if to_decimal(expense.amount) < 0:
            raise InvalidInput("expense amount must be non-negative")


def compute_balances(members: Sequence[Member], expenses: Sequence[Expense]) -> BalanceSheet:
    _validate(members, expenses)

    paid: dict[Hashable, Decimal] = {member.id: ZERO for member in members}
    counts: dict[Hashable, int] = {member.id: 0 for member in members}
    for expense in expenses:
        paid[expense.payer_id] += to_decimal(expense.amount)
        counts[expense.payer_id] += 1

    total = sum(paid.values(), ZERO)
    equal_share = total / Decimal(len(members))

    balances = []
    for member in members:
        total_paid = paid[member.id]
        count = counts[member.id]
        balances.append(
            MemberBalance(
                member=member,
                total_paid=total_paid,
                balance=total_paid - equal_share,
                expense_count=count,
                average_expense=total_paid / count if count else ZERO,
            )
        )

    return BalanceSheet(total=total, equal_share=equal_share, balances=tuple(balances))
