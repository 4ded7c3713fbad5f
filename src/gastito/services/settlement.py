from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable, List, Sequence

from gastito.logging import get_logger
from gastito.services.balances import (
    BalanceSheet,
    Expense,
    Member,
    MemberBalance,
    Number,
    compute_balances,
    to_decimal,
)

DEFAULT_EPSILON = Decimal("0.01")

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Transfer:
    from_member: Member
    to_member: Member
    amount: Decimal


@dataclass(frozen=True, slots=True)
class PrecisionWarning:
    member: Member
    residual: Decimal


@dataclass(frozen=True, slots=True)
class SettlementResult:
    sheet: BalanceSheet
    transfers: tuple[Transfer, ...]
    warnings: tuple[PrecisionWarning, ...] = ()

    @property
    def balances(self) -> dict[Hashable, Decimal]:
        return self.sheet.as_mapping()

    @property
    def is_settled(self) -> bool:
        return not self.transfers


def settle(balances: Sequence[MemberBalance], epsilon: Number = DEFAULT_EPSILON) -> List[Transfer]:
    eps = to_decimal(epsilon)

    creditors = [entry for entry in balances if entry.balance > eps]
    debtors = [entry for entry in balances if entry.balance < -eps]

    # sort() estable: empates conservan el orden de los miembros
    creditors.sort(key=lambda entry: entry.balance, reverse=True)
    debtors.sort(key=lambda entry: entry.balance)

    # copias de trabajo, separadas de los miembros que se muestran
    credit_left = [entry.balance for entry in creditors]
    debt_left = [entry.balance for entry in debtors]

    transfers: list[Transfer] = []
    i, j = 0, 0

    while i < len(creditors) and j < len(debtors):
        amount = min(credit_left[i], abs(debt_left[j]))
        if amount <= eps:
            break

        transfers.append(
            Transfer(from_member=debtors[j].member, to_member=creditors[i].member, amount=amount)
        )

        credit_left[i] -= amount
        debt_left[j] += amount

        if credit_left[i] <= eps:
            i += 1
        if debt_left[j] >= -eps:
            j += 1

    return transfers


def apply_transfers(
    balances: Sequence[MemberBalance], transfers: Sequence[Transfer]
) -> dict[Hashable, Decimal]:
    after = {entry.member.id: entry.balance for entry in balances}
    for transfer in transfers:
        after[transfer.from_member.id] += transfer.amount
        after[transfer.to_member.id] -= transfer.amount
    return after


def compute_balances_and_settlement(
    members: Sequence[Member],
    expenses: Sequence[Expense],
    epsilon: Number = DEFAULT_EPSILON,
) -> SettlementResult:
    eps = to_decimal(epsilon)
    sheet = compute_balances(members, expenses)
    transfers = settle(sheet.balances, eps)

    residuals = apply_transfers(sheet.balances, transfers)
    warnings = tuple(
        PrecisionWarning(member=entry.member, residual=residuals[entry.member.id])
        for entry in sheet.balances
        if abs(residuals[entry.member.id]) > eps
    )
    for warning in warnings:
        log.warning(
            "settlement.precision_warning",
            member_id=warning.member.id,
            residual=str(warning.residual),
        )

    log.info(
        "settlement.computed",
        members=len(members),
        expenses=len(expenses),
        transfers=len(transfers),
        total=str(sheet.total),
    )
    return SettlementResult(sheet=sheet, transfers=tuple(transfers), warnings=warnings)
