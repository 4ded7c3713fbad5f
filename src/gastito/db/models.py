from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from gastito.services.balances import to_decimal
from gastito.services.budgets import Budget, BudgetPeriod
from gastito.services.recurring import Frequency


@dataclass(slots=True)
class GroupInviteLink:
    id: int
    group_id: int
    token: str
    max_uses: Optional[int]
    uses: int
    expires_at: Optional[datetime]

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "GroupInviteLink":
        return cls(
            id=row["id"],
            group_id=row["group_id"],
            token=row["token"],
            max_uses=row["max_uses"],
            uses=row["uses"],
            expires_at=row["expires_at"],
        )

    def is_usable(self, now: datetime) -> bool:
        if self.expires_at is not None and self.expires_at <= now:
            return False
        if self.max_uses is not None and self.uses >= self.max_uses:
            return False
        return True


@dataclass(slots=True)
class GroupBudget:
    id: int
    group_id: int
    name: str
    amount: Decimal
    period: BudgetPeriod
    start_date: date
    end_date: Optional[date]

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "GroupBudget":
        return cls(
            id=row["id"],
            group_id=row["group_id"],
            name=row["name"],
            amount=to_decimal(row["amount"]),
            period=BudgetPeriod(row["period"]),
            start_date=row["start_date"],
            end_date=row["end_date"],
        )

    def to_budget(self) -> Budget:
        return Budget(
            name=self.name,
            amount=self.amount,
            period=self.period,
            start_date=self.start_date,
            end_date=self.end_date,
        )


@dataclass(slots=True)
class RecurringExpense:
    id: int
    group_id: int
    created_by: int
    amount: Decimal
    category: str
    description: Optional[str]
    frequency: Frequency
    next_date: date
    last_date: Optional[date]
    active: bool

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "RecurringExpense":
        return cls(
            id=row["id"],
            group_id=row["group_id"],
            created_by=row["created_by"],
            amount=to_decimal(row["amount"]),
            category=row["category"],
            description=row["description"],
            frequency=Frequency(row["frequency"]),
            next_date=row["next_date"],
            last_date=row["last_date"],
            active=row["active"],
        )
