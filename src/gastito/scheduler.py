from __future__ import annotations

from datetime import date, datetime

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gastito.config import get_settings
from gastito.db.models import RecurringExpense
from gastito.db.repo import GastitoRepository
from gastito.logging import get_logger
from gastito.services.recurring import due_occurrences, next_date

log = get_logger(__name__)


async def setup_scheduler(repo: GastitoRepository) -> AsyncIOScheduler:
    settings = get_settings()

    scheduler = AsyncIOScheduler(timezone=settings.tz)
    scheduler.add_job(
        generate_recurring_expenses,
        IntervalTrigger(minutes=settings.recurring_interval_minutes),
        kwargs={"repo": repo},
        next_run_time=datetime.now(settings.zoneinfo),
    )
    scheduler.start()
    return scheduler


async def generate_recurring_expenses(repo: GastitoRepository, today: date | None = None) -> int:
    """
    Materializa los gastos recurrentes vencidos.

    Cada gasto recurrente va en su propia transacción: sus inserciones y el
    avance de ``next_date`` se confirman juntos o no se confirman. Un fallo en
    uno se registra y el resto sigue; el siguiente ciclo lo reintenta.
    """
    if today is None:
        today = datetime.now(get_settings().zoneinfo).date()

    created = 0
    for recurring in await repo.fetch_due_recurring(today):
        with structlog.contextvars.bound_contextvars(recurring_id=recurring.id):
            try:
                async with repo.transaction() as tx:
                    count = await _materialize(tx, recurring, today)
            except Exception:
                log.exception("recurring.failed", recurring_id=recurring.id)
                continue
        if count:
            created += count
            log.info("recurring.generated", recurring_id=recurring.id, count=count)

    return created


async def _materialize(repo: GastitoRepository, recurring: RecurringExpense, today: date) -> int:
    occurrences = due_occurrences(recurring.next_date, recurring.frequency, today)
    if not occurrences:
        return 0
    for spent_on in occurrences:
        await repo.create_group_expense(
            group_id=recurring.group_id,
            paid_by=recurring.created_by,
            amount=recurring.amount,
            category=recurring.category,
            description=recurring.description,
            spent_on=spent_on,
            recurring_id=recurring.id,
        )
    await repo.advance_recurring(
        recurring.id,
        last_date=occurrences[-1],
        next_date=next_date(occurrences[-1], recurring.frequency),
    )
    return len(occurrences)
