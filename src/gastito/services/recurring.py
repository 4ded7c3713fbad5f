from __future__ import annotations

import calendar
from datetime import date, timedelta
from enum import Enum


class Frequency(str, Enum):
    MONTHLY = "mensual"
    WEEKLY = "semanal"
    BIWEEKLY = "quincenal"
    YEARLY = "anual"


FREQUENCY_LABELS = {
    Frequency.MONTHLY: "cada mes",
    Frequency.WEEKLY: "cada semana",
    Frequency.BIWEEKLY: "cada 15 días",
    Frequency.YEARLY: "cada año",
}


def add_months(current: date, months: int) -> date:
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    day = min(current.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def parse_frequency(value: str) -> Frequency:
    try:
        return Frequency(value.strip().lower())
    except ValueError as exc:
        raise ValueError("Frecuencia no soportada") from exc


def next_date(current: date, frequency: Frequency | str) -> date:
    if not isinstance(frequency, Frequency):
        frequency = parse_frequency(frequency)

    if frequency == Frequency.MONTHLY:
        return add_months(current, 1)
    if frequency == Frequency.WEEKLY:
        return current + timedelta(days=7)
    if frequency == Frequency.BIWEEKLY:
        return current + timedelta(days=15)
    return add_months(current, 12)


def due_occurrences(next_due: date, frequency: Frequency | str, today: date) -> list[date]:
    occurrences: list[date] = []
    current = next_due
    while current <= today:
        occurrences.append(current)
        current = next_date(current, frequency)
    return occurrences
