from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%d-%m-%Y")

_AMOUNT_RE = re.compile(r"^\$?\s*(\d+(?:[.,]\d{1,2})?)$")


def parse_amount(value: str) -> Decimal:
    """
    Monto en formato libre: 12, 12.50, 12,50, $12.50.

    Los montos en cero, negativos o con más de dos decimales se rechazan.
    """
    text = value.strip().replace(" ", "")
    match = _AMOUNT_RE.match(text)
    if not match:
        raise ValueError("Monto inválido")
    try:
        amount = Decimal(match.group(1).replace(",", "."))
    except InvalidOperation as exc:
        raise ValueError("Monto inválido") from exc
    if amount <= 0:
        raise ValueError("El monto debe ser mayor que cero")
    return amount


def parse_date(value: str) -> date:
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError("Fecha inválida, usa AAAA-MM-DD o DD.MM.AAAA")


def split_command_args(text: str) -> list[str]:
    parts = text.split(maxsplit=1)
    if len(parts) < 2:
        return []
    return [part.strip() for part in parts[1].split("|")]


def parse_id(value: str) -> int:
    text = value.strip().lstrip("#")
    if not text.isdigit():
        raise ValueError("ID inválido")
    return int(text)
