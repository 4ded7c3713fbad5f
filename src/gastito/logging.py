from __future__ import annotations

import logging

import structlog

# Procesadores comunes a toda la app; el renderer va siempre al final.
SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def resolve_level(level: str | int) -> int:
    """Nivel numérico a partir de "debug", "INFO", 20...; si no se reconoce, INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str | int = "INFO") -> None:
    log_level = resolve_level(level)

    logging.basicConfig(level=log_level, format="%(message)s")
    # el SQL de asyncpg va por el logger "sql"; fuera de DEBUG solo ensucia
    if log_level > logging.DEBUG:
        logging.getLogger("sql").setLevel(logging.WARNING)

    structlog.configure(
        processors=[*SHARED_PROCESSORS, structlog.processors.JSONRenderer(ensure_ascii=False)],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


sql_logger = get_logger("sql")
