from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import URL, make_url

from gastito.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# el esquema se mantiene a mano en versions/, sin autogenerate
target_metadata = None


def _database_url() -> URL:
    url = make_url(get_settings().database_url)
    # asyncpg solo lo usa el bot; las migraciones corren con el driver síncrono
    if "+asyncpg" in url.drivername:
        url = url.set(drivername=url.drivername.replace("+asyncpg", ""))
    if url.drivername == "postgres":
        url = url.set(drivername="postgresql")
    return url


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url().render_as_string(hide_password=False),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, compare_type=True)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
