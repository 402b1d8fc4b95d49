from __future__ import annotations

from alembic import context
from sqlalchemy import engine_from_config, pool

from taskmatrix.config import load_settings
from taskmatrix.infra import models  # noqa: F401
from taskmatrix.infra.db import Base

config = context.config
target_metadata = Base.metadata

database_url = load_settings().database_url
if not database_url:
    raise RuntimeError("DATABASE_URL is not set. Create a .env file with your connection string.")
config.set_main_option("sqlalchemy.url", database_url)


def run_migrations_offline() -> None:
    context.configure(url=database_url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
