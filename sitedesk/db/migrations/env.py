"""Alembic environment for the SiteDesk schema.

The database URL comes from SiteDesk settings (``storage.postgres.dsn``,
overridable with SITEDESK_STORAGE__POSTGRES__DSN), so migrations and the
running service always target the same database.
"""

from alembic import context
from sqlalchemy import engine_from_config, pool

from sitedesk.config import get_settings

config = context.config
config.set_main_option("sqlalchemy.url", get_settings().storage.postgres.dsn)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    context.configure(url=config.get_main_option("sqlalchemy.url"), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
