from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context
from api.shared.entities.registry import metadata
from core.settings import SETTINGS
from infra.db_utils import convert_async_to_sync_dsn

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
# An explicit sqlalchemy.url (programmatic Config or -x overrides) wins over settings
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option(
        "sqlalchemy.url", convert_async_to_sync_dsn(str(SETTINGS.DATABASE.DATABASE_URL))
    )
target_metadata = metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connection = config.attributes.get("connection", None)
    if connection is not None:
        do_run_migrations(connection)
        return

    connectable = create_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
