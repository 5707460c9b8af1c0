from logging.config import fileConfig

from alembic import context

from rentalhub.db import DATABASE_URL, Base, build_engine
from rentalhub import models  # noqa: F401  registers the rental tables on Base.metadata

config = context.config

# Keep application loggers alive when migrations run inside a live process
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def get_url() -> str:
    """
    An explicit sqlalchemy.url set on the Config wins over
    the application's DATABASE_URL, so migrations and the app share one default.
    """
    return config.get_main_option("sqlalchemy.url") or DATABASE_URL


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    # Same engine settings as the app, including the SQLite foreign key pragma
    connectable = build_engine(url)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=url.startswith("sqlite"),
        )

        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
