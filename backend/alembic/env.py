"""
Migration runner for the cinelist schema.

DATABASE_URL (env or backend/.env) wins over anything in alembic.ini, so
``alembic upgrade head`` from backend/ targets the API's own database.
"""
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cinelist.core.config import settings  # noqa: E402
from cinelist.db.models import Base  # noqa: E402
from cinelist.db.session import build_engine  # noqa: E402

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name, disable_existing_loggers=False)

DATABASE_URL = settings.DATABASE_URL


def _options(url: str) -> dict:
    # SQLite rebuilds tables for ALTERs, so batch mode is required there
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def migrate_as_sql() -> None:
    """``alembic upgrade head --sql``: print the DDL instead of executing it."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options(DATABASE_URL),
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_live() -> None:
    engine = build_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **_options(DATABASE_URL))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_as_sql()
else:
    migrate_live()
