"""Alembic environment.

DATABASE_URL comes from the application settings (single source of truth).
Migrations run over a sync driver: the async driver suffix is swapped for
the plain dialect so Alembic's sync API can be used as-is.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import NullPool, create_engine, make_url

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _sync_url() -> str:
    url = make_url(settings.DATABASE_URL)
    backend = url.get_backend_name()  # "postgresql", "sqlite", ...
    return url.set(drivername=backend).render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Emit SQL to stdout, no live connection."""
    context.configure(
        url=_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_sync_url(), poolclass=NullPool)
    with engine.connect() as conn:
        context.configure(
            connection=conn, target_metadata=target_metadata, compare_type=True
        )
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
