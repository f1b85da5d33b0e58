"""Dev automation: make sure the database exists, migrate it, seed it.

Production deployments run `alembic upgrade head` as their own step and
rely on SEED_DIR auto-seeding (or `notiproof-cli seed apply`) instead.

Usage:
    python -m notiproof.pipeline.db.init_db [revision]
"""

import asyncio
import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import make_url, text
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import create_async_engine

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.seed_db import main as seed_main

logger = logging.getLogger(__name__)

# src/notiproof/pipeline/db/init_db.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parents[4]
_ALEMBIC_INI = _PROJECT_ROOT / "alembic.ini"


async def _create_postgres_database(url: URL) -> None:
    engine = create_async_engine(
        url.set(database="postgres"), isolation_level="AUTOCOMMIT"
    )
    try:
        async with engine.connect() as conn:
            found = await conn.scalar(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": url.database},
            )
            if found:
                logger.info("Database already exists: %s", url.database)
                return
            await conn.execute(text(f'CREATE DATABASE "{url.database}"'))
            logger.info("Created database: %s", url.database)
    finally:
        await engine.dispose()


async def ensure_database(db_url: str) -> None:
    url = make_url(db_url)
    backend = url.get_backend_name()

    if backend == "postgresql":
        await _create_postgres_database(url)
    elif backend == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        logger.info("No create step for backend %s, assuming the database exists", backend)


def run_migrations(revision: str = "head") -> None:
    if not _ALEMBIC_INI.exists():
        raise FileNotFoundError(f"alembic.ini not found at {_ALEMBIC_INI}")

    logger.info("alembic upgrade %s", revision)
    command.upgrade(Config(str(_ALEMBIC_INI)), revision)


async def main(revision: str = "head") -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")

    await ensure_database(settings.DATABASE_URL)
    # alembic's env.py drives its own sync engine; keep it off the event loop
    await asyncio.to_thread(run_migrations, revision)

    if settings.SEED_DIR:
        await seed_main()
    else:
        logger.info("SEED_DIR not set, skipping seed")

    logger.info("Database ready (revision=%s).", revision)


if __name__ == "__main__":
    asyncio.run(main(*sys.argv[1:2]))
