"""Startup seeding from SEED_DIR.

Runs in the FastAPI lifespan. Uses the loader, validator and upserts that
back POST /admin/seed/apply, so both paths write the same rows.
"""

from __future__ import annotations

import logging
from pathlib import Path

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.seed_db import apply_seed
from notiproof.pipeline.db.session import AsyncSessionLocal
from notiproof.pipeline.seed import SeedData, load_seed_dir, validate_seed

logger = logging.getLogger(__name__)


def _seed_dir() -> Path | None:
    if not settings.SEED_DIR:
        logger.debug("SEED_DIR not set, skipping auto-seed.")
        return None
    path = Path(settings.SEED_DIR)
    if not path.is_dir():
        logger.warning("SEED_DIR %s is not a directory, skipping auto-seed.", path)
        return None
    return path


async def auto_seed() -> SeedData | None:
    """Upsert templates and weight overrides found under SEED_DIR.

    Rows that fail validation are logged and left out; the rest are applied.
    Returns what was applied, or None when nothing ran.
    """
    seed_dir = _seed_dir()
    if seed_dir is None:
        return None

    seeds, errors = validate_seed(load_seed_dir(seed_dir))
    for e in errors:
        logger.warning("Seed error: %s", e)

    if not seeds.templates and not seeds.weights:
        logger.info("No seed data found in %s, skipping.", seed_dir)
        return None

    async with AsyncSessionLocal() as db:
        await apply_seed(db, seeds.templates, seeds.weights)

    logger.info(
        "Auto-seed complete: %d templates, %d weight overrides.",
        len(seeds.templates),
        len(seeds.weights),
    )
    return seeds
