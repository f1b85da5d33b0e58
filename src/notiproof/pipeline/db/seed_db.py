import asyncio
import logging
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.db.models import EventTemplate
from notiproof.pipeline.db.repository import upsert_weight
from notiproof.pipeline.db.session import AsyncSessionLocal
from notiproof.pipeline.seed import load_seed_dir, validate_seed

logger = logging.getLogger(__name__)


def _tpl_id(event_type: str, integration_type: str, priority: int = 0) -> str:
    # deterministic id (stable across DBs); one row per (type, integration, priority)
    safe_type = event_type.replace("/", "_").replace(" ", "_")
    safe_integration = integration_type.replace("/", "_").replace(" ", "_")
    return f"tpl_{safe_type}_{safe_integration}_p{int(priority)}"


async def upsert_template(db: AsyncSession, t: dict):
    event_type = t["event_type"]
    integration_type = t["integration_type"]
    priority = int(t.get("priority", 0))
    template_id = t.get("id") or _tpl_id(event_type, integration_type, priority)

    existing = await db.execute(select(EventTemplate).where(EventTemplate.id == template_id))
    obj = existing.scalar_one_or_none()
    if obj is None:
        obj = EventTemplate(id=template_id)
        db.add(obj)

    obj.event_type = event_type
    obj.integration_type = integration_type
    obj.template = t["template"]
    obj.priority = priority
    obj.is_active = bool(t.get("is_active", True))


async def upsert_weight_row(db: AsyncSession, w: dict):
    await upsert_weight(
        db,
        website_id=w["website_id"],
        event_type=w["event_type"],
        weight=w["weight"],
        max_per_queue=w["max_per_queue"],
        ttl_days=w["ttl_days"],
    )


async def apply_seed(db: AsyncSession, templates: list[dict], weights: list[dict]) -> None:
    for t in templates:
        await upsert_template(db, t)
    for w in weights:
        await upsert_weight_row(db, w)
    await db.commit()


async def main():
    seed_dir = Path(settings.SEED_DIR or (Path.cwd() / "seed"))
    if not seed_dir.exists():
        logger.error("Seed dir %s does not exist. Provide with SEED_DIR env.", seed_dir)
        raise SystemExit(1)

    seed, errors = validate_seed(load_seed_dir(seed_dir))
    if errors:
        for e in errors:
            logger.error("Seed error: %s", e)
        raise SystemExit(1)

    async with AsyncSessionLocal() as db:
        await apply_seed(db, seed.templates, seed.weights)

    logger.info(
        "Seed completed: %d templates, %d weight overrides.",
        len(seed.templates),
        len(seed.weights),
    )


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s: %(message)s")
    asyncio.run(main())
