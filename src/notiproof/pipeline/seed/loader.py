from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Tuple

import yaml
from pydantic import ValidationError

from notiproof.pipeline.engine.templates.renderer import placeholders
from notiproof.pipeline.seed.schema import TemplateSeed, WeightSeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedData:
    templates: List[dict]
    weights: List[dict]


# ---------------------------------------------------------------------------
# YAML loading helpers
# ---------------------------------------------------------------------------

def _load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to read YAML {path}: {e}") from e


def _infer_weight_coords(source: Path, item: dict) -> dict:
    # Expected: weights/<website_id>.yaml
    if "website_id" not in item:
        item["website_id"] = source.stem
    return item


def _normalize_items(payload: Any, key: str, source: Path) -> List[dict]:
    if payload is None:
        return []
    if isinstance(payload, list):
        items = [dict(p) for p in payload if isinstance(p, dict)]
    elif isinstance(payload, dict):
        if key in payload and isinstance(payload[key], list):
            items = [dict(p) for p in payload[key] if isinstance(p, dict)]
        elif key == "templates" and "template" in payload:
            items = [dict(payload)]
        elif key == "weights" and "event_type" in payload:
            items = [dict(payload)]
        else:
            logger.warning("Skipping %s: unrecognized structure", source)
            return []
    else:
        logger.warning("Skipping %s: unrecognized structure", source)
        return []

    if key == "weights":
        items = [_infer_weight_coords(source, it) for it in items]
    return items


def _collect_from_dir(root: Path, key: str) -> List[dict]:
    if not root.exists() or not root.is_dir():
        return []
    items: List[dict] = []
    for path in sorted(root.rglob("*.yml")) + sorted(root.rglob("*.yaml")):
        payload = _load_yaml(path)
        items.extend(_normalize_items(payload, key, path))
    return items


def _collect_single(seed_dir: Path, name: str, key: str) -> List[dict]:
    path = seed_dir / name
    if not path.exists():
        return []
    return _normalize_items(_load_yaml(path), key, path)


def load_seed_dir(seed_dir: Path) -> SeedData:
    """
    Layout:
        <seed_dir>/templates/*.yaml          (or templates.yaml)
        <seed_dir>/weights/<website_id>.yaml (or weights.yaml)
    """
    templates = _collect_from_dir(seed_dir / "templates", "templates")
    weights = _collect_from_dir(seed_dir / "weights", "weights")

    if not templates:
        templates = _collect_single(seed_dir, "templates.yaml", "templates")
    if not weights:
        weights = _collect_single(seed_dir, "weights.yaml", "weights")

    return SeedData(templates=templates, weights=weights)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_template_text(template: str) -> List[str]:
    errors: List[str] = []
    if not placeholders(template) and "{{" in template:
        errors.append("template contains '{{' but no valid {{field}} placeholder")
    return errors


def validate_seed(seed: SeedData) -> Tuple[SeedData, List[str]]:
    errors: List[str] = []

    templates_out: List[dict] = []
    seen_templates: set[Any] = set()
    for idx, t in enumerate(seed.templates):
        try:
            obj = TemplateSeed.model_validate(t)
        except ValidationError as e:
            errors.append(f"templates[{idx}]: {e}")
            continue
        text_errors = _validate_template_text(obj.template)
        if text_errors:
            errors.extend(f"templates[{idx}]: {msg}" for msg in text_errors)
            continue
        # rows without an id are stored under (event_type, integration_type, priority)
        tpl_key = obj.id or (obj.event_type, obj.integration_type, obj.priority)
        if tpl_key in seen_templates:
            errors.append(
                f"templates[{idx}]: duplicate template for "
                f"{obj.event_type}/{obj.integration_type} (priority {obj.priority})"
            )
            continue
        seen_templates.add(tpl_key)
        templates_out.append(obj.model_dump(exclude_none=True))

    weights_out: List[dict] = []
    seen: set[tuple[str, str]] = set()
    for idx, w in enumerate(seed.weights):
        try:
            obj = WeightSeed.model_validate(w)
        except ValidationError as e:
            errors.append(f"weights[{idx}]: {e}")
            continue
        key = (obj.website_id, obj.event_type)
        if key in seen:
            errors.append(f"weights[{idx}]: duplicate override for {key[0]}/{key[1]}")
            continue
        seen.add(key)
        weights_out.append(obj.model_dump())

    return SeedData(templates=templates_out, weights=weights_out), errors
