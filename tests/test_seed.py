from pathlib import Path

import pytest

from notiproof.pipeline.seed import SeedData, load_seed_dir, validate_seed

REPO_SEED = Path(__file__).resolve().parents[1] / "seed"


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_repo_seed_is_valid():
    seed, errors = validate_seed(load_seed_dir(REPO_SEED))
    assert errors == []
    assert seed.templates
    assert {w["website_id"] for w in seed.weights} == {"demo-site"}


def test_website_id_comes_from_file_name(tmp_path):
    _write(
        tmp_path / "weights" / "shop-42.yaml",
        "weights:\n  - event_type: purchase\n    weight: 3\n    max_per_queue: 5\n    ttl_days: 2\n",
    )
    seed = load_seed_dir(tmp_path)
    assert seed.weights == [
        {"event_type": "purchase", "weight": 3, "max_per_queue": 5, "ttl_days": 2, "website_id": "shop-42"}
    ]


def test_single_file_layout(tmp_path):
    _write(
        tmp_path / "templates.yaml",
        "- event_type: signup\n  integration_type: api\n  template: '{{user_name}} joined'\n",
    )
    seed, errors = validate_seed(load_seed_dir(tmp_path))
    assert errors == []
    assert seed.templates[0]["priority"] == 0
    assert seed.weights == []


def test_unrecognized_yaml_is_skipped(tmp_path):
    _write(tmp_path / "templates" / "odd.yaml", "just a string\n")
    assert load_seed_dir(tmp_path).templates == []


def test_broken_yaml_raises(tmp_path):
    _write(tmp_path / "templates.yaml", "templates: [unclosed\n")
    with pytest.raises(ValueError):
        load_seed_dir(tmp_path)


def test_validation_errors():
    seed = SeedData(
        templates=[
            {"event_type": "purchase", "integration_type": "shopify", "template": "{{ }} broken"},
            {"event_type": "purchase", "template": "missing integration"},
            {"event_type": "purchase", "integration_type": "x", "template": "ok", "colour": "red"},
        ],
        weights=[
            {"website_id": "s", "event_type": "purchase", "weight": 1, "max_per_queue": 1, "ttl_days": 1},
            {"website_id": "s", "event_type": "purchase", "weight": 2, "max_per_queue": 1, "ttl_days": 1},
            {"website_id": "s", "event_type": "signup", "weight": -1, "max_per_queue": 1, "ttl_days": 1},
        ],
    )
    out, errors = validate_seed(seed)

    assert any(e.startswith("templates[0]") for e in errors)
    assert any(e.startswith("templates[1]") for e in errors)
    assert any(e.startswith("templates[2]") for e in errors)
    assert any("duplicate override" in e for e in errors)
    assert any(e.startswith("weights[2]") for e in errors)
    assert len(out.weights) == 1


def test_templates_with_same_key_and_priority_collide():
    seed = SeedData(
        templates=[
            {"event_type": "purchase", "integration_type": "shopify", "template": "A", "priority": 5},
            {"event_type": "purchase", "integration_type": "shopify", "template": "B", "priority": 5},
            {"event_type": "purchase", "integration_type": "shopify", "template": "C", "priority": 1},
            {"id": "custom", "event_type": "purchase", "integration_type": "shopify", "template": "D", "priority": 5},
        ],
        weights=[],
    )
    out, errors = validate_seed(seed)

    assert len(errors) == 1
    assert errors[0].startswith("templates[1]: duplicate template")
    assert [t["template"] for t in out.templates] == ["A", "C", "D"]
