from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from notiproof.pipeline.cli.seed import seed_app
from notiproof.pipeline.engine.errors import ValidationError
from notiproof.pipeline.engine.events.contract import parse_raw_event
from notiproof.pipeline.engine.normalizer import normalize
from notiproof.pipeline.engine.templates.renderer import render


def _parse_pairs(pairs: List[str]) -> dict[str, str]:
    data: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}", param_hint="--data")
        data[key.strip()] = value
    return data


def normalize_cmd(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Raw event JSON file."
    ),
) -> None:
    """Normalize a raw event envelope and print the record. Nothing is stored."""
    try:
        raw = parse_raw_event(json.loads(file.read_text(encoding="utf-8")))
    except json.JSONDecodeError as exc:
        typer.echo(f"Invalid JSON in {file}: {exc}", err=True)
        raise typer.Exit(1)
    except ValidationError as exc:
        typer.echo(json.dumps(exc.to_dict(), indent=2), err=True)
        raise typer.Exit(1)

    typer.echo(normalize(raw).model_dump_json(indent=2))


def render_cmd(
    template: str = typer.Argument(..., help='e.g. "{{user_name}} just bought {{product_name}}"'),
    data: Optional[List[str]] = typer.Option(None, "--data", "-d", help="key=value, repeatable."),
) -> None:
    """Render a message template against key=value pairs."""
    typer.echo(render(template, _parse_pairs(data or [])))


def build_app() -> typer.Typer:
    app = typer.Typer(add_completion=True, help="NotiProof event pipeline CLI")
    app.add_typer(seed_app, name="seed")
    app.command("normalize")(normalize_cmd)
    app.command("render")(render_cmd)
    return app


def create_app():
    app = build_app()
    app()


if __name__ == "__main__":
    app = create_app()
