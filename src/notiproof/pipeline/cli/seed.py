"""CLI seed commands.

notiproof-cli seed validate ./seed
notiproof-cli seed apply ./seed --api-url http://localhost:8000

Seed files are read and validated locally with the same loader the
service uses at startup, then POSTed to /admin/seed/apply.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import typer

from notiproof.pipeline.config.settings import settings
from notiproof.pipeline.seed import SeedData, load_seed_dir, validate_seed

seed_app = typer.Typer(add_completion=False, help="Manage seed data")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SEED_DIR_ARG = typer.Argument(
    Path(settings.SEED_DIR or "./seed"),
    help="Directory containing templates/ and weights/ (or templates.yaml, weights.yaml).",
    exists=True,
    file_okay=False,
    dir_okay=True,
    readable=True,
)


def _load_valid(seed_dir: Path) -> SeedData:
    try:
        seed, errors = validate_seed(load_seed_dir(seed_dir))
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)

    if errors:
        for e in errors:
            typer.echo(f"  [error] {e}", err=True)
        typer.echo(f"{len(errors)} seed error(s).", err=True)
        raise typer.Exit(1)

    typer.echo(
        f"Loaded seed: {len(seed.templates)} templates, "
        f"{len(seed.weights)} weight overrides"
    )
    return seed


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@seed_app.command("validate")
def validate(seed_dir: Path = _SEED_DIR_ARG) -> None:
    """Check seed YAML files without contacting the service."""
    _load_valid(seed_dir)
    typer.echo("Seed OK.")


@seed_app.command("apply")
def apply(
    seed_dir: Path = _SEED_DIR_ARG,
    api_url: str = typer.Option(
        settings.API_URL,
        "--api-url",
        envvar="NOTIPROOF_API_URL",
        help="Base URL of the pipeline service (e.g. https://notiproof.example.com).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Read seed YAML files and POST them to /admin/seed/apply."""
    seed = _load_valid(seed_dir)

    if not seed.templates and not seed.weights:
        typer.echo("Nothing to seed.", err=True)
        raise typer.Exit(0)

    endpoint = api_url.rstrip("/") + "/admin/seed/apply"
    if verbose:
        typer.echo(f"POST {endpoint}")

    try:
        resp = httpx.post(
            endpoint,
            json={"templates": seed.templates, "weights": seed.weights},
            timeout=60,
        )
    except httpx.RequestError as exc:
        typer.echo(f"Connection error: {exc}", err=True)
        raise typer.Exit(1)

    if resp.status_code == 200:
        data = resp.json()
        typer.echo(
            f"Seed applied: {data.get('templates')} templates, "
            f"{data.get('weights')} weight overrides."
        )
    elif resp.status_code == 422:
        typer.echo(f"Seed data validation error (422):\n{resp.text}", err=True)
        raise typer.Exit(1)
    else:
        typer.echo(f"Unexpected error ({resp.status_code}):\n{resp.text}", err=True)
        raise typer.Exit(1)
