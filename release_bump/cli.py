"""CLI entry point for release-bump."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from release_bump.config import ReleaseConfig, load_config
from release_bump.errors import ReleaseError
from release_bump.files import FileMutator
from release_bump.models import BumpKind
from release_bump.pipeline import run_release


def _load_config(root: Path) -> ReleaseConfig:
    try:
        return load_config(root)
    except ReleaseError as exc:
        raise click.ClickException(exc.message) from exc


@click.group()
@click.version_option(package_name="release-bump")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project root holding the version files and git checkout.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every git command.")
@click.pass_context
def cli(ctx: click.Context, root: Path, verbose: bool) -> None:
    """Bump the version, move changelog entries into a release and tag it."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )
    ctx.obj = root.resolve()


@cli.command()
@click.argument("kind", type=click.Choice([k.value for k in BumpKind]))
@click.option("--dry-run", is_flag=True, help="Show the next version without writing.")
@click.option("--no-push", is_flag=True, help="Commit and tag locally only.")
@click.pass_obj
def bump(root: Path, kind: str, dry_run: bool, no_push: bool) -> None:
    """Release the next KIND version (major, minor or patch).

    \b
    Examples:
      release-bump bump patch     1.2.0 → 1.2.1
      release-bump bump minor     1.2.0 → 1.3.0
      release-bump bump major     1.2.0 → 2.0.0
    """
    config = _load_config(root)
    if no_push:
        config = config.model_copy(update={"push": False})

    try:
        run_release(kind, root=root, config=config, dry_run=dry_run)
    except ReleaseError as exc:
        raise click.ClickException(exc.message) from exc


@cli.command()
@click.pass_obj
def current(root: Path) -> None:
    """Show the current project version."""
    config = _load_config(root)
    version_file = config.version_files[0]
    mutator = FileMutator(root)
    try:
        version = mutator.read_version(version_file)
        name = mutator.read_project_name(version_file) or root.name
    except ReleaseError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"{name} v{version}")
