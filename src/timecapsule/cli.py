"""
CLI entry point for timecapsule.

This module provides the Typer-based command-line interface.

Commands:
    keygen      Generate a new encryption key
    create      Create a capsule from text or a media file
    list        List your capsules
    show        Show one capsule
    update      Change a locked capsule
    unlock      Unlock a capsule before its deadline
    delete      Delete a capsule and its attachment
    summary     Count locked and unlocked capsules

The owner of every request comes from ``--owner`` or TIMECAPSULE_OWNER and
is trusted as given. The CLI is thin: it parses arguments and delegates to
CapsuleService.
"""

import json
import logging
import traceback
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from timecapsule import __version__
from timecapsule.config import Settings, apply_env_overrides, build_service, load_settings
from timecapsule.crypto import CryptoBox
from timecapsule.errors import TimeCapsuleError
from timecapsule.report import (
    capsule_to_json,
    capsules_to_json,
    error_to_json,
    print_capsule,
    print_capsule_table,
    print_summary,
    summary_to_json,
)
from timecapsule.schema import CapsuleCreate, CapsuleUpdate
from timecapsule.service import CapsuleService
from timecapsule.unlock import ensure_utc

app = typer.Typer(
    name="timecapsule",
    help="Keep encrypted capsules sealed until their unlock time.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Options shared by every capsule command
ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to a settings YAML file.",
        envvar="TIMECAPSULE_CONFIG",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
DbOption = Annotated[
    Optional[Path],
    typer.Option("--db", help="Path to the SQLite database (overrides settings)."),
]
OwnerOption = Annotated[
    Optional[str],
    typer.Option("--owner", "-u", help="Owner id of the capsules.", envvar="TIMECAPSULE_OWNER"),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output results in JSON format.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Enable debug logging.")]
DebugOption = Annotated[bool, typer.Option("--debug", help="Show full error tracebacks.")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]timecapsule[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    timecapsule - Encrypted records that open at a chosen time.
    """
    pass


# =============================================================================
# Helpers
# =============================================================================


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _parse_when(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are UTC."""
    if value is None:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(value))
    except ValueError as e:
        raise typer.BadParameter(f"Invalid timestamp {value!r}; use ISO-8601, e.g. 2030-01-01T09:00:00Z") from e


def _settings(config: Path | None, db: Path | None) -> Settings:
    settings = load_settings(config) if config else Settings()
    settings = apply_env_overrides(settings)
    if db is not None:
        settings = settings.model_copy(update={"db_path": str(db)})
    return settings


def _fail(error: Exception, json_output: bool, debug: bool) -> None:
    if json_output:
        print(error_to_json(error))
    else:
        err_console.print(f"[red]{escape(str(error))}[/red]", highlight=False)
        if debug:
            err_console.print(f"[dim]{traceback.format_exc()}[/dim]")
    raise typer.Exit(code=1)


@contextmanager
def _service(
    config: Path | None,
    db: Path | None,
    owner: str | None,
    json_output: bool,
    verbose: bool,
    debug: bool,
) -> Iterator[tuple[CapsuleService, str]]:
    """Open a service for one command and turn failures into exit code 1."""
    _configure_logging(verbose)
    try:
        if not owner:
            raise typer.BadParameter("An owner is required (--owner or TIMECAPSULE_OWNER)")
        service = build_service(_settings(config, db))
    except TimeCapsuleError as e:
        _fail(e, json_output, debug)
        return
    try:
        yield service, owner
    except (TimeCapsuleError, PydanticValidationError, OSError) as e:
        _fail(e, json_output, debug)
    finally:
        service.close()


# =============================================================================
# Commands
# =============================================================================


@app.command()
def keygen() -> None:
    """
    Generate a new encryption key.

    Example:
        $ export TIMECAPSULE_KEY=$(timecapsule keygen)
    """
    print(CryptoBox.generate_key())


@app.command()
def create(
    unlock_at: Annotated[
        str,
        typer.Option("--unlock-at", "-t", help="When the capsule opens (ISO-8601, UTC if no offset)."),
    ],
    content: Annotated[Optional[str], typer.Option("--content", help="Text to seal.")] = None,
    title: Annotated[Optional[str], typer.Option("--title", help="Display title.")] = None,
    media_file: Annotated[
        Optional[Path],
        typer.Option("--media", help="File to attach.", exists=True, readable=True, dir_okay=False),
    ] = None,
    message: Annotated[
        Optional[str],
        typer.Option("--message", help="Text to seal alongside a media file."),
    ] = None,
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Create a capsule.

    Example:
        $ timecapsule create --content "Dear future me" --unlock-at 2030-01-01
        $ timecapsule create --media photo.png --message "Look!" --unlock-at 2030-01-01
    """
    when = _parse_when(unlock_at)
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        if media_file is not None:
            view = service.create_with_media(
                owner_id,
                media_file.read_bytes(),
                media_file.name,
                unlock_at=when,
                title=title,
                message=message or content,
            )
        else:
            view = service.create(owner_id, CapsuleCreate(title=title, content=content, unlock_at=when))

        if json_output:
            print(capsule_to_json(view))
        else:
            console.print(f"[green]✓[/green] Created capsule [bold cyan]{view.id}[/bold cyan]")
            print_capsule(console, view)


@app.command("list")
def list_capsules(
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """List your capsules; due capsules are unlocked on the way."""
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        views = service.list(owner_id)
        if json_output:
            print(capsules_to_json(views))
        else:
            print_capsule_table(console, views)


@app.command()
def show(
    capsule_id: Annotated[str, typer.Argument(help="The capsule id.")],
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Show one capsule."""
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        view = service.get(owner_id, capsule_id)
        if json_output:
            print(capsule_to_json(view))
        else:
            print_capsule(console, view)


@app.command()
def update(
    capsule_id: Annotated[str, typer.Argument(help="The capsule id.")],
    title: Annotated[Optional[str], typer.Option("--title", help="New title.")] = None,
    unlock_at: Annotated[
        Optional[str],
        typer.Option("--unlock-at", "-t", help="New unlock time (ISO-8601)."),
    ] = None,
    content: Annotated[Optional[str], typer.Option("--content", help="New text.")] = None,
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Change a capsule that is still locked.

    Example:
        $ timecapsule update 1f3c... --unlock-at 2031-01-01
    """
    when = _parse_when(unlock_at)
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        view = service.update(
            owner_id,
            capsule_id,
            CapsuleUpdate(title=title, unlock_at=when, content=content),
        )
        if json_output:
            print(capsule_to_json(view))
        else:
            console.print(f"[green]✓[/green] Updated capsule [bold cyan]{view.id}[/bold cyan]")
            print_capsule(console, view)


@app.command()
def unlock(
    capsule_id: Annotated[str, typer.Argument(help="The capsule id.")],
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Unlock a capsule now. This cannot be undone."""
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        view = service.force_unlock(owner_id, capsule_id)
        if json_output:
            print(capsule_to_json(view))
        else:
            print_capsule(console, view)


@app.command()
def delete(
    capsule_id: Annotated[str, typer.Argument(help="The capsule id.")],
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Delete a capsule and release its attachment."""
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        service.delete(owner_id, capsule_id)
        if json_output:
            print(json.dumps({"deleted": capsule_id}))
        else:
            console.print(f"[green]✓[/green] Deleted capsule [bold cyan]{capsule_id}[/bold cyan]")


@app.command()
def summary(
    config: ConfigOption = None,
    db: DbOption = None,
    owner: OwnerOption = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """Count your locked and unlocked capsules."""
    with _service(config, db, owner, json_output, verbose, debug) as (service, owner_id):
        result = service.summary(owner_id)
        if json_output:
            print(summary_to_json(result))
        else:
            print_summary(console, result)


if __name__ == "__main__":
    app()
