"""
Console output for timecapsule.

Renders capsule views with Rich: a table for listings, a panel for a
single capsule and a one-line summary.
"""

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from timecapsule.schema import CapsuleSummary, CapsuleView
from timecapsule.unlock import format_unlock_at

# Status icons
ICON_LOCKED = "[yellow]🔒[/yellow]"
ICON_UNLOCKED = "[green]🔓[/green]"
ICON_ERROR = "[red]✗[/red]"

MAX_PREVIEW = 60


def _status(view: CapsuleView) -> str:
    if view.decrypt_failed:
        return f"{ICON_ERROR} [red]unreadable[/red]"
    if view.unlocked:
        return f"{ICON_UNLOCKED} [green]unlocked[/green]"
    return f"{ICON_LOCKED} [yellow]locked[/yellow]"


def _preview(text: str | None) -> str:
    if not text:
        return ""
    text = " ".join(text.split())
    if len(text) > MAX_PREVIEW:
        return text[: MAX_PREVIEW - 3] + "..."
    return text


def _fmt(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def print_capsule_table(console: Console, views: list[CapsuleView]) -> None:
    """Print a table of capsules."""
    if not views:
        console.print("[dim]No capsules yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Status", width=14)
    table.add_column("Unlocks", style="dim")
    table.add_column("Content")
    table.add_column("Media", style="dim")

    for view in views:
        table.add_row(
            view.id,
            Text(view.title),
            _status(view),
            format_unlock_at(view.unlock_at),
            Text(_preview(view.content)),
            view.media.type.value if view.media else "",
        )

    console.print(table)


def print_capsule(console: Console, view: CapsuleView) -> None:
    """Print a single capsule in full."""
    header = Text()
    header.append(" Capsule ", style="bold")
    header.append(view.id, style="bold cyan")
    header.append(" │ ", style="dim")
    header.append(view.title, style="bold")
    console.print(Panel(header, expand=False))

    console.print(f"  [dim]Status:[/dim]   {_status(view)}")
    console.print(f"  [dim]Unlocks:[/dim]  {format_unlock_at(view.unlock_at)}")
    console.print(f"  [dim]Created:[/dim]  {_fmt(view.created_at)}")
    console.print(f"  [dim]Updated:[/dim]  {_fmt(view.updated_at)}")
    if view.media:
        console.print(f"  [dim]Media:[/dim]    {view.media.type.value} {escape(view.media.url)}")
    if view.content is not None:
        console.print()
        console.print(view.content, markup=False)


def print_summary(console: Console, summary: CapsuleSummary) -> None:
    """Print per-owner counts."""
    console.print(
        f"[bold]{summary.total}[/bold] capsules │ "
        f"{ICON_LOCKED} {summary.locked} locked │ "
        f"{ICON_UNLOCKED} {summary.unlocked} unlocked"
    )
    if summary.next_unlock_at:
        console.print(f"[dim]Next unlock: {format_unlock_at(summary.next_unlock_at)}[/dim]")
