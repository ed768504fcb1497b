"""Rich terminal display for devstrip."""

from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from devstrip.analyzer import scan_total_size, summarise
from devstrip.models import Candidate, CleanupResult

console = Console()

REASON_WIDTH = 48
STATUS_WIDTH = 80


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units like macOS)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


def size_style(size_bytes: int) -> str:
    """Colour for a size, by order of magnitude."""
    if size_bytes >= 1 << 40:
        return "cyan"
    elif size_bytes >= 1 << 30:
        return "yellow"
    elif size_bytes >= 1 << 20:
        return "blue"
    elif size_bytes >= 1 << 10:
        return "green"
    else:
        return "dim"


def truncate_middle(text: str, max_len: int) -> str:
    """Shorten text to max_len characters by replacing its middle with '…'."""
    if max_len <= 0:
        return ""
    if len(text) <= max_len:
        return text
    if max_len == 1:
        return "…"
    head = (max_len - 1) // 2
    tail = max_len - 1 - head
    return text[:head] + "…" + text[len(text) - tail :]


def truncate_status(text: str, limit: int = STATUS_WIDTH) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def show_roots(roots: Sequence[Path]) -> None:
    """Display the resolved scan roots."""
    if not roots:
        console.print("[yellow]No scan roots.[/yellow]")
        return
    console.print("[bold]Scan roots[/bold]")
    for root in roots:
        console.print(f"  • {escape(str(root))}")


def show_candidates(candidates: Sequence[Candidate]) -> None:
    """Display the cleanup candidates and the reclaimable total."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Last Used", style="dim")
    table.add_column("Reason", style="dim", max_width=REASON_WIDTH)
    table.add_column("Path", overflow="fold")

    for idx, candidate in enumerate(candidates, 1):
        style = size_style(candidate.size_bytes)
        table.add_row(
            f"{idx:02}",
            candidate.category,
            f"[{style}]{format_size(candidate.size_bytes)}[/{style}]",
            candidate.last_used_str,
            escape(truncate_middle(candidate.reason, REASON_WIDTH)),
            escape(candidate.display_name),
        )

    console.print(table)
    console.print(
        f"[bold]Reclaimable space: {format_size(scan_total_size(candidates))}[/bold]"
    )


def show_category_summary(candidates: Sequence[Candidate]) -> None:
    """Display item counts and sizes per category."""
    table = Table(title="By Category", show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Size", justify="right")

    for name, count, size in summarise(candidates):
        table.add_row(name, str(count), format_size(size))

    console.print(table)


def show_cleanup_results(results: Sequence[CleanupResult]) -> None:
    """Display the outcome of a cleanup run, failures last."""
    succeeded = [r for r in results if r.success]
    freed = sum(r.bytes_freed for r in succeeded)
    dry_run = any(r.dry_run for r in results)

    if dry_run:
        console.print(
            f"[green]Would remove {len(succeeded)} item(s); "
            f"approximately {format_size(freed)} reclaimable.[/green]"
        )
    else:
        console.print(
            f"[green]Removed {len(succeeded)} item(s); "
            f"reclaimed approximately {format_size(freed)}.[/green]"
        )

    failures = [r for r in results if not r.success]
    if failures:
        console.print("[red]Failed to remove the following targets:[/red]")
        for failure in failures:
            reason = escape(failure.error or "unknown error")
            console.print(f"- {escape(failure.candidate.display_name)}: {reason}")


def show_scanning_status(message: str):
    """Spinner shown while a scan runs in the background."""
    return console.status(truncate_status(message), spinner="line")


def show_cleanup_progress() -> Progress:
    """Create and return a progress bar for cleanup."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=28),
        MofNCompleteColumn(),
        console=console,
    )


def confirm_action(message: str) -> bool:
    """Ask for confirmation."""
    from rich.prompt import Confirm

    return Confirm.ask(message)
