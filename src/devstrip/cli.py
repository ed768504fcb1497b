"""CLI interface for devstrip."""

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler
from rich.markup import escape

from devstrip import __version__
from devstrip.analyzer import filter_by_categories
from devstrip.cleaner import cleanup, cleanup_with_callback, failed_results
from devstrip.config import (
    DEFAULT_KEEP_LATEST,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MIN_AGE_DAYS,
    build_scan_config,
)
from devstrip.display import (
    confirm_action,
    console,
    show_candidates,
    show_category_summary,
    show_cleanup_progress,
    show_cleanup_results,
    show_roots,
    show_scanning_status,
    truncate_middle,
    truncate_status,
)
from devstrip.models import Candidate, CleanupProgress, ScanConfig
from devstrip.paths import ResolutionError
from devstrip.worker import start_scan

POLL_INTERVAL = 0.1

app = typer.Typer(
    name="devstrip",
    help="Developer disk cleanup tool - remove stale build outputs and caches",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"devstrip version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output."),
    verbose: bool = typer.Option(False, "--verbose", help="Log skipped entries and failures."),
) -> None:
    """devstrip - reclaim disk space from developer artifacts."""
    if no_color:
        console.no_color = True
    configure_logging(verbose)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_config(
    paths: Optional[list[Path]],
    roots: Optional[list[Path]],
    excludes: Optional[list[Path]],
    deep: bool,
    min_age_days: int,
    max_depth: int,
    keep_latest_derived: int,
    keep_latest_cache: int,
) -> ScanConfig:
    try:
        return build_scan_config(
            [*(roots or []), *(paths or [])],
            excludes or [],
            deep=deep,
            min_age_days=min_age_days,
            max_depth=max_depth,
            keep_latest_derived=keep_latest_derived,
            keep_latest_cache=keep_latest_cache,
        )
    except ResolutionError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _run_scan(config: ScanConfig) -> list[Candidate]:
    """Scan in the background while a spinner shows the current location."""
    task = start_scan(config)
    with show_scanning_status("Scanning for cleanup candidates") as status:
        try:
            while not task.done():
                message = task.latest_status()
                if message:
                    status.update(escape(truncate_status(message)))
                time.sleep(POLL_INTERVAL)
        except KeyboardInterrupt:
            task.cancel()
            status.update("Stopping scan...")
            console.print("[yellow]Scan cancelled; results are partial.[/yellow]")
    return task.result()


PATHS_ARGUMENT = typer.Argument(None, help="Extra directories to scan.")
ROOTS_OPTION = typer.Option(None, "--roots", help="Extra directory to scan (repeatable).")
EXCLUDE_OPTION = typer.Option(None, "--exclude", "-x", help="Path to skip (repeatable).")
ALL_OPTION = typer.Option(
    False, "--all", "-a", help="Ignore age, depth and keep-latest limits."
)
MIN_AGE_OPTION = typer.Option(
    DEFAULT_MIN_AGE_DAYS, "--min-age-days", min=0, help="Only flag build dirs older than this."
)
MAX_DEPTH_OPTION = typer.Option(
    DEFAULT_MAX_DEPTH, "--max-depth", min=0, help="How deep to search below each root."
)
KEEP_DERIVED_OPTION = typer.Option(
    DEFAULT_KEEP_LATEST, "--keep-latest-derived", min=0, help="Newest Xcode entries to keep."
)
KEEP_CACHE_OPTION = typer.Option(
    DEFAULT_KEEP_LATEST, "--keep-latest-cache", min=0, help="Newest Homebrew entries to keep."
)
CATEGORY_OPTION = typer.Option(
    None, "--category", "-c", help="Only include this category (repeatable)."
)


@app.command()
def scan(
    paths: Optional[list[Path]] = PATHS_ARGUMENT,
    roots: Optional[list[Path]] = ROOTS_OPTION,
    excludes: Optional[list[Path]] = EXCLUDE_OPTION,
    deep: bool = ALL_OPTION,
    min_age_days: int = MIN_AGE_OPTION,
    max_depth: int = MAX_DEPTH_OPTION,
    keep_latest_derived: int = KEEP_DERIVED_OPTION,
    keep_latest_cache: int = KEEP_CACHE_OPTION,
    categories: Optional[list[str]] = CATEGORY_OPTION,
) -> None:
    """Find cleanup candidates and report them without deleting."""
    config = _build_config(
        paths, roots, excludes, deep, min_age_days, max_depth, keep_latest_derived, keep_latest_cache
    )
    candidates = _run_scan(config)
    if categories:
        candidates = filter_by_categories(candidates, categories)

    if not candidates:
        console.print("[yellow]No safe cleanup targets were found.[/yellow]")
        return

    show_candidates(candidates)
    console.print()
    show_category_summary(candidates)
    console.print("[dim]Run [bold]devstrip clean[/bold] to remove these items[/dim]")


@app.command()
def clean(
    paths: Optional[list[Path]] = PATHS_ARGUMENT,
    roots: Optional[list[Path]] = ROOTS_OPTION,
    excludes: Optional[list[Path]] = EXCLUDE_OPTION,
    deep: bool = ALL_OPTION,
    min_age_days: int = MIN_AGE_OPTION,
    max_depth: int = MAX_DEPTH_OPTION,
    keep_latest_derived: int = KEEP_DERIVED_OPTION,
    keep_latest_cache: int = KEEP_CACHE_OPTION,
    categories: Optional[list[str]] = CATEGORY_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Simulate without deleting"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompts"),
) -> None:
    """Find cleanup candidates and remove them."""
    config = _build_config(
        paths, roots, excludes, deep, min_age_days, max_depth, keep_latest_derived, keep_latest_cache
    )
    candidates = _run_scan(config)
    if categories:
        candidates = filter_by_categories(candidates, categories)

    if not candidates:
        console.print("[yellow]No safe cleanup targets were found.[/yellow]")
        return

    show_candidates(candidates)

    if dry_run:
        console.print("[dim]Dry-run: no files will be removed.[/dim]")
        show_cleanup_results(cleanup(candidates, dry_run=True))
        return

    if not yes and not confirm_action("Proceed with cleanup?"):
        console.print("[yellow]Cleanup aborted.[/yellow]")
        raise typer.Exit(0)

    with show_cleanup_progress() as progress:
        task = progress.add_task("Cleaning", total=len(candidates))

        def update_progress(item: CleanupProgress) -> None:
            progress.update(
                task,
                completed=item.index,
                description=f"Cleaning {escape(truncate_middle(item.candidate.display_name, 40))}",
            )

        results = cleanup_with_callback(candidates, dry_run=False, progress_callback=update_progress)
        progress.update(task, completed=len(candidates), description="Cleaning")

    show_cleanup_results(results)

    if failed_results(results):
        console.print("[red]One or more targets could not be removed.[/red]")
        raise typer.Exit(1)


@app.command(name="roots")
def list_roots(
    paths: Optional[list[Path]] = PATHS_ARGUMENT,
    excludes: Optional[list[Path]] = EXCLUDE_OPTION,
) -> None:
    """Show the directories a scan would walk."""
    config = _build_config(
        paths,
        None,
        excludes,
        False,
        DEFAULT_MIN_AGE_DAYS,
        DEFAULT_MAX_DEPTH,
        DEFAULT_KEEP_LATEST,
        DEFAULT_KEEP_LATEST,
    )
    show_roots(config.roots)


if __name__ == "__main__":
    app()
