"""Cleanup execution for devstrip."""

import logging
import os
import shutil
import stat
from collections.abc import Sequence
from pathlib import Path
from typing import Callable

from devstrip.models import Candidate, CleanupProgress, CleanupResult
from devstrip.scanner import CancelToken

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CleanupProgress], None]


def delete_path(path: Path) -> None:
    """
    Remove a file or directory tree.

    A path that no longer exists counts as removed. Symlinks are unlinked,
    never followed.

    Raises:
        OSError: If the removal fails
    """
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return

    if stat.S_ISDIR(st.st_mode):
        shutil.rmtree(path)
    else:
        path.unlink()


def cleanup_with_callback(
    candidates: Sequence[Candidate],
    dry_run: bool = False,
    progress_callback: ProgressCallback | None = None,
    cancel: CancelToken | None = None,
) -> list[CleanupResult]:
    """
    Remove every candidate, in order.

    Args:
        candidates: Candidates to remove
        dry_run: If True, report success without touching the filesystem
        progress_callback: Called with the progress of each item before it is processed
        cancel: Checked before each candidate; when set, no further candidate is started

    Returns:
        One CleanupResult per processed candidate
    """
    total = len(candidates)
    results = []

    for index, candidate in enumerate(candidates):
        if cancel is not None and cancel.is_set():
            logger.info("Cleanup cancelled after %d of %d item(s)", index, total)
            break

        if progress_callback:
            progress_callback(CleanupProgress(index=index, total=total, candidate=candidate))

        error = None
        if not dry_run:
            try:
                delete_path(candidate.path)
            except OSError as e:
                logger.debug("Failed to remove %s: %s", candidate.path, e)
                error = str(e)

        results.append(
            CleanupResult(
                candidate=candidate.model_copy(),
                success=error is None,
                error=error,
                dry_run=dry_run,
            )
        )

    return results


def cleanup(candidates: Sequence[Candidate], dry_run: bool = False) -> list[CleanupResult]:
    """Remove every candidate without progress reporting."""
    return cleanup_with_callback(candidates, dry_run)


def failed_results(results: Sequence[CleanupResult]) -> list[CleanupResult]:
    return [r for r in results if not r.success]


def total_bytes_freed(results: Sequence[CleanupResult]) -> int:
    return sum(r.bytes_freed for r in results)
