"""Disk scanning functionality for devstrip.

Three discovery strategies feed a single scan:

* keep-latest: flag all but the newest N children of a known directory
* whole-directory: flag one known cache directory in its entirety
* project walk: breadth-first search of the scan roots for build output

Unreadable entries are skipped everywhere; a scan never fails because of a
single bad directory.
"""

import logging
import os
import stat
from collections import deque
from datetime import datetime, timedelta, timezone
from functools import partial
from pathlib import Path
from typing import Callable, Protocol

from devstrip.analyzer import dedupe_candidates, sort_candidates
from devstrip.categories import (
    CORE_SIMULATOR_CACHES,
    HOMEBREW_CACHE,
    PROJECT_CATEGORY,
    PROJECT_PATTERNS,
    PROJECT_REASON,
    SKIP_DIR_NAMES,
    XCODE_ARCHIVES,
    XCODE_DERIVED_DATA,
    build_cache_targets,
    classify_project_dir,
)
from devstrip.models import Candidate, ScanConfig
from devstrip.paths import home_dir, is_excluded

logger = logging.getLogger(__name__)

Reporter = Callable[[str], None]


class CancelToken(Protocol):
    """Anything with an ``is_set()`` method, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


def _ignore(_message: str) -> None:
    pass


def _cancelled(cancel: CancelToken | None) -> bool:
    return cancel is not None and cancel.is_set()


def _report(reporter: Reporter, path: Path) -> None:
    reporter(f"Scanning: {path}")


def _lstat(path: Path) -> os.stat_result | None:
    try:
        return os.lstat(path)
    except OSError:
        return None


def _mtime(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)


# =============================================================================
# Size computation
# =============================================================================


def calculate_size(path: Path) -> int:
    """
    Total size of a file or directory tree in bytes.

    Walks with an explicit stack so deep trees are fine. Symlinks are neither
    followed nor counted. Unreadable directories and entries are skipped.
    """
    st = _lstat(path)
    if st is None or stat.S_ISLNK(st.st_mode):
        return 0
    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    total = 0
    stack = [path]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_symlink():
                            continue
                        if entry.is_dir(follow_symlinks=False):
                            stack.append(Path(entry.path))
                        else:
                            total += entry.stat(follow_symlinks=False).st_size
                    except OSError:
                        continue
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            continue

    return total


# =============================================================================
# Discovery strategies
# =============================================================================


def collect_keep_latest(
    base: Path,
    keep: int,
    category: str,
    reason: str,
    excludes: tuple[Path, ...] = (),
    reporter: Reporter = _ignore,
    cancel: CancelToken | None = None,
) -> list[Candidate]:
    """
    Flag every child directory of ``base`` except the ``keep`` newest.

    Args:
        base: Directory whose immediate subdirectories are considered
        keep: How many of the most recently modified subdirectories to retain
        category: Category label for the flagged entries
        reason: Reason text for the flagged entries
        excludes: Normalized exclude paths
        reporter: Receives "Scanning: <path>" messages
        cancel: Stops the scan early when set

    Returns:
        Candidates for the older subdirectories, oldest last
    """
    if is_excluded(base, excludes) or not base.exists():
        return []
    _report(reporter, base)

    try:
        children = sorted(base.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", base, e)
        return []

    dated_dirs: list[tuple[datetime, Path]] = []
    for child in children:
        if _cancelled(cancel):
            return []
        if is_excluded(child, excludes):
            continue
        _report(reporter, child)
        st = _lstat(child)
        if st is None or not stat.S_ISDIR(st.st_mode):
            continue
        dated_dirs.append((_mtime(st), child))

    dated_dirs.sort(key=lambda item: item[0], reverse=True)

    results = []
    for mtime, path in dated_dirs[keep:]:
        size = calculate_size(path)
        if size == 0:
            continue
        results.append(
            Candidate(
                path=path,
                size_bytes=size,
                category=category,
                reason=reason,
                last_used=mtime,
            )
        )

    return results


def collect_whole_directory(
    path: Path,
    category: str,
    reason: str,
    excludes: tuple[Path, ...] = (),
    reporter: Reporter = _ignore,
) -> list[Candidate]:
    """Flag ``path`` as a single candidate if it exists and is not empty."""
    if is_excluded(path, excludes) or not path.exists():
        return []
    _report(reporter, path)

    size = calculate_size(path)
    if size == 0:
        return []

    st = _lstat(path)
    return [
        Candidate(
            path=path,
            size_bytes=size,
            category=category,
            reason=reason,
            last_used=_mtime(st) if st is not None else None,
        )
    ]


def collect_matching_dirs(
    roots: tuple[Path, ...],
    min_age_days: int,
    max_depth: int,
    excludes: tuple[Path, ...] = (),
    reporter: Reporter = _ignore,
    cancel: CancelToken | None = None,
    category: str = PROJECT_CATEGORY,
    reason: str = PROJECT_REASON,
) -> list[Candidate]:
    """
    Breadth-first search of the roots for build output and caches.

    A root is depth 0. Nothing deeper than ``max_depth`` levels below a root
    is reported. Matched directories are not descended into, symlinks are
    never followed and skip-listed directories are pruned.

    Args:
        roots: Directories to walk
        min_age_days: Matched directories must be older than this (0 = any age)
        max_depth: Deepest level to report
        excludes: Normalized exclude paths
        reporter: Receives "Scanning: <path>" messages
        cancel: Stops the walk early when set
        category: Category label for matches
        reason: Base reason, annotated with the matched name

    Returns:
        Candidates in discovery order
    """
    cutoff = None
    if min_age_days > 0:
        cutoff = datetime.now(timezone.utc) - timedelta(days=min_age_days)

    results: list[Candidate] = []
    for root in roots:
        if _cancelled(cancel):
            break
        if is_excluded(root, excludes) or not root.is_dir():
            continue

        queue: deque[tuple[Path, int]] = deque([(root, 0)])
        while queue:
            if _cancelled(cancel):
                return results

            current, depth = queue.popleft()
            if depth >= max_depth or is_excluded(current, excludes):
                continue
            _report(reporter, current)

            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug("Cannot list %s: %s", current, e)
                continue

            for entry in entries:
                try:
                    if not entry.is_dir(follow_symlinks=False):
                        continue
                    st = entry.stat(follow_symlinks=False)
                except OSError:
                    continue

                name = entry.name
                if name in SKIP_DIR_NAMES:
                    continue

                path = Path(entry.path)
                if is_excluded(path, excludes):
                    continue

                modified = _mtime(st)
                matched = classify_project_dir(name, reason, PROJECT_PATTERNS, cutoff, modified)
                if matched is not None:
                    size = calculate_size(path)
                    if size > 0:
                        results.append(
                            Candidate(
                                path=path,
                                size_bytes=size,
                                category=category,
                                reason=matched,
                                last_used=modified,
                            )
                        )
                    continue

                if depth + 1 < max_depth:
                    queue.append((path, depth + 1))

    return results


# =============================================================================
# Full scan
# =============================================================================


def _discovery_steps(config: ScanConfig, home: Path, reporter: Reporter, cancel):
    """The strategies of a full scan, in their fixed order."""
    excludes = config.exclude_paths
    yield partial(
        collect_keep_latest,
        XCODE_DERIVED_DATA.resolve(home),
        config.keep_latest_derived,
        XCODE_DERIVED_DATA.category,
        XCODE_DERIVED_DATA.reason,
        excludes,
        reporter,
        cancel,
    )
    yield partial(
        collect_keep_latest,
        XCODE_ARCHIVES.resolve(home),
        config.keep_latest_derived,
        XCODE_ARCHIVES.category,
        XCODE_ARCHIVES.reason,
        excludes,
        reporter,
        cancel,
    )
    yield partial(
        collect_whole_directory,
        CORE_SIMULATOR_CACHES.resolve(home),
        CORE_SIMULATOR_CACHES.category,
        CORE_SIMULATOR_CACHES.reason,
        excludes,
        reporter,
    )
    yield partial(
        collect_keep_latest,
        HOMEBREW_CACHE.resolve(home),
        config.keep_latest_cache,
        HOMEBREW_CACHE.category,
        HOMEBREW_CACHE.reason,
        excludes,
        reporter,
        cancel,
    )
    for path, target in build_cache_targets(home):
        yield partial(
            collect_whole_directory, path, target.category, target.reason, excludes, reporter
        )
    yield partial(
        collect_matching_dirs,
        config.roots,
        config.min_age_days,
        config.max_depth,
        excludes,
        reporter,
        cancel,
    )


def scan_with_cancel(
    config: ScanConfig,
    cancel: CancelToken | None,
    reporter: Reporter = _ignore,
) -> list[Candidate]:
    """
    Run every discovery strategy and return deduplicated, sorted candidates.

    The cancel token is checked between strategies and at the top of each
    directory visit; an in-flight size computation always finishes. A
    cancelled scan returns what it found so far.
    """
    home = home_dir() or Path(".")
    candidates: list[Candidate] = []

    for step in _discovery_steps(config, home, reporter, cancel):
        if _cancelled(cancel):
            logger.info("Scan cancelled after %d candidate(s)", len(candidates))
            break
        found = step()
        logger.debug("%s found %d candidate(s)", step.func.__name__, len(found))
        candidates.extend(found)

    results = sort_candidates(dedupe_candidates(candidates))
    logger.info("Scan finished with %d candidate(s)", len(results))
    return results


def scan_with_callback(config: ScanConfig, reporter: Reporter) -> list[Candidate]:
    """Scan, reporting each visited location to ``reporter``."""
    return scan_with_cancel(config, None, reporter)


def scan(config: ScanConfig) -> list[Candidate]:
    """Scan without progress reporting or cancellation."""
    return scan_with_cancel(config, None)
