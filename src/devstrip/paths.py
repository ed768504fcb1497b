"""Root and exclude path resolution for devstrip."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from devstrip.categories import DEFAULT_HOME_PROJECT_DIRS

logger = logging.getLogger(__name__)


class ResolutionError(RuntimeError):
    """Raised when the scan roots cannot be worked out at all."""


def home_dir() -> Path | None:
    """Return the user's home directory, or None if it cannot be determined."""
    try:
        return Path.home()
    except RuntimeError:
        return None


def expand_path(path: str | Path) -> Path:
    """
    Expand a leading ``~`` or ``~/`` to the home directory.

    Unlike ``os.path.expanduser`` this never touches ``~user`` forms or
    environment variables.
    """
    raw = str(path)
    if raw == "~" or raw.startswith("~/"):
        home = home_dir()
        if home is not None:
            return home / raw[1:].lstrip("/")
    return Path(raw)


def canonicalize(path: Path) -> Path:
    """Resolve symlinks and relative segments, falling back to the input."""
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path


def normalize_paths(paths: Iterable[Path]) -> list[Path]:
    """Canonicalize each path; ones that cannot be resolved are kept as given."""
    return [canonicalize(Path(p)) for p in paths]


def is_excluded(path: Path, excludes: Iterable[Path]) -> bool:
    """
    Check whether a path is an exclude or lives below one.

    Args:
        path: Path to check (canonicalized if possible)
        excludes: Exclude paths, expected to be normalized already

    Returns:
        True if the path must be skipped
    """
    resolved = canonicalize(Path(path))
    for exclude in excludes:
        if resolved == exclude or resolved.is_relative_to(exclude):
            return True
    return False


def default_roots(extra: Iterable[Path], excludes: Iterable[Path]) -> list[Path]:
    """
    Build the ordered list of scan roots.

    Order is: current directory, existing well-known home project directories,
    then the extra roots. Duplicates (by canonical path), missing roots and
    excluded roots are dropped.

    Raises:
        ResolutionError: If the current directory cannot be determined
    """
    excludes = list(excludes)
    try:
        roots = [Path(os.getcwd())]
    except OSError as e:
        raise ResolutionError(f"Unable to determine current directory: {e}") from e

    home = home_dir()
    if home is not None:
        for name in DEFAULT_HOME_PROJECT_DIRS:
            candidate = home / name
            if candidate.is_dir():
                roots.append(candidate)

    roots.extend(Path(p) for p in extra)

    unique: list[Path] = []
    seen: set[Path] = set()
    for root in roots:
        resolved = canonicalize(root)
        if resolved in seen:
            continue
        if not resolved.exists():
            logger.debug("Dropping missing root %s", resolved)
            continue
        if is_excluded(resolved, excludes):
            logger.debug("Dropping excluded root %s", resolved)
            continue
        seen.add(resolved)
        unique.append(resolved)

    return unique
