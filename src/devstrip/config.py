"""Scan configuration defaults and construction for devstrip."""

from collections.abc import Iterable
from pathlib import Path

from devstrip.models import UNBOUNDED_DEPTH, ScanConfig
from devstrip.paths import default_roots, expand_path, normalize_paths

DEFAULT_MIN_AGE_DAYS = 2
DEFAULT_MAX_DEPTH = 5
DEFAULT_KEEP_LATEST = 1


def build_scan_config(
    extra_roots: Iterable[str | Path] = (),
    excludes: Iterable[str | Path] = (),
    *,
    deep: bool = False,
    min_age_days: int = DEFAULT_MIN_AGE_DAYS,
    max_depth: int = DEFAULT_MAX_DEPTH,
    keep_latest_derived: int = DEFAULT_KEEP_LATEST,
    keep_latest_cache: int = DEFAULT_KEEP_LATEST,
) -> ScanConfig:
    """
    Turn user-facing settings into a ScanConfig.

    Args:
        extra_roots: Roots to scan in addition to the defaults (~ allowed)
        excludes: Paths to skip entirely (~ allowed)
        deep: Disable every retention heuristic (age, depth, keep-latest)
        min_age_days: Minimum age of project build directories
        max_depth: Project walk depth, clamped to at least 1
        keep_latest_derived: Newest Xcode entries to keep
        keep_latest_cache: Newest Homebrew cache entries to keep

    Returns:
        An immutable ScanConfig

    Raises:
        ResolutionError: If the current directory cannot be determined
        pydantic.ValidationError: If a numeric setting is negative
    """
    exclude_paths = normalize_paths(expand_path(p) for p in excludes)
    roots = default_roots([expand_path(p) for p in extra_roots], exclude_paths)

    if deep:
        return ScanConfig(
            roots=tuple(roots),
            exclude_paths=tuple(exclude_paths),
            min_age_days=0,
            max_depth=UNBOUNDED_DEPTH,
            keep_latest_derived=0,
            keep_latest_cache=0,
        )

    return ScanConfig(
        roots=tuple(roots),
        exclude_paths=tuple(exclude_paths),
        min_age_days=min_age_days,
        max_depth=max(max_depth, 1),
        keep_latest_derived=keep_latest_derived,
        keep_latest_cache=keep_latest_cache,
    )
