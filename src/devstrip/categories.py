"""Cleanup target definitions for devstrip."""

from collections.abc import Collection
from datetime import datetime
from pathlib import Path

from devstrip.models import CacheTarget

# Home subdirectories that usually hold checked-out projects
DEFAULT_HOME_PROJECT_DIRS: tuple[str, ...] = ("Projects", "workspace", "Work", "Developer")

# Never descended into or flagged during the project walk
SKIP_DIR_NAMES = frozenset({".git", ".hg", ".svn", ".idea", ".vscode", ".gradle"})

# Build output and tool caches found inside projects
PROJECT_PATTERNS = frozenset(
    {
        "build",
        "dist",
        "out",
        "_build",
        "target",
        "node_modules",
        "DerivedData",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".eggs",
        "coverage",
        "__pycache__",
        ".parcel-cache",
        ".gradle",
        ".sass-cache",
        ".cache",
    }
)

EGG_INFO_SUFFIX = ".egg-info"
PYCACHE = "__pycache__"

PROJECT_CATEGORY = "Project"
PROJECT_REASON = "Stale build or cache"

# =============================================================================
# Fixed locations under the home directory
# =============================================================================

XCODE_DERIVED_DATA = CacheTarget(
    relative_path="Library/Developer/Xcode/DerivedData",
    category="Xcode",
    reason="Old DerivedData projects",
)
XCODE_ARCHIVES = CacheTarget(
    relative_path="Library/Developer/Xcode/Archives",
    category="Xcode",
    reason="Old Xcode archives",
)
CORE_SIMULATOR_CACHES = CacheTarget(
    relative_path="Library/Developer/CoreSimulator/Caches",
    category="Xcode",
    reason="CoreSimulator caches",
)
HOMEBREW_CACHE = CacheTarget(
    relative_path="Library/Caches/Homebrew",
    category="Homebrew",
    reason="Homebrew download cache",
)

# Removed as a whole, in this order
CACHE_TARGETS: tuple[CacheTarget, ...] = tuple(
    CacheTarget(relative_path=path, category=category, reason=reason)
    for path, category, reason in (
        ("Library/Caches/pip", "Python", "pip cache"),
        (".cache/pip", "Python", "pip cache"),
        (".cache/pip-tools", "Python", "pip-tools cache"),
        (".cache/pipenv", "Python", "pipenv cache"),
        (".cache/pre-commit", "Python", "pre-commit cache"),
        (".cache/matplotlib", "Python", "matplotlib cache"),
        (".cache/pytest", "Python", "pytest cache"),
        (".cache/ruff", "Python", "ruff cache"),
        (".cache/uv", "Python", "uv cache"),
        (".npm", "Node", "npm cache"),
        ("Library/Caches/npm", "Node", "npm cache"),
        ("Library/Caches/Yarn", "Node", "Yarn cache"),
        (".cache/yarn", "Node", "Yarn cache"),
        ("Library/Caches/CocoaPods", "CocoaPods", "CocoaPods cache"),
        (".gradle/caches", "Gradle", "Gradle caches"),
        (".gradle/daemon", "Gradle", "Gradle daemons"),
        (".gradle/native", "Gradle", "Gradle native cache"),
        ("Library/Caches/JetBrains", "JetBrains", "JetBrains IDE caches"),
        ("Library/Application Support/Code/Cache", "VSCode", "VSCode cache"),
        ("Library/Application Support/Code/CachedData", "VSCode", "VSCode cached data"),
        (
            "Library/Application Support/Slack/Service Worker/CacheStorage",
            "Slack",
            "Slack cache",
        ),
    )
)


def build_cache_targets(home: Path) -> list[tuple[Path, CacheTarget]]:
    """Resolve the cache table against a home directory, keeping table order."""
    return [(target.resolve(home), target) for target in CACHE_TARGETS]


def matches_project_pattern(name: str, patterns: Collection[str] = PROJECT_PATTERNS) -> bool:
    return name in patterns or name.endswith(EGG_INFO_SUFFIX)


def classify_project_dir(
    name: str,
    base_reason: str,
    patterns: Collection[str] = PROJECT_PATTERNS,
    cutoff: datetime | None = None,
    modified: datetime | None = None,
) -> str | None:
    """
    Decide whether a directory found in a project tree should be flagged.

    Args:
        name: Directory name
        base_reason: Reason text to annotate
        patterns: Directory names that count as build output or caches
        cutoff: Only directories modified before this qualify (None disables)
        modified: The directory's modification time, if known

    Returns:
        The reason to report, or None if the directory does not qualify
    """
    # Always safe to drop, however fresh
    if name == PYCACHE:
        return base_reason

    if not matches_project_pattern(name, patterns):
        return None

    if cutoff is not None and modified is not None and modified >= cutoff:
        return None

    return f"{base_reason} ({name})"
