"""Aggregation of scan results for devstrip."""

from collections.abc import Collection, Iterable

from devstrip.models import Candidate
from devstrip.paths import canonicalize


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """
    Drop candidates whose canonical path was already seen.

    The first occurrence wins, so strategies that run earlier take priority.
    """
    seen = set()
    unique = []
    for candidate in candidates:
        key = canonicalize(candidate.path)
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def sort_key(candidate: Candidate) -> tuple[int, str, str]:
    return (-candidate.size_bytes, candidate.category, candidate.display_name)


def sort_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """
    Order candidates for display and cleanup.

    Largest first, then by category, then by path.
    """
    return sorted(candidates, key=sort_key)


def scan_total_size(candidates: Iterable[Candidate]) -> int:
    """Total reclaimable bytes."""
    return sum(c.size_bytes for c in candidates)


def available_categories(candidates: Iterable[Candidate]) -> list[str]:
    """Distinct category names, sorted."""
    return sorted({c.category for c in candidates})


def filter_by_categories(
    candidates: Iterable[Candidate], categories: Collection[str]
) -> list[Candidate]:
    """
    Keep candidates in the selected categories.

    Args:
        candidates: Candidates in their current order
        categories: Category names to keep

    Returns:
        Matching candidates, order preserved
    """
    return [c for c in candidates if c.category in categories]


def summarise(candidates: Iterable[Candidate]) -> list[tuple[str, int, int]]:
    """Return per-category summary of (name, count, total_size)."""
    summary: dict[str, tuple[int, int]] = {}
    for candidate in candidates:
        count, total_size = summary.get(candidate.category, (0, 0))
        summary[candidate.category] = (count + 1, total_size + candidate.size_bytes)
    return sorted((name, count, size) for name, (count, size) in summary.items())
