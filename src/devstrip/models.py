"""Data models for devstrip."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Stand-in for "no depth limit" on the project walk
UNBOUNDED_DEPTH = sys.maxsize


class ScanConfig(BaseModel):
    """Everything a single scan needs to know."""

    model_config = ConfigDict(frozen=True)

    roots: tuple[Path, ...] = Field(default=(), description="Absolute directories to walk")
    exclude_paths: tuple[Path, ...] = Field(
        default=(),
        description="Paths skipped entirely, together with everything below them",
    )
    min_age_days: int = Field(default=2, ge=0, description="0 disables the age filter")
    max_depth: int = Field(default=5, ge=0, description="Deepest level below a root to report")
    keep_latest_derived: int = Field(
        default=1, ge=0, description="Newest Xcode DerivedData/Archives entries to keep"
    )
    keep_latest_cache: int = Field(
        default=1, ge=0, description="Newest Homebrew cache entries to keep"
    )

    @property
    def age_filter_enabled(self) -> bool:
        return self.min_age_days > 0


class Candidate(BaseModel):
    """A file or directory that can be removed."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path of the target")
    size_bytes: int = Field(..., gt=0, description="Recursive size, symlinks excluded")
    category: str = Field(..., description="Coarse origin label, e.g. 'Xcode' or 'Project'")
    reason: str = Field(..., description="Why the target was flagged")
    last_used: Optional[datetime] = Field(None, description="Modification time of the target")

    @property
    def display_name(self) -> str:
        return str(self.path)

    @property
    def last_used_str(self) -> str:
        """Local modification time, or '-' when unknown."""
        if self.last_used is None:
            return "-"
        return self.last_used.astimezone().strftime("%Y-%m-%d %H:%M")

    @property
    def size_human(self) -> str:
        """Human-readable size string (decimal units like macOS)."""
        if self.size_bytes >= 1000**3:
            return f"{self.size_bytes / 1000**3:.1f} GB"
        elif self.size_bytes >= 1000**2:
            return f"{self.size_bytes / 1000**2:.1f} MB"
        elif self.size_bytes >= 1000:
            return f"{self.size_bytes / 1000:.1f} KB"
        else:
            return f"{self.size_bytes} B"


class CleanupResult(BaseModel):
    """Outcome of removing (or simulating removal of) one candidate."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    success: bool = Field(True, description="Whether the removal succeeded")
    error: Optional[str] = Field(None, description="OS error text if it failed")
    dry_run: bool = Field(False, description="Whether this was a dry run")

    @property
    def bytes_freed(self) -> int:
        return self.candidate.size_bytes if self.success else 0


class CleanupProgress(BaseModel):
    """Notification sent right before a candidate is processed."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    candidate: Candidate

    @property
    def position(self) -> int:
        """1-based position, for rendering."""
        return self.index + 1


class CacheTarget(BaseModel):
    """A well-known cache location relative to the home directory."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    category: str
    reason: str

    @field_validator("relative_path")
    @classmethod
    def _must_be_relative(cls, value: str) -> str:
        if value.startswith(("/", "~")):
            raise ValueError("cache targets are relative to the home directory")
        return value

    def resolve(self, home: Path) -> Path:
        return home / self.relative_path
