"""Processing result models."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from posterflags.models.item import MediaItem


@dataclass(frozen=True)
class FlagPlacement:
    """A flag drawn onto a poster."""

    code: str
    x: int
    y: int


@dataclass
class CompositeResult:
    """Outcome of compositing flags onto one poster."""

    placements: list[FlagPlacement] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Codes without a flag

    @property
    def placed_codes(self) -> list[str]:
        return [p.code for p in self.placements]


@dataclass
class BackupEntry:
    """A pristine poster copy held in the backup store."""

    key: str  # File name inside the backup store
    original_path: Path
    sha256: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class RestoreReport:
    """Summary of a restore pass."""

    restored: list[Path] = field(default_factory=list)
    missing: list[Path] = field(default_factory=list)  # Original poster gone, backup kept
    failed: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def __str__(self) -> str:
        return (
            f"{len(self.restored)} restored, {len(self.missing)} missing, "
            f"{len(self.failed)} failed"
        )


@dataclass
class ProcessResult:
    """Result of processing a single item."""

    status: Literal["success", "skipped", "error"]
    item: Optional[MediaItem] = None
    languages: list[str] = field(default_factory=list)
    placed: list[str] = field(default_factory=list)
    skipped_flags: list[str] = field(default_factory=list)
    reason: Optional[str] = None  # Reason for skip
    error: Optional[str] = None  # Error message if failed

    def __str__(self) -> str:
        """Human-readable representation."""
        label = str(self.item) if self.item else "unknown item"
        if self.status == "success":
            flags = ", ".join(self.placed) if self.placed else "no flags"
            return f"✓ {label}: {flags}"
        elif self.status == "skipped":
            return f"⊘ {label}: Skipped ({self.reason})"
        else:
            return f"✗ {label}: Failed ({self.error or self.reason})"
