"""Media library item models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class ItemKind(Enum):
    """Kinds of library items the host can report."""

    MOVIE = "movie"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"
    AUDIO = "audio"
    OTHER = "other"


class ItemEventKind(Enum):
    """Library change notifications."""

    ADDED = "added"
    UPDATED = "updated"


@dataclass(frozen=True)
class MediaItem:
    """A library item as reported by the host."""

    item_id: str
    kind: ItemKind
    media_path: Optional[Path] = None  # Playable media file
    poster_path: Optional[Path] = None  # Current primary image
    name: Optional[str] = None

    def __str__(self) -> str:
        """Human-readable representation."""
        label = self.name or self.item_id
        return f"{label} ({self.kind.value})"


@dataclass(frozen=True)
class ItemChangeEvent:
    """An item-added or item-updated notification."""

    kind: ItemEventKind
    item: MediaItem
