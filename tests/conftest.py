"""Shared pytest fixtures for PosterFlags tests."""

from pathlib import Path

import pytest
from PIL import Image

from posterflags.config import Config
from posterflags.core.backup import BackupManager
from posterflags.core.compositor import PosterCompositor
from posterflags.core.coordinator import UpdateCoordinator
from posterflags.core.extractor import LanguageExtractor
from posterflags.models.item import ItemKind, MediaItem

POSTER_COLOR = (90, 90, 90)
FLAG_COLORS = {
    "eng": (255, 0, 0, 255),
    "fra": (0, 0, 255, 255),
    "jpn": (0, 255, 0, 255),
}

FFMPEG_REPORT = """\
Input #0, matroska,webm, from 'movie.mkv':
  Metadata:
    title           : Movie
  Duration: 01:42:10.05, start: 0.000000, bitrate: 5021 kb/s
  Stream #0:0(eng): Video: h264 (High), yuv420p(progressive), 1920x1080, 23.98 fps
  Stream #0:1(eng): Audio: aac (LC), 48000 Hz, 5.1, fltp (default)
  Stream #0:2(jpn): Audio: aac (LC), 48000 Hz, stereo, fltp
  Stream #0:3(eng): Subtitle: subrip
At least one output file must be specified
"""


class SolidFlagResolver:
    """Resolver returning solid-color 50x50 flags for FLAG_COLORS codes."""

    def __init__(self, colors=None):
        self.colors = colors if colors is not None else FLAG_COLORS
        self.requested = []

    def resolve(self, code):
        self.requested.append(code)
        color = self.colors.get(code)
        if color is None:
            return None
        return Image.new("RGBA", (50, 50), color)


def make_poster(path: Path, size=(500, 300), color=POSTER_COLOR, fmt="PNG") -> Path:
    """Write a solid-color poster image."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format=fmt)
    return path


@pytest.fixture
def poster(tmp_path):
    """A 500x300 gray PNG poster."""
    return make_poster(tmp_path / "library" / "movie" / "poster.png")


@pytest.fixture
def media_file(tmp_path):
    """A placeholder media file (the probe is always faked)."""
    path = tmp_path / "library" / "movie" / "movie.mkv"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "original_posters"


@pytest.fixture
def backups(backup_dir):
    return BackupManager(backup_dir)


@pytest.fixture
def resolver():
    return SolidFlagResolver()


@pytest.fixture
def default_config(backup_dir):
    """Default configuration with the backup store under tmp_path."""
    return Config(backup={"directory": str(backup_dir)})


@pytest.fixture
def coordinator(default_config, backups, resolver):
    """Coordinator with a fake probe reporting eng + jpn audio."""
    return UpdateCoordinator(
        config=default_config,
        extractor=LanguageExtractor(probe=lambda path: FFMPEG_REPORT),
        compositor=PosterCompositor(resolver=resolver),
        backups=backups,
    )


@pytest.fixture
def movie_item(poster, media_file):
    return MediaItem(
        item_id="movie-1",
        kind=ItemKind.MOVIE,
        media_path=media_file,
        poster_path=poster,
        name="Movie",
    )


@pytest.fixture
def poster_factory():
    """Factory writing solid-color posters: poster_factory(path, size=..., fmt=...)."""
    return make_poster


@pytest.fixture
def ffmpeg_report():
    return FFMPEG_REPORT
