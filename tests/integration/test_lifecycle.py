"""End-to-end tests: host events through shutdown."""

import subprocess
from unittest.mock import Mock, patch

from PIL import Image

from posterflags.config import Config
from posterflags.core.coordinator import UpdateCoordinator
from posterflags.core.events import LibraryEventHub
from posterflags.models.item import ItemKind, MediaItem


def report_for(*codes):
    return "\n".join(
        f"  Stream #0:{i + 1}({code}): Audio: aac (LC), 48000 Hz, stereo" for i, code in enumerate(codes)
    )


class TestLifecycle:
    """Test a full session with bundled flags and a faked ffmpeg."""

    def test_session(self, tmp_path, backup_dir, poster_factory):
        """Test add, update, repeated updates and shutdown."""
        movie_poster = poster_factory(tmp_path / "metadata" / "movie" / "poster.jpg", fmt="JPEG")
        show_poster = poster_factory(tmp_path / "metadata" / "show" / "poster.jpg", fmt="JPEG")
        episode_poster = poster_factory(tmp_path / "metadata" / "episode" / "thumb.jpg", fmt="JPEG")
        media = tmp_path / "movie.mkv"
        media.write_bytes(b"mkv")
        originals = {p: p.read_bytes() for p in (movie_poster, show_poster, episode_poster)}

        hub = LibraryEventHub()
        coordinator = UpdateCoordinator.from_config(Config(backup={"directory": str(backup_dir)}))
        coordinator.attach(hub)

        movie = MediaItem("m1", ItemKind.MOVIE, media_path=media, poster_path=movie_poster)
        show = MediaItem("s1", ItemKind.SERIES, media_path=media, poster_path=show_poster)
        episode = MediaItem("e1", ItemKind.EPISODE, media_path=media, poster_path=episode_poster)

        ffmpeg = Mock(returncode=1, stdout=report_for("eng", "fre", "jpn"))
        with patch("subprocess.run", return_value=ffmpeg):
            hub.item_added(movie)
            overlaid = movie_poster.read_bytes()
            hub.item_updated(movie)
            hub.item_updated(movie)
            hub.item_added(show)
            hub.item_added(episode)

        # Same languages, same poster: no stacking
        assert movie_poster.read_bytes() == overlaid
        assert overlaid != originals[movie_poster]
        assert show_poster.read_bytes() != originals[show_poster]
        assert episode_poster.read_bytes() == originals[episode_poster]
        assert len(coordinator.backups.entries()) == 2

        with Image.open(movie_poster) as img:
            assert img.format == "JPEG"
            assert img.size == (500, 300)

        coordinator.shutdown()

        for path, data in originals.items():
            assert path.read_bytes() == data
        assert coordinator.backups.entries() == []
        assert hub.subscriber_count == 0

        # Late events after shutdown change nothing
        with patch("subprocess.run", return_value=ffmpeg):
            hub.item_updated(movie)
        assert movie_poster.read_bytes() == originals[movie_poster]

    def test_probe_timeout_leaves_original(self, tmp_path, backup_dir, poster_factory):
        """Test a hanging probe results in an unflagged poster."""
        poster = poster_factory(tmp_path / "poster.png")
        media = tmp_path / "movie.mkv"
        media.write_bytes(b"mkv")
        original = poster.read_bytes()
        coordinator = UpdateCoordinator.from_config(Config(backup={"directory": str(backup_dir)}))

        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("ffmpeg", 30)):
            result = coordinator.process(
                MediaItem("m", ItemKind.MOVIE, media_path=media, poster_path=poster)
            )

        assert result.status == "success"
        assert result.languages == []
        assert poster.read_bytes() == original
