"""Item change handling and the poster processing pipeline."""

import threading
from pathlib import Path
from typing import Iterable, Optional

from posterflags.config import Config
from posterflags.core.backup import BackupManager
from posterflags.core.compositor import PosterCompositor
from posterflags.core.events import NotificationSource
from posterflags.core.extractor import FFmpegProbe, LanguageExtractor
from posterflags.core.flags import FlagResolver
from posterflags.models.item import ItemChangeEvent, ItemKind, MediaItem
from posterflags.models.result import ProcessResult, RestoreReport
from posterflags.utils.logger import get_logger

logger = get_logger(__name__)


class UpdateCoordinator:
    """React to library changes by refreshing poster flags.

    Entry points called by the host (``on_item_*``, ``attach``, ``detach``,
    ``shutdown``) never raise. Processing is serialized through a single
    lock, so notifications are handled one at a time.
    """

    def __init__(
        self,
        config: Config,
        extractor: LanguageExtractor,
        compositor: PosterCompositor,
        backups: BackupManager,
        supported_kinds: Optional[Iterable[ItemKind]] = None,
    ):
        """Initialize coordinator.

        Args:
            config: Application configuration
            extractor: Audio language extraction
            compositor: Flag compositing
            backups: Poster backup store
            supported_kinds: Item kinds to process (defaults to config)
        """
        self.config = config
        self.extractor = extractor
        self.compositor = compositor
        self.backups = backups
        self.supported_kinds = frozenset(
            supported_kinds if supported_kinds is not None else config.kinds
        )
        self._lock = threading.Lock()
        self._source: Optional[NotificationSource] = None
        self._closed = False

    @classmethod
    def from_config(cls, config: Config) -> "UpdateCoordinator":
        """Build a coordinator with the default collaborators."""
        probe = FFmpegProbe(config.probe.command, config.probe.timeout_seconds)
        extra_dir = Path(config.flags.extra_dir) if config.flags.extra_dir else None
        compositor = PosterCompositor(
            resolver=FlagResolver(extra_dir),
            slot_width=config.overlay.slot_width,
            bottom_offset=config.overlay.bottom_offset,
        )
        return cls(
            config=config,
            extractor=LanguageExtractor(probe),
            compositor=compositor,
            backups=BackupManager(Path(config.backup.directory)),
        )

    def __enter__(self) -> "UpdateCoordinator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    @property
    def attached(self) -> bool:
        return self._source is not None

    def attach(self, source: NotificationSource) -> None:
        """Subscribe to a notification source."""
        if self._closed or self._source is not None:
            return
        try:
            source.subscribe(self.on_item_changed)
            self._source = source
            logger.info("Attached to notification source")
        except Exception as e:
            logger.exception("Failed to attach", error=str(e))

    def detach(self) -> None:
        """Unsubscribe from the notification source, at most once."""
        source, self._source = self._source, None
        if source is None:
            return
        try:
            source.unsubscribe(self.on_item_changed)
            logger.info("Detached from notification source")
        except Exception as e:
            logger.exception("Failed to detach", error=str(e))

    def on_item_changed(self, event: ItemChangeEvent) -> None:
        """Handle an item-added or item-updated notification."""
        try:
            logger.debug("Item changed", change=event.kind.value, item_id=event.item.item_id)
            item = event.item
        except Exception as e:
            logger.exception("Malformed notification", error=str(e))
            return
        self._handle(item)

    def on_item_added(self, item: MediaItem) -> None:
        self._handle(item)

    def on_item_updated(self, item: MediaItem) -> None:
        self._handle(item)

    def _handle(self, item: MediaItem) -> None:
        if self._closed:
            logger.debug("Ignoring notification after shutdown", item_id=item.item_id)
            return
        try:
            if item.kind not in self.supported_kinds:
                logger.debug("Ignoring unsupported item kind", item_id=item.item_id)
                return
            self.process(item)
        except Exception as e:
            logger.exception("Unhandled error processing item", item_id=item.item_id, error=str(e))

    def process(self, item: MediaItem) -> ProcessResult:
        """Run the full pipeline for one item.

        Pipeline steps:
        1. Kind, poster and enabled checks (disabled items get their
           original poster back)
        2. Backup of the pristine poster (before any write)
        3. Audio language extraction
        4. Compositing from the backup onto the poster path

        Compositing always starts from the backup, so reprocessing an item
        gives the same poster instead of stacking flags.

        Args:
            item: Library item to process

        Returns:
            ProcessResult with status and details
        """
        if item.kind not in self.supported_kinds:
            return ProcessResult(status="skipped", item=item, reason="unsupported_kind")

        poster_path = item.poster_path
        if poster_path is None or not Path(poster_path).is_file():
            logger.info("Item has no poster", item_id=item.item_id, poster=str(poster_path))
            return ProcessResult(status="skipped", item=item, reason="no_poster")

        if not self.config.enabled:
            return self._revert(item, poster_path)

        with self._lock:
            if self._closed:
                logger.debug("Ignoring item after shutdown", item_id=item.item_id)
                return ProcessResult(status="skipped", item=item, reason="shutdown")

            logger.info("Processing item", item_id=item.item_id, poster=str(poster_path))
            try:
                entry = self.backups.ensure_backup(poster_path)
                source = self.backups.backup_dir / entry.key

                languages = self.extractor.extract(item.media_path)
                composite = self.compositor.compose(source, Path(poster_path), languages)
            except Exception as e:
                logger.exception(
                    "Error processing poster",
                    item_id=item.item_id,
                    poster=str(poster_path),
                    error=str(e),
                )
                return ProcessResult(status="error", item=item, error=str(e))

        logger.info(
            "Item processed",
            item_id=item.item_id,
            languages=languages,
            placed=composite.placed_codes,
        )
        return ProcessResult(
            status="success",
            item=item,
            languages=languages,
            placed=composite.placed_codes,
            skipped_flags=composite.skipped,
        )

    def _revert(self, item: MediaItem, poster_path: Path) -> ProcessResult:
        """Put back the original poster of a disabled item, if one is stored."""
        with self._lock:
            try:
                restored = self.backups.restore(poster_path)
            except Exception as e:
                logger.exception(
                    "Error restoring poster",
                    item_id=item.item_id,
                    poster=str(poster_path),
                    error=str(e),
                )
                return ProcessResult(status="error", item=item, error=str(e))

        if restored:
            logger.info("Restored original poster", item_id=item.item_id, poster=str(poster_path))
        return ProcessResult(status="skipped", item=item, reason="disabled")

    def shutdown(self) -> RestoreReport:
        """Restore every original poster, then detach.

        Later calls do nothing and return an empty report.
        """
        if self._closed:
            return RestoreReport()
        self._closed = True

        logger.info("Shutting down, restoring original posters")
        report = RestoreReport()
        try:
            with self._lock:
                report = self.backups.restore_all()
        except Exception as e:
            logger.exception("Restore failed", error=str(e))
        finally:
            self.detach()
        return report
