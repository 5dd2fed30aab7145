"""Pristine poster backups and restore."""

import hashlib
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional

from posterflags.errors import BackupError
from posterflags.models.result import BackupEntry, RestoreReport
from posterflags.utils.files import copy_atomic
from posterflags.utils.logger import get_logger

logger = get_logger(__name__)

INDEX_NAME = ".index.db"


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


class BackupIndex:
    """SQLite index mapping backup keys to original poster paths."""

    def __init__(self, db_path: Path):
        self.db_path = db_path

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection context manager."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS backups (
                    key TEXT PRIMARY KEY,
                    original_path TEXT NOT NULL UNIQUE,
                    sha256 TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """
            )
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _from_row(row: sqlite3.Row) -> BackupEntry:
        return BackupEntry(
            key=row["key"],
            original_path=Path(row["original_path"]),
            sha256=row["sha256"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def add(self, entry: BackupEntry) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "INSERT INTO backups (key, original_path, sha256, created_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    entry.key,
                    str(entry.original_path),
                    entry.sha256,
                    entry.created_at.isoformat(),
                ),
            )
            conn.commit()

    def remove(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM backups WHERE key = ?", (key,))
            conn.commit()

    def get_by_key(self, key: str) -> Optional[BackupEntry]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM backups WHERE key = ?", (key,)).fetchone()
            return self._from_row(row) if row else None

    def get_by_original(self, original_path: Path) -> Optional[BackupEntry]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM backups WHERE original_path = ?", (str(original_path),)
            ).fetchone()
            return self._from_row(row) if row else None

    def all(self) -> List[BackupEntry]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM backups ORDER BY created_at, key").fetchall()
            return [self._from_row(row) for row in rows]


class BackupManager:
    """Keep a pristine copy of every poster before it is first modified.

    Backups live in a single directory, named after the poster file. The
    index records each backup's exact original path so restore writes back
    to where the poster came from. A backup is never rewritten; only
    restore removes it.
    """

    def __init__(self, backup_dir: Path):
        """Initialize backup manager.

        Args:
            backup_dir: Backup store directory (created on first backup)
        """
        self.backup_dir = Path(backup_dir)
        self._index = BackupIndex(self.backup_dir / INDEX_NAME)
        self._lock = threading.Lock()

    @property
    def exists(self) -> bool:
        return self.backup_dir.is_dir()

    def _key_for(self, original_path: Path) -> str:
        """Pick a store file name, disambiguating same-named posters."""
        key = original_path.name
        taken = self._index.get_by_key(key)
        if taken is None or taken.original_path == original_path:
            return key
        path_hash = hashlib.sha1(str(original_path).encode("utf-8")).hexdigest()[:8]
        return f"{original_path.stem}-{path_hash}{original_path.suffix}"

    def ensure_backup(self, poster_path: Path) -> BackupEntry:
        """Back up a poster unless a backup already exists.

        Args:
            poster_path: Poster to protect

        Returns:
            The (new or existing) backup entry

        Raises:
            BackupError: If the poster can't be copied into the store
        """
        original_path = Path(poster_path).resolve()

        with self._lock:
            if self.exists:
                existing = self._index.get_by_original(original_path)
                if existing is not None:
                    if (self.backup_dir / existing.key).is_file():
                        return existing
                    logger.warning(
                        "Backup file missing, recreating",
                        poster=str(original_path),
                        key=existing.key,
                    )
                    self._index.remove(existing.key)

            try:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                key = self._key_for(original_path)
                backup_path = self.backup_dir / key

                if backup_path.is_file():
                    # Store file without an index row: keep it as this poster's original
                    logger.info("Adopting existing backup", poster=str(original_path), key=key)
                else:
                    copy_atomic(original_path, backup_path)

                entry = BackupEntry(
                    key=key, original_path=original_path, sha256=_sha256(backup_path)
                )
                self._index.add(entry)
            except (OSError, sqlite3.Error) as e:
                logger.error("Failed to back up poster", poster=str(original_path), error=str(e))
                raise BackupError(f"Cannot back up {original_path}: {e}") from e

        logger.info("Poster backed up", poster=str(original_path), key=key)
        return entry

    def backup_path_for(self, poster_path: Path) -> Optional[Path]:
        """Return the backup file for a poster, if one exists."""
        if not self.exists:
            return None
        entry = self._index.get_by_original(Path(poster_path).resolve())
        if entry is None:
            return None
        backup_path = self.backup_dir / entry.key
        return backup_path if backup_path.is_file() else None

    def entries(self) -> List[BackupEntry]:
        """List all backups in the store."""
        if not self.exists:
            return []
        return self._index.all()

    def _restore_entry(self, entry: BackupEntry, report: RestoreReport) -> None:
        backup_path = self.backup_dir / entry.key
        try:
            if not backup_path.is_file():
                logger.error("Backup file missing", key=entry.key, poster=str(entry.original_path))
                report.failed.append(entry.original_path)
                return

            if not entry.original_path.exists():
                logger.warning(
                    "Original poster location gone, keeping backup",
                    poster=str(entry.original_path),
                    key=entry.key,
                )
                report.missing.append(entry.original_path)
                return

            copy_atomic(backup_path, entry.original_path)
            backup_path.unlink()
            self._index.remove(entry.key)
            report.restored.append(entry.original_path)
            logger.debug("Poster restored", poster=str(entry.original_path))
        except (OSError, sqlite3.Error) as e:
            logger.error(
                "Failed to restore poster",
                poster=str(entry.original_path),
                key=entry.key,
                error=str(e),
            )
            report.failed.append(entry.original_path)

    def restore(self, poster_path: Path) -> bool:
        """Restore a single poster and drop its backup.

        Returns:
            True if the poster was restored
        """
        if not self.exists:
            return False
        with self._lock:
            entry = self._index.get_by_original(Path(poster_path).resolve())
            if entry is None:
                return False
            report = RestoreReport()
            self._restore_entry(entry, report)
        return bool(report.restored)

    def restore_all(self) -> RestoreReport:
        """Restore every backed-up poster, best effort per file.

        Returns:
            RestoreReport listing restored, missing and failed posters
        """
        report = RestoreReport()
        if not self.exists:
            return report

        with self._lock:
            try:
                entries = self._index.all()
            except sqlite3.Error as e:
                logger.error("Failed to read backup index", error=str(e))
                return report

            for entry in entries:
                self._restore_entry(entry, report)

        logger.info(
            "Restore finished",
            restored=len(report.restored),
            missing=len(report.missing),
            failed=len(report.failed),
        )
        return report
