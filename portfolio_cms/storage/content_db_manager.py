"""Resolution and provisioning of the one-database-per-content-item layout."""

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy.orm import Session

from portfolio_cms.config import get_settings
from portfolio_cms.models.base import Base
from portfolio_cms.schemas import ContentDbFileStats, ContentDbStats, now_iso
from portfolio_cms.storage.content_mapper import delete_content, get_full_content, save_full_content
from portfolio_cms.storage.database import Database
from portfolio_cms.storage.markdown_mapper import (
    delete_markdown_page,
    list_markdown_pages,
    save_markdown_page,
)
from portfolio_cms.storage.repositories import ContentRepository, MediaRepository

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")

DB_FILE_PREFIX = "content-"
DB_FILE_SUFFIX = ".db"
SQLITE_COMPANION_SUFFIXES = ("-wal", "-shm", "-journal")


def sanitize_content_id(content_id: str) -> str:
    """Replace every character outside [a-zA-Z0-9_-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", content_id)


class ContentDatabase(Database):
    """Database handle on one per-content SQLite file."""

    def __init__(self, path: str | Path, journal_mode: str | None = None):
        super().__init__(path, Base.metadata, journal_mode=journal_mode)


class ContentDbManager:
    """Maps content IDs to database files under ``<data_dir>/contents``."""

    def __init__(self, data_dir: str | Path | None = None):
        """
        Initialize the manager and create its directories.

        Args:
            data_dir: Root data directory. If None, resolved from settings.
        """
        settings = get_settings()

        if data_dir is None:
            data_dir = settings.resolve_data_dir()

        self.data_dir = Path(data_dir)
        self.contents_dir = self.data_dir / settings.contents_dirname
        self.index_db_path = self.data_dir / settings.index_db_filename
        self.contents_dir.mkdir(parents=True, exist_ok=True)

    def get_content_db_path(self, content_id: str) -> Path:
        """Get the database file path for a content ID."""
        filename = f"{DB_FILE_PREFIX}{sanitize_content_id(content_id)}{DB_FILE_SUFFIX}"
        return self.contents_dir / filename

    def content_db_exists(self, content_id: str) -> bool:
        """Check whether the database file for a content ID exists."""
        return self.get_content_db_path(content_id).exists()

    def get_content_db(self, content_id: str) -> ContentDatabase:
        """
        Get the database handle for a content ID.

        The file and its schema are created on first access. The caller owns
        the handle and must call ``dispose()``; prefer ``open_session()``.
        """
        path = self.get_content_db_path(content_id)
        is_new = not path.exists()

        database = ContentDatabase(path)
        if is_new:
            logger.info(f"Creating content database {path.name} for {content_id!r}")
            try:
                database.create_tables()
            except Exception:
                database.dispose()
                raise
        return database

    @contextmanager
    def open_session(self, content_id: str) -> Generator[Session, None, None]:
        """
        Open a transactional session on a content item's database.

        The session commits on success and rolls back on error; the engine is
        disposed on every exit path.

        Usage:
            with manager.open_session("example") as session:
                save_full_content(session, content)
        """
        database = self.get_content_db(content_id)
        try:
            with database.session() as session:
                yield session
        finally:
            database.dispose()

    @contextmanager
    def open_file_session(self, path: Path) -> Generator[Session, None, None]:
        """Open a transactional session on an existing per-content database file."""
        database = ContentDatabase(path)
        try:
            with database.session() as session:
                yield session
        finally:
            database.dispose()

    def list_db_files(self) -> list[Path]:
        """Get every per-content database file, sorted by name."""
        return sorted(self.contents_dir.glob(f"{DB_FILE_PREFIX}*{DB_FILE_SUFFIX}"))

    def list_content_ids(self) -> list[str]:
        """Get the content IDs stored across all per-content databases."""
        content_ids: list[str] = []
        for path in self.list_db_files():
            with self.open_file_session(path) as session:
                content_ids.extend(ContentRepository(session).list_ids())
        return content_ids

    def copy_content_db(self, old_id: str, new_id: str) -> bool:
        """
        Move a content item to a new ID.

        The full content (row, child sets, media and markdown pages) is
        re-saved into a fresh database for ``new_id``. The old file is
        removed afterwards unless it still holds another content item whose
        ID sanitizes to the same name; then only ``old_id``'s row and pages
        are deleted from it.

        Returns:
            True on success; False if the old database or content is missing
            or the new database already exists
        """
        old_path = self.get_content_db_path(old_id)
        new_path = self.get_content_db_path(new_id)

        if not old_path.exists():
            logger.error(f"Content database file not found: {old_path}")
            return False
        if new_path.exists():
            logger.error(f"Content database already exists for new ID: {new_id!r}")
            return False

        with self.open_session(old_id) as session:
            content = get_full_content(session, old_id)
            media = MediaRepository(session).list_by_content(old_id, include_data=True)
            pages = list_markdown_pages(session, content_id=old_id)
        if content is None:
            logger.error(f"Content not found in old database: {old_id!r}")
            return False

        moved = content.model_copy(update={"id": new_id, "updated_at": now_iso()})
        moved_media = [item.model_copy(update={"content_id": new_id}) for item in media]
        try:
            with self.open_session(new_id) as session:
                save_full_content(session, moved, media=moved_media)
                for page in pages:
                    save_markdown_page(session, page.model_copy(update={"content_id": new_id}))
        except Exception:
            self._remove_db_files(new_path)
            raise

        if self.holds_other_contents(old_id):
            with self.open_session(old_id) as session:
                for page in pages:
                    delete_markdown_page(session, page.id)
                delete_content(session, old_id)
        else:
            self._remove_db_files(old_path)
        logger.info(f"Moved content database {old_id!r} -> {new_id!r}")
        return True

    def delete_content_db(self, content_id: str) -> bool:
        """Delete the database file (and SQLite companions) of a content ID.

        The file is removed as a whole, including any other content item
        stored in it; use ``holds_other_contents`` first when IDs may share
        a sanitized name.
        """
        path = self.get_content_db_path(content_id)
        if not path.exists():
            return False
        self._remove_db_files(path)
        logger.info(f"Deleted content database {path.name}")
        return True

    def holds_other_contents(self, content_id: str) -> bool:
        """Check whether the file of a content ID holds rows for other IDs."""
        path = self.get_content_db_path(content_id)
        if not path.exists():
            return False
        with self.open_file_session(path) as session:
            return any(other != content_id for other in ContentRepository(session).list_ids())

    def get_content_db_stats(self, titles: Optional[dict[str, str]] = None) -> ContentDbStats:
        """
        Get file sizes of all per-content databases.

        Args:
            titles: Optional mapping of sanitized content ID to title
        """
        titles = titles or {}
        files = []
        for path in self.list_db_files():
            sanitized = path.name[len(DB_FILE_PREFIX):-len(DB_FILE_SUFFIX)]
            files.append(
                ContentDbFileStats(
                    id=sanitized,
                    title=titles.get(sanitized),
                    db_file=path.name,
                    size=path.stat().st_size,
                )
            )
        return ContentDbStats(
            total_contents=len(files),
            total_db_files=len(files),
            total_size=sum(entry.size for entry in files),
            contents=files,
        )

    @staticmethod
    def _remove_db_files(path: Path) -> None:
        path.unlink(missing_ok=True)
        for suffix in SQLITE_COMPANION_SUFFIXES:
            Path(f"{path}{suffix}").unlink(missing_ok=True)
