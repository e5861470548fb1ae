"""Content service layer: per-content persistence plus the shared index."""

import logging
from typing import Optional, Sequence

from portfolio_cms.exceptions import (
    CmsError,
    DatabaseError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from portfolio_cms.schemas import Content, ContentDbStats, ContentIndexEntry, MediaItem
from portfolio_cms.services.validation import ContentValidator
from portfolio_cms.storage import content_mapper
from portfolio_cms.storage.content_db_manager import ContentDbManager, sanitize_content_id
from portfolio_cms.storage.index_db import IndexDatabase, build_index_entry
from portfolio_cms.storage.repositories import ContentRepository

logger = logging.getLogger(__name__)


class ContentService:
    """Service layer for content CRUD with validation and error handling."""

    def __init__(self, manager: ContentDbManager, index: IndexDatabase | None = None):
        """
        Initialize content service.

        Args:
            manager: Per-content database manager
            index: Shared index database. If None, opened at the manager's
                   ``index_db_path``.
        """
        self.manager = manager
        self.index = index if index is not None else IndexDatabase(manager.index_db_path)

    def save_content(
        self,
        content: Content,
        media: Optional[Sequence[MediaItem]] = None,
    ) -> Content:
        """
        Create or update a content item.

        The ``contents`` row is updated in place; child sets that are None on
        ``content`` (and ``media`` when None) keep their stored rows.

        The per-content database commits before the index entry is refreshed
        in a separate transaction. If only the index refresh fails, the
        content stays saved and the raised ``DatabaseError`` says so; calling
        ``save_content`` again repairs the entry.

        Args:
            content: Content item to save
            media: Optional replacement media set

        Returns:
            The content as stored, with its child sets

        Raises:
            ValidationError: If the ID or title is invalid, or a media item
                             has no data
            DatabaseError: If database operation fails, or the index refresh
                           fails after the content was saved
        """
        ContentValidator.validate_id(content.id)
        ContentValidator.validate_title(content.title)
        if media is not None:
            for item in media:
                ContentValidator.validate_id(item.id, "media.id", "Media ID")
                if item.data is None:
                    raise ValidationError(f"Media {item.id!r} has no data", "media.data")

        try:
            with self.manager.open_session(content.id) as session:
                content_mapper.save_full_content(session, content, media=media)
                saved = content_mapper.get_full_content(session, content.id)

            logger.info(f"Saved content {content.id!r}")
        except CmsError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to save content: {str(e)}", e) from e

        try:
            with self.index.repository() as repo:
                repo.upsert_entry(self._index_entry(saved))
        except Exception as e:
            logger.error(f"Content {content.id!r} saved but its index entry was not updated: {e}")
            raise DatabaseError(f"Content saved but index update failed: {str(e)}", e) from e

        return saved

    def get_content(self, content_id: str) -> Content:
        """
        Get a content item with its child sets.

        Raises:
            ValidationError: If content_id is invalid
            NotFoundError: If content is not found
            DatabaseError: If database operation fails
        """
        content = self.find_content(content_id)
        if content is None:
            raise NotFoundError("Content", content_id)
        return content

    def find_content(self, content_id: str) -> Optional[Content]:
        """Get a content item with its child sets, or None if it does not exist."""
        ContentValidator.validate_id(content_id)

        # Reads never create a database file
        if not self.manager.content_db_exists(content_id):
            return None

        try:
            with self.manager.open_session(content_id) as session:
                return content_mapper.get_full_content(session, content_id)
        except Exception as e:
            raise DatabaseError(f"Failed to get content: {str(e)}", e) from e

    def delete_content(self, content_id: str) -> bool:
        """
        Delete a content item, its database file and its index entry.

        The file is kept when it still holds another content item whose ID
        sanitizes to the same name; only this item's row is removed then.

        Returns:
            True if anything was removed

        Raises:
            ValidationError: If content_id is invalid
            DatabaseError: If database operation fails
        """
        ContentValidator.validate_id(content_id)

        try:
            deleted = False
            if self.manager.content_db_exists(content_id):
                with self.manager.open_session(content_id) as session:
                    deleted = content_mapper.delete_content(session, content_id)
                if not self.manager.holds_other_contents(content_id):
                    deleted = self.manager.delete_content_db(content_id) or deleted

            with self.index.repository() as repo:
                deleted = repo.remove_entry(content_id) or deleted

            if deleted:
                logger.info(f"Deleted content {content_id!r}")
            return deleted

        except Exception as e:
            raise DatabaseError(f"Failed to delete content: {str(e)}", e) from e

    def rename_content(self, old_id: str, new_id: str) -> Content:
        """
        Move a content item (with media and markdown pages) to a new ID.

        Raises:
            ValidationError: If either ID is invalid or they are equal
            NotFoundError: If the old content does not exist
            DuplicateError: If content already exists under the new ID
            DatabaseError: If database operation fails
        """
        ContentValidator.validate_id(old_id, "old_id")
        ContentValidator.validate_id(new_id, "new_id")
        if sanitize_content_id(old_id) == sanitize_content_id(new_id):
            raise ValidationError("New ID must map to a different database file", "new_id")

        if not self.manager.content_db_exists(old_id):
            raise NotFoundError("Content", old_id)
        if self.manager.content_db_exists(new_id):
            raise DuplicateError("Content", "id", new_id)

        try:
            if not self.manager.copy_content_db(old_id, new_id):
                raise NotFoundError("Content", old_id)

            renamed = self.get_content(new_id)
            with self.index.repository() as repo:
                repo.remove_entry(old_id)
                repo.upsert_entry(self._index_entry(renamed))
            return renamed

        except CmsError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to rename content: {str(e)}", e) from e

    def list_contents(self, status: Optional[str] = None) -> list[ContentIndexEntry]:
        """List index entries, newest first, optionally filtered by status."""
        try:
            with self.index.repository() as repo:
                return repo.list_entries(status=status)
        except Exception as e:
            raise DatabaseError(f"Failed to list contents: {str(e)}", e) from e

    def search_contents(self, query: str, limit: int = 20) -> list[Content]:
        """
        Full-text search across every per-content database.

        Args:
            query: Phrase to find in titles, summaries or search text
            limit: Maximum number of results

        Raises:
            ValidationError: If the query is empty
            DatabaseError: If database operation fails
        """
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty", "query")

        results: list[Content] = []
        try:
            for path in self.manager.list_db_files():
                with self.manager.open_file_session(path) as session:
                    for content_id in ContentRepository(session).full_text_search(query, limit):
                        content = content_mapper.get_full_content(session, content_id)
                        if content is not None:
                            results.append(content)
        except Exception as e:
            raise DatabaseError(f"Failed to search contents: {str(e)}", e) from e

        return results[:limit]

    def get_storage_stats(self) -> ContentDbStats:
        """Get per-file database sizes, titled from the index."""
        with self.index.repository() as repo:
            titles = {
                sanitize_content_id(entry.id): entry.title for entry in repo.list_entries()
            }
        return self.manager.get_content_db_stats(titles=titles)

    def _index_entry(self, content: Content) -> ContentIndexEntry:
        return build_index_entry(content, self.manager.get_content_db_path(content.id).name)
