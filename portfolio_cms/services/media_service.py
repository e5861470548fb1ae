"""Media service layer: binary media stored inside each content database."""

import logging
from typing import Optional

from portfolio_cms.exceptions import CmsError, DatabaseError, NotFoundError, ValidationError
from portfolio_cms.schemas import MediaItem, MediaStats, now_iso
from portfolio_cms.services.common import placeholder_values
from portfolio_cms.services.validation import ContentValidator
from portfolio_cms.storage.content_db_manager import ContentDbManager
from portfolio_cms.storage.content_mapper import ensure_content_row
from portfolio_cms.storage.index_db import IndexDatabase
from portfolio_cms.storage.repositories import MediaRepository

logger = logging.getLogger(__name__)


class MediaService:
    """Service layer for media CRUD with validation and error handling."""

    def __init__(self, manager: ContentDbManager, index: IndexDatabase | None = None):
        """
        Initialize media service.

        Args:
            manager: Per-content database manager
            index: Shared index database, used for placeholder content rows
        """
        self.manager = manager
        self.index = index if index is not None else IndexDatabase(manager.index_db_path)

    def save_media(self, content_id: str, media: MediaItem) -> MediaItem:
        """
        Save a media item under a content item.

        A placeholder content row is created when the content has none yet.
        Saving an existing media ID updates it in place and keeps its
        ``created_at``.

        Returns:
            The stored media item (with data)

        Raises:
            ValidationError: If an ID is invalid or the item has no data
            DatabaseError: If database operation fails
        """
        ContentValidator.validate_id(content_id)
        ContentValidator.validate_id(media.id, "media.id", "Media ID")
        if media.data is None:
            raise ValidationError(f"Media {media.id!r} has no data", "data")

        item = media.model_copy(update={"content_id": content_id, "updated_at": now_iso()})
        try:
            fallback = placeholder_values(self.index, content_id)
            with self.manager.open_session(content_id) as session:
                ensure_content_row(session, content_id, fallback=fallback)
                repo = MediaRepository(session)
                repo.upsert(content_id, item)
                saved = repo.get_by_id(item.id)

            logger.info(f"Saved media {item.id!r} for content {content_id!r} ({item.size} bytes)")
            return saved

        except CmsError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to save media: {str(e)}", e) from e

    def get_media(self, content_id: str, media_id: str) -> MediaItem:
        """
        Get a media item with its data.

        Raises:
            NotFoundError: If the media item is not found
        """
        ContentValidator.validate_id(content_id)
        ContentValidator.validate_id(media_id, "media_id", "Media ID")

        item: Optional[MediaItem] = None
        if self.manager.content_db_exists(content_id):
            try:
                with self.manager.open_session(content_id) as session:
                    item = MediaRepository(session).get_by_id(media_id)
            except Exception as e:
                raise DatabaseError(f"Failed to get media: {str(e)}", e) from e

        if item is None:
            raise NotFoundError("Media", media_id)
        return item

    def list_media(self, content_id: str) -> list[MediaItem]:
        """List a content item's media without data, newest first."""
        ContentValidator.validate_id(content_id)
        if not self.manager.content_db_exists(content_id):
            return []

        try:
            with self.manager.open_session(content_id) as session:
                return MediaRepository(session).list_by_content(content_id)
        except Exception as e:
            raise DatabaseError(f"Failed to list media: {str(e)}", e) from e

    def delete_media(self, content_id: str, media_id: str) -> bool:
        """Delete a media item. Returns False if it did not exist."""
        ContentValidator.validate_id(content_id)
        ContentValidator.validate_id(media_id, "media_id", "Media ID")
        if not self.manager.content_db_exists(content_id):
            return False

        try:
            with self.manager.open_session(content_id) as session:
                deleted = MediaRepository(session).delete(media_id)
        except Exception as e:
            raise DatabaseError(f"Failed to delete media: {str(e)}", e) from e

        if deleted:
            logger.info(f"Deleted media {media_id!r} of content {content_id!r}")
        return deleted

    def get_media_stats(self, content_id: str) -> MediaStats:
        """Get count, total size and per-MIME-type counts of a content item's media."""
        ContentValidator.validate_id(content_id)
        if not self.manager.content_db_exists(content_id):
            return MediaStats()

        try:
            with self.manager.open_session(content_id) as session:
                return MediaRepository(session).stats(content_id)
        except Exception as e:
            raise DatabaseError(f"Failed to get media stats: {str(e)}", e) from e
