"""Markdown page service layer spanning every per-content database."""

import logging
import uuid
from pathlib import Path
from typing import Any, Optional

from portfolio_cms.config import get_settings
from portfolio_cms.exceptions import (
    CmsError,
    DatabaseError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from portfolio_cms.schemas import MarkdownPage, now_iso
from portfolio_cms.services.common import placeholder_values
from portfolio_cms.services.validation import ContentValidator
from portfolio_cms.storage.content_db_manager import ContentDbManager
from portfolio_cms.storage.content_mapper import ensure_content_row
from portfolio_cms.storage.index_db import IndexDatabase
from portfolio_cms.storage.markdown_mapper import (
    delete_markdown_page,
    get_markdown_page,
    list_markdown_pages,
    normalize_frontmatter,
    normalize_status,
    save_markdown_page,
    search_markdown_pages,
    slug_exists,
)

logger = logging.getLogger(__name__)


class MarkdownService:
    """Service layer for markdown pages; slugs are unique across all content databases."""

    def __init__(self, manager: ContentDbManager, index: IndexDatabase | None = None):
        """
        Initialize markdown service.

        Args:
            manager: Per-content database manager
            index: Shared index database, used for placeholder content rows
        """
        self.manager = manager
        self.index = index if index is not None else IndexDatabase(manager.index_db_path)

    def create_page(
        self,
        slug: str,
        body: str = "",
        frontmatter: Any = None,
        content_id: Optional[str] = None,
        page_id: Optional[str] = None,
        path: Optional[str] = None,
        lang: Optional[str] = None,
        status: Any = None,
        visibility: Optional[str] = None,
    ) -> MarkdownPage:
        """
        Create a markdown page.

        Args:
            slug: Page slug (required, unique across all content databases)
            body: Raw markdown body
            frontmatter: Frontmatter object or JSON text
            content_id: Owning content ID. Defaults to the slug.
            page_id: Optional page ID. If not provided, generates a UUID.
            path: Optional source path
            lang: Page language. If None, reads from settings.
            status: Raw status; normalized to draft/published/archived
            visibility: Visibility of a placeholder content row

        Returns:
            The stored page

        Raises:
            ValidationError: If slug or IDs are invalid
            DuplicateError: If the slug is already taken
            DatabaseError: If database operation fails
        """
        ContentValidator.validate_slug(slug)
        slug = slug.strip()
        content_id = (content_id or "").strip() or slug
        ContentValidator.validate_id(content_id)
        if page_id is not None:
            ContentValidator.validate_id(page_id, "id", "Page ID")

        if self.slug_taken(slug):
            raise DuplicateError("Markdown page", "slug", slug)

        frontmatter = normalize_frontmatter(frontmatter)
        now = now_iso()
        page = MarkdownPage(
            id=page_id or str(uuid.uuid4()),
            content_id=content_id,
            slug=slug,
            frontmatter=frontmatter,
            body=body or "",
            path=path,
            lang=lang or get_settings().default_lang,
            status=normalize_status(status),
            created_at=now,
            updated_at=now,
        )
        try:
            saved = self._persist(page, self._fallback(page, visibility))
        except CmsError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to create markdown page: {str(e)}", e) from e

        logger.info(f"Created markdown page {slug!r} in content {content_id!r}")
        return saved

    def update_page(
        self,
        identifier: str,
        slug: Optional[str] = None,
        body: Optional[str] = None,
        frontmatter: Any = None,
        content_id: Optional[str] = None,
        status: Any = None,
        lang: Optional[str] = None,
        path: Optional[str] = None,
        html_cache: Optional[str] = None,
        visibility: Optional[str] = None,
    ) -> MarkdownPage:
        """
        Update a markdown page found by ID or slug.

        Arguments left as None keep the stored value. When ``content_id``
        differs from the page's current content, the page moves to that
        content's database.

        Raises:
            NotFoundError: If the page is not found
            DuplicateError: If the new slug is already taken
            ValidationError: If the page has no content ID to save under
            DatabaseError: If database operation fails
        """
        located = self._locate(identifier)
        if located is None:
            raise NotFoundError("Markdown page", identifier)
        source_path, existing = located

        next_slug = (slug or "").strip() or existing.slug
        if next_slug != existing.slug and self.slug_taken(next_slug, exclude_id=existing.id):
            raise DuplicateError("Markdown page", "slug", next_slug)

        target_content_id = (content_id or "").strip() or existing.content_id
        if not target_content_id:
            raise ValidationError("Content ID is required", "content_id")
        ContentValidator.validate_id(target_content_id)

        page = existing.model_copy(
            update={
                "slug": next_slug,
                "content_id": target_content_id,
                "body": body if body is not None else existing.body,
                "frontmatter": (
                    normalize_frontmatter(frontmatter)
                    if frontmatter is not None
                    else existing.frontmatter
                ),
                "status": normalize_status(status if status is not None else existing.status),
                "lang": lang or existing.lang,
                "path": path if path is not None else existing.path,
                "html_cache": html_cache if html_cache is not None else existing.html_cache,
                "updated_at": now_iso(),
                "version": existing.version + 1,
            }
        )

        try:
            saved = self._persist(page, self._fallback(page, visibility))
            if self.manager.get_content_db_path(target_content_id) != source_path:
                with self.manager.open_file_session(source_path) as session:
                    delete_markdown_page(session, existing.id)
                logger.info(
                    f"Moved markdown page {existing.id!r} to content {target_content_id!r}"
                )
        except CmsError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to update markdown page: {str(e)}", e) from e

        return saved

    def find_page(
        self, identifier: str, content_id: Optional[str] = None
    ) -> Optional[MarkdownPage]:
        """Get a page by ID or slug, searching every content database unless one is given."""
        located = self._locate(identifier, content_id)
        return located[1] if located is not None else None

    def list_pages(self, content_id: Optional[str] = None) -> list[MarkdownPage]:
        """List pages, most recently updated first."""
        pages: list[MarkdownPage] = []
        try:
            for path in self._db_paths(content_id):
                with self.manager.open_file_session(path) as session:
                    pages.extend(list_markdown_pages(session, content_id=content_id))
        except Exception as e:
            raise DatabaseError(f"Failed to list markdown pages: {str(e)}", e) from e

        pages.sort(key=lambda page: page.updated_at, reverse=True)
        return pages

    def search_pages(self, query: str, content_id: Optional[str] = None) -> list[MarkdownPage]:
        """Full-text search on page bodies, optionally within one content item."""
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty", "query")

        pages: list[MarkdownPage] = []
        try:
            for path in self._db_paths(content_id):
                with self.manager.open_file_session(path) as session:
                    pages.extend(
                        page
                        for page in search_markdown_pages(session, query)
                        if not content_id or page.content_id == content_id
                    )
        except Exception as e:
            raise DatabaseError(f"Failed to search markdown pages: {str(e)}", e) from e
        return pages

    def delete_page(self, identifier: str, content_id: Optional[str] = None) -> bool:
        """Delete a page by ID or slug. Returns False if no page matched."""
        located = self._locate(identifier, content_id)
        if located is None:
            return False
        path, page = located

        try:
            with self.manager.open_file_session(path) as session:
                deleted = delete_markdown_page(session, page.id)
        except Exception as e:
            raise DatabaseError(f"Failed to delete markdown page: {str(e)}", e) from e

        if deleted:
            logger.info(f"Deleted markdown page {page.slug!r}")
        return deleted

    def slug_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """Check whether any content database holds a page with this slug."""
        for path in self.manager.list_db_files():
            with self.manager.open_file_session(path) as session:
                if slug_exists(session, slug, exclude_id=exclude_id):
                    return True
        return False

    def _db_paths(self, content_id: Optional[str] = None) -> list[Path]:
        if content_id:
            path = self.manager.get_content_db_path(content_id)
            return [path] if path.exists() else []
        return self.manager.list_db_files()

    def _locate(
        self, identifier: str, content_id: Optional[str] = None
    ) -> Optional[tuple[Path, MarkdownPage]]:
        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("ID or slug is required", "identifier")

        try:
            for path in self._db_paths(content_id):
                with self.manager.open_file_session(path) as session:
                    page = get_markdown_page(session, identifier)
                if page is not None:
                    return path, page
        except Exception as e:
            raise DatabaseError(f"Failed to find markdown page: {str(e)}", e) from e
        return None

    def _persist(self, page: MarkdownPage, fallback: dict[str, Any]) -> MarkdownPage:
        values = placeholder_values(self.index, page.content_id, fallback)
        with self.manager.open_session(page.content_id) as session:
            ensure_content_row(session, page.content_id, fallback=values)
            return save_markdown_page(session, page)

    @staticmethod
    def _fallback(page: MarkdownPage, visibility: Optional[str]) -> dict[str, Any]:
        frontmatter = page.frontmatter
        title = frontmatter.get("title")
        description = frontmatter.get("description")
        date = frontmatter.get("date")
        return {
            "title": str(title) if title else page.slug,
            "summary": str(description) if description is not None else None,
            "lang": page.lang,
            "visibility": visibility,
            "status": page.status,
            "published_at": str(date) if date is not None else None,
        }
