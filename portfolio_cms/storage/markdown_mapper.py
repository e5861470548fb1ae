"""Mapping of markdown pages to and from the ``markdown_pages`` table."""

import json
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, or_, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from portfolio_cms.models.markdown import MARKDOWN_PAGES_FTS, MarkdownPageRecord
from portfolio_cms.schemas import ContentStatus, MarkdownPage
from portfolio_cms.storage.codec import dumps
from portfolio_cms.storage.repositories import fts_phrase

logger = logging.getLogger(__name__)

MARKDOWN_STATUSES = frozenset({"draft", "published", "archived"})

_table = MarkdownPageRecord.__table__


def normalize_status(status: Any) -> ContentStatus:
    """Map a raw status to draft/published/archived; anything else is draft."""
    if isinstance(status, str):
        normalized = status.strip().lower()
        if normalized in MARKDOWN_STATUSES:
            return normalized
    return "draft"


def normalize_frontmatter(value: Any) -> dict[str, Any]:
    """Coerce frontmatter input (object or JSON text) to a dict."""
    if not value:
        return {}
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError as e:
            logger.warning(f"Failed to parse frontmatter string: {e}")
            return {}
        return parsed if isinstance(parsed, dict) else {}
    if isinstance(value, Mapping):
        return dict(value)
    return {}


def map_row_to_page(row: Mapping[str, Any]) -> Optional[MarkdownPage]:
    """
    Convert a ``markdown_pages`` row to a page.

    Returns None (and logs the slug) when the frontmatter cannot be parsed,
    so one malformed row does not break a listing.
    """
    slug = row.get("slug")
    try:
        frontmatter = json.loads(row["frontmatter"])
        if not isinstance(frontmatter, dict):
            raise ValueError("frontmatter is not a JSON object")
        return MarkdownPage(
            id=row["id"],
            content_id=row["content_id"],
            slug=slug,
            frontmatter=frontmatter,
            body=row["body"],
            html_cache=row["html_cache"],
            path=row["path"],
            lang=row["lang"],
            status=normalize_status(row["status"]),
            version=row["version"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            published_at=row["published_at"],
        )
    except (TypeError, ValueError, PydanticValidationError) as e:
        logger.error(f"Failed to map markdown page {slug!r}: {e}")
        return None


def _page_to_row(page: MarkdownPage) -> dict[str, Any]:
    return {
        "id": page.id,
        "content_id": page.content_id,
        "slug": page.slug,
        "frontmatter": dumps(page.frontmatter),
        "body": page.body,
        "html_cache": page.html_cache,
        "path": page.path,
        "lang": page.lang,
        "status": normalize_status(page.status),
        "version": page.version,
        "created_at": page.created_at,
        "updated_at": page.updated_at,
        "published_at": page.published_at,
    }


def _select_by_identifier(identifier: str):
    return (
        select(_table)
        .where(or_(_table.c.id == identifier, _table.c.slug == identifier))
        .order_by((_table.c.id == identifier).desc())
    )


def get_markdown_page(session: Session, identifier: str) -> Optional[MarkdownPage]:
    """Get a page by ID or slug."""
    row = session.execute(_select_by_identifier(identifier)).mappings().first()
    if row is None:
        return None
    return map_row_to_page(row)


def list_markdown_pages(session: Session, content_id: Optional[str] = None) -> list[MarkdownPage]:
    """List pages, most recently updated first; malformed rows are skipped."""
    stmt = select(_table).order_by(_table.c.updated_at.desc())
    if content_id:
        stmt = stmt.where(_table.c.content_id == content_id)
    pages = (map_row_to_page(row) for row in session.execute(stmt).mappings())
    return [page for page in pages if page is not None]


def search_markdown_pages(session: Session, query: str, limit: int = 100) -> list[MarkdownPage]:
    """Full-text search on page bodies, best match first."""
    stmt = text(
        f"SELECT id FROM {MARKDOWN_PAGES_FTS} WHERE {MARKDOWN_PAGES_FTS} MATCH :query "
        "ORDER BY rank LIMIT :limit"
    )
    page_ids = session.scalars(stmt, {"query": fts_phrase(query), "limit": limit}).all()
    pages = (get_markdown_page(session, page_id) for page_id in page_ids)
    return [page for page in pages if page is not None]

def slug_exists(session: Session, slug: str, exclude_id: Optional[str] = None) -> bool:
    """Check whether a slug is taken, optionally ignoring one page ID."""
    stmt = select(_table.c.id).where(_table.c.slug == slug)
    if exclude_id:
        stmt = stmt.where(_table.c.id != exclude_id)
    return session.execute(stmt).first() is not None


def save_markdown_page(session: Session, page: MarkdownPage) -> MarkdownPage:
    """
    Insert a page, or update it in place on an ID conflict.

    An update keeps the stored ``created_at`` and sets ``version`` to the
    stored version plus one.

    Returns:
        The page as stored
    """
    row = _page_to_row(page)
    stmt = sqlite_insert(_table).values(row)
    updates = {
        name: stmt.excluded[name]
        for name in row
        if name not in ("id", "created_at", "version")
    }
    updates["version"] = _table.c.version + 1
    stmt = stmt.on_conflict_do_update(index_elements=[_table.c.id], set_=updates)
    session.execute(stmt)

    saved = get_markdown_page(session, page.id)
    logger.debug(f"Saved markdown page {page.slug!r} (version={saved.version if saved else None})")
    return saved if saved is not None else page


def delete_markdown_page(session: Session, identifier: str) -> bool:
    """Delete a page by ID or slug."""
    stmt = delete(_table).where(or_(_table.c.id == identifier, _table.c.slug == identifier))
    return session.execute(stmt).rowcount > 0
