"""Save and load a content item together with its child rows."""

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from portfolio_cms.config import get_settings
from portfolio_cms.schemas import (
    Content,
    ContentAsset,
    ContentLink,
    ContentRelation,
    MediaItem,
    now_iso,
)
from portfolio_cms.storage.codec import decode_content, encode_content
from portfolio_cms.storage.repositories import (
    AssetRepository,
    ContentRepository,
    LinkRepository,
    MediaRepository,
    RelationRepository,
    TagRepository,
)

logger = logging.getLogger(__name__)

# Fields a placeholder content row may take from an index entry or fallback
PLACEHOLDER_FIELDS = (
    "title",
    "summary",
    "lang",
    "visibility",
    "status",
    "published_at",
    "created_at",
    "updated_at",
)


def upsert_content(session: Session, row: dict[str, Any]) -> None:
    """Write the ``contents`` row in place (insert, or update on id conflict)."""
    ContentRepository(session).upsert(row)


def replace_tags(session: Session, content_id: str, tags: Iterable[str]) -> None:
    """Make the stored tag set of a content item equal to ``tags``."""
    TagRepository(session).replace(content_id, tags)


def replace_links(session: Session, content_id: str, links: Sequence[ContentLink]) -> None:
    """Make the stored link list of a content item equal to ``links``, in order."""
    LinkRepository(session).replace(content_id, links)


def replace_relations(
    session: Session, content_id: str, relations: Sequence[ContentRelation]
) -> None:
    """Make the stored relation set of a content item equal to ``relations``."""
    RelationRepository(session).replace(content_id, relations)


def replace_assets(session: Session, content_id: str, assets: Sequence[ContentAsset]) -> None:
    """Make the stored asset list of a content item equal to ``assets``, in order."""
    AssetRepository(session).replace(content_id, assets)


def replace_media(session: Session, content_id: str, media: Sequence[MediaItem]) -> None:
    """Make the stored media set of a content item equal to ``media``."""
    MediaRepository(session).replace(content_id, media)


def save_full_content(
    session: Session,
    content: Content,
    media: Optional[Sequence[MediaItem]] = None,
) -> None:
    """
    Save a content item and its child sets in the session's transaction.

    The ``contents`` row is upserted in place, then every child set that is
    not None (``content.tags``, ``content.links``, ``content.relations``,
    ``content.assets`` and ``media``) replaces the stored rows. Child sets
    left as None are not touched.

    On any failure the session is rolled back and the driver error is
    re-raised unchanged, so no part of the save becomes visible.

    Args:
        session: Session bound to the content's database
        content: Content item to save
        media: Optional replacement media set

    Raises:
        sqlalchemy.exc.SQLAlchemyError: If any statement fails
    """
    row = encode_content(content)
    logger.debug(
        f"Saving content {content.id!r} (updated_at={row['updated_at']!r}, "
        f"published_at={row['published_at']!r})"
    )

    try:
        upsert_content(session, row)
        if content.tags is not None:
            replace_tags(session, content.id, content.tags)
        if content.links is not None:
            replace_links(session, content.id, content.links)
        if content.relations is not None:
            replace_relations(session, content.id, content.relations)
        if content.assets is not None:
            replace_assets(session, content.id, content.assets)
        if media is not None:
            replace_media(session, content.id, media)
        session.flush()
    except Exception:
        logger.error(f"Failed to save content {content.id!r}; rolling back")
        session.rollback()
        raise


def get_content_row(session: Session, content_id: str) -> Optional[Content]:
    """Get a content item without its child sets, or None if absent."""
    row = ContentRepository(session).get_row(content_id)
    if row is None:
        return None
    return decode_content(row)


def get_full_content(session: Session, content_id: str) -> Optional[Content]:
    """Get a content item with tags, links, relations and assets, or None if absent."""
    row = ContentRepository(session).get_row(content_id)
    if row is None:
        return None

    content = decode_content(
        row,
        tags=TagRepository(session).list_by_content(content_id),
        links=LinkRepository(session).list_by_content(content_id),
        relations=RelationRepository(session).list_by_content(content_id),
        assets=AssetRepository(session).list_by_content(content_id),
    )
    logger.debug(f"Loaded content {content.id!r} (published_at={content.published_at!r})")
    return content


def delete_content(session: Session, content_id: str) -> bool:
    """
    Delete a content item.

    This is the only operation that removes a ``contents`` row, and with it
    (by cascade) its media, tags, links, relations and assets.

    Returns:
        True if a row was deleted, False if none existed
    """
    return ContentRepository(session).delete(content_id)


def ensure_content_row(
    session: Session,
    content_id: str,
    fallback: Optional[Mapping[str, Any]] = None,
) -> bool:
    """
    Insert a placeholder ``contents`` row if the content item has none.

    Args:
        session: Session bound to the content's database
        content_id: Content ID
        fallback: Optional values for the placeholder (title, summary, lang,
                  visibility, status, published_at, created_at, updated_at)

    Returns:
        True if a placeholder row was inserted
    """
    values = {
        field: fallback[field]
        for field in PLACEHOLDER_FIELDS
        if fallback and fallback.get(field) is not None
    }
    now = now_iso()
    values.setdefault("title", content_id)
    values.setdefault("lang", get_settings().default_lang)
    values.setdefault("created_at", now)
    values.setdefault("updated_at", now)

    placeholder = Content(id=content_id, **values)
    created = ContentRepository(session).insert_if_absent(encode_content(placeholder))
    if created:
        logger.info(f"Created placeholder content row for {content_id!r}")
    return created
