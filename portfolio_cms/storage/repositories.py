"""Repository pattern implementation for the per-content database tables."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import delete, func, insert, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Session, defer

from portfolio_cms.models.content import (
    CONTENTS_FTS,
    ContentAssetRecord,
    ContentLinkRecord,
    ContentRecord,
    ContentRelationRecord,
    ContentTagRecord,
)
from portfolio_cms.models.media import MediaRecord
from portfolio_cms.schemas import (
    ContentAsset,
    ContentLink,
    ContentRelation,
    MediaItem,
    MediaStats,
)
from portfolio_cms.storage.codec import dumps, loads


class ContentRepository:
    """Repository for the ``contents`` row of a content item."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session
        self.table = ContentRecord.__table__

    def get_row(self, content_id: str) -> Optional[RowMapping]:
        """Get the raw row for a content ID."""
        stmt = select(self.table).where(self.table.c.id == content_id)
        return self.session.execute(stmt).mappings().first()

    def exists(self, content_id: str) -> bool:
        """Check whether a row exists for a content ID."""
        stmt = select(self.table.c.id).where(self.table.c.id == content_id)
        return self.session.execute(stmt).first() is not None

    def list_ids(self) -> list[str]:
        """Get all content IDs stored in this database."""
        stmt = select(self.table.c.id).order_by(self.table.c.created_at.desc())
        return list(self.session.scalars(stmt))

    def full_text_search(self, query: str, limit: int = 100) -> list[str]:
        """
        Full-text search on title, summary and ``search_full_text``.

        The query is matched as a single phrase.

        Returns:
            Matching content IDs, best match first
        """
        stmt = text(
            f"SELECT id FROM {CONTENTS_FTS} WHERE {CONTENTS_FTS} MATCH :query "
            "ORDER BY rank LIMIT :limit"
        )
        return list(self.session.scalars(stmt, {"query": fts_phrase(query), "limit": limit}))

    def upsert(self, row: dict[str, Any]) -> None:
        """
        Insert a row, or update every non-key column of the existing row.

        Uses ``INSERT ... ON CONFLICT(id) DO UPDATE`` so the row is never
        momentarily absent; a replace-style statement would delete it first
        and cascade to every child table.
        """
        stmt = sqlite_insert(self.table).values(row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.id],
            set_={name: stmt.excluded[name] for name in row if name != "id"},
        )
        self.session.execute(stmt)

    def insert_if_absent(self, row: dict[str, Any]) -> bool:
        """Insert a row unless one already exists. Returns True if inserted."""
        stmt = sqlite_insert(self.table).values(row).on_conflict_do_nothing(
            index_elements=[self.table.c.id]
        )
        return self.session.execute(stmt).rowcount > 0

    def delete(self, content_id: str) -> bool:
        """Delete a content row by ID (cascades to all child tables)."""
        stmt = delete(self.table).where(self.table.c.id == content_id)
        return self.session.execute(stmt).rowcount > 0


class _ChildRepository:
    """Shared operations for tables scoped by ``content_id``."""

    model: Any = None

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def count(self, content_id: str) -> int:
        """Count rows owned by a content item."""
        stmt = select(func.count()).select_from(self.model).where(
            self.model.content_id == content_id
        )
        return self.session.scalar(stmt) or 0

    def delete_by_content(self, content_id: str) -> int:
        """Delete every row owned by a content item. Returns the number removed."""
        stmt = delete(self.model).where(self.model.content_id == content_id)
        return self.session.execute(stmt).rowcount

    def _replace(self, content_id: str, rows: list[dict[str, Any]]) -> None:
        self.delete_by_content(content_id)
        if rows:
            self.session.execute(insert(self.model), rows)


class TagRepository(_ChildRepository):
    """Repository for ``content_tags``."""

    model = ContentTagRecord

    def list_by_content(self, content_id: str) -> list[str]:
        """Get the tags of a content item."""
        stmt = (
            select(ContentTagRecord.tag)
            .where(ContentTagRecord.content_id == content_id)
            .order_by(ContentTagRecord.tag)
        )
        return list(self.session.scalars(stmt))

    def replace(self, content_id: str, tags: Iterable[str]) -> None:
        """Replace the tag set; repeated tags collapse to one row."""
        unique_tags = dict.fromkeys(tags)
        self._replace(
            content_id, [{"content_id": content_id, "tag": tag} for tag in unique_tags]
        )


class LinkRepository(_ChildRepository):
    """Repository for ``content_links``; rows keep the order supplied."""

    model = ContentLinkRecord

    def list_by_content(self, content_id: str) -> list[ContentLink]:
        """Get the links of a content item in display order."""
        stmt = (
            select(ContentLinkRecord)
            .where(ContentLinkRecord.content_id == content_id)
            .order_by(ContentLinkRecord.order, ContentLinkRecord.id)
        )
        return [
            ContentLink(
                href=record.href,
                label=record.label,
                rel=record.rel,
                description=record.description,
                primary=bool(record.is_primary),
            )
            for record in self.session.scalars(stmt)
        ]

    def replace(self, content_id: str, links: Sequence[ContentLink]) -> None:
        """Replace the link list."""
        self._replace(
            content_id,
            [
                {
                    "content_id": content_id,
                    "href": link.href,
                    "label": link.label,
                    "rel": link.rel,
                    "is_primary": 1 if link.primary else 0,
                    "description": link.description,
                    "order": position,
                }
                for position, link in enumerate(links)
            ],
        )


class RelationRepository(_ChildRepository):
    """Repository for ``content_relations``."""

    model = ContentRelationRecord

    def list_by_content(self, content_id: str) -> list[ContentRelation]:
        """Get the relations of a content item."""
        stmt = (
            select(ContentRelationRecord)
            .where(ContentRelationRecord.content_id == content_id)
            .order_by(ContentRelationRecord.id)
        )
        return [
            ContentRelation(
                target_id=record.target_id,
                type=record.type,
                bidirectional=bool(record.bidirectional),
                weight=record.weight,
                meta=_json_object(
                    loads(record.meta, owner=content_id, column="content_relations.meta")
                ),
            )
            for record in self.session.scalars(stmt)
        ]

    def replace(self, content_id: str, relations: Sequence[ContentRelation]) -> None:
        """Replace the relation set."""
        self._replace(
            content_id,
            [
                {
                    "content_id": content_id,
                    "target_id": relation.target_id,
                    "type": relation.type,
                    "bidirectional": 1 if relation.bidirectional else 0,
                    "weight": relation.weight,
                    "meta": dumps(relation.meta),
                }
                for relation in relations
            ],
        )


class AssetRepository(_ChildRepository):
    """Repository for ``content_assets``; rows keep the order supplied."""

    model = ContentAssetRecord

    def list_by_content(self, content_id: str) -> list[ContentAsset]:
        """Get the assets of a content item in display order."""
        stmt = (
            select(ContentAssetRecord)
            .where(ContentAssetRecord.content_id == content_id)
            .order_by(ContentAssetRecord.order, ContentAssetRecord.id)
        )
        return [
            ContentAsset(
                src=record.src,
                type=record.type,
                width=record.width,
                height=record.height,
                alt=record.alt,
                meta=_json_object(
                    loads(record.meta, owner=content_id, column="content_assets.meta")
                ),
            )
            for record in self.session.scalars(stmt)
        ]

    def replace(self, content_id: str, assets: Sequence[ContentAsset]) -> None:
        """Replace the asset list."""
        self._replace(
            content_id,
            [
                {
                    "content_id": content_id,
                    "src": asset.src,
                    "type": asset.type,
                    "width": asset.width,
                    "height": asset.height,
                    "alt": asset.alt,
                    "meta": dumps(asset.meta),
                    "order": position,
                }
                for position, asset in enumerate(assets)
            ],
        )


class MediaRepository(_ChildRepository):
    """Repository for ``media`` rows (binary data stored inline)."""

    model = MediaRecord

    def get_by_id(self, media_id: str) -> Optional[MediaItem]:
        """Get a media item with its data."""
        stmt = (
            select(MediaRecord)
            .where(MediaRecord.id == media_id)
            .execution_options(populate_existing=True)
        )
        record = self.session.scalars(stmt).first()
        if record is None:
            return None
        return self._to_item(record, include_data=True)

    def list_by_content(self, content_id: str, include_data: bool = False) -> list[MediaItem]:
        """Get the media of a content item, newest first."""
        stmt = (
            select(MediaRecord)
            .where(MediaRecord.content_id == content_id)
            .order_by(MediaRecord.created_at.desc(), MediaRecord.id)
            .execution_options(populate_existing=True)
        )
        if not include_data:
            stmt = stmt.options(defer(MediaRecord.data))
        return [
            self._to_item(record, include_data=include_data)
            for record in self.session.scalars(stmt)
        ]

    def upsert(self, content_id: str, item: MediaItem) -> None:
        """Insert a media row or update it in place, keeping ``created_at``."""
        table = MediaRecord.__table__
        row = self._to_row(content_id, item)
        stmt = sqlite_insert(table).values(row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={
                name: stmt.excluded[name]
                for name in row
                if name not in ("id", "created_at")
            },
        )
        self.session.execute(stmt)

    def replace(self, content_id: str, media: Sequence[MediaItem]) -> None:
        """Replace the media set."""
        self._replace(content_id, [self._to_row(content_id, item) for item in media])

    def delete(self, media_id: str) -> bool:
        """Delete a media row by ID."""
        stmt = delete(MediaRecord).where(MediaRecord.id == media_id)
        return self.session.execute(stmt).rowcount > 0

    def stats(self, content_id: str) -> MediaStats:
        """Count, total size and per-MIME-type counts of a content item's media."""
        scope = MediaRecord.content_id == content_id
        total_count, total_size = self.session.execute(
            select(func.count(MediaRecord.id), func.coalesce(func.sum(MediaRecord.size), 0))
            .where(scope)
        ).one()
        by_type = self.session.execute(
            select(MediaRecord.mime_type, func.count(MediaRecord.id))
            .where(scope)
            .group_by(MediaRecord.mime_type)
        ).all()
        return MediaStats(
            total_count=total_count,
            total_size=total_size,
            by_mime_type={mime_type: count for mime_type, count in by_type},
        )

    @staticmethod
    def _to_row(content_id: str, item: MediaItem) -> dict[str, Any]:
        if item.data is None:
            raise ValueError(f"Media {item.id!r} has no data")
        return {
            "id": item.id,
            "content_id": content_id,
            "filename": item.filename,
            "mime_type": item.mime_type,
            "size": item.size,
            "width": item.width,
            "height": item.height,
            "alt": item.alt,
            "description": item.description,
            "tags": dumps(item.tags),
            "data": item.data,
            "created_at": item.created_at,
            "updated_at": item.updated_at,
        }

    @staticmethod
    def _to_item(record: MediaRecord, include_data: bool) -> MediaItem:
        return MediaItem(
            id=record.id,
            content_id=record.content_id,
            filename=record.filename,
            mime_type=record.mime_type,
            size=record.size,
            width=record.width,
            height=record.height,
            alt=record.alt,
            description=record.description,
            tags=_string_list(loads(record.tags, owner=record.id, column="media.tags")),
            data=record.data if include_data else None,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


def fts_phrase(query: str) -> str:
    """Quote user input as one FTS5 phrase so operators in it are not parsed."""
    return '"' + query.replace('"', '""') + '"'

def _json_object(value: Any) -> Optional[dict[str, Any]]:
    return value if isinstance(value, dict) else None


def _string_list(value: Any) -> Optional[list[str]]:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return value
    return None
