"""Shared index database: content listing, tag catalog and manual date overrides."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from portfolio_cms.models.base import IndexBase
from portfolio_cms.models.index import ContentIndexRecord, ManualDateRecord, TagCatalogRecord
from portfolio_cms.schemas import (
    Content,
    ContentIndexEntry,
    ManualDateEntry,
    TagCatalogEntry,
    now_iso,
)
from portfolio_cms.storage.codec import dumps, loads
from portfolio_cms.storage.database import Database

logger = logging.getLogger(__name__)


class IndexDatabase(Database):
    """Handle on the shared ``index.db`` file; tables are created if missing."""

    def __init__(self, path: str | Path, journal_mode: str | None = None):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, IndexBase.metadata, journal_mode=journal_mode)
        self.create_tables()

    @contextmanager
    def repository(self) -> Generator["IndexRepository", None, None]:
        """Open a transactional session wrapped in an IndexRepository."""
        with self.session() as session:
            yield IndexRepository(session)


class IndexRepository:
    """Repository for the index tables."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    # ========== content_index ==========

    def get_entry(self, content_id: str) -> Optional[ContentIndexEntry]:
        """Get the index entry of a content ID."""
        table = ContentIndexRecord.__table__
        row = self.session.execute(
            select(table).where(table.c.id == content_id)
        ).mappings().first()
        return self._to_entry(row) if row is not None else None

    def list_entries(self, status: Optional[str] = None) -> list[ContentIndexEntry]:
        """List index entries, newest first, optionally filtered by status."""
        table = ContentIndexRecord.__table__
        stmt = select(table).order_by(table.c.created_at.desc())
        if status:
            stmt = stmt.where(table.c.status == status)
        return [self._to_entry(row) for row in self.session.execute(stmt).mappings()]

    def count_entries(self) -> int:
        """Count index entries."""
        return self.session.scalar(select(func.count(ContentIndexRecord.id))) or 0

    def upsert_entry(self, entry: ContentIndexEntry) -> None:
        """Insert or update the index entry of a content item."""
        table = ContentIndexRecord.__table__
        row = {
            "id": entry.id,
            "db_file": entry.db_file,
            "title": entry.title,
            "summary": entry.summary,
            "lang": entry.lang,
            "status": entry.status,
            "visibility": entry.visibility,
            "created_at": entry.created_at,
            "updated_at": entry.updated_at,
            "published_at": entry.published_at,
            "tags": dumps(entry.tags),
            "thumbnails": dumps(entry.thumbnails),
            "seo": dumps(entry.seo),
        }
        stmt = sqlite_insert(table).values(row)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={name: stmt.excluded[name] for name in row if name != "id"},
        )
        self.session.execute(stmt)
        logger.debug(f"Indexed content {entry.id!r} in {entry.db_file}")

    def remove_entry(self, content_id: str) -> bool:
        """Remove the index entry of a content ID."""
        stmt = delete(ContentIndexRecord).where(ContentIndexRecord.id == content_id)
        return self.session.execute(stmt).rowcount > 0

    # ========== tag_catalog ==========

    def list_tag_catalog(self) -> list[TagCatalogEntry]:
        """List catalog tags by name."""
        stmt = select(TagCatalogRecord).order_by(TagCatalogRecord.name)
        return [
            TagCatalogEntry(
                name=record.name,
                created_at=record.created_at,
                last_used=record.last_used,
                metadata=loads(record.meta, owner=record.name, column="tag_catalog.metadata"),
            )
            for record in self.session.scalars(stmt)
        ]

    def upsert_tag_catalog_entry(
        self,
        name: str,
        created_at: Optional[str] = None,
        last_used: Optional[str] = None,
        metadata: Any = None,
    ) -> None:
        """
        Add a tag to the catalog or refresh it.

        On an existing tag, ``last_used`` and ``metadata`` are only replaced
        when the new value is not None; ``created_at`` is never changed.
        """
        table = TagCatalogRecord.__table__
        meta_column = TagCatalogRecord.__mapper__.columns["meta"]
        stmt = sqlite_insert(table).values(
            {
                table.c.name: name,
                table.c.created_at: created_at or now_iso(),
                table.c.last_used: last_used,
                meta_column: dumps(metadata),
            }
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.name],
            set_={
                table.c.last_used: func.coalesce(stmt.excluded.last_used, table.c.last_used),
                meta_column: func.coalesce(stmt.excluded[meta_column.key], meta_column),
            },
        )
        self.session.execute(stmt)

    def remove_tag_catalog_entry(self, name: str) -> bool:
        """Remove a tag from the catalog."""
        stmt = delete(TagCatalogRecord).where(TagCatalogRecord.name == name)
        return self.session.execute(stmt).rowcount > 0

    # ========== manual_dates ==========

    def get_manual_date(self, content_id: str) -> Optional[ManualDateEntry]:
        """Get the manual date override of a content ID."""
        record = self.session.get(ManualDateRecord, content_id)
        if record is None:
            return None
        return ManualDateEntry(
            content_id=record.content_id, date=record.date, updated_at=record.updated_at
        )

    def list_manual_dates(self) -> list[ManualDateEntry]:
        """List manual date overrides, most recently updated first."""
        stmt = select(ManualDateRecord).order_by(ManualDateRecord.updated_at.desc())
        return [
            ManualDateEntry(
                content_id=record.content_id, date=record.date, updated_at=record.updated_at
            )
            for record in self.session.scalars(stmt)
        ]

    def upsert_manual_date(self, content_id: str, date: str) -> None:
        """Set the manual date override of a content ID."""
        table = ManualDateRecord.__table__
        stmt = sqlite_insert(table).values(
            content_id=content_id, date=date, updated_at=now_iso()
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.content_id],
            set_={"date": stmt.excluded.date, "updated_at": stmt.excluded.updated_at},
        )
        self.session.execute(stmt)
        # keep the identity map in step with the Core upsert
        self.session.expire_all()

    def remove_manual_date(self, content_id: str) -> bool:
        """Remove the manual date override of a content ID."""
        stmt = delete(ManualDateRecord).where(ManualDateRecord.content_id == content_id)
        return self.session.execute(stmt).rowcount > 0

    @staticmethod
    def _to_entry(row) -> ContentIndexEntry:
        owner = row["id"]
        tags = loads(row["tags"], owner=owner, column="content_index.tags")
        thumbnails = loads(row["thumbnails"], owner=owner, column="content_index.thumbnails")
        seo = loads(row["seo"], owner=owner, column="content_index.seo")
        return ContentIndexEntry(
            id=row["id"],
            db_file=row["db_file"],
            title=row["title"],
            summary=row["summary"],
            lang=row["lang"],
            status=row["status"],
            visibility=row["visibility"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            published_at=row["published_at"],
            tags=tags if isinstance(tags, list) else None,
            thumbnails=thumbnails if isinstance(thumbnails, dict) else None,
            seo=seo if isinstance(seo, dict) else None,
        )


def build_index_entry(content: Content, db_file: str) -> ContentIndexEntry:
    """Build the listing entry of a content item stored in ``db_file``."""
    return ContentIndexEntry(
        id=content.id,
        db_file=db_file,
        title=content.title,
        summary=content.summary,
        lang=content.lang,
        status=content.status,
        visibility=content.visibility,
        created_at=content.created_at,
        updated_at=content.updated_at,
        published_at=content.published_at,
        tags=content.tags,
        thumbnails=content.thumbnails,
        seo=content.seo,
    )
