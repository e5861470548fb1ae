"""Split a legacy shared ``content.db`` into one database per content item."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.pool import NullPool

from portfolio_cms.schemas import (
    Content,
    ContentAsset,
    ContentLink,
    ContentRelation,
    MediaItem,
    now_iso,
)
from portfolio_cms.storage.codec import CONTENT_COLUMNS, decode_content, dumps, loads
from portfolio_cms.storage.content_db_manager import ContentDbManager
from portfolio_cms.storage.content_mapper import save_full_content
from portfolio_cms.storage.index_db import IndexDatabase, build_index_entry

logger = logging.getLogger(__name__)

# Values for NOT NULL columns a legacy row may leave empty
LEGACY_DEFAULTS = {
    "lang": "ja",
    "depth": 0,
    "order": 0,
    "child_count": 0,
    "visibility": "draft",
    "status": "draft",
    "version": 1,
}

LEGACY_PERMISSION_COLUMNS = ("permissions_readers", "permissions_editors", "permissions_owner")

# Columns that scope a legacy child row to its content item, in lookup order
LEGACY_OWNER_COLUMNS = ("content_id", "source_id")


@dataclass
class MigrationReport:
    """Outcome of a legacy migration run."""

    migrated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.migrated) + len(self.skipped) + len(self.failed)


def migrate_legacy_content_db(
    legacy_path: str | Path,
    manager: ContentDbManager,
    index: Optional[IndexDatabase] = None,
    overwrite: bool = False,
) -> MigrationReport:
    """
    Copy every content item of a legacy shared database into its own file.

    Each item is written with its tags, links, relations, assets and media
    through ``save_full_content``. A failing item is recorded in the report
    and the run continues.

    Args:
        legacy_path: Path of the legacy ``content.db``
        manager: Manager of the target per-content databases
        index: Optional index database to refresh for every migrated item
        overwrite: Re-save items whose per-content database already exists

    Returns:
        Report of migrated, skipped and failed content IDs

    Raises:
        FileNotFoundError: If the legacy database does not exist
    """
    legacy_path = Path(legacy_path)
    if not legacy_path.exists():
        raise FileNotFoundError(f"Legacy content database not found: {legacy_path}")

    report = MigrationReport()
    engine = create_engine(f"sqlite:///{legacy_path}", poolclass=NullPool)
    try:
        inspector = inspect(engine)
        tables = {
            name: {column["name"] for column in inspector.get_columns(name)}
            for name in inspector.get_table_names()
        }
        if "contents" not in tables:
            logger.warning(f"No contents table in {legacy_path}; nothing to migrate")
            return report

        with engine.connect() as conn:
            rows = conn.execute(text("SELECT * FROM contents ORDER BY rowid")).mappings().all()
            logger.info(f"Migrating {len(rows)} content items from {legacy_path}")

            for legacy_row in rows:
                content_id = legacy_row["id"]
                if manager.content_db_exists(content_id) and not overwrite:
                    report.skipped.append(content_id)
                    continue
                try:
                    content = _read_content(conn, tables, legacy_row)
                    media = _read_media(conn, tables, content_id)
                    with manager.open_session(content_id) as session:
                        save_full_content(session, content, media=media)
                    if index is not None:
                        db_file = manager.get_content_db_path(content_id).name
                        with index.repository() as repo:
                            repo.upsert_entry(build_index_entry(content, db_file))
                    report.migrated.append(content_id)
                except Exception as e:
                    logger.error(f"Failed to migrate content {content_id!r}: {e}")
                    report.failed[content_id] = str(e)
    finally:
        engine.dispose()

    logger.info(
        f"Legacy migration finished: {len(report.migrated)} migrated, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    return report


def _normalize_row(legacy_row: Mapping[str, Any]) -> dict[str, Any]:
    content_id = legacy_row["id"]
    row = {column: legacy_row.get(column) for column in CONTENT_COLUMNS}
    for column, default in LEGACY_DEFAULTS.items():
        if row[column] is None:
            row[column] = default
    row["title"] = row["title"] or content_id
    now = now_iso()
    row["created_at"] = row["created_at"] or now
    row["updated_at"] = row["updated_at"] or row["created_at"]

    if row["permissions"] is None and any(
        legacy_row.get(column) is not None for column in LEGACY_PERMISSION_COLUMNS
    ):
        readers = loads(
            legacy_row.get("permissions_readers"), owner=content_id, column="permissions_readers"
        )
        editors = loads(
            legacy_row.get("permissions_editors"), owner=content_id, column="permissions_editors"
        )
        row["permissions"] = dumps(
            {"readers": readers, "editors": editors, "owner": legacy_row.get("permissions_owner")}
        )
    return row


def _child_rows(
    conn: Connection, tables: dict[str, set[str]], table: str, content_id: str
) -> list:
    columns = tables.get(table)
    if not columns:
        return []
    owner = next((name for name in LEGACY_OWNER_COLUMNS if name in columns), None)
    if owner is None:
        logger.warning(f"Skipping legacy table {table!r}: no content_id or source_id column")
        return []
    stmt = text(f"SELECT * FROM {table} WHERE {owner} = :content_id ORDER BY rowid")
    return conn.execute(stmt, {"content_id": content_id}).mappings().all()


def _read_content(
    conn: Connection, tables: dict[str, set[str]], legacy_row: Mapping[str, Any]
) -> Content:
    content_id = legacy_row["id"]

    tags = [row["tag"] for row in _child_rows(conn, tables, "content_tags", content_id)]

    link_rows = sorted(
        _child_rows(conn, tables, "content_links", content_id),
        key=lambda row: row.get("order") or 0,
    )
    links = [
        ContentLink(
            href=row["href"],
            label=row.get("label"),
            rel=row.get("rel"),
            description=row.get("description"),
            primary=bool(row.get("is_primary")),
        )
        for row in link_rows
    ]

    relations = [
        ContentRelation(
            target_id=row["target_id"],
            type=row["type"],
            bidirectional=bool(row.get("bidirectional")),
            weight=row.get("weight") if row.get("weight") is not None else 1.0,
            meta=_object(loads(row.get("meta"), owner=content_id, column="content_relations.meta")),
        )
        for row in _child_rows(conn, tables, "content_relations", content_id)
    ]

    asset_rows = sorted(
        _child_rows(conn, tables, "content_assets", content_id),
        key=lambda row: row.get("order") or 0,
    )
    assets = [
        ContentAsset(
            src=row["src"],
            type=row.get("type"),
            width=row.get("width"),
            height=row.get("height"),
            alt=row.get("alt"),
            meta=_object(loads(row.get("meta"), owner=content_id, column="content_assets.meta")),
        )
        for row in asset_rows
    ]

    return decode_content(
        _normalize_row(legacy_row),
        tags=tags,
        links=links,
        relations=relations,
        assets=assets,
    )


def _read_media(
    conn: Connection, tables: dict[str, set[str]], content_id: str
) -> Optional[list[MediaItem]]:
    if "media" not in tables:
        return None
    items = []
    for row in _child_rows(conn, tables, "media", content_id):
        if row.get("data") is None:
            logger.warning(f"Skipping media {row['id']!r} of {content_id!r}: no data")
            continue
        tags = loads(row.get("tags"), owner=row["id"], column="media.tags")
        now = now_iso()
        items.append(
            MediaItem(
                id=row["id"],
                content_id=content_id,
                filename=row.get("filename") or row["id"],
                mime_type=row.get("mime_type") or "application/octet-stream",
                size=row.get("size") if row.get("size") is not None else len(row["data"]),
                width=row.get("width"),
                height=row.get("height"),
                alt=row.get("alt"),
                description=row.get("description"),
                tags=tags if isinstance(tags, list) else None,
                data=row["data"],
                created_at=row.get("created_at") or now,
                updated_at=row.get("updated_at") or now,
            )
        )
    return items


def _object(value: Any) -> Optional[dict[str, Any]]:
    return value if isinstance(value, dict) else None
