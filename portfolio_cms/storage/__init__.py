"""Storage layer: database handles, row codec, mappers and repositories."""

from portfolio_cms.storage.content_db_manager import (
    ContentDatabase,
    ContentDbManager,
    sanitize_content_id,
)
from portfolio_cms.storage.content_mapper import (
    delete_content,
    ensure_content_row,
    get_content_row,
    get_full_content,
    replace_assets,
    replace_links,
    replace_media,
    replace_relations,
    replace_tags,
    save_full_content,
    upsert_content,
)
from portfolio_cms.storage.database import Database
from portfolio_cms.storage.index_db import IndexDatabase, IndexRepository

__all__ = [
    "Database",
    "ContentDatabase",
    "ContentDbManager",
    "IndexDatabase",
    "IndexRepository",
    "sanitize_content_id",
    "upsert_content",
    "replace_tags",
    "replace_links",
    "replace_relations",
    "replace_assets",
    "replace_media",
    "save_full_content",
    "get_content_row",
    "get_full_content",
    "delete_content",
    "ensure_content_row",
]
