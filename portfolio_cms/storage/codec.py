"""Two-way mapping between ``Content`` and the flat ``contents`` row."""

import json
import logging
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from portfolio_cms.schemas import (
    Content,
    ContentAsset,
    ContentLink,
    ContentRelation,
    Permissions,
)

logger = logging.getLogger(__name__)

# Columns holding JSON text
JSON_COLUMNS = (
    "ancestor_ids",
    "search_tokens",
    "permissions",
    "thumbnails",
    "searchable",
    "i18n",
    "seo",
    "cache",
    "private_data",
    "ext",
)

PLAIN_COLUMNS = (
    "id",
    "title",
    "public_url",
    "summary",
    "lang",
    "parent_id",
    "path",
    "depth",
    "order",
    "child_count",
    "visibility",
    "status",
    "published_at",
    "unpublished_at",
    "search_full_text",
    "version",
    "version_latest_id",
    "version_previous_id",
    "version_history_ref",
    "created_at",
    "updated_at",
    "last_accessed_at",
)

CONTENT_COLUMNS = PLAIN_COLUMNS + JSON_COLUMNS


def dumps(value: Any) -> Optional[str]:
    """Encode a value as compact JSON text; None stays None (SQL NULL)."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def loads(text: Optional[str | bytes], *, owner: str = "?", column: str = "?") -> Any:
    """
    Decode JSON text from a column.

    Malformed text is logged and decoded as None so that one corrupt column
    cannot fail a whole read.
    """
    if text is None:
        return None
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to decode JSON column {column!r} of {owner!r}: {e}")
        return None


def encode_content(content: Content) -> dict[str, Any]:
    """
    Encode a content item into a ``contents`` row.

    Child sets (tags, links, relations, assets) are not part of the row.

    Returns:
        Mapping of column name to value for every column of ``contents``
    """
    row: dict[str, Any] = {column: getattr(content, column) for column in PLAIN_COLUMNS}

    permissions = (
        content.permissions.model_dump(mode="json") if content.permissions is not None else None
    )
    row.update(
        ancestor_ids=dumps(content.ancestor_ids),
        search_tokens=dumps(content.search_tokens),
        permissions=dumps(permissions),
        thumbnails=dumps(content.thumbnails),
        searchable=dumps(content.searchable),
        i18n=dumps(content.i18n),
        seo=dumps(content.seo),
        cache=dumps(content.cache),
        private_data=dumps(content.private_data),
        ext=dumps(content.ext),
    )
    return row


def decode_content(
    row: Mapping[str, Any],
    *,
    tags: Optional[Sequence[str]] = None,
    links: Optional[Sequence[ContentLink]] = None,
    relations: Optional[Sequence[ContentRelation]] = None,
    assets: Optional[Sequence[ContentAsset]] = None,
) -> Content:
    """
    Decode a ``contents`` row into a content item.

    Args:
        row: Column name to value mapping (e.g. ``Result.mappings()`` row)
        tags, links, relations, assets: Optional child sets to attach

    Returns:
        Decoded content; JSON columns that fail to decode are None
    """
    content_id = row["id"]
    data: dict[str, Any] = {column: row[column] for column in PLAIN_COLUMNS}
    for column in JSON_COLUMNS:
        data[column] = loads(row[column], owner=content_id, column=column)

    data["ancestor_ids"] = _expect(data["ancestor_ids"], list, content_id, "ancestor_ids")
    data["search_tokens"] = _expect(data["search_tokens"], list, content_id, "search_tokens")
    for column in ("thumbnails", "searchable", "i18n", "seo", "cache", "private_data", "ext"):
        data[column] = _expect(data[column], dict, content_id, column)
    data["permissions"] = _decode_permissions(data["permissions"], content_id)

    data["tags"] = list(tags) if tags is not None else None
    data["links"] = list(links) if links is not None else None
    data["relations"] = list(relations) if relations is not None else None
    data["assets"] = list(assets) if assets is not None else None

    return Content.model_validate(data)


def _expect(value: Any, kind: type, owner: str, column: str) -> Any:
    """Drop decoded JSON whose top-level shape does not match the column."""
    if value is None:
        return None
    if isinstance(value, kind) and not (
        kind is list and not all(isinstance(item, str) for item in value)
    ):
        return value
    logger.warning(
        f"Ignoring JSON column {column!r} of {owner!r}: expected {kind.__name__}, "
        f"got {type(value).__name__}"
    )
    return None


def _decode_permissions(value: Any, owner: str) -> Optional[Permissions]:
    if not isinstance(value, dict):
        if value is not None:
            logger.warning(f"Ignoring permissions of {owner!r}: not an object")
        return None
    try:
        return Permissions.model_validate(value)
    except PydanticValidationError as e:
        logger.warning(f"Ignoring permissions of {owner!r}: {e}")
        return None
