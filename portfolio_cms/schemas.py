"""
Pydantic domain models for content items, child rows, media and markdown pages.

Field names are snake_case; camelCase aliases are accepted so payloads coming
from the admin UI (``parentId``, ``publishedAt``, ...) validate unchanged.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Visibility = Literal["public", "unlisted", "private", "draft"]
ContentStatus = Literal["draft", "published", "archived"]


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CmsModel(BaseModel):
    """Base model with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ========================================
# Content children
# ========================================


class Permissions(CmsModel):
    """Access control lists for a content item."""

    readers: Optional[list[str]] = None
    editors: Optional[list[str]] = None
    owner: Optional[str] = None


class ContentLink(CmsModel):
    """Outbound link displayed with a content item."""

    href: str
    label: Optional[str] = None
    rel: Optional[str] = None
    description: Optional[str] = None
    primary: bool = False


class ContentRelation(CmsModel):
    """Typed edge to another content item."""

    target_id: str
    type: str
    bidirectional: bool = False
    weight: float = 1.0
    meta: Optional[dict[str, Any]] = None


class ContentAsset(CmsModel):
    """Asset reference (image, gif, video, ...) attached to a content item."""

    src: str
    type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    alt: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class Content(CmsModel):
    """
    One content item.

    ``tags``, ``links``, ``relations`` and ``assets`` are child sets: ``None``
    leaves the stored rows untouched on save, an empty list clears them.
    """

    id: str = Field(..., min_length=1)
    title: str
    public_url: Optional[str] = None
    summary: Optional[str] = None
    lang: str = "ja"

    parent_id: Optional[str] = None
    ancestor_ids: Optional[list[str]] = None
    path: Optional[str] = None
    depth: int = 0
    order: int = 0
    child_count: int = 0

    visibility: Visibility = "draft"
    status: ContentStatus = "draft"
    published_at: Optional[str] = None
    unpublished_at: Optional[str] = None

    search_full_text: Optional[str] = None
    search_tokens: Optional[list[str]] = None

    version: int = 1
    version_latest_id: Optional[str] = None
    version_previous_id: Optional[str] = None
    version_history_ref: Optional[str] = None

    permissions: Optional[Permissions] = None
    thumbnails: Optional[dict[str, Any]] = None
    searchable: Optional[dict[str, Any]] = None
    i18n: Optional[dict[str, Any]] = None
    seo: Optional[dict[str, Any]] = None
    cache: Optional[dict[str, Any]] = None
    private_data: Optional[dict[str, Any]] = None
    ext: Optional[dict[str, Any]] = None

    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    last_accessed_at: Optional[str] = None

    tags: Optional[list[str]] = None
    links: Optional[list[ContentLink]] = None
    relations: Optional[list[ContentRelation]] = None
    assets: Optional[list[ContentAsset]] = None


# ========================================
# Media
# ========================================


class MediaItem(CmsModel):
    """Binary media file owned by exactly one content item."""

    id: str = Field(..., min_length=1)
    content_id: Optional[str] = None
    filename: str
    mime_type: str
    size: int = Field(..., ge=0)
    width: Optional[int] = None
    height: Optional[int] = None
    alt: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    data: Optional[bytes] = None
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)


class MediaStats(CmsModel):
    """Aggregate media figures for one content item."""

    total_count: int = 0
    total_size: int = 0
    by_mime_type: dict[str, int] = Field(default_factory=dict)


# ========================================
# Markdown pages
# ========================================


class MarkdownPage(CmsModel):
    """Markdown page: frontmatter, raw body and an optional HTML cache."""

    id: str = Field(..., min_length=1)
    content_id: Optional[str] = None
    slug: str = Field(..., min_length=1)
    frontmatter: dict[str, Any] = Field(default_factory=dict)
    body: str = ""
    html_cache: Optional[str] = None
    path: Optional[str] = None
    lang: str = "ja"
    status: ContentStatus = "draft"
    version: int = 1
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    published_at: Optional[str] = None


# ========================================
# Shared index
# ========================================


class ContentIndexEntry(CmsModel):
    """Listing entry for a content item in the shared index database."""

    id: str
    db_file: str
    title: str
    summary: Optional[str] = None
    lang: str = "ja"
    status: str = "draft"
    visibility: str = "draft"
    created_at: str
    updated_at: str
    published_at: Optional[str] = None
    tags: Optional[list[str]] = None
    thumbnails: Optional[dict[str, Any]] = None
    seo: Optional[dict[str, Any]] = None


class TagCatalogEntry(CmsModel):
    """Known tag with usage metadata."""

    name: str
    created_at: str
    last_used: Optional[str] = None
    metadata: Optional[Any] = None


class ManualDateEntry(CmsModel):
    """Display date override for a content item."""

    content_id: str
    date: str
    updated_at: str


class ContentDbFileStats(CmsModel):
    """Size of one per-content database file."""

    id: str
    title: Optional[str] = None
    db_file: str
    size: int = 0


class ContentDbStats(CmsModel):
    """Totals across all per-content database files."""

    total_contents: int = 0
    total_db_files: int = 0
    total_size: int = 0
    contents: list[ContentDbFileStats] = Field(default_factory=list)
