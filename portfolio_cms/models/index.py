"""Tables of the shared index database (content listing, tag catalog, manual dates)."""

from typing import Optional

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_cms.models.base import IndexBase, TimestampMixin


class ContentIndexRecord(IndexBase, TimestampMixin):
    """Listing entry pointing at a per-content database file."""

    __tablename__ = "content_index"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    db_file: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    lang: Mapped[str] = mapped_column(Text, nullable=False, default="ja")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft", index=True)
    visibility: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    published_at: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[Optional[str]] = mapped_column(Text)
    thumbnails: Mapped[Optional[str]] = mapped_column(Text)
    seo: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<ContentIndexRecord(id={self.id!r}, db_file={self.db_file!r})>"


class TagCatalogRecord(IndexBase):
    """Known tag with usage metadata."""

    __tablename__ = "tag_catalog"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    last_used: Mapped[Optional[str]] = mapped_column(Text)
    meta: Mapped[Optional[str]] = mapped_column("metadata", Text)


class ManualDateRecord(IndexBase):
    """Display date override for a content item."""

    __tablename__ = "manual_dates"

    content_id: Mapped[str] = mapped_column(Text, primary_key=True)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[str] = mapped_column(Text, nullable=False)
