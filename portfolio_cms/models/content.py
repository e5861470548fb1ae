"""Content model and the child tables owned by a content item."""

from typing import Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_cms.models.base import Base, TimestampMixin, attach_fts_index

VISIBILITY_VALUES = ("public", "unlisted", "private", "draft")
STATUS_VALUES = ("draft", "published", "archived")


class ContentRecord(Base, TimestampMixin):
    """One content item (portfolio entry, article, ...).

    Nested structures live in JSON-encoded text columns. Child tables
    reference ``id`` with ``ON DELETE CASCADE``, so this row must only be
    updated in place, never replaced.
    """

    __tablename__ = "contents"
    __table_args__ = (
        CheckConstraint(
            f"visibility IN {VISIBILITY_VALUES}", name="ck_contents_visibility"
        ),
        CheckConstraint(f"status IN {STATUS_VALUES}", name="ck_contents_status"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    public_url: Mapped[Optional[str]] = mapped_column(Text)
    summary: Mapped[Optional[str]] = mapped_column(Text)
    lang: Mapped[str] = mapped_column(Text, nullable=False, default="ja")

    # Hierarchical placement, maintained by the caller
    parent_id: Mapped[Optional[str]] = mapped_column(Text)
    ancestor_ids: Mapped[Optional[str]] = mapped_column(Text)
    path: Mapped[Optional[str]] = mapped_column(Text)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)
    child_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    visibility: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    published_at: Mapped[Optional[str]] = mapped_column(Text)
    unpublished_at: Mapped[Optional[str]] = mapped_column(Text)

    search_full_text: Mapped[Optional[str]] = mapped_column(Text)
    search_tokens: Mapped[Optional[str]] = mapped_column(Text)

    # Version chain pointers (stored, not interpreted)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    version_latest_id: Mapped[Optional[str]] = mapped_column(Text)
    version_previous_id: Mapped[Optional[str]] = mapped_column(Text)
    version_history_ref: Mapped[Optional[str]] = mapped_column(Text)

    # JSON columns
    permissions: Mapped[Optional[str]] = mapped_column(Text)
    thumbnails: Mapped[Optional[str]] = mapped_column(Text)
    searchable: Mapped[Optional[str]] = mapped_column(Text)
    i18n: Mapped[Optional[str]] = mapped_column(Text)
    seo: Mapped[Optional[str]] = mapped_column(Text)
    cache: Mapped[Optional[str]] = mapped_column(Text)
    private_data: Mapped[Optional[str]] = mapped_column(Text)
    ext: Mapped[Optional[str]] = mapped_column(Text)

    last_accessed_at: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    tags: Mapped[list["ContentTagRecord"]] = relationship(
        "ContentTagRecord", back_populates="content", passive_deletes=True
    )
    links: Mapped[list["ContentLinkRecord"]] = relationship(
        "ContentLinkRecord",
        back_populates="content",
        passive_deletes=True,
        order_by="ContentLinkRecord.order",
    )
    relations: Mapped[list["ContentRelationRecord"]] = relationship(
        "ContentRelationRecord", back_populates="content", passive_deletes=True
    )
    assets: Mapped[list["ContentAssetRecord"]] = relationship(
        "ContentAssetRecord",
        back_populates="content",
        passive_deletes=True,
        order_by="ContentAssetRecord.order",
    )
    media: Mapped[list["MediaRecord"]] = relationship(
        "MediaRecord", back_populates="content", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<ContentRecord(id={self.id!r}, title={self.title!r})>"


CONTENTS_FTS = attach_fts_index(
    ContentRecord.__table__,
    ["id", "title", "summary", "search_full_text"],
    unindexed=["id"],
)


class ContentTagRecord(Base):
    """Tag attached to a content item; unique per (content_id, tag)."""

    __tablename__ = "content_tags"

    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(Text, primary_key=True, index=True)

    content: Mapped["ContentRecord"] = relationship("ContentRecord", back_populates="tags")

    def __repr__(self) -> str:
        return f"<ContentTagRecord(content_id={self.content_id!r}, tag={self.tag!r})>"


class ContentLinkRecord(Base):
    """Outbound link; ``order`` keeps the position the caller supplied."""

    __tablename__ = "content_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    href: Mapped[str] = mapped_column(Text, nullable=False)
    label: Mapped[Optional[str]] = mapped_column(Text)
    rel: Mapped[Optional[str]] = mapped_column(Text)
    is_primary: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)

    content: Mapped["ContentRecord"] = relationship("ContentRecord", back_populates="links")

    def __repr__(self) -> str:
        return f"<ContentLinkRecord(content_id={self.content_id!r}, href={self.href!r})>"


class ContentRelationRecord(Base):
    """Typed edge from a content item to another content id.

    ``target_id`` has no foreign key: targets normally live in their own
    database file.
    """

    __tablename__ = "content_relations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    bidirectional: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    meta: Mapped[Optional[str]] = mapped_column(Text)

    content: Mapped["ContentRecord"] = relationship(
        "ContentRecord", back_populates="relations"
    )

    def __repr__(self) -> str:
        return (
            f"<ContentRelationRecord(content_id={self.content_id!r}, "
            f"target_id={self.target_id!r}, type={self.type!r})>"
        )


class ContentAssetRecord(Base):
    """Asset reference (image, video, ...) shown with a content item."""

    __tablename__ = "content_assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    src: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[Optional[str]] = mapped_column(Text)
    width: Mapped[Optional[int]] = mapped_column(Integer)
    height: Mapped[Optional[int]] = mapped_column(Integer)
    alt: Mapped[Optional[str]] = mapped_column(Text)
    meta: Mapped[Optional[str]] = mapped_column(Text)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)

    content: Mapped["ContentRecord"] = relationship("ContentRecord", back_populates="assets")

    def __repr__(self) -> str:
        return f"<ContentAssetRecord(content_id={self.content_id!r}, src={self.src!r})>"
