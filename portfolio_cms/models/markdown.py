"""Markdown page model."""

from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_cms.models.base import Base, TimestampMixin, attach_fts_index
from portfolio_cms.models.content import STATUS_VALUES


class MarkdownPageRecord(Base, TimestampMixin):
    """Markdown page with JSON frontmatter and an optional rendered HTML cache."""

    __tablename__ = "markdown_pages"
    __table_args__ = (
        CheckConstraint(f"status IN {STATUS_VALUES}", name="ck_markdown_pages_status"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    content_id: Mapped[Optional[str]] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="SET NULL"), index=True
    )
    slug: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    frontmatter: Mapped[str] = mapped_column(Text, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    html_cache: Mapped[Optional[str]] = mapped_column(Text)
    path: Mapped[Optional[str]] = mapped_column(Text)
    lang: Mapped[str] = mapped_column(Text, nullable=False, default="ja")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="draft")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    published_at: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<MarkdownPageRecord(id={self.id!r}, slug={self.slug!r})>"


MARKDOWN_PAGES_FTS = attach_fts_index(
    MarkdownPageRecord.__table__, ["id", "slug", "body"], unindexed=["id", "slug"]
)
