"""Media model for binary files owned by a content item."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from portfolio_cms.models.base import Base, TimestampMixin


class MediaRecord(Base, TimestampMixin):
    """Media file stored inline in the content database."""

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    mime_type: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    width: Mapped[Optional[int]] = mapped_column(Integer)
    height: Mapped[Optional[int]] = mapped_column(Integer)
    alt: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[Optional[str]] = mapped_column(Text)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    content: Mapped["ContentRecord"] = relationship("ContentRecord", back_populates="media")

    def __repr__(self) -> str:
        return f"<MediaRecord(id={self.id!r}, filename={self.filename!r})>"

