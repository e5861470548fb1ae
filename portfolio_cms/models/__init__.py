"""Database models for the content store."""

from portfolio_cms.models.base import Base, IndexBase
from portfolio_cms.models.content import (
    ContentAssetRecord,
    ContentLinkRecord,
    ContentRecord,
    ContentRelationRecord,
    ContentTagRecord,
)
from portfolio_cms.models.index import ContentIndexRecord, ManualDateRecord, TagCatalogRecord
from portfolio_cms.models.markdown import MarkdownPageRecord
from portfolio_cms.models.media import MediaRecord

__all__ = [
    "Base",
    "IndexBase",
    "ContentRecord",
    "ContentTagRecord",
    "ContentLinkRecord",
    "ContentRelationRecord",
    "ContentAssetRecord",
    "MediaRecord",
    "MarkdownPageRecord",
    "ContentIndexRecord",
    "TagCatalogRecord",
    "ManualDateRecord",
]
