"""Service layer for content, media and markdown pages."""

from portfolio_cms.services.content_service import ContentService
from portfolio_cms.services.markdown_service import MarkdownService
from portfolio_cms.services.media_service import MediaService

__all__ = ["ContentService", "MediaService", "MarkdownService"]
