"""Shared pytest fixtures and test utilities for content store tests."""

import uuid
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portfolio_cms.schemas import (
    Content,
    ContentAsset,
    ContentLink,
    ContentRelation,
    MediaItem,
    Permissions,
)
from portfolio_cms.services.content_service import ContentService
from portfolio_cms.services.markdown_service import MarkdownService
from portfolio_cms.services.media_service import MediaService
from portfolio_cms.storage.content_db_manager import ContentDbManager
from portfolio_cms.storage.index_db import IndexDatabase


@pytest.fixture(scope="function")
def data_dir(tmp_path) -> Path:
    """Temporary data directory for one test."""
    return tmp_path / "data"


@pytest.fixture
def manager(data_dir) -> ContentDbManager:
    """Content database manager rooted at the temporary data directory."""
    return ContentDbManager(data_dir=data_dir)


@pytest.fixture
def index_db(manager) -> Generator[IndexDatabase, None, None]:
    """Shared index database next to the per-content files."""
    database = IndexDatabase(manager.index_db_path)
    yield database
    database.dispose()


@pytest.fixture
def content_service(manager, index_db):
    """Create a content service instance."""
    return ContentService(manager, index_db)


@pytest.fixture
def media_service(manager, index_db):
    """Create a media service instance."""
    return MediaService(manager, index_db)


@pytest.fixture
def markdown_service(manager, index_db):
    """Create a markdown service instance."""
    return MarkdownService(manager, index_db)


@pytest.fixture
def content_db(manager):
    """Database handle for the ``example`` content item."""
    database = manager.get_content_db("example")
    yield database
    database.dispose()


@pytest.fixture
def db_session(content_db) -> Generator[Session, None, None]:
    """Session on the ``example`` content database."""
    with content_db.session() as session:
        yield session


class TestDataGenerator:
    """Utility class for generating test data."""

    @staticmethod
    def generate_content_id() -> str:
        """Generate a unique content ID."""
        return f"content-{uuid.uuid4().hex[:8]}"

    @staticmethod
    def create_content(content_id: str = "example", **overrides) -> Content:
        """Create a fully populated content item."""
        data = {
            "id": content_id,
            "title": "Example",
            "summary": "An example portfolio entry",
            "lang": "ja",
            "parent_id": None,
            "ancestor_ids": [],
            "path": f"/portfolio/{content_id}",
            "visibility": "public",
            "status": "published",
            "published_at": "2024-01-01T00:00:00.000Z",
            "search_tokens": ["example", "portfolio"],
            "permissions": Permissions(readers=["public"], editors=["admin"], owner="admin"),
            "thumbnails": {"image": {"src": "/images/example.png"}},
            "seo": {"title": "Example"},
            "ext": {"category": "develop"},
            "created_at": "2024-01-01T00:00:00.000Z",
            "updated_at": "2024-01-01T00:00:00.000Z",
            "tags": ["web", "design"],
            "links": [
                ContentLink(href="https://example.com", label="Site", primary=True),
                ContentLink(href="https://github.com/example", label="Repo"),
            ],
            "relations": [ContentRelation(target_id="other", type="related")],
            "assets": [ContentAsset(src="/images/example.png", type="image", width=640)],
        }
        data.update(overrides)
        return Content(**data)

    @staticmethod
    def create_media(
        media_id: str = "media_1",
        mime_type: str = "image/png",
        data: bytes = b"\x89PNG fake image",
        **overrides,
    ) -> MediaItem:
        """Create a media item with inline data."""
        values = {
            "id": media_id,
            "filename": f"{media_id}.png",
            "mime_type": mime_type,
            "size": len(data),
            "data": data,
        }
        values.update(overrides)
        return MediaItem(**values)


class AssertionHelpers:
    """Helper functions for test assertions."""

    @staticmethod
    def count_rows(session: Session, model, content_id: str) -> int:
        """Count rows of a child model owned by a content item."""
        stmt = select(func.count()).select_from(model).where(model.content_id == content_id)
        return session.scalar(stmt)

    @staticmethod
    def assert_content_fields_equal(actual: Content, expected: Content):
        """Assert the row fields (not the child sets) of two content items are equal."""
        exclude = {"tags", "links", "relations", "assets"}
        assert actual.model_dump(exclude=exclude) == expected.model_dump(exclude=exclude)


# Make utilities available as fixtures
@pytest.fixture
def test_data_generator():
    """Provide TestDataGenerator instance."""
    return TestDataGenerator


@pytest.fixture
def assertion_helpers():
    """Provide AssertionHelpers instance."""
    return AssertionHelpers
