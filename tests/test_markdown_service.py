"""Tests for the markdown page service layer."""

import pytest

pytestmark = pytest.mark.unit

from portfolio_cms.exceptions import DuplicateError, NotFoundError, ValidationError
from portfolio_cms.storage.content_mapper import get_content_row
from portfolio_cms.storage.markdown_mapper import get_markdown_page
from tests.conftest import TestDataGenerator


class TestCreatePage:
    """Tests for creating pages."""

    def test_create_defaults_content_id_to_slug(self, markdown_service, manager):
        """Test that the slug names the owning content when none is given."""
        page = markdown_service.create_page(
            "hello-world",
            body="# Hello",
            frontmatter={"title": "Hello", "description": "Greeting", "date": "2024-03-01"},
            status="Published",
        )

        assert page.content_id == "hello-world"
        assert page.status == "published"
        assert page.version == 1
        with manager.open_session("hello-world") as session:
            placeholder = get_content_row(session, "hello-world")
        assert placeholder.title == "Hello"
        assert placeholder.summary == "Greeting"
        assert placeholder.published_at == "2024-03-01"

    def test_create_under_existing_content(self, markdown_service, content_service, manager):
        """Test that an existing content row is not replaced by the placeholder."""
        content_service.save_content(TestDataGenerator.create_content())

        markdown_service.create_page("notes", content_id="example", frontmatter={"title": "Notes"})

        with manager.open_session("example") as session:
            assert get_content_row(session, "example").title == "Example"
        assert not manager.content_db_exists("notes")

    def test_create_accepts_json_frontmatter(self, markdown_service):
        """Test that frontmatter may be JSON text."""
        page = markdown_service.create_page("json", frontmatter='{"title": "From JSON"}')
        assert page.frontmatter == {"title": "From JSON"}

    def test_slug_unique_across_databases(self, markdown_service):
        """Test that a slug taken in another content database is refused."""
        markdown_service.create_page("shared", content_id="first")
        with pytest.raises(DuplicateError):
            markdown_service.create_page("shared", content_id="second")

    def test_slug_required(self, markdown_service):
        """Test that a blank slug is rejected."""
        with pytest.raises(ValidationError):
            markdown_service.create_page("  ")


class TestFindAndList:
    """Tests for lookups and listings."""

    def test_find_by_id_or_slug(self, markdown_service):
        """Test finding a page across databases by ID or slug."""
        created = markdown_service.create_page("findme", content_id="other", page_id="page-42")

        assert markdown_service.find_page("findme").id == "page-42"
        assert markdown_service.find_page("page-42").slug == "findme"
        assert markdown_service.find_page("findme", content_id="other") == created
        assert markdown_service.find_page("missing") is None

    def test_list_pages(self, markdown_service):
        """Test listing across databases and per content."""
        markdown_service.create_page("one", content_id="a")
        markdown_service.create_page("two", content_id="b")

        assert sorted(page.slug for page in markdown_service.list_pages()) == ["one", "two"]
        assert [page.slug for page in markdown_service.list_pages(content_id="a")] == ["one"]
        assert markdown_service.list_pages(content_id="missing") == []

    def test_search_pages(self, markdown_service):
        """Test body search across databases and within one content item."""
        markdown_service.create_page("moss", content_id="a", body="Notes on moss gardens")
        markdown_service.create_page("more-moss", content_id="b", body="More moss")
        markdown_service.create_page("castle", content_id="b", body="Castle walls")

        assert sorted(page.slug for page in markdown_service.search_pages("moss")) == [
            "more-moss",
            "moss",
        ]
        assert [page.slug for page in markdown_service.search_pages("moss", content_id="b")] == [
            "more-moss"
        ]
        with pytest.raises(ValidationError):
            markdown_service.search_pages("")


class TestUpdatePage:
    """Tests for updating pages."""

    def test_update_in_place(self, markdown_service):
        """Test that an update bumps the version and keeps other fields."""
        created = markdown_service.create_page("page", body="old", frontmatter={"title": "T"})

        updated = markdown_service.update_page("page", body="new")

        assert updated.version == 2
        assert updated.body == "new"
        assert updated.frontmatter == {"title": "T"}
        assert updated.created_at == created.created_at

    def test_update_slug_conflict(self, markdown_service):
        """Test that renaming onto a taken slug is refused."""
        markdown_service.create_page("first")
        markdown_service.create_page("second")
        with pytest.raises(DuplicateError):
            markdown_service.update_page("first", slug="second")

    def test_update_moves_between_contents(self, markdown_service, manager):
        """Test that changing the content ID moves the page to that database."""
        created = markdown_service.create_page("movable", content_id="source")

        moved = markdown_service.update_page(created.id, content_id="target")

        assert moved.content_id == "target"
        with manager.open_session("source") as session:
            assert get_markdown_page(session, created.id) is None
        with manager.open_session("target") as session:
            assert get_markdown_page(session, created.id).slug == "movable"
        assert markdown_service.find_page("movable").content_id == "target"

    def test_update_missing(self, markdown_service):
        """Test updating an unknown page."""
        with pytest.raises(NotFoundError) as exc_info:
            markdown_service.update_page("missing", body="x")
        assert exc_info.value.resource_type == "Markdown page"


class TestDeletePage:
    """Tests for deleting pages."""

    def test_delete(self, markdown_service):
        """Test deleting a page by slug."""
        markdown_service.create_page("gone")
        assert markdown_service.delete_page("gone") is True
        assert markdown_service.find_page("gone") is None
        assert markdown_service.delete_page("gone") is False
