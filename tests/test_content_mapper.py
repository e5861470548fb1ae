"""Tests for saving and loading content with its child tables."""

import pytest
from sqlalchemy.exc import IntegrityError

pytestmark = pytest.mark.unit

from portfolio_cms.models.content import (
    ContentAssetRecord,
    ContentLinkRecord,
    ContentRelationRecord,
    ContentTagRecord,
)
from portfolio_cms.models.media import MediaRecord
from portfolio_cms.schemas import ContentLink, ContentRelation
from portfolio_cms.storage.content_mapper import (
    delete_content,
    ensure_content_row,
    get_content_row,
    get_full_content,
    replace_links,
    replace_tags,
    save_full_content,
    upsert_content,
)
from portfolio_cms.storage.codec import encode_content
from portfolio_cms.storage.repositories import ContentRepository, MediaRepository
from tests.conftest import AssertionHelpers, TestDataGenerator

count_rows = AssertionHelpers.count_rows


class TestNonDestructiveUpsert:
    """Tests that updating a content row never deletes its children."""

    def test_title_update_keeps_media(self, manager):
        """Test that re-saving content without a media set keeps its media."""
        content = TestDataGenerator.create_content("example", title="Example", status="draft")
        with manager.open_session("example") as session:
            save_full_content(session, content, media=[TestDataGenerator.create_media("media_1")])

        with manager.open_session("example") as session:
            save_full_content(
                session,
                content.model_copy(
                    update={"title": "Example Updated", "updated_at": "2030-01-01T00:00:00.000Z"}
                ),
            )

        with manager.open_session("example") as session:
            assert count_rows(session, MediaRecord, "example") == 1
            assert get_content_row(session, "example").title == "Example Updated"

    def test_upsert_keeps_every_child_table(self, db_session):
        """Test that a bare row upsert leaves tags, links, relations, assets and media."""
        content = TestDataGenerator.create_content()
        save_full_content(db_session, content, media=[TestDataGenerator.create_media()])

        upsert_content(db_session, encode_content(content.model_copy(update={"title": "New"})))

        assert count_rows(db_session, ContentTagRecord, "example") == 2
        assert count_rows(db_session, ContentLinkRecord, "example") == 2
        assert count_rows(db_session, ContentRelationRecord, "example") == 1
        assert count_rows(db_session, ContentAssetRecord, "example") == 1
        assert count_rows(db_session, MediaRecord, "example") == 1

    def test_upsert_overwrites_row_fields(self, db_session):
        """Test that every non-key column takes the new value."""
        save_full_content(db_session, TestDataGenerator.create_content())
        updated = TestDataGenerator.create_content(
            title="Updated",
            summary=None,
            status="archived",
            seo=None,
            updated_at="2024-02-01T00:00:00.000Z",
        )
        save_full_content(db_session, updated)

        stored = get_content_row(db_session, "example")
        assert stored.title == "Updated"
        assert stored.summary is None
        assert stored.status == "archived"
        assert stored.seo is None
        assert stored.updated_at == "2024-02-01T00:00:00.000Z"

    def test_none_child_sets_left_untouched(self, db_session):
        """Test that child sets given as None keep their stored rows."""
        save_full_content(db_session, TestDataGenerator.create_content())
        save_full_content(
            db_session,
            TestDataGenerator.create_content(tags=None, links=None, relations=None, assets=None),
        )

        loaded = get_full_content(db_session, "example")
        assert sorted(loaded.tags) == ["design", "web"]
        assert len(loaded.links) == 2
        assert len(loaded.relations) == 1
        assert len(loaded.assets) == 1


class TestChildReplacement:
    """Tests for replacing child sets."""

    def test_replace_is_exact(self, db_session):
        """Test that the stored set equals the last supplied set."""
        save_full_content(db_session, TestDataGenerator.create_content(tags=["a", "b", "c"]))
        save_full_content(db_session, TestDataGenerator.create_content(tags=["c", "d"]))

        assert sorted(get_full_content(db_session, "example").tags) == ["c", "d"]

    def test_empty_set_clears(self, db_session):
        """Test that an empty list removes every stored row."""
        save_full_content(db_session, TestDataGenerator.create_content())
        save_full_content(
            db_session,
            TestDataGenerator.create_content(tags=[], links=[], relations=[], assets=[]),
            media=[],
        )

        loaded = get_full_content(db_session, "example")
        assert loaded.tags == []
        assert loaded.links == []
        assert loaded.relations == []
        assert loaded.assets == []
        assert count_rows(db_session, MediaRecord, "example") == 0

    def test_replace_only_touches_own_rows(self, db_session):
        """Test that clearing one content's tags leaves another's intact."""
        save_full_content(db_session, TestDataGenerator.create_content("example"))
        save_full_content(db_session, TestDataGenerator.create_content("sibling"))

        replace_tags(db_session, "example", [])

        assert count_rows(db_session, ContentTagRecord, "example") == 0
        assert count_rows(db_session, ContentTagRecord, "sibling") == 2

    def test_duplicate_tags_collapse(self, db_session):
        """Test that repeated tags are stored once."""
        save_full_content(db_session, TestDataGenerator.create_content(tags=["x", "x", "y"]))
        assert sorted(get_full_content(db_session, "example").tags) == ["x", "y"]

    def test_links_keep_supplied_order(self, db_session):
        """Test that links are read back in the order supplied."""
        save_full_content(db_session, TestDataGenerator.create_content())
        replace_links(
            db_session,
            "example",
            [ContentLink(href=f"https://example.com/{i}") for i in (3, 1, 2)],
        )

        hrefs = [link.href for link in get_full_content(db_session, "example").links]
        assert hrefs == [
            "https://example.com/3",
            "https://example.com/1",
            "https://example.com/2",
        ]

    def test_relation_fields_round_trip(self, db_session):
        """Test relation defaults and metadata survive storage."""
        relation = ContentRelation(
            target_id="elsewhere", type="series", bidirectional=True, meta={"part": 2}
        )
        save_full_content(db_session, TestDataGenerator.create_content(relations=[relation]))

        (stored,) = get_full_content(db_session, "example").relations
        assert stored == relation
        assert stored.weight == 1.0

    def test_link_primary_flag(self, db_session):
        """Test that the primary flag is stored per link."""
        save_full_content(db_session, TestDataGenerator.create_content())
        links = get_full_content(db_session, "example").links
        assert [link.primary for link in links] == [True, False]


class TestAtomicity:
    """Tests that a failing save leaves no partial effect."""

    def test_failed_media_insert_rolls_back_everything(self, manager):
        """Test that a duplicate media ID aborts the whole save."""
        original = TestDataGenerator.create_content(tags=["old"])
        with manager.open_session("example") as session:
            save_full_content(session, original)

        media = [TestDataGenerator.create_media(f"media_{i}") for i in range(1, 6)]
        media[2] = TestDataGenerator.create_media("media_1")
        changed = TestDataGenerator.create_content(
            title="Changed", tags=["new"], updated_at="2025-01-01T00:00:00.000Z"
        )

        with pytest.raises(IntegrityError):
            with manager.open_session("example") as session:
                save_full_content(session, changed, media=media)

        with manager.open_session("example") as session:
            stored = get_full_content(session, "example")
            assert stored.title == "Example"
            assert stored.updated_at == original.updated_at
            assert stored.tags == ["old"]
            assert count_rows(session, MediaRecord, "example") == 0


class TestReadsAndDeletes:
    """Tests for reads, deletes and placeholder rows."""

    def test_get_full_content_round_trip(self, db_session):
        """Test that a saved content item loads with all child sets."""
        content = TestDataGenerator.create_content()
        save_full_content(db_session, content)

        loaded = get_full_content(db_session, "example")
        AssertionHelpers.assert_content_fields_equal(loaded, content)
        assert sorted(loaded.tags) == sorted(content.tags)
        assert loaded.links == content.links
        assert loaded.relations == content.relations
        assert loaded.assets == content.assets

    def test_get_missing_content(self, db_session):
        """Test that a missing content item loads as None."""
        assert get_full_content(db_session, "missing") is None
        assert get_content_row(db_session, "missing") is None

    def test_get_content_row_without_children(self, db_session):
        """Test that the bare row read leaves child sets unset."""
        save_full_content(db_session, TestDataGenerator.create_content())
        assert get_content_row(db_session, "example").tags is None

    def test_delete_cascades(self, db_session):
        """Test that deleting a content row removes its child rows."""
        save_full_content(
            db_session,
            TestDataGenerator.create_content(),
            media=[TestDataGenerator.create_media()],
        )

        assert delete_content(db_session, "example") is True

        for model in (
            ContentTagRecord,
            ContentLinkRecord,
            ContentRelationRecord,
            ContentAssetRecord,
            MediaRecord,
        ):
            assert count_rows(db_session, model, "example") == 0

    def test_delete_missing(self, db_session):
        """Test that deleting a missing content item returns False."""
        assert delete_content(db_session, "missing") is False

    def test_ensure_content_row(self, db_session):
        """Test placeholder creation only when the row is missing."""
        assert ensure_content_row(db_session, "example", {"title": "From index"}) is True
        assert ensure_content_row(db_session, "example", {"title": "Ignored"}) is False

        stored = get_content_row(db_session, "example")
        assert stored.title == "From index"
        assert stored.status == "draft"

    def test_placeholder_allows_media(self, db_session):
        """Test that media can attach to a placeholder row."""
        ensure_content_row(db_session, "example")
        MediaRepository(db_session).upsert("example", TestDataGenerator.create_media())
        assert count_rows(db_session, MediaRecord, "example") == 1
        assert get_content_row(db_session, "example").title == "example"


class TestFullTextIndex:
    """Tests for the FTS5 index kept in sync with ``contents``."""

    def test_saved_title_is_searchable(self, db_session):
        """Test that a saved title and search text are found."""
        save_full_content(
            db_session,
            TestDataGenerator.create_content(
                title="Kyoto garden", search_full_text="moss stones lantern"
            ),
        )

        repo = ContentRepository(db_session)
        assert repo.full_text_search("garden") == ["example"]
        assert repo.full_text_search("lantern") == ["example"]
        assert repo.full_text_search("castle") == []

    def test_update_replaces_indexed_text(self, db_session):
        """Test that an in-place update drops the old terms from the index."""
        save_full_content(db_session, TestDataGenerator.create_content(title="Kyoto garden"))
        save_full_content(db_session, TestDataGenerator.create_content(title="Osaka castle"))

        repo = ContentRepository(db_session)
        assert repo.full_text_search("garden") == []
        assert repo.full_text_search("castle") == ["example"]

    def test_delete_removes_indexed_text(self, db_session):
        """Test that deleting a content row removes it from the index."""
        save_full_content(db_session, TestDataGenerator.create_content(title="Kyoto garden"))
        delete_content(db_session, "example")

        assert ContentRepository(db_session).full_text_search("garden") == []

    def test_query_operators_are_literal(self, db_session):
        """Test that FTS syntax in a query is matched as plain text."""
        save_full_content(db_session, TestDataGenerator.create_content(title="Kyoto garden"))

        repo = ContentRepository(db_session)
        assert repo.full_text_search('garden OR "') == []
        assert repo.full_text_search("Kyoto garden") == ["example"]
