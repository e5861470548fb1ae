"""Tests for the content row codec."""

import json
import logging

import pytest

pytestmark = pytest.mark.unit

from portfolio_cms.schemas import Content, Permissions
from portfolio_cms.storage.codec import (
    CONTENT_COLUMNS,
    JSON_COLUMNS,
    decode_content,
    dumps,
    encode_content,
    loads,
)
from tests.conftest import TestDataGenerator


class TestEncodeContent:
    """Tests for encoding content into a contents row."""

    def test_encode_produces_every_column(self):
        """Test that the row has exactly one value per contents column."""
        row = encode_content(TestDataGenerator.create_content())
        assert set(row) == set(CONTENT_COLUMNS)

    def test_encode_json_columns_as_text(self):
        """Test that nested values are stored as compact JSON text."""
        content = TestDataGenerator.create_content(seo={"title": "日本語"})
        row = encode_content(content)

        assert row["seo"] == '{"title":"日本語"}'
        assert json.loads(row["thumbnails"]) == {"image": {"src": "/images/example.png"}}
        assert json.loads(row["search_tokens"]) == ["example", "portfolio"]

    def test_encode_permissions_as_single_object(self):
        """Test that permissions become one JSON object column."""
        row = encode_content(TestDataGenerator.create_content())
        assert json.loads(row["permissions"]) == {
            "readers": ["public"],
            "editors": ["admin"],
            "owner": "admin",
        }

    def test_encode_absent_values_as_null(self):
        """Test that missing optional values encode as NULL."""
        content = Content(id="bare", title="Bare")
        row = encode_content(content)
        for column in JSON_COLUMNS:
            assert row[column] is None
        assert row["published_at"] is None

    def test_encode_empty_containers_preserved(self):
        """Test that empty containers are not collapsed to NULL."""
        content = Content(id="empty", title="Empty", ancestor_ids=[], ext={})
        row = encode_content(content)
        assert row["ancestor_ids"] == "[]"
        assert row["ext"] == "{}"

    def test_encode_applies_defaults(self):
        """Test that omitted scalar fields take their defaults."""
        row = encode_content(Content(id="defaults", title="Defaults"))
        assert row["lang"] == "ja"
        assert row["visibility"] == "draft"
        assert row["status"] == "draft"
        assert row["depth"] == 0
        assert row["order"] == 0
        assert row["child_count"] == 0
        assert row["version"] == 1
        assert row["created_at"]
        assert row["updated_at"]

    def test_encode_ignores_child_sets(self):
        """Test that child sets are not part of the row."""
        row = encode_content(TestDataGenerator.create_content())
        for key in ("tags", "links", "relations", "assets"):
            assert key not in row


class TestDecodeContent:
    """Tests for decoding a contents row."""

    def test_decode_inverts_encode(self):
        """Test that decoding an encoded row restores the row fields."""
        content = TestDataGenerator.create_content()
        decoded = decode_content(encode_content(content))

        expected = content.model_copy(
            update={"tags": None, "links": None, "relations": None, "assets": None}
        )
        assert decoded == expected

    def test_decode_attaches_child_sets(self):
        """Test that supplied child sets are attached."""
        content = TestDataGenerator.create_content()
        decoded = decode_content(encode_content(content), tags=["a", "b"], links=[])
        assert decoded.tags == ["a", "b"]
        assert decoded.links == []
        assert decoded.relations is None

    def test_decode_permissions(self):
        """Test that the permissions column decodes to a Permissions model."""
        decoded = decode_content(encode_content(TestDataGenerator.create_content()))
        assert decoded.permissions == Permissions(
            readers=["public"], editors=["admin"], owner="admin"
        )

    def test_decode_corrupt_column_yields_none(self, caplog):
        """Test that a malformed JSON column decodes as None with a warning."""
        row = encode_content(TestDataGenerator.create_content())
        row["seo"] = "{not json"

        with caplog.at_level(logging.WARNING, logger="portfolio_cms.storage.codec"):
            decoded = decode_content(row)

        assert decoded.seo is None
        assert decoded.thumbnails == {"image": {"src": "/images/example.png"}}
        assert "seo" in caplog.text
        assert "example" in caplog.text

    def test_decode_wrong_shape_yields_none(self, caplog):
        """Test that JSON of the wrong top-level type is dropped."""
        row = encode_content(TestDataGenerator.create_content())
        row["ancestor_ids"] = '{"a": 1}'
        row["i18n"] = "[1, 2]"

        with caplog.at_level(logging.WARNING):
            decoded = decode_content(row)

        assert decoded.ancestor_ids is None
        assert decoded.i18n is None


class TestJsonHelpers:
    """Tests for the JSON text helpers."""

    def test_dumps_none(self):
        """Test that None stays None."""
        assert dumps(None) is None

    def test_dumps_compact_unicode(self):
        """Test compact separators and unescaped non-ASCII text."""
        assert dumps({"a": [1, "é"]}) == '{"a":[1,"é"]}'

    def test_loads_invalid_returns_none(self, caplog):
        """Test that invalid JSON is logged and decoded as None."""
        with caplog.at_level(logging.WARNING):
            assert loads("nope", owner="x", column="ext") is None
        assert "ext" in caplog.text
