"""
Tests for the schema registry.
"""

import pytest

from midnight_court.grammar.block_types import BLOCK_FIELDS, BLOCK_KINDS
from midnight_court.schemas import SCHEMAS, block_data_schema, get_schema, slide_deck_schema


def _walk_objects(schema):
    """Yield every object schema nested in schema."""
    if isinstance(schema, dict):
        if schema.get("type") == "object":
            yield schema
        for value in schema.values():
            yield from _walk_objects(value)
    elif isinstance(schema, list):
        for item in schema:
            yield from _walk_objects(item)


class TestSlideDeckSchema:
    """Tests for the deck schema handed to LLM providers."""

    def test_top_level_shape(self):
        assert slide_deck_schema["required"] == ["title", "totalSlides", "slides"]
        assert slide_deck_schema["properties"]["totalSlides"]["type"] == "integer"

    def test_block_type_enum_matches_grammar(self):
        block = slide_deck_schema["properties"]["slides"]["items"]["properties"]["blocks"]["items"]
        assert block["properties"]["type"]["enum"] == list(BLOCK_KINDS)
        assert len(block["properties"]["data"]["anyOf"]) == len(BLOCK_KINDS)

    def test_every_object_is_closed(self):
        """Structured output requires additionalProperties: false everywhere."""
        for name, schema in SCHEMAS.items():
            for obj in _walk_objects(schema):
                assert obj.get("additionalProperties") is False, name

    def test_slide_requires_title_and_blocks(self):
        slide = slide_deck_schema["properties"]["slides"]["items"]
        assert slide["required"] == ["title", "blocks"]


class TestBlockDataSchema:
    """Tests for block_data_schema()."""

    @pytest.mark.parametrize("kind", BLOCK_KINDS)
    def test_properties_follow_fields(self, kind):
        schema = block_data_schema(kind)
        assert list(schema["properties"]) == [spec.name for spec in BLOCK_FIELDS[kind]]

    def test_optional_citation(self):
        assert block_data_schema("quote")["required"] == ["quote"]

    def test_enum_values(self):
        assert block_data_schema("callout")["properties"]["variant"]["enum"] == ["info", "warning", "critical"]


class TestGetSchema:
    """Tests for get_schema()."""

    def test_returns_copy(self):
        schema = get_schema("slideDeck")
        schema["required"].append("theme")
        assert "theme" not in slide_deck_schema["required"]

    def test_citation_schemas_registered(self):
        assert get_schema("citationSearchResults")["required"] == ["query", "citations", "totalFound", "searchTime"]
        assert "currentStatus" in get_schema("citationDetails")["properties"]

    def test_unknown_name(self):
        with pytest.raises(KeyError):
            get_schema("nope")
