"""
Tests for the refinement pipeline: instruction parsing, change tracking
and the RefinementEngine merge.

Most generators are plain Mocks returning complete decks; the last class
drives the engine through SlideDeckGenerator.generate_refinement with a
mocked LLM client.
"""

import copy
from datetime import datetime
from unittest.mock import Mock

import pytest

from midnight_court.errors import InvalidInput, OperationCancelled, SchemaViolation
from midnight_court.generation.orchestrator import SlideDeckGenerator
from midnight_court.refinement import (
    RefinementEngine,
    RefinementOptions,
    build_refinement_prompt,
    content_difference,
    parse_instructions,
    track_changes,
)
from midnight_court.refinement.instruction_parser import extract_focus_keywords
from midnight_court.utils.cancellation import CancellationToken

FIXED_NOW = datetime(2025, 3, 14, 10, 0, 0)

LONGER_SLIDE = {
    "title": "Constitutional Provisions",
    "blocks": [
        {"type": "quote", "data": {"quote": "No person shall be deprived of his life", "citation": "Article 21"}},
        {"type": "text", "data": {"points": [
            "_Article 14_ guarantees equality before law",
            "_Article 19_ protects freedom of speech and expression",
            "Together with _Article 21_ they form the *golden triangle*",
        ]}},
    ],
}


@pytest.fixture
def engine():
    return RefinementEngine(now=lambda: FIXED_NOW)


@pytest.fixture
def expanding_generator(three_slide_deck):
    """Returns the deck with slide 2 replaced by a longer slide."""
    refined = copy.deepcopy(three_slide_deck)
    refined["slides"][1] = copy.deepcopy(LONGER_SLIDE)
    return Mock(return_value=refined)


class TestParseInstructions:
    """Tests for parse_instructions()."""

    @pytest.mark.parametrize("text,action", [
        ("expand slide 2", "expand"),
        ("please elaborate on the facts", "add_detail"),
        ("add more detail to slide 1", "add_detail"),
        ("condense slides 2 and 3", "condense"),
        ("Simplify the language", "condense"),
        ("focus on the dissent", "change_focus"),
        ("add the evidence summary", "add_missing"),
        ("reorder the slides", "reorder"),
        ("fix the colour markers", "adjust_format"),
        ("make it better", "general"),
    ])
    def test_actions(self, text, action):
        assert parse_instructions(text).action == action

    def test_target_slides_are_zero_based(self):
        assert parse_instructions("condense slides 2 and 3").target_slides == [1, 2]
        assert parse_instructions("expand Slide 4").target_slides == [3]
        assert parse_instructions("shorten slides 1, 3, 3").target_slides == [0, 2]

    def test_no_slide_reference(self):
        assert parse_instructions("make it shorter").target_slides is None

    def test_slide_zero_is_dropped(self):
        assert parse_instructions("expand slide 0").target_slides == []

    def test_focus_keywords(self):
        parsed = parse_instructions('highlight "basic structure" and Article 368 in Kesavananda v. Kerala')

        assert parsed.focus_keywords == ["basic structure", "Article 368", "Kesavananda v. Kerala"]
        assert parsed.modifications[-1] == "Focus on: basic structure, Article 368, Kesavananda v. Kerala"

    def test_extract_focus_keywords_dedupes(self):
        assert extract_focus_keywords('"Section 302" and Section 302') == ["Section 302"]

    def test_to_dict(self):
        result = parse_instructions("expand slide 2").to_dict()
        assert result == {
            "action": "expand",
            "targetSlides": [1],
            "modifications": ["Expand content with additional points"],
            "focusKeywords": [],
            "originalInstructions": "expand slide 2",
        }


class TestChangeTracker:
    """Tests for content_difference() and track_changes()."""

    def test_content_difference(self):
        assert content_difference("", "") == 0
        assert content_difference("abcd", "abcd") == 0
        assert content_difference("abcd", "abxx") == 50
        assert content_difference("", "abc") == 100

    def test_unmodified_slides_ignored(self, three_slide_deck):
        refined = copy.deepcopy(three_slide_deck)
        refined["slides"][0]["title"] = "Changed but not stamped"
        assert track_changes(three_slide_deck, refined) == []

    def test_modified_slide_changes(self, three_slide_deck):
        refined = copy.deepcopy(three_slide_deck)
        refined["slides"][2] = {
            "title": "Final Ruling",
            "blocks": [
                {"type": "paragraph", "data": {"text": "Completely different outcome text here"}},
                {"type": "divider", "data": {"style": "solid"}},
            ],
            "suggestedImages": ["gavel"],
            "_modified": True,
        }

        changes = track_changes(three_slide_deck, refined)

        assert [c.type for c in changes] == ["title", "block_count", "content", "images"]
        assert [c.severity for c in changes] == ["minor", "moderate", "major", "minor"]
        assert all(c.slide_index == 2 for c in changes)

    def test_slide_count_changes(self, three_slide_deck):
        refined = copy.deepcopy(three_slide_deck)
        refined["slides"].append({"title": "Appendix", "blocks": []})

        changes = track_changes(three_slide_deck, refined)

        assert [c.type for c in changes] == ["slide_count", "slide_added"]
        assert changes[1].slide_index == 3

    def test_preview_truncation(self, three_slide_deck):
        refined = copy.deepcopy(three_slide_deck)
        refined["slides"][0] = {
            "title": "Case Overview",
            "blocks": [{"type": "paragraph", "data": {"text": "x" * 300}}],
            "_modified": True,
        }

        content = next(c for c in track_changes(three_slide_deck, refined) if c.type == "content")

        assert content.after.endswith("...")
        assert len(content.after) == 103
        assert not content.before.endswith("...")
        assert content.to_dict()["changePercentage"] == content.change_percentage


class TestRefinementPrompt:
    """Tests for build_refinement_prompt()."""

    def test_marks_targets_and_preserved(self, three_slide_deck):
        parsed = parse_instructions("expand slide 2")
        prompt = build_refinement_prompt(three_slide_deck, "expand slide 2", parsed, [1], [0])

        assert prompt.startswith("REFINEMENT REQUEST:")
        assert "Action Type: expand" in prompt
        assert "TARGET SLIDES TO MODIFY: 2" in prompt
        assert "PRESERVED SLIDES (DO NOT MODIFY): 1" in prompt
        assert "Slide 1: Case Overview [PRESERVE - DO NOT MODIFY]" in prompt
        assert "Slide 2: Constitutional Provisions [TARGET FOR MODIFICATION]" in prompt
        assert "Slide 3: Ruling\n" in prompt
        assert "  - Block 1: quote" in prompt

    def test_all_slides_targeted_omits_target_line(self, three_slide_deck):
        parsed = parse_instructions("make it shorter")
        prompt = build_refinement_prompt(three_slide_deck, "make it shorter", parsed, [0, 1, 2], [])

        assert "TARGET SLIDES TO MODIFY" not in prompt
        assert "PRESERVED SLIDES" not in prompt


class TestRefine:
    """Tests for RefinementEngine.refine()."""

    def test_expand_with_preserve(self, engine, three_slide_deck, expanding_generator):
        """Slide 1 preserved, slide 2 replaced, slide 3 untouched."""
        original = copy.deepcopy(three_slide_deck)

        result = engine.refine(
            three_slide_deck,
            "expand slide 2",
            RefinementOptions(preserve_slides=[0]),
            generate=expanding_generator,
        )

        deck = result.deck
        assert deck["slides"][0] == original["slides"][0]
        assert deck["slides"][2] == original["slides"][2]
        assert deck["slides"][1]["blocks"][1]["id"] == "text_2_2"
        assert deck["slides"][1]["_modified"] is True
        assert deck["slides"][1]["_modifiedAt"] == "2025-03-14T10:00:00.000Z"
        assert any(c.type == "content" and c.slide_index == 1 for c in result.changes)

        history = deck["refinementHistory"]
        assert len(history) == 1
        assert history[0]["action"] == "expand"
        assert history[0]["targetSlides"] == [1]
        assert history[0]["preservedSlides"] == [0]
        assert history[0]["changesCount"] == len(result.changes)
        assert deck["lastModified"] == "2025-03-14T10:00:00.000Z"

    def test_input_deck_not_mutated(self, engine, three_slide_deck, expanding_generator):
        original = copy.deepcopy(three_slide_deck)
        engine.refine(three_slide_deck, "expand slide 2", generate=expanding_generator)
        assert three_slide_deck == original

    def test_generator_context(self, engine, three_slide_deck, expanding_generator):
        engine.refine(
            three_slide_deck,
            "expand slide 2",
            RefinementOptions(preserve_slides=[0], timeout=20),
            generate=expanding_generator,
        )

        prompt, context = expanding_generator.call_args[0]
        assert "[TARGET FOR MODIFICATION]" in prompt
        assert context["isRefinement"] is True
        assert context["targetSlides"] == [1]
        assert context["preserveSlides"] == [0]
        assert context["timeout"] == 20
        assert context["previousSlides"] == three_slide_deck
        assert context["previousSlides"] is not three_slide_deck

    def test_everything_preserved_is_a_no_op(self, engine, three_slide_deck):
        generator = Mock()

        result = engine.refine(
            three_slide_deck,
            "expand slide 2",
            RefinementOptions(preserve_slides=[0, 1, 2]),
            generate=generator,
        )

        generator.assert_not_called()
        assert result.deck == three_slide_deck
        assert result.changes == []
        assert "refinementHistory" not in result.deck

    def test_untargeted_instruction_covers_all_slides(self, engine, three_slide_deck):
        generator = Mock(return_value=copy.deepcopy(three_slide_deck))

        engine.refine(three_slide_deck, "make it shorter", generate=generator)

        assert generator.call_args[0][1]["targetSlides"] == [0, 1, 2]

    def test_option_targets_override_text(self, engine, three_slide_deck):
        generator = Mock(return_value=copy.deepcopy(three_slide_deck))

        engine.refine(
            three_slide_deck, "expand slide 2",
            RefinementOptions(target_slides=[2, 7, 2]), generate=generator,
        )

        assert generator.call_args[0][1]["targetSlides"] == [2]

    def test_missing_refined_slides_keep_original(self, engine, three_slide_deck):
        result = engine.refine(three_slide_deck, "expand slide 2", generate=Mock(return_value={"title": "x"}))

        assert result.deck["slides"] == three_slide_deck["slides"]
        assert result.changes == []
        assert len(result.deck["refinementHistory"]) == 1

    def test_invalid_replacement_raises(self, engine, three_slide_deck):
        refined = copy.deepcopy(three_slide_deck)
        refined["slides"][1] = {"title": "Broken", "blocks": [{"type": "quote", "data": {}}]}

        with pytest.raises(SchemaViolation):
            engine.refine(three_slide_deck, "expand slide 2", generate=Mock(return_value=refined))

    def test_history_accumulates(self, engine, three_slide_deck, expanding_generator):
        first = engine.refine(three_slide_deck, "expand slide 2", generate=expanding_generator).deck

        generator = Mock(return_value=copy.deepcopy(first))
        second = engine.refine(first, "condense slide 3", generate=generator).deck

        assert [record["action"] for record in second["refinementHistory"]] == ["expand", "condense"]

    def test_default_generator(self, three_slide_deck, expanding_generator):
        engine = RefinementEngine(generate=expanding_generator)
        engine.refine(three_slide_deck, "expand slide 2")
        expanding_generator.assert_called_once()

    @pytest.mark.parametrize("instructions", ["", "   ", None])
    def test_empty_instructions(self, engine, three_slide_deck, instructions):
        with pytest.raises(InvalidInput):
            engine.refine(three_slide_deck, instructions, generate=Mock())

    def test_invalid_deck(self, engine):
        with pytest.raises(InvalidInput):
            engine.refine({"title": "x"}, "expand slide 1", generate=Mock())

    def test_no_generator(self, engine, three_slide_deck):
        with pytest.raises(InvalidInput):
            engine.refine(three_slide_deck, "expand slide 2")

    def test_cancelled(self, engine, three_slide_deck):
        token = CancellationToken()
        token.cancel()
        generator = Mock()

        with pytest.raises(OperationCancelled):
            engine.refine(three_slide_deck, "expand slide 2", generate=generator, cancel_token=token)
        generator.assert_not_called()

    def test_result_to_dict(self, engine, three_slide_deck, expanding_generator):
        result = engine.refine(three_slide_deck, "expand slide 2", generate=expanding_generator).to_dict()

        assert set(result) == {"slides", "changes", "metadata"}
        assert result["metadata"]["refinedAt"] == "2025-03-14T10:00:00.000Z"


class TestRefineWithSlideDeckGenerator:
    """RefinementEngine driven by SlideDeckGenerator.generate_refinement."""

    def test_invalid_preserved_slide_is_ignored(self, engine, mock_llm, three_slide_deck):
        """The model mangles preserved slide 1 while expanding slide 2."""
        original = copy.deepcopy(three_slide_deck)
        echoed = copy.deepcopy(three_slide_deck)
        echoed["slides"][0]["blocks"] = [
            {"type": "callout", "data": {"title": "Note", "description": "x", "variant": "danger"}},
        ]
        echoed["slides"][1] = copy.deepcopy(LONGER_SLIDE)
        generator = SlideDeckGenerator(mock_llm(parsed=echoed))

        result = engine.refine(
            three_slide_deck,
            "expand slide 2",
            RefinementOptions(preserve_slides=[0]),
            generate=generator.generate_refinement,
        )

        assert result.deck["slides"][0] == original["slides"][0]
        assert result.deck["slides"][1]["_modified"] is True
        assert result.deck["slides"][1]["title"] == "Constitutional Provisions"
        assert len(result.deck["slides"][1]["blocks"]) == 2

    def test_slide_beyond_generated_limit(self, engine, mock_llm):
        deck = {"title": "Moot Court", "totalSlides": 10, "slides": [
            {"title": f"Slide {i + 1}", "blocks": [
                {"id": f"text_{i + 1}_1", "type": "text", "data": {"points": [f"Point {i + 1}"]}},
            ]}
            for i in range(10)
        ]}
        echoed = copy.deepcopy(deck)
        echoed["slides"][9] = copy.deepcopy(LONGER_SLIDE)
        generator = SlideDeckGenerator(mock_llm(parsed=echoed))

        result = engine.refine(deck, "expand slide 10", generate=generator.generate_refinement)

        assert result.deck["totalSlides"] == 10
        assert result.deck["slides"][9]["_modified"] is True
        assert result.metadata.target_slides == [9]
        assert result.changes
        assert result.metadata.changes_count == len(result.changes)

    def test_invalid_target_slide_still_raises(self, engine, mock_llm, three_slide_deck):
        echoed = copy.deepcopy(three_slide_deck)
        echoed["slides"][1] = {"title": "Broken", "blocks": [{"type": "quote", "data": {}}]}
        generator = SlideDeckGenerator(mock_llm(parsed=echoed))

        with pytest.raises(SchemaViolation):
            engine.refine(three_slide_deck, "expand slide 2", generate=generator.generate_refinement)
