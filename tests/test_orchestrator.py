"""
Tests for the Slide Deck Generator.

The LLM client is a Mock returning canned LLMResponses (see conftest).
"""

import copy
import json
from unittest.mock import Mock

import pytest

from midnight_court.ai.llm_client import LLMRequest, LLMResponse
from midnight_court.errors import (
    InvalidInput,
    InvalidModelOutput,
    LLMLimitExceeded,
    OperationCancelled,
    ProviderError,
    SchemaViolation,
)
from midnight_court.generation.orchestrator import SlideDeckGenerator
from midnight_court.utils.cancellation import CancellationToken


class TestGenerate:
    """Tests for generate()."""

    def test_parsed_response(self, mock_llm, privacy_case, generated_deck_json):
        generator = SlideDeckGenerator(mock_llm(parsed=generated_deck_json))

        deck = generator.generate(privacy_case)

        assert deck["title"] == generated_deck_json["title"]
        assert deck["totalSlides"] == 2
        assert deck["slides"][0]["blocks"][0]["id"] == "text_1_1"
        assert deck["generatedAt"].endswith("Z")
        assert deck["metadata"]["caseType"] == "constitutional"
        assert deck["metadata"]["inputLength"] == len(privacy_case)
        assert deck["metadata"]["templateType"] is None

    def test_text_only_response(self, mock_llm, privacy_case, generated_deck_json):
        client = mock_llm(text=json.dumps(generated_deck_json))
        deck = SlideDeckGenerator(client).generate(privacy_case)
        assert deck["totalSlides"] == 2

    def test_fenced_response(self, mock_llm, privacy_case, generated_deck_json):
        fenced = "```json\n" + json.dumps(generated_deck_json) + "\n```"
        deck = SlideDeckGenerator(mock_llm(text=fenced)).generate(privacy_case)
        assert deck["slides"][1]["title"] == "Ruling"

    def test_request_carries_schema_and_prompts(self, mock_llm, privacy_case, generated_deck_json):
        client = mock_llm(parsed=generated_deck_json)
        generator = SlideDeckGenerator(client, model="gemini-2.5-flash-lite")

        generator.generate(privacy_case, timeout=30)

        request = client.generate.call_args[0][0]
        assert isinstance(request, LLMRequest)
        assert request.schema_name == "slide_deck"
        assert request.schema["required"] == ["title", "totalSlides", "slides"]
        assert request.model == "gemini-2.5-flash-lite"
        assert request.timeout == 30
        assert "Case type: constitutional" in request.prompt
        assert privacy_case in request.prompt
        assert "{legend}" not in request.system_prompt
        assert "*Legal Concepts* (#CBA44A)" in request.system_prompt

    def test_unparseable_response(self, mock_llm, privacy_case):
        generator = SlideDeckGenerator(mock_llm(text="Sorry, I cannot help with that."))
        with pytest.raises(InvalidModelOutput):
            generator.generate(privacy_case)

    def test_truncated_response(self, mock_llm, privacy_case, generated_deck_json):
        """Output cut off at the token limit is unparseable, not a grammar error."""
        truncated = json.dumps(generated_deck_json)[:-20]
        generator = SlideDeckGenerator(mock_llm(text=truncated))

        with pytest.raises(InvalidModelOutput):
            generator.generate(privacy_case)

    def test_non_object_response(self, mock_llm, privacy_case):
        with pytest.raises(InvalidModelOutput):
            SlideDeckGenerator(mock_llm(text='["a", "b"]')).generate(privacy_case)

    def test_grammar_violation(self, mock_llm, privacy_case):
        bad = {"title": "Deck", "totalSlides": 1, "slides": [
            {"title": "Overview", "blocks": [{"type": "callout", "data": {"title": "x", "variant": "loud"}}]},
        ]}
        with pytest.raises(SchemaViolation) as exc_info:
            SlideDeckGenerator(mock_llm(parsed=bad)).generate(privacy_case)
        assert exc_info.value.errors

    def test_limit_exceeded_propagates(self, mock_llm, privacy_case):
        client = mock_llm(side_effect=LLMLimitExceeded("AI usage limit reached"))
        with pytest.raises(LLMLimitExceeded):
            SlideDeckGenerator(client).generate(privacy_case)

    def test_short_input_rejected_before_llm(self, mock_llm):
        client = mock_llm(parsed={})
        with pytest.raises(InvalidInput) as exc_info:
            SlideDeckGenerator(client).generate("Bail application granted.")

        assert "Input too short" in str(exc_info.value)
        client.generate.assert_not_called()

    def test_unknown_template(self, mock_llm, privacy_case):
        client = mock_llm(parsed={})
        with pytest.raises(InvalidInput):
            SlideDeckGenerator(client).generate(privacy_case, template_type="sonnet")
        client.generate.assert_not_called()

    def test_template_prompt(self, mock_llm, privacy_case, generated_deck_json):
        client = mock_llm(parsed=generated_deck_json)

        deck = SlideDeckGenerator(client).generate(privacy_case, template_type="moot_court")

        prompt = client.generate.call_args[0][0].prompt
        assert "TEMPLATE: Moot Court" in prompt
        assert "Mandatory slides: Case Overview" in prompt
        assert "about 7 slides" in prompt
        assert deck["metadata"]["templateType"] == "moot_court"

    def test_cancelled_before_call(self, mock_llm, privacy_case):
        client = mock_llm(parsed={})
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelled):
            SlideDeckGenerator(client).generate(privacy_case, cancel_token=token)
        client.generate.assert_not_called()


class TestGenerateWithRetry:
    """Tests for the caller-side retry policy."""

    def test_retries_then_succeeds(self, privacy_case, generated_deck_json):
        client = Mock()
        client.generate.side_effect = [
            ProviderError("upstream 500", status=500),
            LLMResponse(output_parsed=generated_deck_json, output_text=""),
        ]
        sleep = Mock()

        deck = SlideDeckGenerator(client).generate_with_retry(
            privacy_case, max_attempts=2, backoff_seconds=1.0, sleep=sleep,
        )

        assert deck["totalSlides"] == 2
        sleep.assert_called_once_with(1.0)

    def test_progressive_backoff_and_last_error(self, mock_llm, privacy_case):
        client = mock_llm(side_effect=ProviderError("down", status=503))
        sleep = Mock()

        with pytest.raises(ProviderError):
            SlideDeckGenerator(client).generate_with_retry(
                privacy_case, max_attempts=3, backoff_seconds=2.0, sleep=sleep,
            )

        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]
        assert client.generate.call_count == 3

    def test_limit_exceeded_not_retried(self, mock_llm, privacy_case):
        client = mock_llm(side_effect=LLMLimitExceeded("quota"))
        sleep = Mock()

        with pytest.raises(LLMLimitExceeded):
            SlideDeckGenerator(client).generate_with_retry(privacy_case, sleep=sleep)

        assert client.generate.call_count == 1
        sleep.assert_not_called()


class TestGenerateRefinement:
    """Tests for generate_refinement(), the RefinementEngine generator."""

    def test_appends_current_deck(self, mock_llm, three_slide_deck):
        three_slide_deck["slides"][0]["_modified"] = True
        client = mock_llm(parsed=three_slide_deck)
        generator = SlideDeckGenerator(client)

        refined = generator.generate_refinement("REFINEMENT REQUEST:", {
            "previousSlides": three_slide_deck,
            "targetSlides": [1],
            "preserveSlides": [0],
            "timeout": 12,
        })

        request = client.generate.call_args[0][0]
        assert request.prompt.startswith("REFINEMENT REQUEST:")
        assert "CURRENT PRESENTATION JSON:" in request.prompt
        assert '"Constitutional Provisions"' in request.prompt
        assert "_modified" not in request.prompt
        assert request.timeout == 12
        assert refined["totalSlides"] == 3

    def test_echoed_slides_are_not_validated(self, mock_llm, three_slide_deck):
        echoed = copy.deepcopy(three_slide_deck)
        echoed["slides"][0]["blocks"] = [
            {"type": "callout", "data": {"title": "Note", "description": "x", "variant": "danger"}},
        ]
        generator = SlideDeckGenerator(mock_llm(parsed=echoed))

        refined = generator.generate_refinement("REFINEMENT REQUEST:", {"previousSlides": three_slide_deck})

        assert refined["slides"][0]["blocks"][0]["data"]["variant"] == "danger"

    def test_template_deck_is_not_truncated(self, mock_llm):
        deck = {"title": "Moot", "totalSlides": 10, "slides": [
            {"title": f"Slide {i + 1}", "blocks": [{"type": "text", "data": {"points": [f"Point {i + 1}"]}}]}
            for i in range(10)
        ]}
        generator = SlideDeckGenerator(mock_llm(parsed=deck))

        refined = generator.generate_refinement("REFINEMENT REQUEST:", {"previousSlides": deck})

        assert refined["totalSlides"] == 10

    def test_truncated_refinement(self, mock_llm, three_slide_deck):
        generator = SlideDeckGenerator(mock_llm(text=json.dumps(three_slide_deck)[:-20]))

        with pytest.raises(InvalidModelOutput):
            generator.generate_refinement("REFINEMENT REQUEST:", {"previousSlides": three_slide_deck})


class TestDeckStats:
    """Tests for get_deck_stats()."""

    def test_stats(self, three_slide_deck):
        three_slide_deck["metadata"] = {"generationTime": 1800, "inputLength": 152}

        stats = SlideDeckGenerator.get_deck_stats(three_slide_deck)

        assert stats["totalSlides"] == 3
        assert stats["totalBlocks"] == 3
        assert stats["averageBlocksPerSlide"] == 1.0
        assert stats["blockTypes"] == {"text": 1, "quote": 1, "callout": 1}
        assert stats["totalTextLength"] > 0
        assert stats["generationTime"] == 1800
        assert stats["inputLength"] == 152

    @pytest.mark.parametrize("deck", [None, {}, {"slides": []}])
    def test_no_slides(self, deck):
        assert SlideDeckGenerator.get_deck_stats(deck) is None
