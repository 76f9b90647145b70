"""
Shared fixtures for Midnight Court tests.

Decks are plain dicts in the wire format; LLM clients are Mocks that
return canned LLMResponses, so no test touches the network.
"""

import copy
import json
from unittest.mock import Mock

import pytest

from midnight_court.ai.llm_client import LLMClient, LLMResponse

PRIVACY_CASE = (
    "Article 21 case about right to privacy. Supreme Court held that privacy is a "
    "fundamental right. Key judgment: K.S. Puttaswamy v. Union of India (2017)."
)


def make_slide(title, *blocks, **extra):
    slide = {"title": title, "blocks": list(blocks)}
    slide.update(extra)
    return slide


def text_block(*points, block_id=None):
    block = {"type": "text", "data": {"points": list(points)}}
    if block_id:
        block["id"] = block_id
    return block


@pytest.fixture
def privacy_case():
    return PRIVACY_CASE


@pytest.fixture
def three_slide_deck():
    """A valid three-slide deck with ids assigned."""
    return {
        "title": "Right to Privacy",
        "totalSlides": 3,
        "slides": [
            make_slide(
                "Case Overview",
                text_block("*Privacy* is a fundamental right", "Decided in (2017)", block_id="text_1_1"),
            ),
            make_slide(
                "Constitutional Provisions",
                {
                    "id": "quote_2_1",
                    "type": "quote",
                    "data": {"quote": "No person shall be deprived of his life", "citation": "Article 21"},
                },
            ),
            make_slide(
                "Ruling",
                {
                    "id": "callout_3_1",
                    "type": "callout",
                    "data": {"title": "Held", "description": "Privacy is protected", "variant": "info"},
                },
            ),
        ],
    }


@pytest.fixture
def generated_deck_json():
    """What a well-behaved model returns: no ids, no metadata."""
    return {
        "title": "Puttaswamy: Privacy as a Fundamental Right",
        "totalSlides": 2,
        "slides": [
            {
                "title": "Case Overview",
                "subtitle": "K.S. Puttaswamy v. Union of India (2017)",
                "blocks": [
                    {"type": "text", "data": {"points": ["Nine-judge bench", "*Right to privacy* recognised"]}},
                ],
            },
            {
                "title": "Ruling",
                "blocks": [
                    {"type": "callout", "data": {
                        "title": "Held", "description": "Privacy is intrinsic to _Article 21_", "variant": "info",
                    }},
                    {"type": "divider", "data": {"style": "gradient"}},
                ],
            },
        ],
    }


@pytest.fixture
def mock_llm():
    """
    Factory for a Mock LLMClient.

    mock_llm(parsed=...) returns output_parsed; mock_llm(text=...) returns
    only output_text; mock_llm(side_effect=...) raises.
    """
    def _make(parsed=None, text=None, side_effect=None):
        client = Mock(spec=LLMClient)
        if side_effect is not None:
            client.generate.side_effect = side_effect
        else:
            output_text = text if text is not None else json.dumps(parsed)
            client.generate.return_value = LLMResponse(
                output_text=output_text,
                output_parsed=copy.deepcopy(parsed) if text is None else None,
                model="gemini-2.5-flash",
            )
        return client
    return _make
