"""
Tests for the LLM-assisted citation lookup.
"""

from unittest.mock import Mock

import pytest

from midnight_court.ai.citation_lookup import CitationLookup
from midnight_court.ai.llm_client import LLMClient, LLMResponse
from midnight_court.errors import InvalidModelOutput

PUTTASWAMY = {
    "type": "case",
    "name": "K.S. Puttaswamy v. Union of India",
    "year": "2017",
    "fullTitle": "Justice K.S. Puttaswamy (Retd.) v. Union of India",
    "summary": "Privacy is a fundamental right under Article 21",
    "relevance": 98,
}


def _client(parsed=None, text=""):
    client = Mock(spec=LLMClient)
    client.generate.return_value = LLMResponse(output_text=text, output_parsed=parsed)
    return client


class TestSearch:
    """Tests for CitationLookup.search()."""

    def test_filters_incomplete_citations(self):
        client = _client(parsed={
            "query": "right to privacy",
            "citations": [
                PUTTASWAMY,
                {"type": "article", "name": "Article 21", "fullTitle": "", "summary": "Life", "relevance": 90},
                {"type": "case", "name": "X v. Y", "fullTitle": "X v. Y", "summary": "s", "relevance": "high"},
            ],
            "totalFound": 3,
            "searchTime": "",
        })

        result = CitationLookup(client).search("right to privacy")

        assert result["citations"] == [PUTTASWAMY]
        assert result["totalFound"] == 1
        assert result["searchTime"].endswith("ms")

    def test_request_shape(self):
        client = _client(parsed={"query": "bail", "citations": []})

        CitationLookup(client, timeout=15).search("bail")

        request = client.generate.call_args[0][0]
        assert request.schema_name == "citation_search_results"
        assert '"bail"' in request.prompt
        assert request.timeout == 15
        assert "Indian law" in request.system_prompt

    def test_short_query_skips_llm(self):
        client = _client()
        result = CitationLookup(client).search("a")

        assert result == {"query": "a", "citations": [], "totalFound": 0, "searchTime": "0ms"}
        client.generate.assert_not_called()

    def test_text_fallback(self):
        client = _client(text='```json\n{"query": "q", "citations": []}\n```')
        assert CitationLookup(client).search("query")["totalFound"] == 0

    def test_unparseable_response(self):
        with pytest.raises(InvalidModelOutput):
            CitationLookup(_client(text="I could not find anything")).search("privacy")


class TestDetails:
    """Tests for CitationLookup.details() and related()."""

    def test_details(self):
        details = {"citation": PUTTASWAMY, "keyPoints": ["Nine-judge bench"], "relatedCitations": [],
                   "currentStatus": "active", "applicableJurisdictions": ["India"]}
        client = _client(parsed=details)

        assert CitationLookup(client).details("K.S. Puttaswamy v. Union of India") == details
        assert client.generate.call_args[0][0].schema_name == "citation_details"

    def test_related_searches(self):
        client = _client(parsed={"citations": []})

        result = CitationLookup(client).related("Article 21")

        assert result["query"] == "related citations for Article 21"
        assert "related citations for Article 21" in client.generate.call_args[0][0].prompt
