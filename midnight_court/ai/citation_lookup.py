"""
LLM-assisted legal citation lookup.

Used by the editor to insert articles, sections and case law into slides.
Both operations are single schema-constrained LLM calls.
"""

import time

from midnight_court.ai.llm_client import LLMClient, LLMRequest, parse_json_response
from midnight_court.errors import InvalidModelOutput
from midnight_court.logging_config import debug_log
from midnight_court.schemas import citation_details_schema, citation_search_results_schema

MIN_QUERY_CHARS = 2


class CitationLookup:
    """
    Searches and explains Indian legal citations through an LLMClient.

    Example:
        lookup = CitationLookup(GeminiClient())
        results = lookup.search("right to privacy")
        details = lookup.details("K.S. Puttaswamy v. Union of India")
    """

    SEARCH_SYSTEM_PROMPT = "You are an expert legal researcher specializing in Indian law."

    SEARCH_PROMPT = """Find all relevant Indian legal citations for: "{query}"

Include:
- Constitutional articles (number + title)
- Supreme Court and High Court cases (with year)
- Acts and statutes (with relevant sections)
- Brief summaries explaining relevance

IMPORTANT: Every citation MUST have name, fullTitle, summary, and relevance (0-100)."""

    DETAILS_SYSTEM_PROMPT = "You are an expert legal analyst specializing in Indian law."

    DETAILS_PROMPT = """Provide comprehensive details about: "{query}"

Include the citation itself, its key points, related citations with relevance
scores, its current legal status (active, overruled, modified or unknown) and
the jurisdictions where it applies."""

    def __init__(self, llm_client: LLMClient, timeout: float | None = None):
        self.llm_client = llm_client
        self.timeout = timeout

    def search(self, query: str) -> dict:
        """
        Find citations relevant to a query.

        Returns:
            {query, citations, totalFound, searchTime}; citations missing a
            name, fullTitle, summary or numeric relevance are dropped
        """
        if not isinstance(query, str) or len(query.strip()) < MIN_QUERY_CHARS:
            return {"query": query, "citations": [], "totalFound": 0, "searchTime": "0ms"}

        start_time = time.time()
        result = self._call(
            self.SEARCH_PROMPT.format(query=query.strip()),
            self.SEARCH_SYSTEM_PROMPT,
            citation_search_results_schema,
            "citation_search_results",
        )

        citations = [
            citation for citation in result.get("citations") or []
            if isinstance(citation, dict)
            and citation.get("name")
            and citation.get("fullTitle")
            and citation.get("summary")
            and isinstance(citation.get("relevance"), (int, float))
            and not isinstance(citation.get("relevance"), bool)
        ]
        search_time = f"{round((time.time() - start_time) * 1000)}ms"
        debug_log(f"[CitationLookup] Found {len(citations)} citations for '{query}' in {search_time}")

        return {
            "query": result.get("query") or query,
            "citations": citations,
            "totalFound": len(citations),
            "searchTime": search_time,
        }

    def details(self, name: str) -> dict:
        """Detailed information about one citation."""
        return self._call(
            self.DETAILS_PROMPT.format(query=name),
            self.DETAILS_SYSTEM_PROMPT,
            citation_details_schema,
            "citation_details",
        )

    def related(self, name: str) -> dict:
        return self.search(f"related citations for {name}")

    def _call(self, prompt: str, system_prompt: str, schema: dict, schema_name: str) -> dict:
        response = self.llm_client.generate(LLMRequest(
            prompt=prompt,
            schema=schema,
            system_prompt=system_prompt,
            schema_name=schema_name,
            timeout=self.timeout,
        ))
        result = response.output_parsed
        if result is None:
            result = parse_json_response(response.output_text)
        if not isinstance(result, dict):
            raise InvalidModelOutput("Citation lookup response is not a JSON object")
        return result
