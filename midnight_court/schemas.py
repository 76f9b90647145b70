"""
Schema Registry

JSON schemas (draft-compatible, additionalProperties: false) handed to
LLM providers as the structured-output contract. The deck schema is built
from the block grammar tables so the two cannot drift apart.
"""

import copy

from midnight_court.grammar.block_types import (
    BLOCK_FIELDS,
    BLOCK_KINDS,
    EVENT_LIST,
    STRING_LIST,
    TIMELINE_EVENT_FIELDS,
)


def _field_schema(spec) -> dict:
    if spec.kind == STRING_LIST:
        return {"type": "array", "items": {"type": "string"}}
    if spec.kind == EVENT_LIST:
        return {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {name: {"type": "string"} for name in TIMELINE_EVENT_FIELDS},
                "required": list(TIMELINE_EVENT_FIELDS),
                "additionalProperties": False,
            },
        }
    schema = {"type": "string"}
    if spec.enum is not None:
        schema["enum"] = list(spec.enum)
    return schema


def block_data_schema(kind: str) -> dict:
    """JSON schema for the ``data`` record of one block kind."""
    fields = BLOCK_FIELDS[kind]
    return {
        "type": "object",
        "title": f"{kind} data",
        "properties": {spec.name: _field_schema(spec) for spec in fields},
        "required": [spec.name for spec in fields if spec.required],
        "additionalProperties": False,
    }


def _build_slide_deck_schema() -> dict:
    block_schema = {
        "type": "object",
        "properties": {
            "type": {
                "type": "string",
                "enum": list(BLOCK_KINDS),
                "description": "Block kind",
            },
            "data": {
                "anyOf": [block_data_schema(kind) for kind in BLOCK_KINDS],
                "description": "Block data; shape depends on the block type",
            },
        },
        "required": ["type", "data"],
        "additionalProperties": False,
    }

    slide_schema = {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Slide title - short and formal"},
            "subtitle": {"type": "string", "description": "Optional subtitle or empty string"},
            "suggestedImages": {
                "type": "array",
                "description": "Image search keywords for this slide",
                "items": {"type": "string"},
            },
            "blocks": {
                "type": "array",
                "description": "Content blocks for the slide (1-2 recommended, at most 5)",
                "items": block_schema,
            },
        },
        "required": ["title", "blocks"],
        "additionalProperties": False,
    }

    return {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Presentation title"},
            "totalSlides": {"type": "integer", "description": "Total number of slides (1-8)"},
            "slides": {
                "type": "array",
                "description": "Array of presentation slides",
                "items": slide_schema,
            },
        },
        "required": ["title", "totalSlides", "slides"],
        "additionalProperties": False,
    }


slide_deck_schema = _build_slide_deck_schema()

citation_schema = {
    "type": "object",
    "properties": {
        "type": {
            "type": "string",
            "enum": ["article", "case", "act", "section"],
            "description": "Type of citation",
        },
        "name": {
            "type": "string",
            "description": "Name of the citation (e.g., 'Article 21', 'K.S. Puttaswamy v. Union of India')",
        },
        "year": {"type": "string", "description": "Year of case/statute"},
        "fullTitle": {"type": "string", "description": "Full title or description"},
        "summary": {"type": "string", "description": "Brief summary of the citation"},
        "relevance": {
            "type": "number",
            "description": "Relevance score (0-100)",
            "minimum": 0,
            "maximum": 100,
        },
        "url": {"type": "string", "description": "URL to full text if available"},
    },
    "required": ["type", "name", "fullTitle", "summary", "relevance"],
    "additionalProperties": False,
}

citation_search_results_schema = {
    "type": "object",
    "properties": {
        "query": {"type": "string"},
        "citations": {"type": "array", "items": citation_schema},
        "totalFound": {"type": "number"},
        "searchTime": {"type": "string"},
    },
    "required": ["query", "citations", "totalFound", "searchTime"],
    "additionalProperties": False,
}

citation_details_schema = {
    "type": "object",
    "properties": {
        "citation": citation_schema,
        "fullText": {"type": "string", "description": "Full text of the citation if available"},
        "keyPoints": {"type": "array", "items": {"type": "string"}},
        "relatedCitations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "relevance": {"type": "number"},
                },
                "required": ["name", "relevance"],
                "additionalProperties": False,
            },
        },
        "currentStatus": {
            "type": "string",
            "enum": ["active", "overruled", "modified", "unknown"],
        },
        "applicableJurisdictions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["citation", "keyPoints", "relatedCitations", "currentStatus", "applicableJurisdictions"],
    "additionalProperties": False,
}

image_schema = {
    "type": "object",
    "properties": {
        "url": {"type": "string"},
        "title": {"type": "string"},
        "attribution": {"type": "string"},
        "source": {"type": "string", "enum": ["unsplash", "pexels", "pixabay"]},
        "relevance": {"type": "number", "description": "Relevance score (0-100)"},
    },
    "required": ["url", "title", "attribution", "source", "relevance"],
    "additionalProperties": False,
}

image_search_results_schema = {
    "type": "object",
    "properties": {
        "query": {"type": "string"},
        "images": {"type": "array", "items": image_schema},
        "totalFound": {"type": "number"},
    },
    "required": ["query", "images", "totalFound"],
    "additionalProperties": False,
}

SCHEMAS = {
    "slideDeck": slide_deck_schema,
    "citationSearchResults": citation_search_results_schema,
    "citationDetails": citation_details_schema,
    "imageSearchResults": image_search_results_schema,
}


def get_schema(name: str) -> dict:
    """
    Return a deep copy of a registered schema by wire name.

    Raises:
        KeyError: If no schema is registered under that name
    """
    return copy.deepcopy(SCHEMAS[name])
