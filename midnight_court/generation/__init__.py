"""
Deck generation package.

SlideDeckGenerator drives the schema-constrained LLM call; DeckTemplates
supplies the per-case-type prompt structures.
"""

from midnight_court.generation.deck_templates import DeckTemplates, load_deck_templates
from midnight_court.generation.orchestrator import SlideDeckGenerator

__all__ = [
    'DeckTemplates',
    'SlideDeckGenerator',
    'load_deck_templates',
]
