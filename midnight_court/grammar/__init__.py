"""
Block grammar package.

Exports the block kind tables, the limit profiles, and the deck
validator/normalizer used by generation, refinement and rendering.
"""

from midnight_court.grammar.block_types import (
    BLOCK_KINDS,
    CALLOUT_VARIANTS,
    DIVIDER_STYLES,
    GENERATED_LIMITS,
    IMAGE_LAYOUTS,
    IMAGE_SIZES,
    TEMPLATE_LIMITS,
    DeckLimits,
    create_default_block,
)
from midnight_court.grammar.validator import (
    ensure_valid_deck,
    normalize_deck,
    normalize_slide,
    validate_block,
    validate_deck,
    validate_slide,
)

__all__ = [
    'BLOCK_KINDS',
    'CALLOUT_VARIANTS',
    'DIVIDER_STYLES',
    'GENERATED_LIMITS',
    'IMAGE_LAYOUTS',
    'IMAGE_SIZES',
    'TEMPLATE_LIMITS',
    'DeckLimits',
    'create_default_block',
    'ensure_valid_deck',
    'normalize_deck',
    'normalize_slide',
    'validate_block',
    'validate_deck',
    'validate_slide',
]
