"""
HTML rendering for PDF export.

render_block() turns a single block into an HTML fragment;
DeckRenderer assembles whole decks into a paged document.
"""

from midnight_court.rendering.block_renderer import render_block, render_blocks
from midnight_court.rendering.deck_renderer import (
    DeckRenderer,
    fetch_image_as_data_uri,
    group_float_images,
)

__all__ = [
    'DeckRenderer',
    'fetch_image_as_data_uri',
    'group_float_images',
    'render_block',
    'render_blocks',
]
