"""
Deck refinement package.

RefinementEngine applies follow-up instructions to an existing deck;
parse_instructions and track_changes are usable on their own (the editor
shows the parsed action before sending, and the change list after).
"""

from midnight_court.refinement.change_tracker import Change, content_difference, track_changes
from midnight_court.refinement.instruction_parser import ParsedInstructions, parse_instructions
from midnight_court.refinement.refinement_engine import (
    RefinementEngine,
    RefinementOptions,
    RefinementRecord,
    RefinementResult,
    build_refinement_prompt,
)

__all__ = [
    'Change',
    'ParsedInstructions',
    'RefinementEngine',
    'RefinementOptions',
    'RefinementRecord',
    'RefinementResult',
    'build_refinement_prompt',
    'content_difference',
    'parse_instructions',
    'track_changes',
]
