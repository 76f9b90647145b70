"""
Refinement Engine for Midnight Court.

Applies a follow-up instruction ('condense slide 3', 'add the evidence to
slide 2') to an existing deck:
1. PARSE: action, named slides and focus keywords
2. RESOLVE: slides to modify = target minus preserved
3. PROMPT: instructions plus a per-slide [TARGET]/[PRESERVE] outline
4. GENERATE: the injected generator returns a complete refined deck
5. MERGE: only the slides to modify are replaced, on a deep copy
6. TRACK: change list and a RefinementRecord appended to the history

The input deck is never mutated; a failure before the merge leaves the
caller holding the original.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from midnight_court.errors import InvalidInput, SchemaViolation
from midnight_court.grammar.block_types import GENERATED_LIMITS, SLIDE_TRANSIENT_FIELDS, TEMPLATE_LIMITS
from midnight_court.grammar.validator import normalize_slide, validate_deck, validate_slide
from midnight_court.logging_config import debug_log, warning
from midnight_court.refinement.change_tracker import Change, track_changes
from midnight_court.refinement.instruction_parser import ParsedInstructions, parse_instructions
from midnight_court.utils.cancellation import CancellationToken, check_cancelled
from midnight_court.utils.timestamps import iso_timestamp

# Generator signature: (prompt, context) -> refined deck dict
RefinementGenerator = Callable[[str, dict], dict]


@dataclass
class RefinementOptions:
    """
    Caller overrides for a refinement.

    Attributes:
        target_slides: Zero-based slides to modify (overrides the instruction text)
        preserve_slides: Zero-based slides that must not change
        timeout: Deadline in seconds passed through to the generator
    """
    target_slides: list[int] | None = None
    preserve_slides: list[int] | None = None
    timeout: float | None = None


@dataclass
class RefinementRecord:
    refined_at: str
    instructions: str
    action: str
    target_slides: list[int] = field(default_factory=list)
    preserved_slides: list[int] = field(default_factory=list)
    changes_count: int = 0

    def to_dict(self) -> dict:
        return {
            "refinedAt": self.refined_at,
            "instructions": self.instructions,
            "action": self.action,
            "targetSlides": list(self.target_slides),
            "preservedSlides": list(self.preserved_slides),
            "changesCount": self.changes_count,
        }


@dataclass
class RefinementResult:
    """Refined deck plus what changed."""
    deck: dict
    changes: list[Change] = field(default_factory=list)
    metadata: RefinementRecord | None = None

    def to_dict(self) -> dict:
        return {
            "slides": self.deck,
            "changes": [change.to_dict() for change in self.changes],
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }


def build_refinement_prompt(
    deck: dict,
    instructions: str,
    parsed: ParsedInstructions,
    target_slides: list[int],
    preserve_slides: list[int],
) -> str:
    """Prompt describing the current deck and which slides may change."""
    slides = deck["slides"]
    lines = [
        "REFINEMENT REQUEST:",
        "",
        f"User Instructions: {instructions}",
        "",
        f"Action Type: {parsed.action}",
        "",
        "CURRENT PRESENTATION:",
        f"Title: {deck.get('title') or 'Untitled'}",
        f"Total Slides: {len(slides)}",
        "",
    ]

    if len(target_slides) < len(slides):
        lines.extend([f"TARGET SLIDES TO MODIFY: {', '.join(str(i + 1) for i in target_slides)}", ""])
    if preserve_slides:
        lines.extend([f"PRESERVED SLIDES (DO NOT MODIFY): {', '.join(str(i + 1) for i in preserve_slides)}", ""])

    lines.extend(["CURRENT SLIDE CONTENT:", ""])
    for index, slide in enumerate(slides):
        header = f"Slide {index + 1}: {slide.get('title', '')}"
        if index in preserve_slides:
            header += " [PRESERVE - DO NOT MODIFY]"
        elif index in target_slides:
            header += " [TARGET FOR MODIFICATION]"
        lines.append(header)

        blocks = slide.get("blocks") or []
        lines.append(f"  - {len(blocks)} block(s)")
        for block_index, block in enumerate(blocks):
            lines.append(f"  - Block {block_index + 1}: {block.get('type')}")
        lines.append("")

    lines.extend([
        "",
        "IMPORTANT INSTRUCTIONS:",
        "1. Maintain the overall structure and flow of the presentation",
        "2. Apply the requested modifications ONLY to target slides",
        "3. Keep preserved slides exactly as they are",
        "4. Maintain legal accuracy and proper citation format",
        "5. Follow all formatting rules (markdown colors, block limits, etc.)",
        "6. Ensure modifications align with the user's specific request",
        "",
        "Generate the complete refined presentation with all slides, applying modifications as requested.",
    ])
    return "\n".join(lines)


class RefinementEngine:
    """
    Iterative refinement of generated decks.

    Example:
        generator = SlideDeckGenerator(GeminiClient())
        engine = RefinementEngine(generate=generator.generate_refinement)

        result = engine.refine(
            deck,
            "condense slide 3",
            RefinementOptions(preserve_slides=[0]),
        )
        for change in result.changes:
            print(change.description)
    """

    def __init__(
        self,
        generate: RefinementGenerator | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            generate: Default generator, used when refine() is given none
            now: Clock for _modifiedAt / lastModified / refinedAt
        """
        self.generate = generate
        self._now = now

    def _timestamp(self) -> str:
        return iso_timestamp(self._now() if self._now else None)

    def refine(
        self,
        existing_deck: dict,
        instructions: str,
        options: RefinementOptions | None = None,
        generate: RefinementGenerator | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> RefinementResult:
        """
        Refine a deck with a free-form instruction.

        Args:
            existing_deck: Current deck (not modified)
            instructions: User request, e.g. 'expand slide 2'
            options: Target / preserve overrides
            generate: Generator callable (prompt, context) -> deck
            cancel_token: Checked before generating and before merging

        Returns:
            RefinementResult with the merged deck, its changes and the
            RefinementRecord appended to its history

        Raises:
            InvalidInput: Empty instructions, invalid deck or no generator
            SchemaViolation: A replaced slide breaks the block grammar
        """
        if not isinstance(instructions, str) or not instructions.strip():
            raise InvalidInput("Refinement instructions cannot be empty")
        if not isinstance(existing_deck, dict) or not isinstance(existing_deck.get("slides"), list):
            raise InvalidInput("Invalid existing deck")
        deck_errors = validate_deck(existing_deck, TEMPLATE_LIMITS)
        if deck_errors:
            raise InvalidInput(f"Invalid existing deck: {'; '.join(deck_errors[:3])}")
        generate = generate or self.generate
        if generate is None:
            raise InvalidInput("A generator is required for refinement")

        options = options or RefinementOptions()
        slide_count = len(existing_deck["slides"])

        debug_log(f"[Refinement] Starting refinement: {instructions!r}")
        parsed = parse_instructions(instructions)
        debug_log(f"[Refinement] Detected action: {parsed.action}")

        if options.target_slides is not None:
            target = options.target_slides
        elif parsed.target_slides is not None:
            target = parsed.target_slides
        else:
            target = range(slide_count)
        target = _valid_indices(target, slide_count)
        preserve = _valid_indices(options.preserve_slides or [], slide_count)
        to_modify = [index for index in target if index not in preserve]

        debug_log(f"[Refinement] Target slides: {to_modify}, preserved: {preserve}")

        if not to_modify:
            debug_log("[Refinement] Nothing to modify; returning the deck unchanged")
            record = RefinementRecord(
                refined_at=self._timestamp(),
                instructions=instructions,
                action=parsed.action,
                preserved_slides=preserve,
            )
            return RefinementResult(deck=copy.deepcopy(existing_deck), changes=[], metadata=record)

        prompt = build_refinement_prompt(existing_deck, instructions, parsed, to_modify, preserve)

        check_cancelled(cancel_token, "before refinement generation")
        refined = generate(prompt, {
            "isRefinement": True,
            "previousSlides": copy.deepcopy(existing_deck),
            "targetSlides": list(to_modify),
            "preserveSlides": list(preserve),
            "timeout": options.timeout,
        })

        check_cancelled(cancel_token, "before merge")
        merged = self.apply_modifications(existing_deck, refined, to_modify, preserve)
        changes = track_changes(existing_deck, merged)

        record = RefinementRecord(
            refined_at=self._timestamp(),
            instructions=instructions,
            action=parsed.action,
            target_slides=to_modify,
            preserved_slides=preserve,
            changes_count=len(changes),
        )
        merged.setdefault("refinementHistory", []).append(record.to_dict())

        debug_log(f"[Refinement] Refinement complete. {len(changes)} changes detected.")
        return RefinementResult(deck=merged, changes=changes, metadata=record)

    def apply_modifications(
        self,
        original: dict,
        refined: dict | None,
        target_slides: list[int],
        preserve_slides: list[int],
    ) -> dict:
        """
        Merge refined slides into a deep copy of the original.

        Raises:
            SchemaViolation: A replacement slide is invalid after normalization
        """
        merged = copy.deepcopy(original)
        modified_at = self._timestamp()

        refined_slides = refined.get("slides") if isinstance(refined, dict) else None
        if not isinstance(refined_slides, list):
            warning("[Refinement] No refined slides returned, keeping original")
            refined_slides = []

        for index in target_slides:
            if index in preserve_slides:
                continue
            candidate = refined_slides[index] if index < len(refined_slides) else None
            if candidate is None:
                warning(f"[Refinement] No refined version of slide {index + 1}, keeping original")
                continue

            slide = normalize_slide(candidate, index, GENERATED_LIMITS)
            errors = validate_slide(slide, index, GENERATED_LIMITS)
            if errors:
                raise SchemaViolation(errors=errors)

            for key in SLIDE_TRANSIENT_FIELDS:
                slide.pop(key, None)
            slide["_modified"] = True
            slide["_modifiedAt"] = modified_at
            merged["slides"][index] = slide

        merged["totalSlides"] = len(merged["slides"])
        merged["lastModified"] = modified_at
        return merged


def _valid_indices(indices, slide_count: int) -> list[int]:
    """In-range, de-duplicated indices in their given order."""
    result = []
    for index in indices:
        if isinstance(index, int) and not isinstance(index, bool) and 0 <= index < slide_count:
            if index not in result:
                result.append(index)
    return result
