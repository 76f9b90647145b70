"""
Deck validation and normalization against the block grammar.

LLM providers drift from the response schema they were given, so every
deck coming back from the model (and every deck handed to the renderer)
is re-checked here. Validation never coerces: it only reports. Coercion
that is allowed (dropping unknown keys, clamping counts, filling in ids)
lives in normalize_deck() and runs before validation.
"""

import copy

from midnight_court.errors import SchemaViolation
from midnight_court.grammar.block_types import (
    BLOCK_ENVELOPE_FIELDS,
    BLOCK_FIELDS,
    DECK_FIELDS,
    DECK_METADATA_FIELDS,
    EVENT_LIST,
    GENERATED_LIMITS,
    SLIDE_FIELDS,
    SLIDE_TRANSIENT_FIELDS,
    STRING,
    STRING_LIST,
    TIMELINE_EVENT_FIELDS,
    DeckLimits,
)
from midnight_court.logging_config import debug_log


def _is_string_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def validate_block(block, where: str = "Block") -> list[str]:
    """
    Check one block envelope and its kind-specific data.

    Returns:
        List of human-readable violations (empty when valid)
    """
    if not isinstance(block, dict):
        return [f"{where}: block must be an object"]

    errors = []
    kind = block.get("type")
    if kind not in BLOCK_FIELDS:
        return [f"{where}: unknown block type {kind!r}"]

    if "id" in block and not isinstance(block["id"], str):
        errors.append(f"{where}: id must be a string")

    for key in block:
        if key not in BLOCK_ENVELOPE_FIELDS:
            errors.append(f"{where}: unexpected field {key!r}")

    data = block.get("data")
    if not isinstance(data, dict):
        errors.append(f"{where}: missing data object")
        return errors

    allowed = {spec.name for spec in BLOCK_FIELDS[kind]}
    for key in data:
        if key not in allowed:
            errors.append(f"{where}: unexpected field {key!r} in {kind} data")

    for spec in BLOCK_FIELDS[kind]:
        if spec.name not in data or data[spec.name] is None:
            if spec.required:
                errors.append(f"{where}: {kind} requires '{spec.name}'")
            continue

        value = data[spec.name]
        if spec.kind == STRING:
            if not isinstance(value, str):
                errors.append(f"{where}: '{spec.name}' must be a string")
            elif spec.enum is not None and value not in spec.enum:
                errors.append(
                    f"{where}: '{spec.name}' must be one of {', '.join(spec.enum)} (got {value!r})"
                )
        elif spec.kind == STRING_LIST:
            if not _is_string_list(value):
                errors.append(f"{where}: '{spec.name}' must be a list of strings")
        elif spec.kind == EVENT_LIST:
            if not isinstance(value, list):
                errors.append(f"{where}: '{spec.name}' must be a list")
                continue
            for i, event in enumerate(value):
                if not isinstance(event, dict):
                    errors.append(f"{where}: event {i + 1} must be an object")
                    continue
                for key, item in event.items():
                    if key not in TIMELINE_EVENT_FIELDS:
                        errors.append(f"{where}: unexpected field {key!r} in event {i + 1}")
                    elif not isinstance(item, str):
                        errors.append(f"{where}: event {i + 1} '{key}' must be a string")

    return errors


def validate_slide(slide, index: int = 0, limits: DeckLimits = GENERATED_LIMITS) -> list[str]:
    """Check a single slide (1-based index in messages)."""
    where = f"Slide {index + 1}"
    if not isinstance(slide, dict):
        return [f"{where}: slide must be an object"]

    errors = []
    title = slide.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append(f"{where}: missing title")

    for key in slide:
        if key not in SLIDE_FIELDS and key not in SLIDE_TRANSIENT_FIELDS:
            errors.append(f"{where}: unexpected field {key!r}")

    for key in ("subtitle", "image"):
        if slide.get(key) is not None and not isinstance(slide[key], str):
            errors.append(f"{where}: {key} must be a string")

    if slide.get("suggestedImages") is not None and not _is_string_list(slide["suggestedImages"]):
        errors.append(f"{where}: suggestedImages must be a list of strings")

    blocks = slide.get("blocks")
    if not isinstance(blocks, list):
        errors.append(f"{where}: missing blocks array")
        return errors

    if limits.max_blocks is not None and len(blocks) > limits.max_blocks:
        errors.append(f"{where}: too many blocks ({len(blocks)} > {limits.max_blocks})")

    for j, block in enumerate(blocks):
        errors.extend(validate_block(block, f"{where}, Block {j + 1}"))

    return errors


def validate_deck(deck, limits: DeckLimits = GENERATED_LIMITS) -> list[str]:
    """
    Validate a whole deck.

    Args:
        deck: Deck dict
        limits: GENERATED_LIMITS for LLM output, TEMPLATE_LIMITS for
                pre-authored decks

    Returns:
        List of violations; an empty list means the deck is valid
    """
    if not isinstance(deck, dict):
        return ["Deck must be an object"]

    errors = []
    title = deck.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append("Missing presentation title")

    for key in deck:
        if key not in DECK_FIELDS and key not in DECK_METADATA_FIELDS:
            errors.append(f"Deck: unexpected field {key!r}")

    slides = deck.get("slides")
    if not isinstance(slides, list):
        errors.append("Missing slides array")
        return errors

    total = deck.get("totalSlides")
    if isinstance(total, bool) or not isinstance(total, int):
        errors.append("Missing totalSlides")
    elif total != len(slides):
        errors.append(f"totalSlides ({total}) does not match slide count ({len(slides)})")

    if len(slides) < limits.min_slides:
        errors.append(f"Deck needs at least {limits.min_slides} slide(s)")
    if limits.max_slides is not None and len(slides) > limits.max_slides:
        errors.append(f"Too many slides ({len(slides)} > {limits.max_slides})")

    history = deck.get("refinementHistory")
    if history is not None and not isinstance(history, list):
        errors.append("refinementHistory must be a list")

    for i, slide in enumerate(slides):
        errors.extend(validate_slide(slide, i, limits))

    return errors


def ensure_valid_deck(deck, limits: DeckLimits = GENERATED_LIMITS) -> dict:
    """
    Raise SchemaViolation when validate_deck() reports anything.

    Returns:
        The same deck, for chaining
    """
    errors = validate_deck(deck, limits)
    if errors:
        debug_log(f"[Validator] Deck rejected with {len(errors)} violation(s): {errors[:3]}")
        raise SchemaViolation(errors=errors)
    return deck


# =============================================================================
# Normalization
# =============================================================================

def _normalize_block(block, slide_index: int, block_index: int):
    if not isinstance(block, dict):
        return block

    normalized = {key: block[key] for key in BLOCK_ENVELOPE_FIELDS if key in block}
    kind = normalized.get("type")
    data = normalized.get("data")

    if kind in BLOCK_FIELDS and isinstance(data, dict):
        allowed = [spec.name for spec in BLOCK_FIELDS[kind]]
        data = {key: data[key] for key in allowed if key in data}
        if kind == "timeline" and isinstance(data.get("events"), list):
            data["events"] = [
                {key: event[key] for key in TIMELINE_EVENT_FIELDS if key in event}
                if isinstance(event, dict) else event
                for event in data["events"]
            ]
        normalized["data"] = data

    if not normalized.get("id"):
        normalized["id"] = f"{kind}_{slide_index + 1}_{block_index + 1}"

    return normalized


def normalize_slide(slide, index: int = 0, limits: DeckLimits = GENERATED_LIMITS):
    """
    Return a cleaned copy of a slide: unknown keys dropped, blocks clamped
    to the limit, missing block ids filled in as '{type}_{slide}_{block}'.
    """
    if not isinstance(slide, dict):
        return slide

    normalized = {
        key: copy.deepcopy(slide[key])
        for key in (*SLIDE_FIELDS, *SLIDE_TRANSIENT_FIELDS)
        if key in slide
    }

    blocks = normalized.get("blocks")
    if isinstance(blocks, list):
        if limits.max_blocks is not None and len(blocks) > limits.max_blocks:
            debug_log(
                f"[Validator] Slide {index + 1}: clamping {len(blocks)} blocks to {limits.max_blocks}"
            )
            blocks = blocks[:limits.max_blocks]
        normalized["blocks"] = [
            _normalize_block(block, index, j) for j, block in enumerate(blocks)
        ]

    return normalized


def normalize_deck(deck, limits: DeckLimits = GENERATED_LIMITS):
    """
    Return a cleaned copy of a deck ready for validate_deck().

    Drops unknown fields at every level, clamps the slide count to the
    limit, normalizes each slide and recomputes totalSlides. The input is
    not modified. Non-dict input is returned unchanged so that validation
    reports it.
    """
    if not isinstance(deck, dict):
        return deck

    normalized = {
        key: copy.deepcopy(deck[key])
        for key in (*DECK_FIELDS, *DECK_METADATA_FIELDS)
        if key in deck
    }

    slides = normalized.get("slides")
    if isinstance(slides, list):
        if limits.max_slides is not None and len(slides) > limits.max_slides:
            debug_log(f"[Validator] Truncating deck from {len(slides)} to {limits.max_slides} slides")
            slides = slides[:limits.max_slides]
        normalized["slides"] = [
            normalize_slide(slide, i, limits) for i, slide in enumerate(slides)
        ]
        normalized["totalSlides"] = len(normalized["slides"])

    return normalized
