"""
Block Grammar

Canonical definition of the ten block kinds, the shape of each kind's
``data`` record, and the enums the renderer and the LLM schema share.
Everything else (the JSON schema, the validator, the editor defaults,
the renderer dispatch) is derived from the tables in this module.
"""

from dataclasses import dataclass

from midnight_court.config import MAX_BLOCKS_PER_SLIDE, MAX_GENERATED_SLIDES, MIN_GENERATED_SLIDES

# Kind names (wire values, bit-exact)
TEXT = "text"
PARAGRAPH = "paragraph"
QUOTE = "quote"
CALLOUT = "callout"
TIMELINE = "timeline"
EVIDENCE = "evidence"
TWO_COLUMN = "twoColumn"
SECTION_HEADER = "sectionHeader"
DIVIDER = "divider"
IMAGE = "image"

BLOCK_KINDS = (
    TEXT,
    PARAGRAPH,
    QUOTE,
    CALLOUT,
    TIMELINE,
    EVIDENCE,
    TWO_COLUMN,
    SECTION_HEADER,
    DIVIDER,
    IMAGE,
)

CALLOUT_VARIANTS = ("info", "warning", "critical")
IMAGE_LAYOUTS = ("center", "floatLeft", "floatRight")
IMAGE_SIZES = ("small", "medium", "large")
DIVIDER_STYLES = ("solid", "dotted", "gradient")

# Field type tags used by BLOCK_FIELDS
STRING = "string"
STRING_LIST = "string_list"
EVENT_LIST = "event_list"


@dataclass(frozen=True)
class FieldSpec:
    """One field of a block's data record."""
    name: str
    kind: str = STRING
    required: bool = True
    enum: tuple[str, ...] | None = None


BLOCK_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    TEXT: (FieldSpec("points", STRING_LIST),),
    PARAGRAPH: (FieldSpec("text"),),
    QUOTE: (
        FieldSpec("quote"),
        FieldSpec("citation", required=False),
    ),
    CALLOUT: (
        FieldSpec("title"),
        FieldSpec("description"),
        FieldSpec("variant", enum=CALLOUT_VARIANTS),
    ),
    TIMELINE: (FieldSpec("events", EVENT_LIST),),
    EVIDENCE: (
        FieldSpec("evidenceName"),
        FieldSpec("summary"),
        FieldSpec("citation", required=False),
    ),
    TWO_COLUMN: (
        FieldSpec("leftTitle"),
        FieldSpec("rightTitle"),
        FieldSpec("leftPoints", STRING_LIST),
        FieldSpec("rightPoints", STRING_LIST),
    ),
    SECTION_HEADER: (FieldSpec("title"),),
    DIVIDER: (FieldSpec("style", enum=DIVIDER_STYLES),),
    IMAGE: (
        FieldSpec("uri"),
        FieldSpec("caption", required=False),
        FieldSpec("layout", enum=IMAGE_LAYOUTS),
        FieldSpec("size", enum=IMAGE_SIZES),
    ),
}

TIMELINE_EVENT_FIELDS = ("date", "event")

# Allowed keys outside block data
SLIDE_FIELDS = ("title", "subtitle", "blocks", "image", "suggestedImages")
SLIDE_TRANSIENT_FIELDS = ("_modified", "_modifiedAt")
DECK_FIELDS = ("title", "totalSlides", "slides")
DECK_METADATA_FIELDS = ("generatedAt", "lastModified", "refinementHistory", "metadata")
BLOCK_ENVELOPE_FIELDS = ("id", "type", "data")

REFINEMENT_RECORD_FIELDS = (
    "refinedAt",
    "instructions",
    "action",
    "targetSlides",
    "preservedSlides",
    "changesCount",
)


@dataclass(frozen=True)
class DeckLimits:
    """Slide / block count bounds a deck must respect."""
    min_slides: int
    max_slides: int | None
    max_blocks: int | None


# Decks produced by the LLM (generate / refine)
GENERATED_LIMITS = DeckLimits(
    min_slides=MIN_GENERATED_SLIDES,
    max_slides=MAX_GENERATED_SLIDES,
    max_blocks=MAX_BLOCKS_PER_SLIDE,
)

# Pre-authored template decks and anything handed to the renderer
TEMPLATE_LIMITS = DeckLimits(min_slides=1, max_slides=None, max_blocks=None)

# Editor defaults for a freshly inserted block
_DEFAULT_DATA = {
    TEXT: lambda: {"points": [""]},
    PARAGRAPH: lambda: {"text": ""},
    QUOTE: lambda: {"quote": "", "citation": ""},
    CALLOUT: lambda: {"title": "", "description": "", "variant": "info"},
    TIMELINE: lambda: {"events": [{"date": "", "event": ""}]},
    EVIDENCE: lambda: {"evidenceName": "", "summary": "", "citation": ""},
    TWO_COLUMN: lambda: {"leftTitle": "", "rightTitle": "", "leftPoints": [""], "rightPoints": [""]},
    SECTION_HEADER: lambda: {"title": ""},
    DIVIDER: lambda: {"style": "solid"},
    IMAGE: lambda: {"uri": "", "caption": "", "layout": "center", "size": "medium"},
}


def is_block_kind(value) -> bool:
    return value in BLOCK_KINDS


def block_text(block) -> str:
    """
    Concatenate every text field of a block, in field order.

    Image uris, enum values and ids are not text and are skipped.
    """
    if not isinstance(block, dict) or not isinstance(block.get("data"), dict):
        return ""
    data = block["data"]
    parts = []
    for spec in BLOCK_FIELDS.get(block.get("type"), ()):
        value = data.get(spec.name)
        if spec.enum is not None or spec.name == "uri":
            continue
        if spec.kind == STRING and isinstance(value, str):
            parts.append(value)
        elif spec.kind == STRING_LIST and isinstance(value, list):
            parts.extend(item for item in value if isinstance(item, str))
        elif spec.kind == EVENT_LIST and isinstance(value, list):
            for event in value:
                if isinstance(event, dict):
                    parts.extend(
                        event[key] for key in TIMELINE_EVENT_FIELDS if isinstance(event.get(key), str)
                    )
    return " ".join(part for part in parts if part)


def slide_text(slide) -> str:
    """Title, subtitle and all block text of a slide as one string."""
    if not isinstance(slide, dict):
        return ""
    parts = [slide.get("title"), slide.get("subtitle")]
    parts.extend(block_text(block) for block in slide.get("blocks") or [])
    return " ".join(part for part in parts if isinstance(part, str) and part)


def create_default_block(kind: str, block_id: str | None = None) -> dict:
    """
    Build an empty block of the given kind.

    Args:
        kind: One of BLOCK_KINDS
        block_id: Optional id; defaults to '{kind}_new'

    Raises:
        ValueError: If kind is not a known block kind
    """
    if kind not in _DEFAULT_DATA:
        raise ValueError(f"Unknown block kind: {kind!r}")
    return {
        "id": block_id or f"{kind}_new",
        "type": kind,
        "data": _DEFAULT_DATA[kind](),
    }
