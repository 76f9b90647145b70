"""
Markdown Inline Formatter

Three single-character color markers are recognized in every string field
of a deck:

    *text*  gold  (legal concepts)
    ~text~  red   (violations)
    _text_  blue  (statutes, provisions)

Markers never nest. When matches overlap, the one starting first wins
(marker-list order breaks ties) and the losers stay literal text.
Every function here is pure and never raises.
"""

import html
import re
from dataclasses import dataclass

PLAIN = "plain"
GOLD = "gold"
RED = "red"
BLUE = "blue"

COLORS = {
    GOLD: "#CBA44A",
    RED: "#ef4444",
    BLUE: "#3b82f6",
}

# Order is the tie-break order for matches starting at the same position
MARKER_PATTERNS = (
    (GOLD, re.compile(r"\*([^*]+)\*")),
    (RED, re.compile(r"~([^~]+)~")),
    (BLUE, re.compile(r"_([^_]+)_")),
)


@dataclass(frozen=True)
class Segment:
    """A run of text with a single style."""
    text: str
    style: str = PLAIN

    def to_dict(self) -> dict:
        return {"text": self.text, "style": self.style}


def parse_markdown(text) -> list[Segment]:
    """
    Split text into styled segments.

    Args:
        text: Text possibly containing inline markers

    Returns:
        Ordered segments; a single empty plain segment for empty or
        non-string input
    """
    if not text or not isinstance(text, str):
        return [Segment("", PLAIN)]

    matches = []
    for order, (style, pattern) in enumerate(MARKER_PATTERNS):
        for match in pattern.finditer(text):
            matches.append((match.start(), order, match.end(), match.group(1), style))

    matches.sort(key=lambda m: (m[0], m[1]))

    segments = []
    cursor = 0
    for start, _order, end, inner, style in matches:
        if start < cursor:
            continue  # overlaps an earlier match
        if start > cursor:
            segments.append(Segment(text[cursor:start], PLAIN))
        segments.append(Segment(inner, style))
        cursor = end

    if cursor < len(text):
        segments.append(Segment(text[cursor:], PLAIN))

    return segments


def _span(segment: Segment) -> str:
    escaped = html.escape(segment.text)
    if segment.style == PLAIN:
        return escaped
    return f'<span style="color:{COLORS[segment.style]};font-weight:600">{escaped}</span>'


def to_html(text) -> str:
    """Render inline markers as colored spans; all text is HTML-escaped."""
    return "".join(_span(segment) for segment in parse_markdown(text))


def strip_markdown(text) -> str:
    """Remove recognized markers, keeping their inner text."""
    return "".join(segment.text for segment in parse_markdown(text))


def has_markdown(text) -> bool:
    return any(segment.style != PLAIN for segment in parse_markdown(text))


def get_color_legend() -> list[dict]:
    """Marker legend shown in help text and embedded in generation prompts."""
    return [
        {
            "marker": "*",
            "color": COLORS[GOLD],
            "label": "Legal Concepts",
            "example": "*fundamental right*",
            "description": "Key legal terms and concepts",
        },
        {
            "marker": "~",
            "color": COLORS[RED],
            "label": "Violations",
            "example": "~breach of contract~",
            "description": "Legal violations or issues",
        },
        {
            "marker": "_",
            "color": COLORS[BLUE],
            "label": "Statutes",
            "example": "_Article 21_",
            "description": "Legal provisions and statutes",
        },
    ]
