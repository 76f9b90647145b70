"""
Refinement instruction parsing.

Maps a free-form request such as 'condense slides 2 and 3' to one action,
the zero-based slides it names and any focus keywords it quotes.
"""

import re
from dataclasses import dataclass, field

ADD_DETAIL = "add_detail"
EXPAND = "expand"
CONDENSE = "condense"
CHANGE_FOCUS = "change_focus"
ADD_MISSING = "add_missing"
REORDER = "reorder"
ADJUST_FORMAT = "adjust_format"
GENERAL = "general"

# Checked in order; the first match wins
ACTION_PATTERNS = (
    (ADD_DETAIL, re.compile(r"add more|more detail|elaborate|expand on"), "Add more detailed information"),
    (EXPAND, re.compile(r"\bexpand|make longer|more content"), "Expand content with additional points"),
    (CONDENSE, re.compile(r"\bcondense|\bshorten|make shorter|\breduce|\bsimplif"), "Condense content to essential points"),
    (CHANGE_FOCUS, re.compile(r"focus on|\bemphasi[sz]e|\bhighlight|\bprioriti[sz]e"), "Change focus or emphasis"),
    (ADD_MISSING, re.compile(r"\badd\b|\badding\b|\binclud|\bmissing\b"), "Add missing elements"),
    (REORDER, re.compile(r"\breorder|\brearrange|\bmove\b|\bswap\b"), "Reorder slides or content"),
    (ADJUST_FORMAT, re.compile(r"\bformat|\bstyle|\bcolou?r|\bmarkdown"), "Adjust formatting"),
)

# 'slide 2', 'slides 2 and 3', 'slides 1, 4'
SLIDE_REFERENCE = re.compile(r"\bslides?\s+\d+(?:\s*(?:and|,)\s*\d+)*", re.IGNORECASE)

QUOTED_TERM = re.compile(r'"([^"]+)"')
LEGAL_TERM = re.compile(r"Article \d+|Section \d+|[A-Z][a-z]+ v\. [A-Z][a-z]+")


@dataclass
class ParsedInstructions:
    """
    What a refinement request asks for.

    Attributes:
        action: One of the action constants above (GENERAL when nothing matched)
        target_slides: Zero-based slide indices named in the text, or None
        modifications: Human-readable list of intended changes
        focus_keywords: Quoted spans and legal citations from the text
        original_instructions: The unmodified request
    """
    action: str = GENERAL
    target_slides: list[int] | None = None
    modifications: list[str] = field(default_factory=list)
    focus_keywords: list[str] = field(default_factory=list)
    original_instructions: str = ""

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "targetSlides": list(self.target_slides) if self.target_slides is not None else None,
            "modifications": list(self.modifications),
            "focusKeywords": list(self.focus_keywords),
            "originalInstructions": self.original_instructions,
        }


def parse_instructions(text: str) -> ParsedInstructions:
    """Parse a refinement request. Never raises for string input."""
    lowered = text.lower()
    parsed = ParsedInstructions(original_instructions=text)

    for action, pattern, modification in ACTION_PATTERNS:
        if pattern.search(lowered):
            parsed.action = action
            parsed.modifications.append(modification)
            break

    references = SLIDE_REFERENCE.findall(text)
    if references:
        targets = []
        for reference in references:
            for number in re.findall(r"\d+", reference):
                index = int(number) - 1
                if index >= 0 and index not in targets:
                    targets.append(index)
        parsed.target_slides = targets

    parsed.focus_keywords = extract_focus_keywords(text)
    if parsed.focus_keywords:
        parsed.modifications.append(f"Focus on: {', '.join(parsed.focus_keywords)}")

    return parsed


def extract_focus_keywords(text: str) -> list[str]:
    keywords = QUOTED_TERM.findall(text)
    keywords.extend(LEGAL_TERM.findall(text))
    return list(dict.fromkeys(keywords))
