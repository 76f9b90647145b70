"""
Change tracking between two versions of a deck.

Only slides the refinement engine stamped with _modified are compared
field by field; slide count changes are always reported.
"""

from dataclasses import dataclass

from midnight_court.grammar.block_types import slide_text

MINOR = "minor"
MODERATE = "moderate"
MAJOR = "major"

# Content changes at or above this percentage are major
MAJOR_CHANGE_PERCENT = 50

PREVIEW_CHARS = 100


@dataclass
class Change:
    """One detected difference between the original and refined deck."""
    type: str
    description: str
    severity: str
    slide_index: int | None = None
    before: object = None
    after: object = None
    change_percentage: int | None = None

    def to_dict(self) -> dict:
        result = {"type": self.type, "description": self.description, "severity": self.severity}
        if self.slide_index is not None:
            result["slideIndex"] = self.slide_index
        if self.before is not None:
            result["before"] = self.before
        if self.after is not None:
            result["after"] = self.after
        if self.change_percentage is not None:
            result["changePercentage"] = self.change_percentage
        return result


def content_difference(before: str, after: str) -> int:
    """
    Percentage of characters that differ, compared position by position.

    Returns:
        Integer in [0, 100]; 0 when both strings are empty
    """
    longest = max(len(before), len(after))
    if longest == 0:
        return 0
    matches = sum(1 for a, b in zip(before, after) if a == b)
    return round(100 - matches / longest * 100)


def _preview(text: str) -> str:
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "..."


def track_changes(original: dict, refined: dict) -> list[Change]:
    """
    Compare two decks.

    Args:
        original: Deck before refinement
        refined: Deck after merge (modified slides carry _modified=True)

    Returns:
        Changes in order: slide_count, per-slide changes, then added or
        removed tail slides
    """
    original_slides = original.get("slides") if isinstance(original, dict) else None
    refined_slides = refined.get("slides") if isinstance(refined, dict) else None
    if not isinstance(original_slides, list) or not isinstance(refined_slides, list):
        return []

    changes = []
    if len(original_slides) != len(refined_slides):
        changes.append(Change(
            type="slide_count",
            description=f"Slide count changed from {len(original_slides)} to {len(refined_slides)}",
            severity=MAJOR,
        ))

    for i, (before, after) in enumerate(zip(original_slides, refined_slides)):
        if not after.get("_modified"):
            continue
        changes.extend(_slide_changes(i, before, after))

    for i in range(len(original_slides), len(refined_slides)):
        changes.append(Change(
            type="slide_added",
            description=f'New slide {i + 1} added: "{refined_slides[i].get("title", "")}"',
            severity=MAJOR,
            slide_index=i,
        ))

    for i in range(len(refined_slides), len(original_slides)):
        changes.append(Change(
            type="slide_removed",
            description=f'Slide {i + 1} removed: "{original_slides[i].get("title", "")}"',
            severity=MAJOR,
            slide_index=i,
        ))

    return changes


def _slide_changes(i: int, before: dict, after: dict) -> list[Change]:
    changes = []
    number = i + 1

    if before.get("title") != after.get("title"):
        changes.append(Change(
            type="title",
            description=f"Slide {number} title changed",
            severity=MINOR,
            slide_index=i,
            before=before.get("title"),
            after=after.get("title"),
        ))

    before_blocks = len(before.get("blocks") or [])
    after_blocks = len(after.get("blocks") or [])
    if before_blocks != after_blocks:
        changes.append(Change(
            type="block_count",
            description=f"Slide {number} block count changed from {before_blocks} to {after_blocks}",
            severity=MODERATE,
            slide_index=i,
            before=before_blocks,
            after=after_blocks,
        ))

    before_text = slide_text(before)
    after_text = slide_text(after)
    if before_text != after_text:
        percent = content_difference(before_text, after_text)
        changes.append(Change(
            type="content",
            description=f"Slide {number} content modified ({percent}% changed)",
            severity=MAJOR if percent >= MAJOR_CHANGE_PERCENT else MODERATE,
            slide_index=i,
            before=_preview(before_text),
            after=_preview(after_text),
            change_percentage=percent,
        ))

    before_images = len(before.get("suggestedImages") or [])
    after_images = len(after.get("suggestedImages") or [])
    if before_images != after_images:
        changes.append(Change(
            type="images",
            description=f"Slide {number} image suggestions changed",
            severity=MINOR,
            slide_index=i,
            before=before_images,
            after=after_images,
        ))

    return changes
