"""
Block Renderer

Maps one block to a self-contained HTML fragment for the PDF export.
Rendering is a pure function of the block: no I/O, no clock, no state.
An empty or malformed block renders to "" so a single bad block never
breaks a slide.

All text fields go through the inline markdown formatter, which escapes
HTML; block content is never emitted as raw markup.
"""

import html

from midnight_court.grammar import block_types as kinds
from midnight_court.logging_config import error
from midnight_court.markdown_formatter import COLORS, to_html

GOLD = COLORS["gold"]
TEXT_COLOR = "#D1D5DB"
MUTED_COLOR = "#9CA3AF"
CARD_BACKGROUND = "rgba(255,255,255,0.04)"

# variant -> (icon, border color, background)
CALLOUT_STYLES = {
    "info": ("ℹ️", "#3b82f6", "rgba(59,130,246,0.10)"),
    "warning": ("⚠️", GOLD, "rgba(203,164,74,0.10)"),
    "critical": ("🚨", "#ef4444", "rgba(239,68,68,0.10)"),
}

IMAGE_WIDTHS = {
    "small": "40%",
    "medium": "60%",
    "large": "100%",
}

GRADIENT_OPACITIES = (1.0, 0.6, 0.3, 0.6, 1.0)


def _text(value) -> str:
    """Coerce a field to a stripped string; non-strings count as empty."""
    return value.strip() if isinstance(value, str) else ""


def _points(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [point for point in value if _text(point)]


def _render_text(data: dict) -> str:
    points = _points(data.get("points"))
    if not points:
        return ""
    rows = "".join(f'<div class="point">{to_html(point)}</div>' for point in points)
    return f'<div class="points">{rows}</div>'


def _render_paragraph(data: dict) -> str:
    text = _text(data.get("text"))
    if not text:
        return ""
    return (
        f'<p style="color:{TEXT_COLOR};font-size:20px;line-height:1.7;margin:16px 0">'
        f"{to_html(text)}</p>"
    )


def _render_quote(data: dict) -> str:
    quote = _text(data.get("quote"))
    if not quote:
        return ""
    citation = _text(data.get("citation"))
    citation_html = (
        f'<div style="color:{GOLD};font-size:16px;margin-top:12px;text-align:right">'
        f"&mdash; {to_html(citation)}</div>"
        if citation else ""
    )
    return (
        f'<div class="quote" style="border-left:4px solid {GOLD};background:{CARD_BACKGROUND};'
        f'padding:20px 28px;margin:20px 0;border-radius:8px">'
        f'<span style="color:{GOLD};font-size:40px;line-height:0">&ldquo;</span>'
        f'<span style="color:#F5EEDF;font-size:22px;font-style:italic;line-height:1.6">{to_html(quote)}</span>'
        f'<span style="color:{GOLD};font-size:40px;line-height:0">&rdquo;</span>'
        f"{citation_html}</div>"
    )


def _render_callout(data: dict) -> str:
    title = _text(data.get("title"))
    description = _text(data.get("description"))
    if not title and not description:
        return ""
    icon, border, background = CALLOUT_STYLES.get(data.get("variant"), CALLOUT_STYLES["info"])
    title_html = (
        f'<div style="color:{border};font-size:20px;font-weight:700;margin-bottom:6px">{to_html(title)}</div>'
        if title else ""
    )
    description_html = (
        f'<div style="color:{TEXT_COLOR};font-size:18px;line-height:1.6">{to_html(description)}</div>'
        if description else ""
    )
    return (
        f'<div class="callout" style="display:flex;gap:16px;border:2px solid {border};'
        f'background:{background};border-radius:12px;padding:18px 22px;margin:20px 0">'
        f'<div style="font-size:28px">{icon}</div>'
        f"<div>{title_html}{description_html}</div></div>"
    )


def _render_column(title: str, points: list[str]) -> str:
    rows = "".join(f'<div class="point">{to_html(point)}</div>' for point in points)
    return (
        f'<div style="flex:1;background:{CARD_BACKGROUND};border:1px solid rgba(203,164,74,0.3);'
        f'border-radius:12px;padding:18px">'
        f'<div style="color:{GOLD};font-size:20px;font-weight:700;margin-bottom:10px">{to_html(title)}</div>'
        f"{rows}</div>"
    )


def _render_two_column(data: dict) -> str:
    left = _points(data.get("leftPoints"))
    right = _points(data.get("rightPoints"))
    if not left and not right:
        return ""
    left_title = _text(data.get("leftTitle")) or "Arguments"
    right_title = _text(data.get("rightTitle")) or "Counter Arguments"
    return (
        '<div class="two-column" style="display:flex;gap:24px;margin:20px 0">'
        f"{_render_column(left_title, left)}{_render_column(right_title, right)}</div>"
    )


def _render_timeline(data: dict) -> str:
    events = data.get("events")
    if not isinstance(events, list):
        return ""
    events = [
        event for event in events
        if isinstance(event, dict) and (_text(event.get("date")) or _text(event.get("event")))
    ]
    if not events:
        return ""

    rows = []
    for i, event in enumerate(events):
        date = _text(event.get("date")) or "No date"
        description = _text(event.get("event")) or "No event"
        connector = (
            f'<div class="timeline-line" style="width:2px;flex:1;min-height:24px;background:{GOLD};opacity:0.5"></div>'
            if i < len(events) - 1 else ""
        )
        rows.append(
            '<div class="timeline-item" style="display:flex;gap:16px">'
            '<div style="display:flex;flex-direction:column;align-items:center">'
            f'<div class="timeline-dot" style="width:14px;height:14px;border-radius:7px;background:{GOLD}"></div>'
            f"{connector}</div>"
            '<div style="padding-bottom:14px">'
            f'<div style="color:{GOLD};font-size:16px;font-weight:700">{to_html(date)}</div>'
            f'<div style="color:{TEXT_COLOR};font-size:18px;line-height:1.5">{to_html(description)}</div>'
            "</div></div>"
        )
    return f'<div class="timeline" style="margin:20px 0">{"".join(rows)}</div>'


def _render_evidence(data: dict) -> str:
    name = _text(data.get("evidenceName"))
    summary = _text(data.get("summary"))
    if not name and not summary:
        return ""
    citation = _text(data.get("citation"))
    parts = [
        f'<div class="evidence" style="border:1px solid {GOLD};background:{CARD_BACKGROUND};'
        f'border-radius:12px;padding:18px 22px;margin:20px 0">'
    ]
    if name:
        parts.append(f'<div style="color:{GOLD};font-size:20px;font-weight:700">📋 {to_html(name)}</div>')
    if summary:
        parts.append(f'<div style="color:{TEXT_COLOR};font-size:18px;line-height:1.6;margin-top:8px">{to_html(summary)}</div>')
    if citation:
        parts.append(f'<div style="color:{MUTED_COLOR};font-size:14px;font-style:italic;margin-top:8px">{to_html(citation)}</div>')
    parts.append("</div>")
    return "".join(parts)


def _render_section_header(data: dict) -> str:
    title = _text(data.get("title"))
    if not title:
        return ""
    return (
        f'<div class="section-header" style="text-align:center;color:{GOLD};font-size:32px;'
        f'font-weight:700;letter-spacing:1px;margin:28px 0">{to_html(title)}</div>'
    )


def _render_divider(data: dict) -> str:
    style = _text(data.get("style"))
    if not style:
        return ""
    if style == "gradient":
        bars = "".join(
            f'<div style="height:2px;background:{GOLD};opacity:{opacity}"></div>'
            for opacity in GRADIENT_OPACITIES
        )
        return f'<div class="divider divider-gradient" style="display:flex;flex-direction:column;gap:2px;margin:24px 0">{bars}</div>'
    if style == "dotted":
        return f'<div class="divider divider-dotted" style="border-top:3px dotted {GOLD};margin:24px 0"></div>'
    return f'<div class="divider divider-solid" style="height:2px;background:{GOLD};margin:24px 0"></div>'


def _render_image(data: dict) -> str:
    uri = _text(data.get("uri"))
    if not uri:
        return ""
    layout = data.get("layout") if data.get("layout") in kinds.IMAGE_LAYOUTS else "center"
    size = data.get("size") if data.get("size") in kinds.IMAGE_SIZES else "medium"
    caption = _text(data.get("caption"))
    src = html.escape(uri, quote=True)

    if layout == "center":
        caption_html = (
            f'<div style="color:{MUTED_COLOR};font-size:14px;margin-top:8px">{to_html(caption)}</div>'
            if caption else ""
        )
        return (
            '<div class="image-block" style="text-align:center;margin:20px 0">'
            f'<img src="{src}" alt="" style="width:{IMAGE_WIDTHS[size]};border-radius:12px;border:2px solid {GOLD}" />'
            f"{caption_html}</div>"
        )

    # Float layouts are grouped into rows by the deck renderer
    caption_attr = html.escape(caption, quote=True)
    return (
        f'<div class="image-float" data-layout="{layout}" data-size="{size}" '
        f'data-src="{src}" data-caption="{caption_attr}" style="display:none"></div>'
    )


_RENDERERS = {
    kinds.TEXT: _render_text,
    kinds.PARAGRAPH: _render_paragraph,
    kinds.QUOTE: _render_quote,
    kinds.CALLOUT: _render_callout,
    kinds.TIMELINE: _render_timeline,
    kinds.EVIDENCE: _render_evidence,
    kinds.TWO_COLUMN: _render_two_column,
    kinds.SECTION_HEADER: _render_section_header,
    kinds.DIVIDER: _render_divider,
    kinds.IMAGE: _render_image,
}


def render_block(block) -> str:
    """
    Render a block to an HTML fragment.

    Args:
        block: Block dict ({id, type, data})

    Returns:
        HTML fragment, or "" when the block is empty, unknown or broken
    """
    if not isinstance(block, dict):
        return ""
    renderer = _RENDERERS.get(block.get("type"))
    data = block.get("data")
    if renderer is None or not isinstance(data, dict):
        return ""
    try:
        return renderer(data)
    except Exception as e:
        error(f"[BlockRenderer] Failed to render {block.get('type')} block {block.get('id')!r}: {e}")
        return ""


def render_blocks(blocks) -> list[str]:
    """Render blocks in order, skipping ones that collapse to ""."""
    if not isinstance(blocks, list):
        return []
    return [fragment for fragment in (render_block(block) for block in blocks) if fragment]
