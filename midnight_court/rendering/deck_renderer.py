"""
Deck Renderer

Composes rendered blocks into one paged HTML document (A4 landscape, one
page per slide) that a PDF printer can consume directly. External images
are downloaded and embedded as data URIs so the document carries no
external asset references.

Image fetch failures are per-image and never abort a render: the image
is dropped and the failure goes to the injected error logger.
"""

import base64
import copy
import html
import re
from collections.abc import Callable
from datetime import datetime

import requests

from midnight_court.config import IMAGE_FETCH_TIMEOUT_SECONDS, PRODUCT_MARK
from midnight_court.errors import OperationCancelled, OperationTimeout, ProviderError
from midnight_court.grammar import TEMPLATE_LIMITS, ensure_valid_deck
from midnight_court.logging_config import Timer, debug_log
from midnight_court.logging_config import error as log_error_default
from midnight_court.markdown_formatter import to_html
from midnight_court.rendering.block_renderer import render_block, render_blocks
from midnight_court.utils.cancellation import CancellationToken, check_cancelled

DECK_CSS = """
@page { size: A4 landscape; margin: 0; }
body { margin: 0; padding: 0; font-family: 'Georgia', serif; }
.slide {
    width: 100%; height: 100vh; box-sizing: border-box;
    background: linear-gradient(135deg, #0B1120 0%, #1a2332 100%);
    padding: 60px 80px; page-break-after: always;
    display: flex; flex-direction: column; justify-content: center;
    position: relative; overflow: hidden;
}
.slide:last-child { page-break-after: auto; }
.slide-number { position: absolute; top: 30px; right: 60px; color: #CBA44A; font-size: 14px; opacity: 0.7; }
.slide-image {
    width: 100%; max-height: 300px; object-fit: cover; border-radius: 12px;
    margin-bottom: 30px; border: 2px solid #CBA44A;
}
h1 { color: #CBA44A; font-size: 48px; font-weight: 700; margin: 0 0 15px 0; letter-spacing: 0.5px; line-height: 1.2; }
h2 { color: #F5EEDF; font-size: 28px; font-weight: 400; margin: 0 0 40px 0; opacity: 0.9; }
.gold-line {
    width: 100px; height: 4px; border-radius: 2px; margin: 20px 0 30px 0;
    background: linear-gradient(90deg, #CBA44A 0%, #E5C76B 100%);
}
.points { margin-top: 20px; }
.point { color: #D1D5DB; font-size: 20px; line-height: 1.8; margin: 12px 0; padding-left: 28px; position: relative; }
.point:before { content: "\\2696"; position: absolute; left: 0; color: #CBA44A; font-size: 18px; }
.image-row { display: flex; gap: 20px; margin: 20px 0; align-items: flex-start; }
.image-row img { width: 100%; border-radius: 12px; border: 2px solid #CBA44A; }
.footer {
    position: absolute; bottom: 30px; left: 80px; right: 80px;
    border-top: 1px solid rgba(203, 164, 74, 0.3); padding-top: 20px;
    display: flex; justify-content: space-between; align-items: center;
}
.footer-text { color: #CBA44A; font-size: 14px; font-weight: 600; letter-spacing: 1px; }
"""

# Widths of paired float images inside a flex row
FLOAT_WIDTHS = {
    "small": "45%",
    "medium": "50%",
    "large": "55%",
}

_FLOAT_MARKER = re.compile(
    r'^<div class="image-float" data-layout="(?P<layout>floatLeft|floatRight)" '
    r'data-size="(?P<size>\w+)" data-src="(?P<src>[^"]*)" data-caption="(?P<caption>[^"]*)"'
)

ImageFetcher = Callable[[str, float], str]


def fetch_image_as_data_uri(url: str, timeout: float = IMAGE_FETCH_TIMEOUT_SECONDS) -> str:
    """
    Download an image and return it as a base64 data URI.

    Raises:
        OperationTimeout: If the request exceeds the timeout
        ProviderError: On connection failure or a non-200 response
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.Timeout as e:
        raise OperationTimeout(f"Image fetch timed out after {timeout}s: {url}") from e
    except requests.exceptions.RequestException as e:
        raise ProviderError(f"Image fetch failed for {url}: {e}") from e

    if response.status_code != 200:
        raise ProviderError(
            f"Image fetch failed for {url}: HTTP {response.status_code}",
            status=response.status_code,
        )

    content_type = response.headers.get("Content-Type", "image/jpeg").split(";")[0].strip()
    encoded = base64.b64encode(response.content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def _is_inline(uri: str) -> bool:
    return uri.startswith("data:")


class DeckRenderer:
    """
    Renders a validated deck to a standalone HTML document.

    Example:
        renderer = DeckRenderer()
        html_doc = renderer.render_deck(deck)

    Both collaborators are injectable for tests and for hosts that fetch
    images their own way.
    """

    def __init__(
        self,
        image_fetcher: ImageFetcher | None = None,
        log_error: Callable[[str], None] | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            image_fetcher: fetcher(url, timeout) -> data URI; defaults to
                           fetch_image_as_data_uri
            log_error: Receives one message per failed image fetch
            now: Clock used for the footer date
        """
        self._fetch = image_fetcher or fetch_image_as_data_uri
        self._log_error = log_error or log_error_default
        self._now = now or datetime.now

    def render_deck(
        self,
        deck: dict,
        cancel_token: CancellationToken | None = None,
        timeout: float | None = None,
    ) -> str:
        """
        Render the deck.

        Args:
            deck: Deck dict (template limits apply)
            cancel_token: Checked between image fetches and between slides
            timeout: Per-image fetch deadline in seconds

        Returns:
            Complete HTML document

        Raises:
            SchemaViolation: If the deck breaks the block grammar
            OperationCancelled: If cancel_token fires
        """
        ensure_valid_deck(deck, TEMPLATE_LIMITS)
        timeout = timeout if timeout is not None else IMAGE_FETCH_TIMEOUT_SECONDS

        with Timer("[DeckRenderer] Render deck"):
            slides = self._inline_images(deck["slides"], cancel_token, timeout)

            date_text = self._now().strftime("%d %B %Y")
            total = len(slides)
            pages = []
            for index, slide in enumerate(slides):
                check_cancelled(cancel_token, f"before slide {index + 1}")
                pages.append(self._render_slide(slide, index, total, date_text))

        title = html.escape(deck.get("title", ""))
        debug_log(f"[DeckRenderer] Rendered {total} slide(s) for '{deck.get('title', '')}'")
        return (
            "<!DOCTYPE html>\n<html>\n<head>\n"
            '<meta charset="utf-8">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
            f"<title>{title}</title>\n"
            f"<style>{DECK_CSS}</style>\n"
            "</head>\n<body>\n"
            + "\n".join(pages)
            + "\n</body>\n</html>\n"
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _inline(self, uri: str, timeout: float, where: str) -> str | None:
        """Return a data URI for uri, or None when the fetch fails."""
        if _is_inline(uri):
            return uri
        try:
            return self._fetch(uri, timeout)
        except OperationCancelled:
            raise
        except Exception as e:
            self._log_error(f"[DeckRenderer] Image fetch failed for {where} ({uri}): {e}")
            return None

    def _inline_images(self, slides: list, cancel_token, timeout: float) -> list:
        """Deep-copy the slides with every external image embedded."""
        slides = copy.deepcopy(slides)
        for index, slide in enumerate(slides):
            image = slide.get("image")
            if isinstance(image, str) and image.strip():
                check_cancelled(cancel_token, f"image fetch, slide {index + 1}")
                inlined = self._inline(image.strip(), timeout, f"slide {index + 1}")
                if inlined is None:
                    slide.pop("image", None)
                else:
                    slide["image"] = inlined

            for block in slide.get("blocks", []):
                if block.get("type") != "image":
                    continue
                uri = block["data"].get("uri")
                if not isinstance(uri, str) or not uri.strip():
                    continue
                check_cancelled(cancel_token, f"image fetch, slide {index + 1}")
                inlined = self._inline(uri.strip(), timeout, f"image block on slide {index + 1}")
                block["data"]["uri"] = inlined or ""
        return slides

    # ------------------------------------------------------------------
    # Slides
    # ------------------------------------------------------------------

    def _render_slide(self, slide: dict, index: int, total: int, date_text: str) -> str:
        parts = [
            '<div class="slide">',
            f'<div class="slide-number">Slide {index + 1} of {total}</div>',
        ]
        image = slide.get("image")
        if image:
            parts.append(f'<img src="{html.escape(image, quote=True)}" class="slide-image" alt="Slide image" />')
        parts.append(f"<h1>{to_html(slide.get('title', ''))}</h1>")
        parts.append('<div class="gold-line"></div>')
        subtitle = slide.get("subtitle")
        if isinstance(subtitle, str) and subtitle.strip():
            parts.append(f"<h2>{to_html(subtitle)}</h2>")
        parts.extend(group_float_images(render_blocks(slide.get("blocks", []))))
        parts.append(
            '<div class="footer">'
            f'<span class="footer-text">{html.escape(PRODUCT_MARK)}</span>'
            f'<span class="footer-text">{html.escape(date_text)}</span>'
            "</div>"
        )
        parts.append("</div>")
        return "\n".join(parts)


def _float_figure(marker: re.Match) -> str:
    width = FLOAT_WIDTHS.get(marker["size"], FLOAT_WIDTHS["medium"])
    caption = html.unescape(marker["caption"])
    caption_html = (
        f'<div style="color:#9CA3AF;font-size:14px;margin-top:8px">{to_html(caption)}</div>' if caption else ""
    )
    return (
        f'<div style="flex:0 1 {width};min-width:0">'
        f'<img src="{marker["src"]}" alt="" />{caption_html}</div>'
    )


def _centered(marker: re.Match) -> str:
    return render_block({
        "type": "image",
        "data": {
            "uri": html.unescape(marker["src"]),
            "caption": html.unescape(marker["caption"]),
            "layout": "center",
            "size": marker["size"],
        },
    })


def group_float_images(fragments: list[str]) -> list[str]:
    """
    Pair adjacent float image markers into flex rows.

    A floatLeft marker sits on the left of its row; an unpaired marker
    becomes a centered image at its declared size.
    """
    grouped = []
    i = 0
    while i < len(fragments):
        marker = _FLOAT_MARKER.match(fragments[i])
        if marker is None:
            grouped.append(fragments[i])
            i += 1
            continue

        partner = _FLOAT_MARKER.match(fragments[i + 1]) if i + 1 < len(fragments) else None
        if partner is None:
            grouped.append(_centered(marker))
            i += 1
            continue

        left, right = marker, partner
        if marker["layout"] == "floatRight" and partner["layout"] == "floatLeft":
            left, right = partner, marker
        grouped.append(f'<div class="image-row">{_float_figure(left)}{_float_figure(right)}</div>')
        i += 2
    return grouped
