"""
Image search clients (Pexels / Unsplash).

Results feed the slide editor's image picker and the renderer's hero
images. Every provider result is reduced to ImageResult.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

from midnight_court.config import (
    IMAGE_FETCH_TIMEOUT_SECONDS,
    IMAGE_SEARCH_PER_PAGE,
    PEXELS_API_KEY,
    UNSPLASH_API_KEY,
)
from midnight_court.errors import InvalidInput, OperationTimeout, ProviderError
from midnight_court.logging_config import debug_log

IMAGE_SOURCES = ("pexels", "unsplash")

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"


@dataclass(frozen=True)
class ImageResult:
    id: str
    url: str
    thumbnail: str
    source: str

    def to_dict(self) -> dict:
        return {"id": self.id, "url": self.url, "thumbnail": self.thumbnail, "source": self.source}


class ImageSearchClient(ABC):
    @abstractmethod
    def search(self, query: str, source: str = "pexels", timeout: float | None = None) -> list[ImageResult]:
        """Search images; an empty or blank query returns []."""


class HttpImageSearchClient(ImageSearchClient):
    """
    Talks to the Pexels and Unsplash search APIs directly.

    Example:
        images = HttpImageSearchClient().search("supreme court", source="unsplash")
    """

    def __init__(
        self,
        pexels_key: str | None = None,
        unsplash_key: str | None = None,
        per_page: int = IMAGE_SEARCH_PER_PAGE,
    ):
        self.pexels_key = pexels_key if pexels_key is not None else PEXELS_API_KEY
        self.unsplash_key = unsplash_key if unsplash_key is not None else UNSPLASH_API_KEY
        self.per_page = per_page

    def search(self, query: str, source: str = "pexels", timeout: float | None = None) -> list[ImageResult]:
        if not isinstance(query, str) or not query.strip():
            return []
        if source not in IMAGE_SOURCES:
            raise InvalidInput(f"Unknown image source: {source!r}")

        params = {"query": query.strip(), "per_page": self.per_page, "orientation": "portrait"}
        if source == "unsplash":
            url, headers = UNSPLASH_SEARCH_URL, {"Authorization": f"Client-ID {self.unsplash_key}"}
        else:
            url, headers = PEXELS_SEARCH_URL, {"Authorization": self.pexels_key}

        timeout = timeout or IMAGE_FETCH_TIMEOUT_SECONDS
        try:
            response = requests.get(url, params=params, headers=headers, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise OperationTimeout(f"{source} search timed out after {timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise ProviderError(f"{source} search failed: {e}") from e

        if response.status_code != 200:
            debug_log(f"[ImageSearch] {source} API error: {response.status_code}")
            raise ProviderError(f"{source} API failed", status=response.status_code)

        data = response.json()
        results = self._parse_unsplash(data) if source == "unsplash" else self._parse_pexels(data)
        debug_log(f"[ImageSearch] Found {len(results)} images for '{query}' on {source}")
        return results

    @staticmethod
    def _parse_pexels(data: dict) -> list[ImageResult]:
        return [
            ImageResult(
                id=str(photo.get("id")),
                url=(photo.get("src") or {}).get("large", ""),
                thumbnail=(photo.get("src") or {}).get("medium", ""),
                source="pexels",
            )
            for photo in data.get("photos") or []
        ]

    @staticmethod
    def _parse_unsplash(data: dict) -> list[ImageResult]:
        return [
            ImageResult(
                id=str(photo.get("id")),
                url=(photo.get("urls") or {}).get("regular", ""),
                thumbnail=(photo.get("urls") or {}).get("small", ""),
                source="unsplash",
            )
            for photo in data.get("results") or []
        ]
