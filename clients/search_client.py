"""
Image and web search client.

Images come from Wikimedia Commons (no API key), topped up from Wikipedia
page images when Commons returns too few usable files. Web links come from
Google Custom Search when credentials are configured.

Lookups are idempotent GETs, so transient failures are retried with a short
exponential backoff.
"""

import logging
import re
import threading
import time

import requests
from pydantic import BaseModel

logger = logging.getLogger(__name__)


COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

# Commons hits whose titles contain these are diagrams or branding, not photos
SKIPPED_TITLE_MARKERS = (".svg", "icon", "logo", "flag")

THUMBNAIL_WIDTH = 400


class ImageResult(BaseModel):
    """One image attached to a chat response."""

    url: str
    title: str
    thumbnail: str
    source: str


class WebLink(BaseModel):
    """One web search hit."""

    title: str
    url: str
    snippet: str | None = None
    source: str | None = None


class SearchError(Exception):
    """Search provider request failed."""


class SearchClient:
    """Wikimedia image search and Google web search over HTTP."""

    USER_AGENT = "NexusAI/1.0 (image search)"

    def __init__(
        self,
        google_api_key: str | None = None,
        google_cse_id: str | None = None,
        timeout: float = 8,
        max_retries: int = 1,
        backoff_seconds: float = 0.5,
    ):
        self._google_api_key = google_api_key
        self._google_cse_id = google_cse_id
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        # requests.Session is not thread-safe; lookups run on a worker pool
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

    def _session(self) -> requests.Session:
        """HTTP session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self.USER_AGENT
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    @property
    def web_search_enabled(self) -> bool:
        return bool(self._google_api_key and self._google_cse_id)

    def _get_json(self, url: str, params: dict) -> dict:
        """GET with bounded retry.

        Raises:
            SearchError: When every attempt fails.
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries + 1):
            if attempt:
                time.sleep(self._backoff_seconds * (2 ** (attempt - 1)))
            try:
                response = self._session().get(url, params=params, timeout=self._timeout)
                response.raise_for_status()
                return response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                last_error = e
                logger.warning(f"Search request to {url} failed (attempt {attempt + 1}): {e}")

        raise SearchError(f"Search request failed: {last_error}")

    def search_images(self, query: str, count: int = 4) -> list[ImageResult]:
        """
        Find up to `count` images for a query.

        Raises:
            SearchError: If the Commons search itself fails.
        """
        if count <= 0 or not query.strip():
            return []

        logger.info(f"Searching images for: {query}")

        data = self._get_json(
            COMMONS_API_URL,
            {
                "action": "query",
                "list": "search",
                "srsearch": query,
                "srnamespace": 6,
                "srlimit": count * 3,
                "format": "json",
                "origin": "*",
            },
        )

        images: list[ImageResult] = []

        for item in data.get("query", {}).get("search", []):
            if len(images) >= count:
                break

            title = item.get("title", "")
            if any(marker in title.lower() for marker in SKIPPED_TITLE_MARKERS):
                continue

            try:
                image = self._commons_image_info(title)
            except SearchError as e:
                logger.warning(f"Skipping {title}: {e}")
                continue

            if image is not None:
                images.append(image)

        if len(images) < count:
            try:
                images.extend(self._wikipedia_page_images(query, count - len(images)))
            except SearchError as e:
                logger.warning(f"Wikipedia fallback failed: {e}")

        logger.info(f"Found {len(images)} images")
        return images[:count]

    def _commons_image_info(self, title: str) -> ImageResult | None:
        data = self._get_json(
            COMMONS_API_URL,
            {
                "action": "query",
                "titles": title,
                "prop": "imageinfo",
                "iiprop": "url|thumburl",
                "iiurlwidth": THUMBNAIL_WIDTH,
                "format": "json",
                "origin": "*",
            },
        )

        pages = data.get("query", {}).get("pages") or {}
        for page in pages.values():
            infos = page.get("imageinfo") or []
            if infos and infos[0].get("url"):
                info = infos[0]
                return ImageResult(
                    url=info["url"],
                    title=_display_title(title),
                    thumbnail=info.get("thumburl") or info["url"],
                    source="Wikimedia Commons",
                )
        return None

    def _wikipedia_page_images(self, query: str, count: int) -> list[ImageResult]:
        data = self._get_json(
            WIKIPEDIA_API_URL,
            {
                "action": "query",
                "prop": "pageimages",
                "titles": query,
                "pithumbsize": THUMBNAIL_WIDTH,
                "pilimit": count,
                "format": "json",
                "origin": "*",
            },
        )

        images = []
        for page in (data.get("query", {}).get("pages") or {}).values():
            if len(images) >= count:
                break
            source = (page.get("thumbnail") or {}).get("source")
            if source:
                images.append(ImageResult(
                    url=source,
                    title=page.get("title") or "Wikipedia Image",
                    thumbnail=source,
                    source="Wikipedia",
                ))
        return images

    def search_web(self, query: str, count: int = 5) -> list[WebLink]:
        """
        Web links from Google Custom Search.

        Returns an empty list when credentials are not configured.

        Raises:
            SearchError: If the configured provider fails.
        """
        if not self.web_search_enabled:
            logger.warning("Google Search API not configured - returning empty results")
            return []

        data = self._get_json(
            GOOGLE_SEARCH_URL,
            {
                "key": self._google_api_key,
                "cx": self._google_cse_id,
                "q": query,
                "num": count,
            },
        )

        return [
            WebLink(
                title=item.get("title", ""),
                url=item["link"],
                snippet=item.get("snippet"),
                source=item.get("displayLink"),
            )
            for item in data.get("items", [])
            if item.get("link")
        ]

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()


def _display_title(title: str) -> str:
    """'File:Eiffel Tower.jpg' -> 'Eiffel Tower'."""
    return re.sub(r"\.[^.]+$", "", title.replace("File:", "", 1))
