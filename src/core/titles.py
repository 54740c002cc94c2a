"""Title extraction and cached lookup resolution (core domain)."""

from __future__ import annotations

from collections import OrderedDict
import logging
import threading
from typing import Union

from bs4 import BeautifulSoup

from core.ports import FetcherPort

LOGGER = logging.getLogger(__name__)

NO_TITLE = "no title"


def extract_title(content: Union[bytes, str]) -> str:
    """Return the text of the first <title> element, or NO_TITLE.

    Titles inside comments or script text are not elements and are skipped.
    """

    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    title = BeautifulSoup(content, "html.parser").title
    if title is None:
        return NO_TITLE
    return title.get_text().strip()


class TitleResolver:
    """Fetch lookup URLs and remember their titles.

    Only successful lookups are cached; a failed fetch is retried the next
    time the URL shows up. The cache is bounded and evicts the least recently
    used URL.
    """

    def __init__(self, fetcher: FetcherPort, cache_size: int = 256) -> None:
        self._fetcher = fetcher
        self._cache_size = cache_size
        self._cache: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    def resolve(self, url: str) -> str:
        with self._lock:
            if url in self._cache:
                self._cache.move_to_end(url)
                return self._cache[url]

        # Fetch outside the lock so one slow URL does not stall other threads.
        title = extract_title(self._fetcher.fetch(url))
        LOGGER.debug("Resolved %s to %r", url, title)

        if self._cache_size <= 0:
            return title
        with self._lock:
            self._cache[url] = title
            self._cache.move_to_end(url)
            while len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        return title
