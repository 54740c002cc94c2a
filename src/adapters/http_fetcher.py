"""HTTP fetch adapter for lookup URLs.

Implements the core FetcherPort with urllib: a plain GET with no custom
headers and no retry, bounded by a timeout and a body size cap.
"""

from __future__ import annotations

import http.client
import logging
import urllib.error
import urllib.request

from core.errors import LookupFetchError, LookupReadError

LOGGER = logging.getLogger(__name__)


class UrllibFetcher:
    """Fetcher adapter backed by urllib.request."""

    def __init__(self, timeout: float = 10.0, max_bytes: int = 1024 * 1024) -> None:
        self._timeout = timeout
        self._max_bytes = max_bytes

    def fetch(self, url: str) -> bytes:
        """Return at most ``max_bytes`` of the response body."""

        try:
            response = urllib.request.urlopen(url, timeout=self._timeout)
        except urllib.error.HTTPError as e:
            raise LookupFetchError(url, f"HTTP {e.code}") from e
        except (urllib.error.URLError, ValueError, OSError) as e:
            raise LookupFetchError(url, str(e)) from e
        except http.client.HTTPException as e:
            # InvalidURL (spaces/control characters) and BadStatusLine land here.
            raise LookupFetchError(url, f"{type(e).__name__}: {e}") from e

        with response:
            try:
                # The title sits near the top of a page; a truncated body is fine.
                body = response.read(self._max_bytes)
            except (OSError, http.client.HTTPException) as e:
                raise LookupReadError(url, str(e)) from e

        LOGGER.debug("Fetched %s bytes from %s", len(body), url)
        return body
