"""iTunes Search API client used to find album artwork."""

import time
from typing import Any

import requests
from loguru import logger
from requests.exceptions import RequestException

from vinylvault.core.errors import LookupFailure


class ItunesApiClient:
    """Low-level client for the public iTunes Search API."""

    BASE_URL = "https://itunes.apple.com/search"

    USER_AGENT = "VinylVault/1.1"

    # Minimum seconds between requests to avoid rate limiting
    MIN_REQUEST_INTERVAL = 1.0

    # The API returns 100x100 artwork; the same URL serves larger sizes
    LOW_RES_TOKEN = "100x100bb"
    HIGH_RES_TOKEN = "600x600bb"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        min_request_interval: float | None = None,
    ) -> None:
        """Initialize the iTunes API client.

        Args:
            base_url: Search endpoint (default: the public iTunes endpoint)
            timeout: Seconds to wait for a response
            min_request_interval: Seconds between requests (default: MIN_REQUEST_INTERVAL)
        """
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.min_request_interval = (
            self.MIN_REQUEST_INTERVAL if min_request_interval is None else min_request_interval
        )

        # For rate limiting
        self._last_request_time: float | None = None

    def _respect_rate_limit(self) -> None:
        """Ensure we don't exceed rate limits by waiting if necessary."""
        if self._last_request_time is not None:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self.min_request_interval:
                time.sleep(self.min_request_interval - elapsed)
        self._last_request_time = time.monotonic()

    def _request(self, params: dict[str, Any], retry_on_limit: bool = True) -> dict[str, Any]:
        """Make a search request.

        Args:
            params: Query parameters
            retry_on_limit: Whether to wait and retry once on HTTP 429

        Returns:
            Decoded JSON response

        Raises:
            LookupFailure: On network, HTTP or decoding errors
        """
        self._respect_rate_limit()

        try:
            logger.debug(f"Making GET request to {self.base_url} with {params}")
            response = requests.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout,
            )

            if response.status_code == 429 and retry_on_limit:
                retry_after = int(response.headers.get("Retry-After", 60))
                logger.warning(f"Rate limited. Waiting {retry_after} seconds")
                time.sleep(retry_after)
                return self._request(params, retry_on_limit=False)

            response.raise_for_status()
            data = response.json()
        except RequestException as e:
            logger.error(f"API request error: {e}")
            raise LookupFailure(f"Artwork lookup failed: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from artwork lookup: {e}")
            raise LookupFailure("Artwork lookup returned an invalid response") from e

        if not isinstance(data, dict):
            raise LookupFailure("Artwork lookup returned an invalid response")
        return data

    def search_albums(self, term: str, limit: int = 1) -> list[dict[str, Any]]:
        """Search albums by free text.

        Args:
            term: Search text, usually ``"artist album"``
            limit: Maximum number of results

        Returns:
            List of album results
        """
        data = self._request({"term": term, "entity": "album", "limit": limit})
        if not data.get("resultCount"):
            return []
        results = data.get("results") or []
        return [result for result in results if isinstance(result, dict)]

    @classmethod
    def upscale_artwork_url(cls, url: str) -> str:
        """Swap the low-resolution size token of an artwork URL for a larger one."""
        return url.replace(cls.LOW_RES_TOKEN, cls.HIGH_RES_TOKEN)

    def find_album_cover(self, artist: str, album: str) -> str | None:
        """Find the cover of an album.

        Args:
            artist: Artist name
            album: Album title

        Returns:
            URL of the 600x600 artwork, or None if nothing matched

        Raises:
            LookupFailure: If the lookup itself failed
        """
        results = self.search_albums(f"{artist} {album}", limit=1)
        if not results:
            return None

        artwork_url = results[0].get("artworkUrl100")
        if not artwork_url:
            return None

        return self.upscale_artwork_url(str(artwork_url))
