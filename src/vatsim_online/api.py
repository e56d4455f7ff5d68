"""VATSIM data feed client."""

import logging
import random
import time
from typing import Any

import requests

from vatsim_online.models import Roster, parse_roster

logger = logging.getLogger(__name__)

# The status document advertises the current v3 data feed URLs
STATUS_URL = "https://status.vatsim.net/status.json"
USER_AGENT = "vatsim-online (+https://github.com/celeo/vatsim_online)"
DEFAULT_TIMEOUT = 10.0


class FetchError(Exception):
    """Raised when the data feed cannot be retrieved or understood."""


class VatsimClient:
    """
    Thin wrapper around the VATSIM v3 data feed using requests.

    Without an explicit data URL the client asks the status document for the
    feed location on first use and caches it until a fetch fails.
    """

    def __init__(
        self,
        status_url: str = STATUS_URL,
        data_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._status_url = status_url
        self._fixed_data_url = data_url
        self._data_url: str | None = data_url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})

    @property
    def data_url(self) -> str | None:
        """The feed URL in use, if one has been resolved."""
        return self._data_url

    def fetch(self) -> Roster:
        """
        Fetch and parse the current data feed.

        Raises:
            FetchError: On network failure, non-2xx status, or a malformed body.
        """
        url = self._data_url or self._resolve_data_url()
        logger.debug("Getting current data from %s", url)
        try:
            payload = self._get_json(url)
            try:
                roster = parse_roster(payload, fetched_at=time.time())
            except ValueError as exc:
                raise FetchError(f"Unexpected data feed format: {exc}") from exc
        except FetchError:
            # Re-resolve next time in case the advertised feed moved
            self._data_url = self._fixed_data_url
            raise

        logger.debug(
            "Fetched %d pilots and %d controllers",
            len(roster.pilots),
            len(roster.controllers),
        )
        return roster

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def _resolve_data_url(self) -> str:
        logger.debug("Getting v3 URL from status page %s", self._status_url)
        status = self._get_json(self._status_url)
        try:
            urls = status["data"]["v3"]
        except (KeyError, TypeError) as exc:
            raise FetchError("Status document has no v3 data URLs") from exc
        if not isinstance(urls, list) or not urls:
            raise FetchError("Status document has no v3 data URLs")

        self._data_url = str(random.choice(urls))
        logger.info("Using data feed %s", self._data_url)
        return self._data_url

    def _get_json(self, url: str) -> Any:
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Request to {url} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(f"Got status {response.status_code} from {url}")

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"Response from {url} was not valid JSON") from exc
