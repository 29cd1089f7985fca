"""
Remote sync adapter for a spreadsheet-backed action-dispatch endpoint.

Reads:  GET  {url}?action=<name>&_t=<ms>   -> JSON collection
Writes: POST {url}  {"action", "data", "timestamp"}

Both calls are best effort. Failures are logged and turned into
None/False; nothing here raises on network or parse errors.
"""

import logging
import time
from typing import Any

import httpx

from .dates import utc_now_iso

logger = logging.getLogger(__name__)


class SheetsAdapter:
    """Async client for the sheet endpoint.

    Parameters
    ----------
    url : Endpoint URL. None or empty disables the adapter.
    timeout : Per-request timeout in seconds.
    transport : Optional httpx transport (tests pass an httpx.MockTransport).
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or None
        self.timeout = timeout
        self._transport = transport

    def is_enabled(self) -> bool:
        return bool(self.url)

    def _client(self) -> httpx.AsyncClient:
        # Apps Script web apps answer with a 302 to the content host
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch(self, action: str) -> Any | None:
        """Read a collection; None on any failure or when disabled."""
        if not self.is_enabled():
            return None

        params = {"action": action, "_t": str(int(time.time() * 1000))}
        async with self._client() as client:
            try:
                response = await client.get(self.url, params=params)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as http_err:
                logger.warning(
                    "Sheets fetch '%s' failed with HTTP %s",
                    action, http_err.response.status_code,
                )
                return None
            except (httpx.HTTPError, ValueError) as e:
                # ValueError covers bad JSON and undecodable bytes
                logger.warning("Sheets fetch '%s' failed: %s", action, e)
                return None

        logger.info("Fetched '%s' from sheets endpoint", action)
        return payload

    async def push(self, action: str, payload: Any) -> bool:
        """Send a write. True once the request went out without a transport error.

        The response status and body are not inspected, so an endpoint
        that rejects the write still reports True.
        """
        if not self.is_enabled():
            return False

        body = {"action": action, "data": payload, "timestamp": utc_now_iso()}
        async with self._client() as client:
            try:
                await client.post(self.url, json=body)
            except httpx.HTTPError as e:
                logger.warning("Sheets push '%s' failed: %s", action, e)
                return False

        logger.info("Pushed '%s' to sheets endpoint", action)
        return True
