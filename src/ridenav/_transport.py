"""JSON-over-HTTP transport with status classification."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from ridenav._constants import USER_AGENT
from ridenav._redact import redact_for_log
from ridenav.config import RideNavConfig
from ridenav.exceptions import RideNavApiError, RideNavTransportError, RideNavValidationError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        ...


def raise_for_status(status: int, text: str, endpoint: str) -> None:
    """Map a non-2xx status onto the exception taxonomy.

    5xx and 408/429 are network-class (retryable); any other 4xx is a
    terminal validation failure.
    """
    if 200 <= status < 300:
        return
    message = f"HTTP {status} from {endpoint}: {text[:200]}"
    if status >= 500 or status in (408, 429):
        raise RideNavTransportError(message, status_code=status, endpoint=endpoint)
    if 400 <= status < 500:
        raise RideNavValidationError(message, status_code=status, endpoint=endpoint)
    raise RideNavApiError(message, status_code=status, endpoint=endpoint)


class HttpTransport:
    """aiohttp-backed transport that decodes JSON and classifies failures."""

    def __init__(self, config: RideNavConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self, url: str) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if self._config.auth_token and url.startswith(self._config.api_base_url):
            headers["authorization"] = f"Bearer {self._config.auth_token}"
        return headers

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises
        ------
        RideNavTransportError
            Connection failure, timeout, retryable status or invalid JSON.
        RideNavValidationError
            Terminal 4xx status.
        """
        body = json.dumps(payload, separators=(",", ":")) if payload is not None else None
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("%s %s params=%s body=%s", method, url, redact_for_log(params), redact_for_log(payload))

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=body,
                headers=self._headers(url),
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                raise_for_status(resp.status, text, url)
        except (RideNavTransportError, RideNavApiError):
            raise
        except TimeoutError as exc:
            raise RideNavTransportError(f"Request to {url} timed out", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise RideNavTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        if not text.strip():
            return {}

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise RideNavTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                endpoint=url,
            ) from exc
