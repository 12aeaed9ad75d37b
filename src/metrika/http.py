"""HTTP transport for the Metrika reporting API.

Wraps httpx.AsyncClient bound to the ``stat/v1/data`` endpoint with the
OAuth header attached once at construction. :func:`fetch_report` is the
fetch engine: it turns every transport or decoding failure into a
:class:`~metrika.models.FetchError` value instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from metrika.config import DEFAULT_BASE_URL
from metrika.models import FetchError

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-yametrika+json"


class MetrikaTransport:
    """Authenticated GET access to the Metrika API.

    Usage::

        async with MetrikaTransport(token) as transport:
            body = await transport.send(query={"ids": "123", "metrics": "ym:s:visits"})

    A caller-supplied *client* is used as-is and left open on exit; the
    headers are sent per request in that case.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._headers = {
            "Content-Type": CONTENT_TYPE,
            "Authorization": f"OAuth {token}",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=self._headers,
            timeout=timeout,
            follow_redirects=True,
        )

    async def send(
        self,
        method: str = "GET",
        path: str = "",
        query: Mapping[str, str | int] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response.
            httpx.RequestError: On connection errors and timeouts.
            ValueError: If the body is not valid JSON.
        """
        url = self.base_url + path
        resp = await self._client.request(
            method,
            url,
            params=dict(query or {}),
            headers=self._headers,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> MetrikaTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _describe_status_error(exc: httpx.HTTPStatusError) -> str:
    """Build a readable message, including the API's own error text if any."""
    message = f"HTTP {exc.response.status_code} from {exc.request.url.host}"
    try:
        body = exc.response.json()
    except ValueError:
        return message
    if isinstance(body, dict) and body.get("message"):
        message += f": {body['message']}"
    return message


async def fetch_report(
    transport: MetrikaTransport,
    query: Mapping[str, str | int],
) -> dict[str, Any] | FetchError:
    """Fetch one report payload.

    Args:
        transport: Bound transport.
        query: Query parameters for ``stat/v1/data``.

    Returns:
        The decoded payload dict, or a :class:`FetchError` describing why it
        could not be obtained. Nothing is raised for transport failures.
    """
    try:
        body = await transport.send("GET", "", query)
    except httpx.HTTPStatusError as exc:
        error = FetchError(_describe_status_error(exc), exc.response.status_code)
    except httpx.HTTPError as exc:
        error = FetchError(f"{type(exc).__name__}: {exc}")
    except ValueError as exc:
        error = FetchError(f"Malformed response body: {exc}")
    else:
        if isinstance(body, dict):
            return body
        error = FetchError(f"Unexpected response type: {type(body).__name__}")

    logger.error("Yandex Metrika: %s", error.message)
    return error
