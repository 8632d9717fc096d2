"""Asynchronous transport built on httpx (async-only).

The transport performs a single HTTP exchange and reports the outcome to a
completion callback as ``(body, headers)``, where ``headers`` is a plain
dict of lower-cased header names plus the ``Status``, ``Reason``, ``URL``
and ``HTTPVersion`` pseudo-headers. Repeated headers are folded into one
comma-joined value.

No redirects, no retries, no HTTP/2 and no proxies.
"""

import asyncio
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Callable, Dict, Mapping, Optional, Union

import httpx

logger = logging.getLogger(__name__)

HeaderMapping = Dict[str, Any]
CompletionCallback = Callable[[bytes, HeaderMapping], Any]

# Pseudo status codes for failures that never produced a response
STATUS_CONNECT_ERROR = 595
STATUS_REQUEST_ERROR = 596
STATUS_BODY_ERROR = 597
STATUS_OTHER_ERROR = 599

_ERROR_STATUSES = (
    ((httpx.ConnectError, httpx.ConnectTimeout, httpx.ProxyError), STATUS_CONNECT_ERROR),
    ((httpx.WriteError, httpx.WriteTimeout, httpx.RemoteProtocolError,
      httpx.LocalProtocolError, httpx.PoolTimeout), STATUS_REQUEST_ERROR),
    ((httpx.ReadError, httpx.ReadTimeout, httpx.DecodingError), STATUS_BODY_ERROR),
)


def error_status(error: httpx.RequestError) -> int:
    """Map an httpx request error to a 59x pseudo status code."""
    for error_types, status in _ERROR_STATUSES:
        if isinstance(error, error_types):
            return status
    return STATUS_OTHER_ERROR


def is_transport_error(headers: Mapping[str, Any]) -> bool:
    """Check whether a header mapping describes a transport failure."""
    status = headers.get('Status')
    return isinstance(status, int) and status >= STATUS_CONNECT_ERROR


def fold_headers(response: httpx.Response) -> HeaderMapping:
    """Build the header mapping handed to completion callbacks.

    Args:
        response: Response received from httpx

    Returns:
        Dict of lower-cased header names (repeated headers joined with
        ``", "``) plus pseudo-headers
    """
    headers: HeaderMapping = dict(response.headers.items())
    headers['Status'] = response.status_code
    headers['Reason'] = response.reason_phrase
    headers['URL'] = str(response.url)
    headers['HTTPVersion'] = response.http_version.replace('HTTP/', '')
    return headers


def error_headers(url: str, error: httpx.RequestError) -> HeaderMapping:
    """Build the header mapping for a request that failed in transit."""
    return {
        'Status': error_status(error),
        'Reason': str(error) or error.__class__.__name__,
        'URL': url,
    }


class RejectAllCookiePolicy(DefaultCookiePolicy):
    """Cookie policy that neither stores nor returns cookies."""

    def set_ok(self, cookie, request):
        return False

    def return_ok(self, cookie, request):
        return False


def discarding_cookie_jar() -> CookieJar:
    """Cookie store for the httpx client that keeps nothing.

    ``AsyncClient.send`` extracts cookies from every response into the
    client's own jar; the session cookies live in ``RequestClient.cookie_jar``.
    """
    return CookieJar(policy=RejectAllCookiePolicy())


def make_timeout(seconds: int) -> httpx.Timeout:
    """Convert a timeout in seconds to httpx form (``0`` disables it)."""
    return httpx.Timeout(seconds or None)


class Transport:
    """Dispatches requests through an ``httpx.AsyncClient``.

    Attributes:
        client: The underlying httpx client
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        verify: bool = True,
    ):
        """Initialize transport.

        Args:
            client: Client to send requests with; one is created (and owned)
                if not given. Its cookie store is replaced with one that
                keeps nothing.
            verify: Verify TLS certificates when creating a client
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            verify=verify,
            follow_redirects=False,
            trust_env=False,
        )
        # httpx wraps a CookieJar as is; an httpx.Cookies would be copied into a default jar
        self.client.cookies = discarding_cookie_jar()

    def dispatch(
        self,
        method: str,
        url: Union[str, httpx.URL],
        *,
        timeout: int,
        headers: Union[Mapping[str, str], httpx.Headers],
        body: Optional[bytes],
        on_complete: CompletionCallback,
    ) -> 'asyncio.Task':
        """Schedule a request and return immediately.

        ``on_complete`` is invoked exactly once, with the response body and
        header mapping, or with an empty body and a 59x ``Status`` if the
        request failed in transit.

        Args:
            method: HTTP method
            url: Target URL
            timeout: Timeout in seconds (0 disables it)
            headers: Request headers
            body: Request body, if any
            on_complete: Completion callback

        Returns:
            The scheduled task

        Raises:
            RuntimeError: If there is no running event loop
        """
        request = httpx.Request(
            method,
            url,
            headers=headers,
            content=body or None,
            extensions={'timeout': make_timeout(timeout).as_dict()},
        )
        loop = asyncio.get_running_loop()
        logger.debug(f"Dispatching {method} {url}")
        return loop.create_task(self._exchange(request, on_complete))

    async def _exchange(self, request: httpx.Request, on_complete: CompletionCallback) -> Any:
        try:
            response = await self.client.send(request, follow_redirects=False)
        except httpx.RequestError as e:
            logger.warning(f"{request.method} {request.url} failed: {e!r}")
            return await _complete(on_complete, b"", error_headers(str(request.url), e))

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return await _complete(on_complete, response.content, fold_headers(response))

    async def aclose(self):
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()


async def _complete(on_complete: CompletionCallback, body: bytes, headers: HeaderMapping) -> Any:
    result = on_complete(body, headers)
    if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
        result = await result
    return result
