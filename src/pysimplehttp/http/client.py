"""Request client with a shared cookie jar (async-only).

``RequestClient`` sets the User-Agent header, attaches stored cookies to
every request, dispatches it without blocking, and on completion splits
the folded ``Set-Cookie`` header, stores the cookies in the jar and calls
the caller's callback with ``(body, headers)``.

Completion order of overlapping requests is whatever the event loop
produces. The cookie jar is shared by all of them and is only safe because
every callback runs on the same event loop thread.
"""

import asyncio
import logging
from enum import Enum
from http.cookiejar import CookieJar
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Set, Tuple, Union
from urllib.parse import urlencode

import httpx

from pysimplehttp.config import DEFAULT_AGENT, DEFAULT_TIMEOUT, Config, validate_timeout
from pysimplehttp.http.cookies import load_cookies_from_file, split_set_cookie
from pysimplehttp.http.headers import load_headers_from_file
from pysimplehttp.http.transport import HeaderMapping, Transport

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'
PSEUDO_HEADERS = frozenset({'Status', 'Reason', 'URL', 'HTTPVersion'})

Callback = Callable[[bytes, HeaderMapping], Any]
Body = Union[None, str, bytes, Mapping[str, str], Iterable[Tuple[str, str]]]


class Method(str, Enum):
    """HTTP methods supported by the client."""

    GET = 'GET'
    HEAD = 'HEAD'
    POST = 'POST'
    PUT = 'PUT'
    DELETE = 'DELETE'


def encode_body(body: Body) -> Tuple[Optional[bytes], Optional[str]]:
    """Encode a request body specification.

    Args:
        body: Form fields (mapping or ``(name, value)`` pairs), raw
            ``str``/``bytes`` content, or None

    Returns:
        Tuple of (content, content type); either may be None

    Raises:
        TypeError: If the body is of an unsupported type
    """
    if body is None:
        return None, None
    if isinstance(body, bytes):
        return body, None
    if isinstance(body, str):
        return body.encode('utf-8'), None
    if isinstance(body, Mapping):
        body = list(body.items())
    if isinstance(body, (list, tuple)):
        return urlencode(body).encode('ascii'), FORM_CONTENT_TYPE
    raise TypeError(f"Unsupported request body type: {type(body).__name__}")


def _build_bodyless(method: Method, url: str, headers: Dict[str, str], body: Body) -> httpx.Request:
    if body is not None:
        raise TypeError(f"{method.value} requests do not take a body")
    return httpx.Request(method.value, url, headers=headers)


def _build_with_body(method: Method, url: str, headers: Dict[str, str], body: Body) -> httpx.Request:
    content, content_type = encode_body(body)
    headers = dict(headers)
    if content_type:
        headers.setdefault('Content-Type', content_type)
    return httpx.Request(method.value, url, headers=headers, content=content)


_BUILDERS = {
    Method.GET: _build_bodyless,
    Method.HEAD: _build_bodyless,
    Method.DELETE: _build_bodyless,
    Method.POST: _build_with_body,
    Method.PUT: _build_with_body,
}


def build_request(
    method: Union[Method, str],
    url: str,
    body: Body = None,
    headers: Optional[Mapping[str, str]] = None,
) -> httpx.Request:
    """Build an outgoing request.

    Args:
        method: HTTP method (case-insensitive if given as a string)
        url: Target URL
        body: Body specification, see ``encode_body``
        headers: Extra request headers

    Returns:
        httpx.Request ready to be passed to ``RequestClient.request``

    Raises:
        ValueError: If the method is not supported
        httpx.InvalidURL: If the URL cannot be parsed
    """
    if isinstance(method, str) and not isinstance(method, Method):
        method = Method(method.upper())
    return _BUILDERS[method](method, url, dict(headers or {}), body)


def normalize_set_cookie(headers: HeaderMapping) -> HeaderMapping:
    """Replace a folded ``set-cookie`` value with a list of cookies, in place."""
    set_cookie = headers.get('set-cookie')
    if isinstance(set_cookie, str):
        headers['set-cookie'] = split_set_cookie(set_cookie)
    return headers


def build_response(request: httpx.Request, headers: HeaderMapping) -> httpx.Response:
    """Rebuild a bodyless response from a header mapping.

    Each entry of a list-valued header becomes its own header line, so the
    cookie jar sees one ``Set-Cookie`` per cookie.

    Args:
        request: The request the response belongs to
        headers: Header mapping with pseudo-headers

    Returns:
        httpx.Response carrying status, reason, headers and request
    """
    header_list = []
    for name, value in headers.items():
        if name in PSEUDO_HEADERS:
            continue
        values = value if isinstance(value, list) else [value]
        # UTF-8 bytes decode back to the same text when the jar reads them
        header_list.extend((name.encode('utf-8'), str(v).encode('utf-8')) for v in values)

    reason = headers.get('Reason') or ''
    return httpx.Response(
        headers['Status'],
        headers=header_list,
        stream=httpx.ByteStream(b""),
        request=request,
        extensions={'reason_phrase': reason.encode('ascii', errors='ignore')},
    )


def _check_callback(callback: Optional[Callback]):
    if not callable(callback):
        raise TypeError(f"A completion callback is required, got {callback!r}")


class RequestClient:
    """Asynchronous HTTP client with a User-Agent and a cookie jar.

    Every verb method returns as soon as the request is scheduled. The
    callback, always the last positional argument, receives the raw body
    and the header mapping once the response (or a transport error with a
    59x ``Status``) is in. The returned ``asyncio.Task`` may be awaited.

    Example:
        >>> async with RequestClient() as client:
        ...     def on_login(body, headers):
        ...         client.get('https://example.com/home', on_home)
        ...     client.post('https://example.com/login',
        ...                 [('user', 'me'), ('password', 'secret')], on_login)
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        agent: str = DEFAULT_AGENT,
        cookie_jar: Any = None,
        transport: Optional[Transport] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        """Initialize client.

        Args:
            timeout: Request timeout in seconds (0 disables it)
            agent: User-Agent header value
            cookie_jar: Cookie jar to share; a fresh one is created lazily
            transport: Transport to dispatch through; created lazily
            headers: Headers added to every request
        """
        self.timeout = timeout
        self.agent = agent
        self._cookie_jar = None
        if cookie_jar is not None:
            self.cookie_jar = cookie_jar
        self._transport = transport
        self.headers: Dict[str, str] = dict(headers or {})
        self._pending: Set[asyncio.Task] = set()

    @property
    def timeout(self) -> int:
        """Request timeout in seconds."""
        return self._timeout

    @timeout.setter
    def timeout(self, value: int):
        self._timeout = validate_timeout(value)

    @property
    def agent(self) -> str:
        """User-Agent sent with every request."""
        return self._agent

    @agent.setter
    def agent(self, value: str):
        self._agent = str(value)

    @property
    def cookie_jar(self) -> Any:
        """Cookie jar shared by all requests of this client."""
        if self._cookie_jar is None:
            self._cookie_jar = httpx.Cookies()
        return self._cookie_jar

    @cookie_jar.setter
    def cookie_jar(self, jar: Any):
        # A plain http.cookiejar jar (e.g. MozillaCookieJar) is wrapped
        if isinstance(jar, CookieJar):
            jar = httpx.Cookies(jar)
        elif not (callable(getattr(jar, 'set_cookie_header', None))
                  and callable(getattr(jar, 'extract_cookies', None))):
            raise TypeError(
                f"Cookie jar must provide set_cookie_header() and extract_cookies(), got {jar!r}"
            )
        self._cookie_jar = jar

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = Transport()
        return self._transport

    def get(self, url: str, callback: Callback, *, headers: Optional[Mapping[str, str]] = None) -> asyncio.Task:
        return self._request(Method.GET, url, None, callback, headers)

    def head(self, url: str, callback: Callback, *, headers: Optional[Mapping[str, str]] = None) -> asyncio.Task:
        return self._request(Method.HEAD, url, None, callback, headers)

    def delete(self, url: str, callback: Callback, *, headers: Optional[Mapping[str, str]] = None) -> asyncio.Task:
        return self._request(Method.DELETE, url, None, callback, headers)

    def post(
        self, url: str, body: Body, callback: Callback, *, headers: Optional[Mapping[str, str]] = None
    ) -> asyncio.Task:
        """Send a POST request.

        Args:
            url: Target URL
            body: ``(name, value)`` pairs or a mapping to send as a form,
                or raw ``str``/``bytes`` content
            callback: Called with ``(body, headers)`` on completion
            headers: Extra request headers

        Returns:
            The scheduled task
        """
        return self._request(Method.POST, url, body, callback, headers)

    def put(
        self, url: str, body: Body, callback: Callback, *, headers: Optional[Mapping[str, str]] = None
    ) -> asyncio.Task:
        """Send a PUT request. Arguments as for ``post``."""
        return self._request(Method.PUT, url, body, callback, headers)

    def _request(
        self,
        method: Method,
        url: str,
        body: Body,
        callback: Callback,
        headers: Optional[Mapping[str, str]],
    ) -> asyncio.Task:
        _check_callback(callback)
        request = build_request(method, url, body, {**self.headers, **(headers or {})})
        return self.request(request, callback)

    def request(self, request: httpx.Request, callback: Callback) -> asyncio.Task:
        """Dispatch a prepared request.

        Sets the User-Agent, lets the cookie jar add a ``Cookie`` header,
        and hands the request to the transport. When the transport
        completes, the ``set-cookie`` header is split into a list, cookies
        are stored in the jar, and ``callback(body, headers)`` is called
        with the normalized headers. A coroutine returned by the callback
        is awaited.

        Args:
            request: Request to send
            callback: Completion callback

        Returns:
            Task that finishes after the callback returned

        Raises:
            TypeError: If callback is missing or not callable
            RuntimeError: If there is no running event loop
        """
        _check_callback(callback)

        request.headers['User-Agent'] = self.agent
        self.cookie_jar.set_cookie_header(request)

        def on_complete(body: bytes, headers: HeaderMapping):
            normalize_set_cookie(headers)
            response = build_response(request, headers)
            self.cookie_jar.extract_cookies(response)
            return callback(body, headers)

        task = self.transport.dispatch(
            request.method,
            request.url,
            timeout=self.timeout,
            headers=request.headers,
            body=request.content,
            on_complete=on_complete,
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait(self):
        """Wait for all in-flight requests, including ones started by callbacks.

        Every task is allowed to finish; the first exception raised by a
        callback is raised afterwards.
        """
        error = None
        while self._pending:
            results = await asyncio.gather(*list(self._pending), return_exceptions=True)
            for result in results:
                if error is None and isinstance(result, BaseException):
                    error = result
        if error is not None:
            raise error

    async def aclose(self):
        """Wait for in-flight requests, then close the transport."""
        try:
            await self.wait()
        finally:
            if self._transport is not None:
                await self._transport.aclose()

    async def __aenter__(self) -> 'RequestClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


def create_client(config: Config) -> RequestClient:
    """Create a request client from configuration.

    Args:
        config: Configuration object

    Returns:
        Configured RequestClient, with headers and cookies loaded from the
        configured files

    Example:
        >>> config = Config(cookie_file='cookies.txt')
        >>> async with create_client(config) as client:
        ...     client.get(url, on_response)
    """
    headers = {}
    if config.header_file:
        headers = load_headers_from_file(config.header_file)

    client = RequestClient(
        timeout=config.timeout,
        agent=config.user_agent,
        transport=Transport(verify=config.verify_ssl),
        headers=headers,
    )

    if config.cookie_file:
        for cookie in load_cookies_from_file(config.cookie_file):
            client.cookie_jar.jar.set_cookie(cookie)

    return client
