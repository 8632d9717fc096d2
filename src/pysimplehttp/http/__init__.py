"""HTTP client infrastructure for pysimplehttp (async-only).

Uses httpx as the transport and its cookie jar for cookie storage.
"""

from pysimplehttp.http.client import (
    Method,
    RequestClient,
    build_request,
    create_client,
)
from pysimplehttp.http.cookies import load_cookies_from_file, split_set_cookie
from pysimplehttp.http.headers import load_headers_from_file
from pysimplehttp.http.transport import Transport, is_transport_error

__all__ = [
    "Method",
    "RequestClient",
    "Transport",
    "build_request",
    "create_client",
    "is_transport_error",
    "load_cookies_from_file",
    "load_headers_from_file",
    "split_set_cookie",
]
