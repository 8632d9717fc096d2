"""
pysimplehttp - A small asynchronous HTTP client with a cookie jar.

Wraps httpx with a User-Agent header, a cookie jar shared across requests,
and callbacks that receive a ``Set-Cookie`` header split back into
individual cookies.
"""

__version__ = "0.2.0"
__license__ = "AGPL-3.0"

from pysimplehttp.config import Config
from pysimplehttp.http.client import Method, RequestClient, create_client

__all__ = ["Config", "Method", "RequestClient", "create_client", "__version__"]
