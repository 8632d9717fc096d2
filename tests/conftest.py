from typing import Callable, List

import httpx
import pytest

from pysimplehttp.http.client import RequestClient
from pysimplehttp.http.transport import Transport

EXPIRES = "Expires=Sat, 09 Jun 2035 10:18:14 GMT"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def mock_transport(handler) -> Transport:
    return Transport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def make_client():
    def factory(respond, **kwargs):
        recorder = Recorder(respond)
        return RequestClient(transport=mock_transport(recorder), **kwargs), recorder

    return factory
