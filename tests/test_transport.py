import asyncio

import httpx
import pytest

from pysimplehttp.http.transport import (
    STATUS_BODY_ERROR,
    STATUS_CONNECT_ERROR,
    STATUS_OTHER_ERROR,
    STATUS_REQUEST_ERROR,
    Transport,
    error_status,
    is_transport_error,
    make_timeout,
)

from tests.conftest import EXPIRES, mock_transport


async def test_dispatch__folds_repeated_headers():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            201,
            headers=[
                ("Set-Cookie", f"a=1; {EXPIRES}"),
                ("Set-Cookie", f"b=2; {EXPIRES}"),
                ("X-Thing", "yes"),
            ],
            content=b"created",
        )

    received = []
    transport = mock_transport(handler)
    task = transport.dispatch(
        "GET",
        "https://example.com/items",
        timeout=30,
        headers={"Accept": "*/*"},
        body=None,
        on_complete=lambda body, headers: received.append((body, headers)),
    )
    assert isinstance(task, asyncio.Task)
    assert not received

    await task

    [(body, headers)] = received
    assert body == b"created"
    assert headers["set-cookie"] == f"a=1; {EXPIRES}, b=2; {EXPIRES}"
    assert headers["x-thing"] == "yes"
    assert headers["Status"] == 201
    assert headers["Reason"] == "Created"
    assert headers["URL"] == "https://example.com/items"
    assert headers["HTTPVersion"] == "1.1"
    assert not is_transport_error(headers)


async def test_dispatch__sends_method_headers_and_body():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    transport = mock_transport(handler)
    await transport.dispatch(
        "PUT",
        "https://example.com/doc",
        timeout=5,
        headers={"X-Test": "1"},
        body=b"payload",
        on_complete=lambda body, headers: None,
    )

    [request] = seen
    assert request.method == "PUT"
    assert request.headers["X-Test"] == "1"
    assert request.content == b"payload"
    assert request.extensions["timeout"] == make_timeout(5).as_dict()


async def test_dispatch__transport_error_goes_to_callback():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    received = []
    transport = mock_transport(handler)
    await transport.dispatch(
        "GET",
        "https://example.com/",
        timeout=30,
        headers={},
        body=None,
        on_complete=lambda body, headers: received.append((body, headers)),
    )

    [(body, headers)] = received
    assert body == b""
    assert headers["Status"] == STATUS_CONNECT_ERROR
    assert headers["Reason"] == "connection refused"
    assert headers["URL"] == "https://example.com/"
    assert is_transport_error(headers)


async def test_dispatch__awaits_coroutine_callback():
    done = []

    async def on_complete(body, headers):
        await asyncio.sleep(0)
        done.append(headers["Status"])
        return "finished"

    transport = mock_transport(lambda request: httpx.Response(200))
    result = await transport.dispatch(
        "GET", "https://example.com/", timeout=30, headers={}, body=None, on_complete=on_complete
    )
    assert result == "finished"
    assert done == [200]


def test_dispatch__requires_running_loop():
    transport = mock_transport(lambda request: httpx.Response(200))
    with pytest.raises(RuntimeError):
        transport.dispatch(
            "GET", "https://example.com/", timeout=30, headers={}, body=None,
            on_complete=lambda body, headers: None,
        )


@pytest.mark.parametrize(
    "error, status",
    [
        (httpx.ConnectError("x"), STATUS_CONNECT_ERROR),
        (httpx.ConnectTimeout("x"), STATUS_CONNECT_ERROR),
        (httpx.WriteTimeout("x"), STATUS_REQUEST_ERROR),
        (httpx.RemoteProtocolError("x"), STATUS_REQUEST_ERROR),
        (httpx.ReadTimeout("x"), STATUS_BODY_ERROR),
        (httpx.ReadError("x"), STATUS_BODY_ERROR),
        (httpx.UnsupportedProtocol("x"), STATUS_OTHER_ERROR),
    ],
)
def test_error_status(error, status):
    assert error_status(error) == status


def test_make_timeout():
    assert make_timeout(0) == httpx.Timeout(None)
    assert make_timeout(30) == httpx.Timeout(30)


def test_is_transport_error():
    assert not is_transport_error({"Status": 500})
    assert is_transport_error({"Status": 599})
    assert not is_transport_error({})


async def test_httpx_client_keeps_no_cookies():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Set-Cookie": f"s=1; Path=/; {EXPIRES}"})

    injected = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = Transport(injected)
    await transport.dispatch(
        "GET", "https://example.com/", timeout=30, headers={}, body=None,
        on_complete=lambda body, headers: None,
    )

    assert list(transport.client.cookies.jar) == []


def test_owned_client_keeps_no_cookies():
    transport = Transport()
    response = httpx.Response(
        200,
        headers={"Set-Cookie": "a=1; Path=/"},
        request=httpx.Request("GET", "https://example.com/"),
    )
    transport.client.cookies.extract_cookies(response)
    assert len(transport.client.cookies) == 0
