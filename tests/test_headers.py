import httpx

from pysimplehttp.http.headers import load_headers_from_file


def test_load_headers_from_file(tmp_path):
    header_file = tmp_path / "headers.txt"
    header_file.write_text(
        "# extra headers\n"
        "Accept: text/html\n"
        "\n"
        "Referer: https://example.com/a:b\n"
        "no colon here\n"
        "Accept: application/json\n"
    )

    assert load_headers_from_file(str(header_file)) == {
        "Accept": "application/json",
        "Referer": "https://example.com/a:b",
    }


def test_load_headers_from_file__missing(tmp_path):
    assert load_headers_from_file(str(tmp_path / "nope.txt")) == {}


def test_load_headers_from_file__whitespace_and_empty_values(tmp_path):
    header_file = tmp_path / "headers.txt"
    header_file.write_text(
        "   X-Padded   :   spaced value   \n"
        "X-Empty:\n"
        "\t# indented comment\n"
    )

    assert load_headers_from_file(str(header_file)) == {
        "X-Padded": "spaced value",
        "X-Empty": "",
    }


async def test_header_file_applies_to_every_request(tmp_path, make_client):
    header_file = tmp_path / "headers.txt"
    header_file.write_text("Accept-Language: de\nReferer: https://example.com/\n")

    client, recorder = make_client(
        lambda request: httpx.Response(200),
        headers=load_headers_from_file(str(header_file)),
    )
    async with client:
        client.get("https://example.com/a", lambda body, headers: None)
        client.post("https://example.com/b", [("q", "1")], lambda body, headers: None)

    assert [r.headers["Accept-Language"] for r in recorder.requests] == ["de", "de"]
    assert all(r.headers["Referer"] == "https://example.com/" for r in recorder.requests)
