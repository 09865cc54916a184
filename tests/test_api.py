from __future__ import annotations

from collections.abc import Callable

import httpx
from fastapi.testclient import TestClient

from page_meta.api import CORS_HEADERS, create_app
from page_meta.config import Settings

MakeTransport = Callable[..., httpx.MockTransport]


def _client(transport: httpx.BaseTransport) -> TestClient:
    return TestClient(create_app(Settings(), transport=transport))


def test_no_query_is_bad_request(html_transport: MakeTransport) -> None:
    r = _client(html_transport(b"")).get("/")
    assert r.status_code == 400
    assert r.json() == {"msg": "no query", "success": False}


def test_missing_url_is_bad_request(html_transport: MakeTransport) -> None:
    r = _client(html_transport(b"")).get("/", params={"link": "https://example.com/"})
    assert r.status_code == 400
    assert r.json() == {"msg": "need url query", "success": False}


def test_success_envelope(html_transport: MakeTransport) -> None:
    body = b"""<html><head>
      <meta charset="utf-8">
      <title>Example</title>
      <meta property="og:type" content="website">
    </head><body></body></html>"""
    r = _client(html_transport(body)).get("/", params={"url": "https://example.com/a"})

    assert r.status_code == 200
    assert r.headers["content-type"] == "application/json;charset=UTF-8"
    for name, value in CORS_HEADERS.items():
        assert r.headers[name] == value
    assert r.json() == {
        "host": "example.com",
        "metas": {"charset": "utf-8", "og_type": "website"},
        "protocol": "HTTP/1.1",
        "status_code": 200,
        "status_text": "200 OK",
        "success": True,
        "title": "Example",
        "url": "https://example.com/a",
    }


def test_upstream_error_status_is_passed_through(html_transport: MakeTransport) -> None:
    transport = html_transport(b"<title>Server Error</title>", status_code=503)
    r = _client(transport).get("/", params={"url": "https://example.com/"})
    assert r.status_code == 200
    payload = r.json()
    assert payload["success"] is True
    assert payload["status_code"] == 503
    assert payload["status_text"] == "503 Service Unavailable"
    assert payload["title"] == "Server Error"


def test_fetch_failure_is_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    r = _client(httpx.MockTransport(handler)).get("/", params={"url": "https://slow.example.com/"})
    assert r.status_code == 500
    assert r.json() == {"msg": "timed out", "success": False}


def test_invalid_url_is_server_error(html_transport: MakeTransport) -> None:
    r = _client(html_transport(b"")).get("/", params={"url": "mailto:someone@example.com"})
    assert r.status_code == 500
    assert r.json()["success"] is False


def test_stream_failure_is_server_error(
    html_transport: MakeTransport, chunked_stream: Callable[..., httpx.SyncByteStream]
) -> None:
    stream = chunked_stream([b"<head><title>"], error=httpx.RemoteProtocolError("peer closed connection"))
    r = _client(html_transport(stream=stream)).get("/", params={"url": "https://example.com/"})
    assert r.status_code == 500
    payload = r.json()
    assert payload["success"] is False
    assert "peer closed connection" in payload["msg"]


def test_preflight_has_cors_headers(html_transport: MakeTransport) -> None:
    r = _client(html_transport(b"")).options("/")
    assert r.status_code == 204
    assert r.headers["access-control-allow-methods"] == "GET,OPTIONS"
    assert r.headers["access-control-allow-origin"] == "*"


def test_non_charset_codec_label_still_returns_envelope(html_transport: MakeTransport) -> None:
    transport = html_transport(b"<head><title>Hello</title></head>", content_type="text/html; charset=base64")
    r = _client(transport).get("/", params={"url": "https://example.com/"})
    assert r.status_code == 200
    assert r.json()["title"] == "Hello"
