# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import itertools

import httpx

from mirrorrank.config import ProbeSettings
from mirrorrank.errors import ErrorCategory
from mirrorrank.http import httpx_client
from mirrorrank.http.adapters import StubHttpClient
from mirrorrank.http.httpx_client import HttpxClient
from mirrorrank.http.models import HttpRequest, HttpResponse


def _client(handler, settings=None):
    settings = settings or ProbeSettings(user_agent="UA/1.0")
    return HttpxClient(settings, client=httpx.Client(transport=httpx.MockTransport(handler)))


class ChunkStream(httpx.SyncByteStream):
    def __init__(self, chunks, error=None):
        self._chunks = chunks
        self._error = error

    def __iter__(self):
        yield from self._chunks
        if self._error is not None:
            raise self._error


def test_httpx_client_counts_discarded_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, headers={"Content-Length": "4096"}, stream=ChunkStream([b"x" * 2048, b"x" * 2048]))

    client = _client(handler)
    resp = client.request(HttpRequest(url="https://mirror.example/core.db", discard_body=True, timeout=5, connect_timeout=2))
    assert resp.ok is True
    assert resp.connected is True
    assert resp.status_code == 200
    assert resp.bytes_read == 4096
    assert resp.content == b""
    assert resp.content_length == 4096
    assert resp.elapsed >= 0
    assert seen[0].headers["User-Agent"] == "UA/1.0"


def test_httpx_client_keeps_body_when_requested():
    client = _client(lambda request: httpx.Response(404, stream=ChunkStream([b"miss", b"ing"])))
    resp = client.request(HttpRequest(url="https://mirror.example/core.db"))
    assert resp.ok is True
    assert resp.status_code == 404
    assert resp.content == b"missing"


def test_httpx_client_connect_failure_is_not_connected():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    resp = _client(handler).request(HttpRequest(url="https://down.example/core.db", method="HEAD"))
    assert resp.ok is False
    assert resp.connected is False
    assert resp.status_code is None
    assert resp.error_category == ErrorCategory.CONNECTION_ERROR
    assert resp.error_type == "ConnectError"


def test_httpx_client_mid_body_reset_is_connected():
    def handler(request):
        return httpx.Response(200, stream=ChunkStream([b"abc"], httpx.ReadError("reset", request=request)))

    resp = _client(handler).request(HttpRequest(url="https://flaky.example/core.db", discard_body=True))
    assert resp.ok is False
    assert resp.connected is True
    assert resp.status_code == 200
    assert resp.bytes_read == 3
    assert resp.error_category == ErrorCategory.CONNECTION_ERROR


def test_httpx_client_enforces_max_time(monkeypatch):
    ticks = itertools.count(0, 5)
    monkeypatch.setattr(httpx_client.time, "perf_counter", lambda: next(ticks))

    def handler(request):
        return httpx.Response(200, stream=ChunkStream([b"a" * 10, b"b" * 10]))

    resp = _client(handler).request(HttpRequest(url="https://slow.example/core.db", max_time=1.0, discard_body=True))
    assert resp.ok is False
    assert resp.connected is True
    assert resp.error_category == ErrorCategory.TIMEOUT
    assert resp.error_type == "TransferTimeExceeded"


def test_content_length_parsing():
    assert HttpResponse(ok=True, headers={"content-length": "12"}).content_length == 12
    assert HttpResponse(ok=True, headers={"Content-Length": "junk"}).content_length is None
    assert HttpResponse(ok=True).content_length is None


def test_stub_client_records_requests_and_defaults_to_failure():
    stub = StubHttpClient()
    stub.add("https://a.example/x", HttpResponse(ok=True, status_code=200), method="HEAD")
    assert stub.request(HttpRequest(url="https://a.example/x", method="HEAD")).ok is True
    missing = stub.request(HttpRequest(url="https://a.example/x"))
    assert missing.ok is False
    assert missing.connected is False
    assert [r.method for r in stub.requests] == ["HEAD", "GET"]
    stub.close()
    assert stub.closed is True
