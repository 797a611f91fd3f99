# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed HttpClient implementation."""

from __future__ import annotations

import time

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..errors import categorize_exception
from .client import HttpClient
from .models import HttpRequest, HttpResponse


class TransferTimeExceeded(httpx.TimeoutException):
    """The body did not finish within the request's `max_time`."""


class HttpxClient(HttpClient):
    """Synchronous httpx client wrapper that also measures the transfer."""

    def __init__(self, settings: ProbeSettings | None = None, client: httpx.Client | None = None):
        self.settings = settings or load_probe_settings()
        self._client = client or httpx.Client(
            follow_redirects=self.settings.allow_redirects,
            timeout=self.settings.transfer_timeout,
            verify=self.settings.verify_ssl,
        )

    def _timeout_for(self, request: HttpRequest) -> httpx.Timeout | float:
        timeout = request.timeout if request.timeout is not None else self.settings.transfer_timeout
        if request.connect_timeout is not None:
            return httpx.Timeout(timeout, connect=request.connect_timeout)
        return timeout

    def request(self, request: HttpRequest) -> HttpResponse:
        headers = dict(request.headers or {})
        headers.setdefault("User-Agent", self.settings.user_agent)

        started = time.perf_counter()
        deadline = started + request.max_time if request.max_time else None
        connected = False
        status_code: int | None = None
        response_headers: dict[str, str] = {}
        final_url: str | None = None
        bytes_read = 0

        try:
            with self._client.stream(
                request.method,
                request.url,
                headers=headers,
                timeout=self._timeout_for(request),
                follow_redirects=request.allow_redirects,
            ) as resp:
                connected = True
                status_code = resp.status_code
                response_headers = dict(resp.headers)
                final_url = str(resp.url)

                content = bytearray()
                for chunk in resp.iter_raw():
                    if not chunk:
                        continue
                    bytes_read += len(chunk)
                    if not request.discard_body:
                        content.extend(chunk)
                    if deadline is not None and time.perf_counter() > deadline:
                        raise TransferTimeExceeded(f"Transfer exceeded {request.max_time:g}s")

            return HttpResponse(
                ok=True,
                status_code=status_code,
                headers=response_headers,
                content=bytes(content),
                url=final_url,
                connected=True,
                bytes_read=bytes_read,
                elapsed=time.perf_counter() - started,
            )
        except Exception as exc:  # noqa: BLE001
            return HttpResponse(
                ok=False,
                status_code=status_code,
                headers=response_headers,
                url=final_url,
                connected=connected,
                bytes_read=bytes_read,
                elapsed=time.perf_counter() - started,
                error_message=str(exc) or type(exc).__name__,
                error_type=type(exc).__name__,
                error_category=categorize_exception(exc),
            )

    def close(self) -> None:
        self._client.close()


__all__ = ["HttpxClient", "TransferTimeExceeded"]
