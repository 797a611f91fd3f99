# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Programmable HttpClient implementations."""

from __future__ import annotations

import threading

from ..errors import ErrorCategory
from .client import HttpClient
from .models import HttpRequest, HttpResponse


class StubHttpClient(HttpClient):
    """Deterministic, programmable HttpClient for tests."""

    def __init__(self, responses: dict[tuple[str, str], HttpResponse] | None = None):
        self._responses = dict(responses or {})
        self._lock = threading.Lock()
        self.requests: list[HttpRequest] = []
        self.closed = False

    def add(self, url: str, response: HttpResponse, method: str = "GET") -> None:
        self._responses[(method.upper(), url)] = response

    def request(self, request: HttpRequest) -> HttpResponse:
        with self._lock:
            self.requests.append(request)
        key = (request.method.upper(), request.url)
        if key in self._responses:
            return self._responses[key]
        return HttpResponse(
            ok=False,
            status_code=None,
            error_message="No stubbed response configured",
            error_category=ErrorCategory.CONNECTION_ERROR,
        )

    def close(self) -> None:
        self.closed = True
