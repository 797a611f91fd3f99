# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by the probe unit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors import ErrorCategory

Headers = dict[str, str]


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "GET"
    headers: Headers | None = None
    timeout: float | None = None
    connect_timeout: float | None = None
    # Total wall-clock cap for the whole exchange, body included.
    max_time: float | None = None
    # Count the body on the wire without keeping it.
    discard_body: bool = False
    allow_redirects: bool = True


@dataclass
class HttpResponse:
    """
    Normalized HTTP response plus transfer telemetry.

    `connected` is True once response headers were received, which lets callers
    tell "never connected" apart from "connected but aborted" when `ok` is False.
    """

    ok: bool
    status_code: int | None = None
    headers: Headers = field(default_factory=dict)
    content: bytes = b""
    url: str | None = None
    connected: bool = False
    bytes_read: int = 0
    elapsed: float = 0.0
    error_message: str | None = None
    error_type: str | None = None
    error_category: ErrorCategory = ErrorCategory.NONE
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def content_length(self) -> int | None:
        """Declared Content-Length, if the server sent a usable one."""
        for key, value in self.headers.items():
            if key.lower() != "content-length":
                continue
            try:
                parsed = int(str(value).strip())
            except ValueError:
                return None
            return parsed if parsed >= 0 else None
        return None
