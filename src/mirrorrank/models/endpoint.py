# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Mirror endpoint model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Endpoint:
    """One candidate mirror. `url` is the repository base and always ends with `/`."""

    url: str
    region: str = ""

    def __post_init__(self) -> None:
        url = str(self.url or "").strip()
        if url and not url.endswith("/"):
            url += "/"
        object.__setattr__(self, "url", url)

    def join(self, path: str) -> str:
        """Append a repository-relative path to the base URL."""
        return self.url + str(path or "").lstrip("/")
