# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Capability checks that must pass before any mirror is probed."""

from __future__ import annotations

import importlib.util
import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlparse

from .config import ProbeSettings, load_probe_settings
from .errors import CatalogError, ToolMissingError
from .models.endpoint import Endpoint

logger = logging.getLogger(__name__)


def _ssl_available() -> bool:
    return importlib.util.find_spec("ssl") is not None


def preflight(catalog: Sequence[Endpoint], settings: ProbeSettings | None = None) -> None:
    """Raise when the run cannot start; returns None when every check passes."""
    settings = settings or load_probe_settings()

    if not catalog:
        raise CatalogError("No mirrors to test: the catalog is empty")

    if any(urlparse(endpoint.url).scheme == "https" for endpoint in catalog) and not _ssl_available():
        raise ToolMissingError("TLS support (the ssl module) is required to probe https mirrors")

    missing = [tool for tool in settings.required_tools if shutil.which(tool) is None]
    if missing:
        raise ToolMissingError(f"Required tool(s) not installed: {', '.join(missing)}")

    output_dir = Path(settings.output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ToolMissingError(f"Cannot create output directory {output_dir}: {exc}") from exc
    if not os.access(output_dir, os.W_OK):
        raise ToolMissingError(f"Output directory {output_dir} is not writable")

    logger.debug("Pre-flight checks passed for %d mirrors", len(catalog))


__all__ = ["preflight"]
