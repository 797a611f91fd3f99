# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
mirrorrank package entrypoint.

This package measures candidate package mirrors (reachability plus one timed
download of a small reference file), ranks them by observed throughput and
writes a ready-to-install mirrorlist. HTTP behavior is abstracted behind an
injectable client interface, and domain objects are modeled with typed
dataclasses.
"""

from .catalog import DEFAULT_CATALOG, filter_catalog, load_catalog
from .config import ProbeSettings, load_probe_settings
from .emit import ArtifactEmitter, EmittedArtifacts
from .errors import CatalogError, ErrorCategory, MirrorRankError, NoSuccessfulProbesError, ToolMissingError
from .http import HttpClient, HttpRequest, HttpResponse, HttpxClient, create_default_http_client
from .log import setup_logging
from .models import ConnectionQuality, Endpoint, ProbeOutcome, ProbeStatus, RunResult, RunSummary
from .probe import ProbeOrchestrator, ProbeUnit, ResultSinks
from .ranking import aggregate, classify_quality
from .runtime import MirrorRank, RunReport
from .version import __version__

__all__ = [
    "ArtifactEmitter",
    "CatalogError",
    "ConnectionQuality",
    "DEFAULT_CATALOG",
    "EmittedArtifacts",
    "Endpoint",
    "ErrorCategory",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpxClient",
    "MirrorRank",
    "MirrorRankError",
    "NoSuccessfulProbesError",
    "ProbeOrchestrator",
    "ProbeOutcome",
    "ProbeSettings",
    "ProbeStatus",
    "ProbeUnit",
    "ResultSinks",
    "RunReport",
    "RunResult",
    "RunSummary",
    "ToolMissingError",
    "__version__",
    "aggregate",
    "classify_quality",
    "create_default_http_client",
    "filter_catalog",
    "load_catalog",
    "load_probe_settings",
    "setup_logging",
]
