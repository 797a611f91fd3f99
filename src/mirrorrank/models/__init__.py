# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for mirrorrank."""

from ..http.models import Headers, HttpRequest, HttpResponse
from .endpoint import Endpoint
from .probe import ProbeOutcome, ProbeStatus
from .report import ConnectionQuality, RankedList, RunResult, RunSummary

__all__ = [
    "ConnectionQuality",
    "Endpoint",
    "Headers",
    "HttpRequest",
    "HttpResponse",
    "ProbeOutcome",
    "ProbeStatus",
    "RankedList",
    "RunResult",
    "RunSummary",
]
