# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probing: single-endpoint measurement, orchestration and result sinks."""

from .orchestrator import ProbeOrchestrator
from .sinks import ResultSinks
from .unit import ProbeUnit, classify_transfer

__all__ = ["ProbeOrchestrator", "ProbeUnit", "ResultSinks", "classify_transfer"]
