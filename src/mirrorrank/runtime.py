# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level mirrorrank facade: probe, rank, emit."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import suppress
from dataclasses import dataclass
from typing import Any

from .catalog import dedupe
from .config import ProbeSettings, load_probe_settings
from .emit import ArtifactEmitter, EmittedArtifacts
from .errors import NoSuccessfulProbesError
from .http.client import HttpClient, create_default_http_client
from .models.endpoint import Endpoint
from .models.report import RankedList, RunResult, RunSummary
from .preflight import preflight
from .probe.orchestrator import ProbeOrchestrator, ProgressCallback
from .probe.sinks import ResultSinks
from .probe.unit import ProbeUnit
from .ranking import aggregate


@dataclass
class RunReport:
    """Everything one run produced."""

    result: RunResult
    ranked: RankedList
    summary: RunSummary
    artifacts: EmittedArtifacts | None = None

    @property
    def interrupted(self) -> bool:
        return self.result.interrupted

    def ensure_ranked(self) -> RankedList:
        if not self.ranked:
            raise NoSuccessfulProbesError(f"No mirrors were successfully tested ({self.summary.total} probed)")
        return self.ranked

    def to_dict(self) -> dict[str, Any]:
        return {
            "interrupted": self.result.interrupted,
            "summary": self.summary.to_dict(),
            "ranked": [outcome.to_dict() for outcome in self.ranked],
            "failed": [outcome.to_dict() for outcome in self.result.outcomes if not outcome.ok],
            "artifacts": {
                "mirrorlist": str(self.artifacts.mirrorlist_path),
                "summary": str(self.artifacts.summary_path),
            }
            if self.artifacts
            else None,
        }


class MirrorRank:
    """
    Wires one HTTP client through the probe unit, orchestrator, ranker and emitter.

    All run state lives in the returned RunReport; the facade itself holds only
    collaborators, so it can be reused for several catalogs.
    """

    def __init__(
        self,
        http_client: HttpClient | None = None,
        settings: ProbeSettings | None = None,
        *,
        progress: ProgressCallback | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.http_client = http_client or create_default_http_client(self.settings)
        self.probe_unit = ProbeUnit(self.http_client, self.settings)
        self.sinks = ResultSinks(settings=self.settings)
        self.orchestrator = ProbeOrchestrator(self.probe_unit, self.sinks, self.settings, progress=progress)
        self.emitter = ArtifactEmitter(settings=self.settings)

    def run(self, catalog: Iterable[Endpoint], *, top_n: int | None = None) -> RunReport:
        endpoints = dedupe(catalog)
        preflight(endpoints, self.settings)
        result = self.orchestrator.run(endpoints)
        ranked, summary = aggregate(result.outcomes)
        artifacts = self.emitter.emit(ranked, summary, top_n)
        return RunReport(result=result, ranked=ranked, summary=summary, artifacts=artifacts)

    def close(self) -> None:
        with suppress(Exception):
            if hasattr(self.http_client, "close"):
                self.http_client.close()

    def __enter__(self) -> MirrorRank:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["MirrorRank", "RunReport"]
