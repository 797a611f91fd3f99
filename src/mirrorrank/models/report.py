# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclasses for run results and summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .probe import ProbeOutcome, ProbeStatus, bytes_per_sec_to_mbps

RankedList = list[ProbeOutcome]


class ConnectionQuality(str, Enum):
    SLOW = "SLOW"
    MODERATE = "MODERATE"
    GOOD = "GOOD"


@dataclass(frozen=True)
class RunSummary:
    """Aggregate view over every outcome of one run."""

    total: int
    succeeded: int
    failed: int
    status_counts: dict[ProbeStatus, int] = field(default_factory=dict)
    best: ProbeOutcome | None = None
    mean_bytes_per_sec: float = 0.0
    quality: ConnectionQuality | None = None
    parallel_downloads: int | None = None

    @property
    def best_mbps(self) -> float | None:
        if self.best is None:
            return None
        return self.best.throughput_mbps

    @property
    def mean_mbps(self) -> float:
        return bytes_per_sec_to_mbps(self.mean_bytes_per_sec)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "status_counts": {status.value: count for status, count in self.status_counts.items()},
            "best": self.best.to_dict() if self.best else None,
            "best_mbps": round(self.best_mbps, 2) if self.best_mbps is not None else None,
            "mean_mbps": round(self.mean_mbps, 2),
            "quality": self.quality.value if self.quality else None,
            "parallel_downloads": self.parallel_downloads,
        }


@dataclass
class RunResult:
    """Outcomes collected by the orchestrator, in catalog order."""

    outcomes: list[ProbeOutcome] = field(default_factory=list)
    interrupted: bool = False

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)


__all__ = ["ConnectionQuality", "RankedList", "RunResult", "RunSummary"]
