# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Ranking and run statistics.

Successful probes are ordered fastest-first by measured throughput. Equal
throughput keeps catalog order, so the ranking never depends on which worker
happened to finish first. Connection quality is judged from the best mirror
against two fixed Mbps thresholds.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Final

from .models.probe import ProbeOutcome, ProbeStatus
from .models.report import ConnectionQuality, RankedList, RunSummary

SLOW_THRESHOLD_MBPS: Final[float] = 5.0
GOOD_THRESHOLD_MBPS: Final[float] = 15.0
SLOW_PARALLEL_DOWNLOADS: Final[int] = 3
DEFAULT_PARALLEL_DOWNLOADS: Final[int] = 5


def classify_quality(best_mbps: float) -> ConnectionQuality:
    """`< 5` is slow, `> 15` is good, the closed interval [5, 15] is moderate."""
    if best_mbps < SLOW_THRESHOLD_MBPS:
        return ConnectionQuality.SLOW
    if best_mbps > GOOD_THRESHOLD_MBPS:
        return ConnectionQuality.GOOD
    return ConnectionQuality.MODERATE


def recommend_parallel_downloads(best_mbps: float) -> int:
    if best_mbps < SLOW_THRESHOLD_MBPS:
        return SLOW_PARALLEL_DOWNLOADS
    return DEFAULT_PARALLEL_DOWNLOADS


def rank(outcomes: Iterable[ProbeOutcome]) -> RankedList:
    successes = [outcome for outcome in outcomes if outcome.status == ProbeStatus.SUCCESS]
    # Ordered by catalog position first; sorted() is stable so ties keep that order.
    successes.sort(key=lambda outcome: outcome.index)
    return sorted(successes, key=lambda outcome: outcome.throughput_bytes_per_sec, reverse=True)


def aggregate(outcomes: Iterable[ProbeOutcome]) -> tuple[RankedList, RunSummary]:
    """Build the ranked list and the run summary; the input is only read."""
    all_outcomes = list(outcomes)
    ranked = rank(all_outcomes)
    counts = Counter(outcome.status for outcome in all_outcomes)

    best = ranked[0] if ranked else None
    mean = sum(outcome.throughput_bytes_per_sec for outcome in ranked) / len(ranked) if ranked else 0.0

    summary = RunSummary(
        total=len(all_outcomes),
        succeeded=len(ranked),
        failed=len(all_outcomes) - len(ranked),
        status_counts={status: counts[status] for status in ProbeStatus if counts[status]},
        best=best,
        mean_bytes_per_sec=mean,
        quality=classify_quality(best.throughput_mbps) if best else None,
        parallel_downloads=recommend_parallel_downloads(best.throughput_mbps) if best else None,
    )
    return ranked, summary


__all__ = [
    "DEFAULT_PARALLEL_DOWNLOADS",
    "GOOD_THRESHOLD_MBPS",
    "SLOW_PARALLEL_DOWNLOADS",
    "SLOW_THRESHOLD_MBPS",
    "aggregate",
    "classify_quality",
    "rank",
    "recommend_parallel_downloads",
]
