# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Drive the probe unit across a catalog with a bounded number of probe threads."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, wait

from ..config import ProbeSettings, load_probe_settings
from ..errors import ErrorCategory
from ..models.endpoint import Endpoint
from ..models.probe import ProbeOutcome, ProbeStatus
from ..models.report import RunResult
from .sinks import ResultSinks
from .unit import ProbeUnit

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, ProbeOutcome], None]


class ProbeOrchestrator:
    """
    Probe every endpoint of a catalog exactly once.

    Only the dispatching thread touches the sinks, so appends are serialized
    no matter how many workers run. Every probe runs on its own daemon thread
    and at most `workers` of them are in flight at once. Each probe gets a
    wall-clock budget from the moment it is dispatched; a probe that overruns
    is recorded as aborted, its thread is abandoned and its slot is handed to
    the next endpoint. Outcomes come back in catalog order.
    """

    def __init__(
        self,
        probe_unit: ProbeUnit,
        sinks: ResultSinks | None = None,
        settings: ProbeSettings | None = None,
        *,
        progress: ProgressCallback | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.probe_unit = probe_unit
        self.sinks = sinks
        self.settings = settings or load_probe_settings()
        self.progress = progress
        self._sleep = sleep
        self._clock = clock

    def _run_probe(self, index: int, endpoint: Endpoint) -> ProbeOutcome:
        return self.probe_unit.probe(
            endpoint,
            self.settings.reachability_timeout,
            self.settings.transfer_timeout,
            index=index,
        )

    def _spawn(self, index: int, endpoint: Endpoint) -> Future:
        """Start one probe on a daemon thread; an abandoned thread never blocks exit."""
        future: Future = Future()
        future.set_running_or_notify_cancel()

        def target() -> None:
            try:
                future.set_result(self._run_probe(index, endpoint))
            except Exception as exc:  # noqa: BLE001
                future.set_exception(exc)

        threading.Thread(target=target, name=f"mirrorrank-probe-{index}", daemon=True).start()
        return future

    def _next_wait(self, pending: dict[Future, int], started: dict[int, float], budget: float) -> float:
        now = self._clock()
        waits = [max(0.0, started[index] + budget - now) for index in pending.values()]
        return min(waits) if waits else 0.0

    def run(self, catalog: Iterable[Endpoint]) -> RunResult:
        endpoints = list(catalog)
        total = len(endpoints)
        settings = self.settings
        budget = settings.effective_probe_budget
        workers = max(1, settings.workers)

        if self.sinks is not None:
            self.sinks.open_run(total)
        logger.info("Starting mirror speed tests: %d mirrors, %d worker(s)", total, workers)

        collected: dict[int, ProbeOutcome] = {}
        started: dict[int, float] = {}
        pending: dict[Future, int] = {}
        queue = deque(enumerate(endpoints))
        interrupted = False
        dispatched = 0

        def collect(outcome: ProbeOutcome) -> None:
            collected[outcome.index] = outcome
            if self.sinks is not None:
                self.sinks.record(outcome)
            logger.debug("Probe %s -> %s", outcome.endpoint.url, outcome.status.value)
            if self.progress is not None:
                self.progress(len(collected), total, outcome)

        try:
            while queue or pending:
                while queue and len(pending) < workers:
                    if dispatched and settings.delay > 0:
                        self._sleep(settings.delay)
                    index, endpoint = queue.popleft()
                    started[index] = self._clock()
                    pending[self._spawn(index, endpoint)] = index
                    dispatched += 1

                done, _ = wait(list(pending), timeout=self._next_wait(pending, started, budget), return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    collect(self._result_of(future, index, endpoints[index]))

                now = self._clock()
                for future, index in list(pending.items()):
                    if now - started[index] >= budget:
                        del pending[future]
                        logger.warning("Abandoning probe of %s after %.1fs", endpoints[index].url, budget)
                        collect(
                            ProbeOutcome.failure(
                                endpoints[index],
                                ProbeStatus.CONNECTION_ABORTED,
                                f"Probe exceeded {budget:g}s budget",
                                index=index,
                                elapsed_seconds=now - started[index],
                                error_category=ErrorCategory.BUDGET_EXCEEDED,
                            )
                        )
        except KeyboardInterrupt:
            interrupted = True
            logger.warning("Interrupted: stopped after %d of %d mirrors", len(collected), total)

        outcomes = [collected[index] for index in sorted(collected)]
        succeeded = sum(1 for outcome in outcomes if outcome.ok)
        if self.sinks is not None:
            self.sinks.close_run(succeeded, len(outcomes), interrupted=interrupted)
        logger.info("Testing completed. %d/%d mirrors successful.", succeeded, total)
        return RunResult(outcomes=outcomes, interrupted=interrupted)

    @staticmethod
    def _result_of(future: Future, index: int, endpoint: Endpoint) -> ProbeOutcome:
        exc = future.exception()
        if exc is None:
            return future.result()
        logger.error("Probe of %s crashed: %s", endpoint.url, exc)
        return ProbeOutcome.failure(
            endpoint,
            ProbeStatus.UNREACHABLE,
            f"Unexpected error: {exc}",
            index=index,
            error_category=ErrorCategory.UNKNOWN_ERROR,
        )


__all__ = ["ProbeOrchestrator", "ProgressCallback"]
