# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Append-only result files written while a run is in progress."""

from __future__ import annotations

import csv
import threading
from datetime import datetime, timezone
from pathlib import Path

from ..config import ProbeSettings, load_probe_settings
from ..models.probe import ProbeOutcome

RECORDS_HEADER = ("Speed(Mbps)", "Time(s)", "Mirror_URL")


def _timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%S%z")


def format_record(outcome: ProbeOutcome) -> list[str]:
    """CSV row for one successful probe: `mbps,seconds,url`."""
    return [f"{outcome.throughput_mbps:.2f}", f"{outcome.elapsed_seconds:.3f}", outcome.endpoint.url]


class ResultSinks:
    """
    The three per-run output files.

    - results log: human-readable, one timestamped line per outcome plus banners
    - records: CSV of successful probes, the machine-readable ranking input
    - failed log: one line per failed probe

    Every call opens the file in append mode and closes it again, so whatever
    was recorded before an interruption is already on disk.
    """

    def __init__(self, output_dir: str | Path | None = None, settings: ProbeSettings | None = None):
        self.settings = settings or load_probe_settings()
        self.output_dir = Path(output_dir if output_dir is not None else self.settings.output_dir)
        self.results_log_path = self.output_dir / self.settings.results_log_name
        self.records_path = self.output_dir / self.settings.records_name
        self.failed_log_path = self.output_dir / self.settings.failed_log_name
        self._lock = threading.Lock()

    @property
    def paths(self) -> list[Path]:
        return [self.results_log_path, self.records_path, self.failed_log_path]

    def _append(self, path: Path, line: str) -> None:
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")
            handle.flush()

    def open_run(self, total: int) -> None:
        """Truncate the files and write their headers."""
        stamp = _timestamp()
        with self._lock:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(self.results_log_path, "w", encoding="utf-8") as handle:
                handle.write(f"Mirror Speed Test Results - {stamp}\n")
                handle.write(f"{stamp} Starting mirror speed tests ({total} mirrors)\n")
            with open(self.records_path, "w", encoding="utf-8", newline="") as handle:
                csv.writer(handle, lineterminator="\n").writerow(RECORDS_HEADER)
            with open(self.failed_log_path, "w", encoding="utf-8") as handle:
                handle.write(f"Failed Mirrors - {stamp}\n")

    def record(self, outcome: ProbeOutcome) -> None:
        """Persist one outcome to every sink it belongs in."""
        stamp = _timestamp()
        url = outcome.endpoint.url
        with self._lock:
            if outcome.ok:
                self._append(
                    self.results_log_path,
                    f"{stamp} SUCCESS: {url} - Speed: {outcome.throughput_mbps:.2f} Mbps, "
                    f"Time: {outcome.elapsed_seconds:.3f}s, Size: {outcome.bytes_transferred} bytes",
                )
                with open(self.records_path, "a", encoding="utf-8", newline="") as handle:
                    csv.writer(handle, lineterminator="\n").writerow(format_record(outcome))
            else:
                self._append(self.results_log_path, f"{stamp} FAILED: {url} - {outcome.reason}")
                self._append(self.failed_log_path, f"FAILED: {url} - {outcome.reason}")

    def close_run(self, succeeded: int, total: int, interrupted: bool = False) -> None:
        stamp = _timestamp()
        with self._lock:
            if interrupted:
                self._append(self.results_log_path, f"{stamp} Run interrupted after {total} probes")
            self._append(self.results_log_path, f"{stamp} Testing completed. {succeeded}/{total} mirrors successful.")


__all__ = ["RECORDS_HEADER", "ResultSinks", "format_record"]
