# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Render the ranked mirrorlist and the human-readable summary report."""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .config import ProbeSettings, load_probe_settings
from .models.probe import ProbeOutcome
from .models.report import ConnectionQuality, RankedList, RunSummary

logger = logging.getLogger(__name__)

SUMMARY_TOP = 5
MIRRORLIST_TARGET = "/etc/pacman.d/mirrorlist"

QUALITY_MESSAGES: dict[ConnectionQuality, tuple[str, ...]] = {
    ConnectionQuality.SLOW: (
        "Your connection seems quite slow",
        "Consider using fewer parallel downloads in pacman.conf",
    ),
    ConnectionQuality.MODERATE: ("Moderate connection speeds",),
    ConnectionQuality.GOOD: ("Good connection speeds detected",),
}


@dataclass(frozen=True)
class EmittedArtifacts:
    mirrorlist_path: Path
    summary_path: Path
    server_lines: int


def _format_time(generated_at: datetime) -> str:
    return generated_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def server_line(outcome: ProbeOutcome, template: str) -> str:
    return f"Server = {outcome.endpoint.url}{template.lstrip('/')}"


def render_mirrorlist(
    ranked: RankedList,
    top_n: int,
    generated_at: datetime,
    template: str = "$repo/os/$arch",
) -> str:
    lines = [
        f"# Best Arch Linux Mirrors (tested {_format_time(generated_at)})",
        "# Sorted by download speed (fastest first)",
        "# Format: Speed(Mbps), Time(s), Mirror URL",
        "",
    ]
    for outcome in ranked[: max(0, top_n)]:
        lines.append(f"# {outcome.throughput_mbps:.2f} Mbps - {outcome.elapsed_seconds:.3f}s")
        lines.append(server_line(outcome, template))
    lines.extend(["", f"# Copy the above servers to {MIRRORLIST_TARGET}", ""])
    return "\n".join(lines)


def render_summary(ranked: RankedList, summary: RunSummary, generated_at: datetime) -> str:
    lines = [f"Mirror Test Summary ({_format_time(generated_at)})", ""]

    if ranked:
        lines.append(f"Top {SUMMARY_TOP} Fastest Mirrors:")
        for outcome in ranked[:SUMMARY_TOP]:
            lines.append(f"  {outcome.throughput_mbps:.2f} Mbps - {outcome.endpoint.url}")
        lines.append("")

    lines.append("Your Connection Analysis:")
    if summary.best is not None and summary.best_mbps is not None:
        lines.append(f"  Fastest mirror: {summary.best_mbps:.2f} Mbps ({summary.best.endpoint.url})")
        lines.append(f"  Average speed: {summary.mean_mbps:.2f} Mbps")
    else:
        lines.append("  Fastest mirror: none")
        lines.append("  Average speed: 0.00 Mbps")
    if summary.quality is not None:
        lines.extend(f"  {message}" for message in QUALITY_MESSAGES[summary.quality])
    if summary.parallel_downloads is not None:
        lines.append(f"  Recommended pacman.conf setting: ParallelDownloads = {summary.parallel_downloads}")

    lines.extend(
        [
            "",
            "Test Statistics:",
            f"  Total mirrors tested: {summary.total}",
            f"  Successful tests: {summary.succeeded}",
            f"  Failed tests: {summary.failed}",
        ]
    )
    for status, count in summary.status_counts.items():
        lines.append(f"    {status.value}: {count}")
    lines.append("")
    return "\n".join(lines)


def atomic_write_text(path: Path, text: str) -> None:
    """Publish `text` at `path` via a temp file in the same directory and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


class ArtifactEmitter:
    """Writes the ranked mirrorlist and summary report for a finished run."""

    def __init__(self, output_dir: str | Path | None = None, settings: ProbeSettings | None = None):
        self.settings = settings or load_probe_settings()
        self.output_dir = Path(output_dir if output_dir is not None else self.settings.output_dir)
        self.mirrorlist_path = self.output_dir / self.settings.mirrorlist_name
        self.summary_path = self.output_dir / self.settings.summary_name

    def emit(
        self,
        ranked: RankedList,
        summary: RunSummary,
        top_n: int | None = None,
        generated_at: datetime | None = None,
    ) -> EmittedArtifacts | None:
        """Write both artifacts; returns None (and writes nothing) when nothing ranked."""
        if not ranked:
            logger.error("No mirrors were successfully tested; skipping mirrorlist generation")
            return None

        limit = top_n if top_n is not None else self.settings.top_n
        stamp = generated_at or datetime.now(timezone.utc)
        atomic_write_text(
            self.mirrorlist_path,
            render_mirrorlist(ranked, limit, stamp, template=self.settings.server_template),
        )
        atomic_write_text(self.summary_path, render_summary(ranked, summary, stamp))
        written = min(max(0, limit), len(ranked))
        logger.info("Wrote %d mirrors to %s", written, self.mirrorlist_path)
        return EmittedArtifacts(
            mirrorlist_path=self.mirrorlist_path,
            summary_path=self.summary_path,
            server_lines=written,
        )


__all__ = [
    "ArtifactEmitter",
    "EmittedArtifacts",
    "QUALITY_MESSAGES",
    "atomic_write_text",
    "render_mirrorlist",
    "render_summary",
    "server_line",
]
