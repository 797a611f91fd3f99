# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe outcome models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import ErrorCategory
from .endpoint import Endpoint

BITS_PER_BYTE = 8
BITS_PER_MEGABIT = 1_000_000


def bytes_per_sec_to_mbps(value: float) -> float:
    return value * BITS_PER_BYTE / BITS_PER_MEGABIT


class ProbeStatus(str, Enum):
    UNREACHABLE = "UNREACHABLE"
    CONNECTION_ABORTED = "CONNECTION_ABORTED"
    INCOMPLETE_TRANSFER = "INCOMPLETE_TRANSFER"
    HTTP_ERROR = "HTTP_ERROR"
    SUCCESS = "SUCCESS"


@dataclass(frozen=True)
class ProbeOutcome:
    """
    Terminal result of probing one endpoint once.

    Throughput is stored in bytes/sec; Mbps only exists for presentation.
    Use `success()` / `failure()` rather than the raw constructor so the
    success invariant (HTTP 200, bytes > 0, throughput > 0) is checked.
    """

    endpoint: Endpoint
    status: ProbeStatus
    index: int = 0
    throughput_bytes_per_sec: float = 0.0
    elapsed_seconds: float = 0.0
    http_status_code: int | None = None
    bytes_transferred: int = 0
    reason: str = ""
    error_category: ErrorCategory = ErrorCategory.NONE

    @classmethod
    def success(
        cls,
        endpoint: Endpoint,
        *,
        elapsed_seconds: float,
        bytes_transferred: int,
        http_status_code: int = 200,
        index: int = 0,
    ) -> ProbeOutcome:
        if http_status_code != 200:
            raise ValueError(f"successful probe requires HTTP 200, got {http_status_code}")
        if bytes_transferred <= 0:
            raise ValueError("successful probe requires a non-empty transfer")
        if elapsed_seconds <= 0:
            raise ValueError("successful probe requires a positive elapsed time")
        return cls(
            endpoint=endpoint,
            status=ProbeStatus.SUCCESS,
            index=index,
            throughput_bytes_per_sec=bytes_transferred / elapsed_seconds,
            elapsed_seconds=elapsed_seconds,
            http_status_code=http_status_code,
            bytes_transferred=bytes_transferred,
        )

    @classmethod
    def failure(
        cls,
        endpoint: Endpoint,
        status: ProbeStatus,
        reason: str,
        *,
        index: int = 0,
        http_status_code: int | None = None,
        elapsed_seconds: float = 0.0,
        bytes_transferred: int = 0,
        error_category: ErrorCategory = ErrorCategory.NONE,
    ) -> ProbeOutcome:
        if status == ProbeStatus.SUCCESS:
            raise ValueError("failure() cannot build a successful outcome")
        return cls(
            endpoint=endpoint,
            status=status,
            index=index,
            elapsed_seconds=max(0.0, elapsed_seconds),
            http_status_code=http_status_code,
            bytes_transferred=max(0, bytes_transferred),
            reason=reason,
            error_category=error_category,
        )

    @property
    def ok(self) -> bool:
        return self.status == ProbeStatus.SUCCESS

    @property
    def throughput_mbps(self) -> float:
        return bytes_per_sec_to_mbps(self.throughput_bytes_per_sec)

    def describe(self) -> str:
        """Short console form: `12.34 Mbps (0.512s)` or `FAILED (HTTP 404)`."""
        if self.ok:
            return f"{self.throughput_mbps:.2f} Mbps ({self.elapsed_seconds:.3f}s)"
        return f"FAILED ({self.reason})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.endpoint.url,
            "region": self.endpoint.region,
            "status": self.status.value,
            "throughput_bytes_per_sec": self.throughput_bytes_per_sec,
            "throughput_mbps": round(self.throughput_mbps, 2),
            "elapsed_seconds": self.elapsed_seconds,
            "http_status_code": self.http_status_code,
            "bytes_transferred": self.bytes_transferred,
            "reason": self.reason,
            "error_category": self.error_category.value,
        }


__all__ = ["BITS_PER_BYTE", "BITS_PER_MEGABIT", "ProbeOutcome", "ProbeStatus", "bytes_per_sec_to_mbps"]
