# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single-endpoint probe: reachability check followed by one timed transfer."""

from __future__ import annotations

import logging

from ..config import ProbeSettings, load_probe_settings
from ..errors import ErrorCategory, error_category_to_reason
from ..http.client import HttpClient
from ..http.models import HttpRequest, HttpResponse
from ..models.endpoint import Endpoint
from ..models.probe import ProbeOutcome, ProbeStatus

logger = logging.getLogger(__name__)


def _failure_reason(prefix: str, response: HttpResponse) -> str:
    detail = error_category_to_reason(response.error_category)
    if detail:
        return f"{prefix}: {detail}"
    return prefix


class ProbeUnit:
    """
    Probe one mirror exactly once.

    The HEAD request only proves the mirror answers; any HTTP status counts.
    Dead mirrors are short-circuited there so they never consume the transfer
    budget. The GET that follows is the only measurement taken, and every metric
    on the outcome comes from it.
    """

    def __init__(self, http_client: HttpClient, settings: ProbeSettings | None = None):
        self.http_client = http_client
        self.settings = settings or load_probe_settings()

    def probe(
        self,
        endpoint: Endpoint,
        reachability_timeout: float | None = None,
        transfer_timeout: float | None = None,
        *,
        index: int = 0,
    ) -> ProbeOutcome:
        try:
            return self._probe(endpoint, reachability_timeout, transfer_timeout, index)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Probe of %s raised", endpoint.url, exc_info=True)
            return ProbeOutcome.failure(
                endpoint,
                ProbeStatus.UNREACHABLE,
                f"Unexpected error: {exc}",
                index=index,
                error_category=ErrorCategory.UNKNOWN_ERROR,
            )

    def _probe(
        self,
        endpoint: Endpoint,
        reachability_timeout: float | None,
        transfer_timeout: float | None,
        index: int,
    ) -> ProbeOutcome:
        settings = self.settings
        url = endpoint.join(settings.test_path)
        reach_timeout = reachability_timeout if reachability_timeout is not None else settings.reachability_timeout
        max_time = transfer_timeout if transfer_timeout is not None else settings.transfer_timeout

        head = self.http_client.request(
            HttpRequest(
                url=url,
                method="HEAD",
                timeout=reach_timeout,
                connect_timeout=min(reach_timeout, settings.connect_timeout),
                max_time=reach_timeout,
                allow_redirects=settings.allow_redirects,
            )
        )
        if not head.ok:
            logger.debug("HEAD %s failed: %s", url, head.error_message)
            return ProbeOutcome.failure(
                endpoint,
                ProbeStatus.UNREACHABLE,
                _failure_reason("Unreachable", head),
                index=index,
                elapsed_seconds=head.elapsed,
                error_category=head.error_category,
            )

        response = self.http_client.request(
            HttpRequest(
                url=url,
                method="GET",
                timeout=max_time,
                connect_timeout=min(max_time, settings.connect_timeout),
                max_time=max_time,
                discard_body=True,
                allow_redirects=settings.allow_redirects,
            )
        )
        return classify_transfer(endpoint, response, index=index)


def classify_transfer(endpoint: Endpoint, response: HttpResponse, *, index: int = 0) -> ProbeOutcome:
    """Map one measured GET onto a terminal probe status."""
    common = {
        "index": index,
        "elapsed_seconds": response.elapsed,
        "bytes_transferred": response.bytes_read,
        "http_status_code": response.status_code,
    }

    if not response.ok:
        if response.connected:
            return ProbeOutcome.failure(
                endpoint,
                ProbeStatus.CONNECTION_ABORTED,
                _failure_reason("Connection aborted", response),
                error_category=response.error_category,
                **common,
            )
        return ProbeOutcome.failure(
            endpoint,
            ProbeStatus.UNREACHABLE,
            _failure_reason("Timeout or connection error", response),
            error_category=response.error_category,
            **common,
        )

    if response.status_code != 200:
        return ProbeOutcome.failure(endpoint, ProbeStatus.HTTP_ERROR, f"HTTP {response.status_code}", **common)

    if response.bytes_read <= 0:
        return ProbeOutcome.failure(endpoint, ProbeStatus.INCOMPLETE_TRANSFER, "Incomplete download (empty body)", **common)

    expected = response.content_length
    if expected is not None and response.bytes_read < expected:
        return ProbeOutcome.failure(
            endpoint,
            ProbeStatus.INCOMPLETE_TRANSFER,
            f"Incomplete download ({response.bytes_read}/{expected} bytes)",
            **common,
        )

    if response.elapsed <= 0:
        return ProbeOutcome.failure(endpoint, ProbeStatus.INCOMPLETE_TRANSFER, "Incomplete download (no measurable time)", **common)

    return ProbeOutcome.success(
        endpoint,
        elapsed_seconds=response.elapsed,
        bytes_transferred=response.bytes_read,
        http_status_code=200,
        index=index,
    )


__all__ = ["ProbeUnit", "classify_transfer"]
