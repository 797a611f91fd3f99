# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import pytest

from mirrorrank.config import ProbeSettings
from mirrorrank.errors import ErrorCategory
from mirrorrank.http.adapters import StubHttpClient
from mirrorrank.http.models import HttpResponse
from mirrorrank.models.endpoint import Endpoint
from mirrorrank.models.probe import ProbeOutcome, ProbeStatus
from mirrorrank.probe.unit import ProbeUnit, classify_transfer

MIRROR = Endpoint("https://mirror.example/archlinux/", "UK")
TEST_URL = "https://mirror.example/archlinux/core/os/x86_64/core.db"


def _reachable(stub):
    stub.add(TEST_URL, HttpResponse(ok=True, status_code=200, connected=True), method="HEAD")


def test_unreachable_mirror_short_circuits_transfer():
    stub = StubHttpClient()
    stub.add(
        TEST_URL,
        HttpResponse(ok=False, error_category=ErrorCategory.DNS_ERROR, error_message="no host"),
        method="HEAD",
    )
    outcome = ProbeUnit(stub, ProbeSettings()).probe(MIRROR, index=4)
    assert outcome.status == ProbeStatus.UNREACHABLE
    assert outcome.index == 4
    assert outcome.error_category == ErrorCategory.DNS_ERROR
    assert "Unreachable" in outcome.reason
    assert [r.method for r in stub.requests] == ["HEAD"]


def test_successful_probe_measures_once():
    stub = StubHttpClient()
    _reachable(stub)
    stub.add(
        TEST_URL,
        HttpResponse(ok=True, status_code=200, connected=True, bytes_read=250_000, elapsed=0.5, headers={"content-length": "250000"}),
    )
    outcome = ProbeUnit(stub, ProbeSettings()).probe(MIRROR)
    assert outcome.status == ProbeStatus.SUCCESS
    assert outcome.throughput_bytes_per_sec == 500_000
    assert outcome.throughput_mbps == pytest.approx(4.0)
    assert outcome.http_status_code == 200
    assert outcome.bytes_transferred == 250_000
    assert [r.method for r in stub.requests] == ["HEAD", "GET"]
    get = stub.requests[1]
    assert get.discard_body is True
    assert get.max_time == ProbeSettings.transfer_timeout
    assert get.connect_timeout == ProbeSettings.connect_timeout


def test_probe_passes_explicit_timeouts():
    stub = StubHttpClient()
    _reachable(stub)
    stub.add(TEST_URL, HttpResponse(ok=True, status_code=200, bytes_read=10, elapsed=0.1))
    ProbeUnit(stub, ProbeSettings()).probe(MIRROR, 3.0, 20.0)
    head, get = stub.requests
    assert head.timeout == 3.0
    assert head.max_time == 3.0
    assert get.max_time == 20.0
    assert get.connect_timeout == 20.0


def test_head_http_error_still_counts_as_reachable():
    stub = StubHttpClient()
    stub.add(TEST_URL, HttpResponse(ok=True, status_code=405, connected=True), method="HEAD")
    stub.add(TEST_URL, HttpResponse(ok=True, status_code=404, connected=True, bytes_read=120, elapsed=0.1))
    outcome = ProbeUnit(stub, ProbeSettings()).probe(MIRROR)
    assert outcome.status == ProbeStatus.HTTP_ERROR
    assert outcome.http_status_code == 404
    assert outcome.reason == "HTTP 404"


def test_probe_never_raises():
    class ExplodingClient:
        def request(self, request):  # noqa: ARG002
            raise RuntimeError("boom")

    outcome = ProbeUnit(ExplodingClient(), ProbeSettings()).probe(MIRROR)
    assert outcome.status == ProbeStatus.UNREACHABLE
    assert outcome.error_category == ErrorCategory.UNKNOWN_ERROR


@pytest.mark.parametrize(
    "response, status",
    [
        (HttpResponse(ok=False, connected=False, error_category=ErrorCategory.TIMEOUT), ProbeStatus.UNREACHABLE),
        (HttpResponse(ok=False, connected=True, status_code=200, bytes_read=5, error_category=ErrorCategory.TIMEOUT), ProbeStatus.CONNECTION_ABORTED),
        (HttpResponse(ok=True, status_code=503, bytes_read=10, elapsed=0.1), ProbeStatus.HTTP_ERROR),
        (HttpResponse(ok=True, status_code=200, bytes_read=0, elapsed=0.1), ProbeStatus.INCOMPLETE_TRANSFER),
        (HttpResponse(ok=True, status_code=200, bytes_read=10, elapsed=0.1, headers={"content-length": "100"}), ProbeStatus.INCOMPLETE_TRANSFER),
        (HttpResponse(ok=True, status_code=200, bytes_read=10, elapsed=0.0), ProbeStatus.INCOMPLETE_TRANSFER),
        (HttpResponse(ok=True, status_code=200, bytes_read=10, elapsed=0.1), ProbeStatus.SUCCESS),
    ],
)
def test_classify_transfer(response, status):
    assert classify_transfer(MIRROR, response).status == status


def test_success_invariant_enforced():
    with pytest.raises(ValueError):
        ProbeOutcome.success(MIRROR, elapsed_seconds=1.0, bytes_transferred=0)
    with pytest.raises(ValueError):
        ProbeOutcome.success(MIRROR, elapsed_seconds=1.0, bytes_transferred=10, http_status_code=206)
    with pytest.raises(ValueError):
        ProbeOutcome.failure(MIRROR, ProbeStatus.SUCCESS, "nope")


def test_outcome_describe():
    ok = ProbeOutcome.success(MIRROR, elapsed_seconds=1.0, bytes_transferred=1_250_000)
    assert ok.describe() == "10.00 Mbps (1.000s)"
    failed = ProbeOutcome.failure(MIRROR, ProbeStatus.HTTP_ERROR, "HTTP 500", http_status_code=500)
    assert failed.describe() == "FAILED (HTTP 500)"
    assert failed.to_dict()["status"] == "HTTP_ERROR"
