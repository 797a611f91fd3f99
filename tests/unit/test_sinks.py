# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

from mirrorrank.config import ProbeSettings
from mirrorrank.models.endpoint import Endpoint
from mirrorrank.models.probe import ProbeOutcome, ProbeStatus
from mirrorrank.probe.sinks import ResultSinks, format_record


def test_sinks_write_headers_and_lines_incrementally(tmp_path):
    sinks = ResultSinks(tmp_path / "out", ProbeSettings())
    sinks.open_run(2)

    ok = ProbeOutcome.success(Endpoint("https://fast.example/"), elapsed_seconds=0.25, bytes_transferred=500_000)
    failed = ProbeOutcome.failure(Endpoint("https://dead.example/"), ProbeStatus.HTTP_ERROR, "HTTP 404", http_status_code=404)

    sinks.record(ok)
    assert sinks.records_path.read_text(encoding="utf-8").splitlines()[-1] == "16.00,0.250,https://fast.example/"
    sinks.record(failed)
    sinks.close_run(succeeded=1, total=2)

    log_lines = sinks.results_log_path.read_text(encoding="utf-8").splitlines()
    assert log_lines[0].startswith("Mirror Speed Test Results - ")
    assert any("SUCCESS: https://fast.example/ - Speed: 16.00 Mbps, Time: 0.250s, Size: 500000 bytes" in line for line in log_lines)
    assert any("FAILED: https://dead.example/ - HTTP 404" in line for line in log_lines)
    assert log_lines[-1].endswith("Testing completed. 1/2 mirrors successful.")

    failed_lines = sinks.failed_log_path.read_text(encoding="utf-8").splitlines()
    assert failed_lines[0].startswith("Failed Mirrors - ")
    assert failed_lines[1:] == ["FAILED: https://dead.example/ - HTTP 404"]


def test_open_run_truncates_previous_run(tmp_path):
    sinks = ResultSinks(tmp_path, ProbeSettings())
    sinks.open_run(1)
    sinks.record(ProbeOutcome.failure(Endpoint("https://old.example/"), ProbeStatus.UNREACHABLE, "Unreachable"))
    sinks.open_run(1)
    assert "old.example" not in sinks.failed_log_path.read_text(encoding="utf-8")
    assert sinks.records_path.read_text(encoding="utf-8") == "Speed(Mbps),Time(s),Mirror_URL\n"


def test_format_record_rounds_for_csv():
    outcome = ProbeOutcome.success(Endpoint("https://m.example/a"), elapsed_seconds=0.3333, bytes_transferred=100_000)
    assert format_record(outcome) == ["2.40", "0.333", "https://m.example/a/"]
