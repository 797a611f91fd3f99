# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
import logging

import pytest

from mirrorrank.cli import main as cli_main
from mirrorrank.cli.main import EXIT_NO_RESULTS, EXIT_OK, EXIT_PREFLIGHT, build_parser
from mirrorrank.config import ProbeSettings
from mirrorrank.errors import NoSuccessfulProbesError, ToolMissingError
from mirrorrank.http.adapters import StubHttpClient
from mirrorrank.http.models import HttpResponse
from mirrorrank.models.endpoint import Endpoint
from mirrorrank.models.probe import ProbeStatus
from mirrorrank.models.report import RunResult
from mirrorrank.ranking import aggregate
from mirrorrank.runtime import MirrorRank, RunReport

TEST_PATH = "core/os/x86_64/core.db"


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def _stub_mirror(stub, base, mbps):
    url = base + TEST_PATH
    stub.add(url, HttpResponse(ok=True, status_code=200, connected=True), method="HEAD")
    stub.add(url, HttpResponse(ok=True, status_code=200, connected=True, bytes_read=int(mbps * 125_000), elapsed=1.0))


def test_end_to_end_scenario(tmp_path):
    catalog = [
        Endpoint("https://dead.example/"),
        Endpoint("https://slow.example/"),
        Endpoint("https://fast.example/"),
    ]
    stub = StubHttpClient()
    _stub_mirror(stub, "https://slow.example/", 2)
    _stub_mirror(stub, "https://fast.example/", 20)
    settings = ProbeSettings(workers=2, delay=0.0, output_dir=str(tmp_path))

    with MirrorRank(http_client=stub, settings=settings) as ranker:
        report = ranker.run(catalog)

    assert stub.closed is True
    assert [o.endpoint.url for o in report.result.outcomes] == [e.url for e in catalog]
    assert [o.endpoint.url for o in report.ranked] == ["https://fast.example/", "https://slow.example/"]
    assert report.summary.best_mbps == pytest.approx(20.0)
    assert report.summary.mean_mbps == pytest.approx(11.0)
    assert report.ensure_ranked() == report.ranked

    mirrorlist = report.artifacts.mirrorlist_path.read_text(encoding="utf-8")
    servers = [line for line in mirrorlist.splitlines() if line.startswith("Server")]
    assert servers == [
        "Server = https://fast.example/$repo/os/$arch",
        "Server = https://slow.example/$repo/os/$arch",
    ]
    records = (tmp_path / "mirror_test_results.csv").read_text(encoding="utf-8").splitlines()
    assert records[0] == "Speed(Mbps),Time(s),Mirror_URL"
    assert len(records) == 3
    failed = (tmp_path / "failed_mirrors.txt").read_text(encoding="utf-8").splitlines()
    assert len(failed) == 2 and failed[1].startswith("FAILED: https://dead.example/")


def test_all_unreachable_skips_artifacts(tmp_path):
    catalog = [Endpoint(f"https://dead{i}.example/") for i in range(4)]
    settings = ProbeSettings(workers=4, delay=0.0, output_dir=str(tmp_path))

    report = MirrorRank(http_client=StubHttpClient(), settings=settings).run(catalog)

    assert report.ranked == []
    assert report.artifacts is None
    assert report.summary.best is None
    assert all(o.status == ProbeStatus.UNREACHABLE for o in report.result.outcomes)
    assert not (tmp_path / "best_mirrors.txt").exists()
    failed = (tmp_path / "failed_mirrors.txt").read_text(encoding="utf-8").splitlines()
    assert len(failed) == 1 + 4
    with pytest.raises(NoSuccessfulProbesError):
        report.ensure_ranked()


def test_build_parser_defaults():
    args = build_parser().parse_args(["--region", "UK", "--region", "Germany", "--workers", "1", "--json"])
    assert args.region == ["UK", "Germany"]
    assert args.workers == 1
    assert args.json is True
    assert args.catalog is None


def test_cli_list_prints_catalog(capsys):
    assert cli_main.main(["--list", "--region", "Ireland"]) == EXIT_OK
    out = capsys.readouterr().out
    assert out.splitlines() == ["# Ireland", "https://ftp.heanet.ie/mirrors/archlinux/"]


def test_cli_unknown_region_is_preflight_error(tmp_path):
    assert cli_main.main(["--region", "Atlantis", "--output-dir", str(tmp_path)]) == EXIT_PREFLIGHT


class FakeRanker:
    report = None
    error = None

    def __init__(self, http_client=None, settings=None, progress=None):  # noqa: ARG002
        self.settings = settings

    def run(self, catalog):  # noqa: ARG002
        if FakeRanker.error is not None:
            raise FakeRanker.error
        return FakeRanker.report

    def __enter__(self):
        return self

    def __exit__(self, *_):
        return None


def _fake_report(succeeded):
    from mirrorrank.models.probe import ProbeOutcome

    endpoint = Endpoint("https://m.example/")
    if succeeded:
        outcome = ProbeOutcome.success(endpoint, elapsed_seconds=1.0, bytes_transferred=500_000)
    else:
        outcome = ProbeOutcome.failure(endpoint, ProbeStatus.UNREACHABLE, "Unreachable")
    ranked, summary = aggregate([outcome])
    return RunReport(result=RunResult(outcomes=[outcome]), ranked=ranked, summary=summary)


@pytest.fixture
def fake_cli(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_main, "MirrorRank", FakeRanker)
    monkeypatch.setattr(cli_main, "create_default_http_client", lambda settings: object())
    monkeypatch.setenv("MIRRORRANK_OUTPUT_DIR", str(tmp_path))
    FakeRanker.error = None
    return FakeRanker


def test_cli_success_pretty_output(fake_cli, capsys):
    fake_cli.report = _fake_report(succeeded=True)
    assert cli_main.main([]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Top 5 Fastest Mirrors:" in out
    assert "4.00 Mbps - https://m.example/" in out
    assert "Your connection seems quite slow" in out


def test_cli_json_output(fake_cli, capsys):
    fake_cli.report = _fake_report(succeeded=True)
    assert cli_main.main(["--json"]) == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"]["succeeded"] == 1
    assert payload["summary"]["quality"] == "SLOW"
    assert payload["ranked"][0]["url"] == "https://m.example/"


def test_cli_no_results_exit_code(fake_cli):
    fake_cli.report = _fake_report(succeeded=False)
    assert cli_main.main([]) == EXIT_NO_RESULTS


def test_cli_tool_missing_exit_code(fake_cli):
    fake_cli.error = ToolMissingError("curl is required")
    assert cli_main.main([]) == EXIT_PREFLIGHT


def test_stub_client_is_not_part_of_the_public_api():
    import mirrorrank
    from mirrorrank import http

    assert "StubHttpClient" not in mirrorrank.__all__
    assert not hasattr(mirrorrank, "StubHttpClient")
    assert "StubHttpClient" in http.__all__
