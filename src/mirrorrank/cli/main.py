# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""mirrorrank CLI."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..catalog import DEFAULT_CATALOG, filter_catalog, load_catalog, regions_of
from ..config import ProbeSettings, load_probe_settings
from ..emit import MIRRORLIST_TARGET, QUALITY_MESSAGES
from ..errors import CatalogError, NoSuccessfulProbesError, ToolMissingError
from ..http import create_default_http_client
from ..log import setup_logging
from ..models.endpoint import Endpoint
from ..models.probe import ProbeOutcome
from ..runtime import MirrorRank, RunReport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NO_RESULTS = 1
EXIT_PREFLIGHT = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Rank Arch Linux mirrors by measured download speed")
    parser.add_argument("--catalog", metavar="FILE", help="Plain list of mirror URLs (default: built-in list)")
    parser.add_argument(
        "--region",
        action="append",
        default=[],
        metavar="REGION",
        help="Only test mirrors from this region (repeatable)",
    )
    parser.add_argument("--output-dir", metavar="DIR", help="Directory for result files")
    parser.add_argument("--workers", type=int, metavar="N", help="Concurrent probes (1 = sequential)")
    parser.add_argument("--top-n", type=int, metavar="N", help="Mirrors to write into the mirrorlist")
    parser.add_argument("--delay", type=float, metavar="SECONDS", help="Pause between probe dispatches")
    parser.add_argument("--test-path", metavar="PATH", help="Repository-relative file used for the speed test")
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON instead of human-friendly summary",
    )
    parser.add_argument("--log-level", metavar="LEVEL", help="Logging level (default: INFO)")
    parser.add_argument("--list", action="store_true", help="Print the mirror catalog and exit")
    return parser


def apply_overrides(settings: ProbeSettings, args: argparse.Namespace) -> ProbeSettings:
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.workers is not None:
        settings.workers = max(1, args.workers)
    if args.top_n is not None:
        settings.top_n = max(1, args.top_n)
    if args.delay is not None:
        settings.delay = max(0.0, args.delay)
    if args.test_path:
        settings.test_path = args.test_path
    if args.ignore_ssl_errors:
        settings.verify_ssl = False
    return settings


def resolve_catalog(args: argparse.Namespace) -> list[Endpoint]:
    catalog = load_catalog(args.catalog) if args.catalog else list(DEFAULT_CATALOG)
    selected = filter_catalog(catalog, args.region)
    if args.region and not selected:
        raise CatalogError(f"No mirrors match region(s): {', '.join(args.region)} (known: {', '.join(regions_of(catalog))})")
    return selected


def _print_catalog(catalog: list[Endpoint]) -> None:
    region = None
    for endpoint in catalog:
        if endpoint.region != region:
            region = endpoint.region
            print(f"# {region or 'Unlabelled'}")
        print(endpoint.url)


def _print_progress(position: int, total: int, outcome: ProbeOutcome) -> None:
    print(f"[{position}/{total}] Testing: {outcome.endpoint.url} ... {outcome.describe()}", flush=True)


def _print_json(data: dict[str, Any] | Any) -> None:
    payload = data.to_dict() if hasattr(data, "to_dict") else data
    json.dump(payload, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _pretty_print(report: RunReport, settings: ProbeSettings) -> None:
    summary = report.summary
    print("")
    print("=== Mirror Test Summary ===")
    if report.ranked:
        print("")
        print("Top 5 Fastest Mirrors:")
        for outcome in report.ranked[:5]:
            print(f"  {outcome.throughput_mbps:.2f} Mbps - {outcome.endpoint.url}")
        print("")
        print("Your Connection Analysis:")
        print(f"  Fastest mirror: {summary.best_mbps:.2f} Mbps")
        print(f"  Average speed: {summary.mean_mbps:.2f} Mbps")
        if summary.quality is not None:
            for message in QUALITY_MESSAGES[summary.quality]:
                print(f"  {message}")

    print("")
    print("Test Statistics:")
    print(f"  Total mirrors tested: {summary.total}")
    print(f"  Successful tests: {summary.succeeded}")
    print(f"  Failed tests: {summary.failed}")

    output_dir = Path(settings.output_dir)
    print("")
    print("Results saved to:")
    print(f"  {output_dir / settings.results_log_name} - Detailed log")
    print(f"  {output_dir / settings.records_name} - Raw data")
    if report.artifacts is not None:
        print(f"  {report.artifacts.mirrorlist_path} - Ready-to-use mirrorlist")
        print(f"  {report.artifacts.summary_path} - Summary report")
    print(f"  {output_dir / settings.failed_log_name} - Failed mirrors")

    if report.artifacts is not None:
        print("")
        print("To use the best mirrors:")
        print(f"  sudo cp {report.artifacts.mirrorlist_path} {MIRRORLIST_TARGET}")
        print("")
        print("For pacman optimization with your connection, edit /etc/pacman.conf and set:")
        print(f"    ParallelDownloads = {summary.parallel_downloads}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = apply_overrides(load_probe_settings(), args)
    log_file = None if args.list else str(Path(settings.output_dir) / settings.results_log_name)
    setup_logging(args.log_level, log_file=log_file)

    try:
        catalog = resolve_catalog(args)
    except CatalogError as exc:
        logger.error("%s", exc)
        return EXIT_PREFLIGHT

    if args.list:
        _print_catalog(catalog)
        return EXIT_OK

    progress = None if args.json else _print_progress
    http_client = create_default_http_client(settings)
    try:
        with MirrorRank(http_client=http_client, settings=settings, progress=progress) as ranker:
            report = ranker.run(catalog)
    except (ToolMissingError, CatalogError) as exc:
        logger.error("%s", exc)
        return EXIT_PREFLIGHT

    if args.json:
        _print_json(report)
    else:
        _pretty_print(report, settings)

    try:
        report.ensure_ranked()
    except NoSuccessfulProbesError as exc:
        logger.error("%s. Check your internet connection and try again.", exc)
        return EXIT_INTERRUPTED if report.interrupted else EXIT_NO_RESULTS

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
