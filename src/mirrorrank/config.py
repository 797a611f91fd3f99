# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for mirrorrank."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"mirrorrank/{__version__} (mirror speed tester)"
DEFAULT_TEST_PATH = "core/os/x86_64/core.db"
DEFAULT_SERVER_TEMPLATE = "$repo/os/$arch"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class ProbeSettings:
    """Probe, scheduling and output defaults."""

    test_path: str = DEFAULT_TEST_PATH
    reachability_timeout: float = 10.0
    connect_timeout: float = 30.0
    transfer_timeout: float = 60.0
    # 0 means "derive from the probe timeouts"
    probe_budget: float = 0.0
    workers: int = 5
    delay: float = 1.0
    top_n: int = 10
    output_dir: str = "."
    server_template: str = DEFAULT_SERVER_TEMPLATE
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    allow_redirects: bool = True
    required_tools: tuple[str, ...] = ()

    results_log_name: str = "mirror_test_results.txt"
    records_name: str = "mirror_test_results.csv"
    failed_log_name: str = "failed_mirrors.txt"
    mirrorlist_name: str = "best_mirrors.txt"
    summary_name: str = "mirror_summary.txt"

    def __post_init__(self) -> None:
        if self.workers < 1:
            self.workers = 1
        if self.top_n < 1:
            self.top_n = ProbeSettings.top_n
        if self.delay < 0:
            self.delay = 0.0

    @property
    def effective_probe_budget(self) -> float:
        """Wall-clock cap for one probe, enforced by the orchestrator."""
        if self.probe_budget and self.probe_budget > 0:
            return self.probe_budget
        return self.reachability_timeout + self.transfer_timeout + 5.0

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            test_path=os.getenv("MIRRORRANK_TEST_PATH", cls.test_path),
            reachability_timeout=_float_env("MIRRORRANK_REACH_TIMEOUT", cls.reachability_timeout),
            connect_timeout=_float_env("MIRRORRANK_CONNECT_TIMEOUT", cls.connect_timeout),
            transfer_timeout=_float_env("MIRRORRANK_TRANSFER_TIMEOUT", cls.transfer_timeout),
            probe_budget=_float_env("MIRRORRANK_PROBE_BUDGET", cls.probe_budget),
            workers=_int_env("MIRRORRANK_WORKERS", cls.workers),
            delay=_float_env("MIRRORRANK_DELAY", cls.delay),
            top_n=_int_env("MIRRORRANK_TOP_N", cls.top_n),
            output_dir=os.getenv("MIRRORRANK_OUTPUT_DIR", cls.output_dir),
            server_template=os.getenv("MIRRORRANK_SERVER_TEMPLATE", cls.server_template),
            user_agent=os.getenv("MIRRORRANK_USER_AGENT", cls.user_agent),
            verify_ssl=_bool_env("MIRRORRANK_VERIFY_SSL", cls.verify_ssl),
            allow_redirects=_bool_env("MIRRORRANK_REDIRECTS", cls.allow_redirects),
            required_tools=_list_env("MIRRORRANK_REQUIRED_TOOLS", cls.required_tools),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
