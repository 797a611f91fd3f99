# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Candidate mirror catalog.

The built-in catalog favours UK/EU mirrors with a few global fallbacks. A
plain list file can replace it: one URL per line, an optional region token
after the URL, and `# Region` comment lines that set the region for the
entries below them.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlparse

from .errors import CatalogError
from .models.endpoint import Endpoint

_DEFAULT_MIRRORS: dict[str, tuple[str, ...]] = {
    "UK": (
        "https://archlinux.uk.mirror.allworldit.com/archlinux/",
        "https://mirrors.ukfast.co.uk/sites/archlinux.org/",
        "https://mirror.bytemark.co.uk/archlinux/",
        "https://www.mirrorservice.org/sites/ftp.archlinux.org/",
        "https://mirrors.manchester.m247.com/arch-linux/",
        "https://archlinux.mirrors.uk2.net/",
    ),
    "Ireland": ("https://ftp.heanet.ie/mirrors/archlinux/",),
    "Netherlands": (
        "https://mirror.lyrahosting.com/archlinux/",
        "https://mirrors.xtom.nl/archlinux/",
        "https://arch.mirror.pcextreme.nl/",
        "https://mirror.nl.leaseweb.net/archlinux/",
    ),
    "Germany": (
        "https://mirror.bethselamin.de/archlinux/",
        "https://mirrors.n-ix.net/archlinux/",
        "https://mirror.dogado.de/archlinux/",
        "https://ftp.gwdg.de/pub/linux/archlinux/",
        "https://mirror.pkgbuild.com/",
    ),
    "France": (
        "https://archlinux.mirrors.ovh.net/archlinux/",
        "https://mirror.cyberbits.eu/archlinux/",
        "https://archlinux.mailtunnel.eu/",
    ),
    "Other EU": (
        "https://mirror.osbeck.com/archlinux/",
        "https://mirrors.dotsrc.org/archlinux/",
        "https://ftp.acc.umu.se/mirror/archlinux/",
    ),
    "Global": (
        "https://mirrors.kernel.org/archlinux/",
        "https://mirror.rackspace.com/archlinux/",
        "https://america.mirror.pkgbuild.com/",
        "https://asia.mirror.pkgbuild.com/",
    ),
}

DEFAULT_CATALOG: tuple[Endpoint, ...] = tuple(
    Endpoint(url=url, region=region) for region, urls in _DEFAULT_MIRRORS.items() for url in urls
)


def is_mirror_url(url: str) -> bool:
    parsed = urlparse(str(url or ""))
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def dedupe(endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """Drop repeated URLs, keeping the first occurrence and the original order."""
    seen: set[str] = set()
    unique: list[Endpoint] = []
    for endpoint in endpoints:
        if endpoint.url in seen:
            continue
        seen.add(endpoint.url)
        unique.append(endpoint)
    return unique


def parse_catalog(lines: Iterable[str], source: str = "<catalog>") -> list[Endpoint]:
    endpoints: list[Endpoint] = []
    region = ""
    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue
        if line.startswith("#"):
            heading = line.lstrip("#").strip()
            # Only short, URL-free comments are region headings.
            if heading and "://" not in heading and len(heading.split()) <= 3:
                region = heading
            continue
        fields = line.split(None, 1)
        url = fields[0]
        rest = fields[1].split("#", 1)[0].strip() if len(fields) > 1 else ""
        if not is_mirror_url(url):
            raise CatalogError(f"{source}:{lineno}: not an http(s) mirror URL: {url!r}")
        endpoints.append(Endpoint(url=url, region=rest or region))
    return dedupe(endpoints)


def load_catalog(path: str | Path) -> list[Endpoint]:
    """Read a plain list file of mirror URLs."""
    catalog_path = Path(path)
    try:
        text = catalog_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog {catalog_path}: {exc}") from exc
    return parse_catalog(text.splitlines(), source=str(catalog_path))


def filter_catalog(catalog: Iterable[Endpoint], regions: Iterable[str] | None) -> list[Endpoint]:
    wanted = {region.strip().lower() for region in (regions or []) if region and region.strip()}
    if not wanted:
        return list(catalog)
    return [endpoint for endpoint in catalog if endpoint.region.lower() in wanted]


def regions_of(catalog: Iterable[Endpoint]) -> list[str]:
    ordered: list[str] = []
    for endpoint in catalog:
        if endpoint.region and endpoint.region not in ordered:
            ordered.append(endpoint.region)
    return ordered


__all__ = [
    "DEFAULT_CATALOG",
    "dedupe",
    "filter_catalog",
    "is_mirror_url",
    "load_catalog",
    "parse_catalog",
    "regions_of",
]
