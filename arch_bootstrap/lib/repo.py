from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence
from urllib.parse import quote, unquote

import requests

from ..errors import FetchError, PackageNotFound
from .http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

_HREF_RE = re.compile(r'<a [^>]*href="([^"]*)"')
PACKAGE_SUFFIXES = (".gz", ".xz", ".zst")


@dataclass(frozen=True)
class ResolvedArtifact:
    package: str
    filename: str
    url: str


def extract_hrefs(html: str) -> List[str]:
    return _HREF_RE.findall(html)


def parse_listing(html: str) -> List[str]:
    """Turn a directory-listing page into base file names, newest first.

    Sorting is plain descending string order. For the usual
    ``name-<version>-<rel>-<arch>`` names this puts the latest build of a
    package first, but it is not a version comparison: ``foo-1.2`` sorts
    above ``foo-1.10``.
    """

    names = [unquote(href.rsplit("/", 1)[-1]) for href in extract_hrefs(html)]
    return sorted((n for n in names if n), reverse=True)


def fetch_packages_list(
    repo: str,
    *,
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[str]:
    url = repo.rstrip("/") + "/"
    logger.debug("Fetching packages list from: %s", url)
    try:
        r = session.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f"Cannot fetch packages list from: {repo}") from e

    index = parse_listing(r.text)
    if not index:
        raise FetchError(f"Cannot fetch packages list from: {repo} (no entries in listing)")
    logger.debug("Repository index has %d entries", len(index))
    return index


def package_pattern(package: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(package)}-[0-9].*(\.gz|\.xz|\.zst)$")


def find_package_file(package: str, index: Sequence[str]) -> Optional[str]:
    pattern = package_pattern(package)
    for name in index:
        if pattern.match(name):
            return name
    return None


def resolve_package(package: str, index: Sequence[str], repo: str) -> ResolvedArtifact:
    filename = find_package_file(package, index)
    if filename is None:
        raise PackageNotFound(package)
    return ResolvedArtifact(
        package=package,
        filename=filename,
        url=f"{repo.rstrip('/')}/{quote(filename)}",
    )
