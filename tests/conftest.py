from __future__ import annotations

import io
import logging
import tarfile
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
import requests
import zstandard

LAST_MODIFIED = "Mon, 02 Sep 2024 10:00:00 GMT"


class FakeResponse:
    def __init__(self, url: str, status_code: int, body: bytes = b"", headers: Optional[Dict[str, str]] = None) -> None:
        self.url = url
        self.status_code = status_code
        self.content = body
        self.headers = dict(headers or {})

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}", response=self)  # type: ignore[arg-type]

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        return None


class FakeSession:
    """Minimal stand-in for requests.Session serving a fixed set of URLs.

    Honours If-Modified-Since against each resource's Last-Modified and
    counts the responses that carried a body.
    """

    def __init__(self) -> None:
        self.resources: Dict[str, Tuple[bytes, str]] = {}
        self.transfers: List[str] = []
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.fail: Dict[str, Exception] = {}

    def add(self, url: str, body: bytes, last_modified: str = LAST_MODIFIED) -> None:
        self.resources[url] = (body, last_modified)

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, stream: bool = False, timeout: float = 0) -> FakeResponse:
        headers = dict(headers or {})
        self.requests.append((url, headers))
        if url in self.fail:
            raise self.fail[url]
        if url not in self.resources:
            return FakeResponse(url, 404)

        body, last_modified = self.resources[url]
        ims = headers.get("If-Modified-Since")
        if ims and parsedate_to_datetime(ims) >= parsedate_to_datetime(last_modified):
            return FakeResponse(url, 304)

        self.transfers.append(url)
        return FakeResponse(url, 200, body, {"Last-Modified": last_modified})

    def close(self) -> None:
        return None

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def listing_html(names: List[str]) -> str:
    rows = ['<a href="../">../</a>']
    rows += [f'<a href="{n}">{n}</a>                 02-Sep-2024 10:00     1234' for n in names]
    return "<html><head><title>Index of /</title></head><body><pre>\n" + "\n".join(rows) + "\n</pre></body></html>\n"


def build_tar(files: Dict[str, Tuple[bytes, int]]) -> bytes:
    """Uncompressed tar with regular files ``{name: (content, mode)}``."""

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, (content, mode) in sorted(files.items()):
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = mode
            info.mtime = 1_700_000_000
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def build_package(path: Path, files: Dict[str, Tuple[bytes, int]]) -> Path:
    """Write a .gz/.xz/.zst compressed tar at ``path`` based on its suffix."""

    raw = build_tar(files)
    if path.suffix == ".zst":
        path.write_bytes(zstandard.ZstdCompressor().compress(raw))
        return path

    mode = {".gz": "w:gz", ".xz": "w:xz"}[path.suffix]
    with tarfile.open(str(path), mode) as out, tarfile.open(fileobj=io.BytesIO(raw), mode="r") as src:
        for member in src.getmembers():
            out.addfile(member, src.extractfile(member))
    return path


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def make_package():
    return build_package


@pytest.fixture
def make_listing():
    return listing_html


@pytest.fixture(autouse=True)
def _reset_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
    for attr in ("_arch_bootstrap_configured", "_arch_bootstrap_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)
