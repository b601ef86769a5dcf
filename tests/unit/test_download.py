from __future__ import annotations

import os
from email.utils import parsedate_to_datetime
from pathlib import Path

import pytest
import requests

from arch_bootstrap.errors import FetchError
from arch_bootstrap.lib.download import fetch_file

URL = "http://mirror.test/core/os/x86_64/glibc-2.40-1-x86_64.pkg.tar.zst"
STAMP = "Tue, 03 Sep 2024 08:30:00 GMT"


def test_first_fetch_downloads_and_stamps_remote_mtime(tmp_path: Path, fake_session) -> None:
    fake_session.add(URL, b"payload", STAMP)
    target = tmp_path / "cache" / "glibc-2.40-1-x86_64.pkg.tar.zst"

    assert fetch_file(URL, target, session=fake_session) is True

    assert target.read_bytes() == b"payload"
    assert target.stat().st_mtime == parsedate_to_datetime(STAMP).timestamp()
    assert "If-Modified-Since" not in fake_session.requests[0][1]


def test_second_fetch_of_unchanged_resource_transfers_once(tmp_path: Path, fake_session) -> None:
    fake_session.add(URL, b"payload", STAMP)
    target = tmp_path / "glibc.pkg.tar.zst"

    fetch_file(URL, target, session=fake_session)
    assert fetch_file(URL, target, session=fake_session) is False

    assert fake_session.transfers == [URL]
    assert len(fake_session.requests) == 2
    assert fake_session.requests[1][1]["If-Modified-Since"] == STAMP
    assert target.read_bytes() == b"payload"


def test_newer_remote_resource_is_downloaded_again(tmp_path: Path, fake_session) -> None:
    target = tmp_path / "glibc.pkg.tar.zst"
    fake_session.add(URL, b"old", STAMP)
    fetch_file(URL, target, session=fake_session)

    fake_session.add(URL, b"new", "Wed, 04 Sep 2024 08:30:00 GMT")
    assert fetch_file(URL, target, session=fake_session) is True

    assert target.read_bytes() == b"new"
    assert len(fake_session.transfers) == 2


def test_http_error_raises_fetch_error_and_keeps_cache_clean(tmp_path: Path, fake_session) -> None:
    target = tmp_path / "missing.pkg.tar.zst"

    with pytest.raises(FetchError, match="Cannot download"):
        fetch_file(URL, target, session=fake_session)

    assert list(tmp_path.iterdir()) == []


def test_interrupted_transfer_leaves_previous_copy_and_no_temp_files(tmp_path: Path, fake_session, monkeypatch) -> None:
    target = tmp_path / "glibc.pkg.tar.zst"
    target.write_bytes(b"previous")
    os.utime(target, (0, 0))
    fake_session.add(URL, b"x" * 10, STAMP)

    class _Broken:
        status_code = 200
        headers = {"Last-Modified": STAMP}

        def raise_for_status(self) -> None:
            return None

        def iter_content(self, chunk_size: int):
            yield b"partial"
            raise requests.ConnectionError("connection reset")

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return None

    monkeypatch.setattr(fake_session, "get", lambda *a, **kw: _Broken())

    with pytest.raises(FetchError):
        fetch_file(URL, target, session=fake_session)

    assert target.read_bytes() == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["glibc.pkg.tar.zst"]


def test_local_write_failure_is_fetch_error(tmp_path: Path, fake_session, monkeypatch) -> None:
    fake_session.add(URL, b"payload", STAMP)
    target = tmp_path / "glibc.pkg.tar.zst"

    def _disk_full(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("arch_bootstrap.lib.download.os.replace", _disk_full)

    with pytest.raises(FetchError, match="Cannot write"):
        fetch_file(URL, target, session=fake_session)

    assert list(tmp_path.iterdir()) == []


def test_cache_path_under_a_regular_file_is_fetch_error(tmp_path: Path, fake_session) -> None:
    fake_session.add(URL, b"payload", STAMP)
    (tmp_path / "cache").write_text("not a directory", encoding="utf-8")

    with pytest.raises(FetchError):
        fetch_file(URL, tmp_path / "cache" / "glibc.pkg.tar.zst", session=fake_session)
