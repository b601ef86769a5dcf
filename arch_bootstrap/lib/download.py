from __future__ import annotations

import logging
import os
import tempfile
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path

import requests

from ..errors import FetchError
from .http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def _remote_mtime(r: requests.Response) -> float | None:
    value = r.headers.get("Last-Modified")
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).timestamp()
    except (TypeError, ValueError):
        logger.debug("Ignoring unparsable Last-Modified: %r", value)
        return None


def fetch_file(
    url: str,
    filepath: str | Path,
    *,
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT,
) -> bool:
    """Download ``url`` to ``filepath`` unless the cached copy is current.

    An existing file is revalidated with ``If-Modified-Since`` (its mtime).
    New content goes to a temp file next to ``filepath`` and is moved into
    place with ``os.replace``, so an interrupted run never leaves a truncated
    archive under the final name.

    Returns True when bytes were transferred, False on a 304.
    """

    p = Path(filepath)
    headers = {}
    if p.exists():
        headers["If-Modified-Since"] = formatdate(p.stat().st_mtime, usegmt=True)

    tmp_name: str | None = None
    try:
        with session.get(url, headers=headers, stream=True, timeout=timeout) as r:
            if r.status_code == 304:
                logger.debug("Cached copy is current: %s", p.name)
                return False
            r.raise_for_status()

            p.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(p.parent), prefix=f".{p.name}.", suffix=".part")
            with os.fdopen(fd, "wb") as f:
                for chunk in r.iter_content(CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
            os.replace(tmp_name, p)
            tmp_name = None

            mtime = _remote_mtime(r)
            if mtime is not None:
                os.utime(p, (mtime, mtime))
    except requests.RequestException as e:
        raise FetchError(f"Cannot download {url}: {e}") from e
    except OSError as e:
        raise FetchError(f"Cannot write {p}: {e}") from e
    finally:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)

    logger.debug("Downloaded %s", p.name)
    return True
