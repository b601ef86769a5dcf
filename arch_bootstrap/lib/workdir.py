from __future__ import annotations

import logging
import shutil
import signal
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..errors import ConfigureError

logger = logging.getLogger(__name__)


def _raise_exit(signum: int, frame: object) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def _sigterm_unwinds() -> Iterator[None]:
    """Turn SIGTERM into SystemExit so ``finally`` blocks run."""

    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGTERM, _raise_exit)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@contextmanager
def download_dir(path: Optional[str] = None) -> Iterator[Path]:
    """Directory that holds downloaded packages for one run.

    An explicit ``path`` is created if needed and left in place. Otherwise a
    temporary directory is used and removed on every exit path (return,
    exception, Ctrl-C, SIGTERM).
    """

    if path:
        p = Path(path)
        try:
            p.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigureError(f"Cannot use download directory {p}: {e}") from e
        with _sigterm_unwinds():
            yield p
        return

    try:
        tmp = Path(tempfile.mkdtemp(prefix="arch-bootstrap-"))
    except OSError as e:
        raise ConfigureError(f"Cannot create temporary download directory: {e}") from e
    try:
        with _sigterm_unwinds():
            yield tmp
    finally:
        logger.debug("Removing temporary download directory %s", tmp)
        shutil.rmtree(tmp, ignore_errors=True)
