from __future__ import annotations

import requests

from .. import __version__

DEFAULT_TIMEOUT = 60.0


def new_session() -> requests.Session:
    s = requests.Session()
    s.headers["User-Agent"] = f"arch-bootstrap/{__version__}"
    return s
