from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

CHROOT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/bin:/usr/sbin:/bin:/sbin"


def _default_env() -> Dict[str, str]:
    return {
        "PATH": CHROOT_PATH,
        "LC_ALL": "C",
        "HOME": "/root",
        "TERM": os.environ.get("TERM", "dumb"),
    }


@dataclass(frozen=True)
class ChrootEnv:
    """Run commands with their filesystem root redirected to ``root``.

    The host environment is not inherited; children only see ``env``.
    chroot(8) starts the child in ``/`` of the new root.
    """

    root: str
    env: Dict[str, str] = field(default_factory=_default_env)

    def argv(self, argv: Sequence[str]) -> list[str]:
        return ["chroot", self.root, *argv]

    def run(self, argv: Sequence[str], *, capture: bool = True) -> CmdResult:
        logger.debug("chroot %s: %s", self.root, " ".join(argv))
        return run_cmd(self.argv(argv), env=self.env, inherit_env=False, capture=capture)

