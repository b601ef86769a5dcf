from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.pacman import install_packages
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class InstallPackagesStep:
    step_id = "50_install_packages"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        install_packages(ctx.chroot, ctx.cfg.arch, ctx.cfg.all_packages)
        return state
