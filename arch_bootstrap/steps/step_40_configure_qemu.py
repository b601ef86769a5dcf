from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.pacman import configure_static_qemu
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class ConfigureQemuStep:
    step_id = "40_configure_qemu"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        if not ctx.cfg.use_qemu:
            logger.debug("Emulation not requested; skipping qemu setup")
            return state

        qemu = configure_static_qemu(ctx.cfg.arch, ctx.dest)
        state.setdefault("execution", {}).setdefault("decisions", {})["qemu"] = qemu
        return state
