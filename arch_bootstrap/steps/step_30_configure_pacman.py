from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.rootfs import configure_pacman
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class ConfigurePacmanStep:
    step_id = "30_configure_pacman"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Configuring DNS and pacman")
        configure_pacman(ctx.dest, ctx.cfg.mirror_server)
        state.setdefault("execution", {}).setdefault("decisions", {})["mirror_server"] = ctx.cfg.mirror_server
        return state
