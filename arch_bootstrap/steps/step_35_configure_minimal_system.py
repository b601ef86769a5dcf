from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.rootfs import configure_minimal_system
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class ConfigureMinimalSystemStep:
    step_id = "35_configure_minimal_system"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Configuring minimal system")
        configure_minimal_system(ctx.dest)
        return state
