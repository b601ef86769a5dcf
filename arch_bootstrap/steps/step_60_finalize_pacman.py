from __future__ import annotations

import logging
from typing import Any, Dict

from ..lib.rootfs import finalize
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class FinalizePacmanStep:
    step_id = "60_finalize_pacman"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        replaced = finalize(ctx.dest)
        state.setdefault("execution", {}).setdefault("decisions", {})["pacnew_replaced"] = replaced
        return state
