from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from ..errors import ConfigureError
from ..pipeline import BootstrapCtx

logger = logging.getLogger(__name__)


class PrepareTargetStep:
    step_id = "10_prepare_target"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        dest = Path(ctx.dest)
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigureError(f"Cannot create destination {dest}: {e}") from e

        logger.debug("Destination directory: %s", dest)
        logger.debug("Core repository: %s", ctx.cfg.core_repo)
        logger.debug("Download directory: %s", ctx.download_dir)
        return state
