from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests

from .config import BootstrapConfig
from .lib.chroot import ChrootEnv
from .state_store import mark_step_completed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapCtx:
    """Everything a step may touch, resolved once per run."""

    cfg: BootstrapConfig
    session: requests.Session
    download_dir: Path

    @property
    def dest(self) -> str:
        return self.cfg.dest

    @property
    def chroot(self) -> ChrootEnv:
        return ChrootEnv(self.cfg.dest)


class Step(Protocol):
    """A single overwrite-idempotent step."""

    step_id: str

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]


def select_steps(
    steps: Sequence[Step],
    *,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> List[Step]:
    ids = [s.step_id for s in steps]
    for name in (start_at, stop_after):
        if name is not None and name not in ids:
            raise ValueError(f"Unknown step {name!r} (known: {', '.join(ids)})")

    first = ids.index(start_at) if start_at else 0
    last = ids.index(stop_after) if stop_after else len(ids) - 1
    if last < first:
        raise ValueError(f"--stop-after {stop_after} comes before --start-at {start_at}")
    return list(steps[first : last + 1])


def run_pipeline(
    *,
    ctx: BootstrapCtx,
    state: Dict[str, Any],
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run steps in order. Every selected step runs, even if a previous run completed it."""

    ran: List[str] = []

    for step in select_steps(steps, start_at=start_at, stop_after=stop_after):
        state.setdefault("execution", {})["current_step"] = step.step_id
        logger.debug("Running step %s", step.step_id)
        state = step.run(ctx, state)
        mark_step_completed(state, step.step_id)
        ran.append(step.step_id)

    state.setdefault("execution", {})["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran)
