from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest

from arch_bootstrap.config import resolve_config
from arch_bootstrap.main import build_steps
from arch_bootstrap.pipeline import BootstrapCtx, run_pipeline, select_steps


class _Step:
    def __init__(self, step_id: str, log: List[str]) -> None:
        self.step_id = step_id
        self.log = log

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        self.log.append(self.step_id)
        return state


@pytest.fixture
def ctx(tmp_path: Path, fake_session) -> BootstrapCtx:
    cfg = resolve_config(dest=str(tmp_path / "root"), arch="x86_64", repo_url="http://mirror.test")
    return BootstrapCtx(cfg=cfg, session=fake_session, download_dir=tmp_path)


def test_default_step_order() -> None:
    assert [s.step_id for s in build_steps()] == [
        "10_prepare_target",
        "20_install_basic",
        "30_configure_pacman",
        "35_configure_minimal_system",
        "40_configure_qemu",
        "50_install_packages",
        "60_finalize_pacman",
    ]


def test_run_pipeline_runs_every_step_and_records_completion(ctx: BootstrapCtx) -> None:
    log: List[str] = []
    steps = [_Step("a", log), _Step("b", log)]
    state: Dict[str, Any] = {"execution": {"completed_steps": ["a", "b"]}}

    result = run_pipeline(ctx=ctx, state=state, steps=steps)

    # completed steps from an earlier run are not skipped
    assert log == ["a", "b"]
    assert result.ran_steps == ["a", "b"]
    assert result.state["execution"]["current_step"] is None


def test_start_at_and_stop_after(ctx: BootstrapCtx) -> None:
    log: List[str] = []
    steps = [_Step(s, log) for s in ("a", "b", "c", "d")]

    run_pipeline(ctx=ctx, state={}, steps=steps, start_at="b", stop_after="c")

    assert log == ["b", "c"]


def test_select_steps_rejects_unknown_or_inverted_ranges() -> None:
    steps = [_Step(s, []) for s in ("a", "b")]
    with pytest.raises(ValueError, match="Unknown step 'z'"):
        select_steps(steps, start_at="z")
    with pytest.raises(ValueError, match="comes before"):
        select_steps(steps, start_at="b", stop_after="a")


def test_failing_step_leaves_current_step_set(ctx: BootstrapCtx) -> None:
    class _Boom:
        step_id = "boom"

        def run(self, ctx, state):
            raise RuntimeError("boom")

    state: Dict[str, Any] = {}
    with pytest.raises(RuntimeError):
        run_pipeline(ctx=ctx, state=state, steps=[_Boom()])
    assert state["execution"]["current_step"] == "boom"
