from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import BootstrapConfig, load_config_file, resolve_config
from .errors import BootstrapError
from .lib.http import new_session
from .lib.workdir import download_dir
from .logging_utils import configure_logging, success
from .pipeline import BootstrapCtx, Step, run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    ConfigureMinimalSystemStep,
    ConfigurePacmanStep,
    ConfigureQemuStep,
    FinalizePacmanStep,
    InstallBasicStep,
    InstallPackagesStep,
    PrepareTargetStep,
)

logger = logging.getLogger(__name__)

EPILOG = (
    "The new root has a root account with password 3355; change it after the "
    "first chroot. Without -d, downloads go to a temporary directory that is "
    "removed when the run ends."
)


def build_steps() -> List[Step]:
    return [
        PrepareTargetStep(),
        InstallBasicStep(),
        ConfigurePacmanStep(),
        ConfigureMinimalSystemStep(),
        ConfigureQemuStep(),
        InstallPackagesStep(),
        FinalizePacmanStep(),
    ]


def run(
    cfg: BootstrapConfig,
    *,
    state_path: Optional[str] = None,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> Dict[str, Any]:
    """Run the bootstrap pipeline; the run record is saved on every exit path."""

    state = load_state(state_path) if state_path else {}
    # artifacts from an earlier run stay; the execution record is per run
    state.pop("execution", None)
    state = ensure_defaults(state)
    state["config"] = cfg.as_dict()

    try:
        with download_dir(cfg.download_dir) as ddir, new_session() as session:
            ctx = BootstrapCtx(cfg=cfg, session=session, download_dir=ddir)
            result = run_pipeline(
                ctx=ctx,
                state=state,
                steps=build_steps(),
                start_at=start_at,
                stop_after=stop_after,
            )
        state = result.state
        state.setdefault("execution", {}).setdefault("summary", {})["ran_steps"] = result.ran_steps
        return state
    except BootstrapError as e:
        logger.debug("Bootstrap failed", exc_info=True)
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        if state_path:
            save_state(state_path, state)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="arch-bootstrap",
        description="Bootstrap a base Arch Linux system using any GNU distribution.",
        epilog=EPILOG,
    )
    p.add_argument("dest", metavar="DESTDIR", help="Destination directory of the new root")
    p.add_argument(
        "-a",
        "--arch",
        default=None,
        help="Target architecture, e.g. i486|i686|pentium4|x86_64|arm|aarch64 (default: host)",
    )
    p.add_argument("-r", "--repo-url", default=None, help="Repository base URL (default: per architecture)")
    p.add_argument("-q", "--qemu", action="store_true", help="Copy qemu-<arch>-static into the target")
    p.add_argument("-d", "--download-dir", default=None, help="Keep downloaded packages in this directory")
    p.add_argument("-c", "--config", default=None, help="YAML file with defaults for the options above")
    p.add_argument("--log", default=None, help="Also write a detailed log to this file")
    p.add_argument("--state", default=None, help="Write a run record (json|yaml) to this file")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 50_install_packages)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        file_config = load_config_file(args.config) if args.config else None
        cfg = resolve_config(
            dest=args.dest,
            arch=args.arch,
            repo_url=args.repo_url,
            download_dir=args.download_dir,
            use_qemu=args.qemu,
            file_config=file_config,
        )
    except (OSError, ValueError) as e:
        p.print_usage(sys.stderr)
        logger.error("Error: %s", e)
        return 2

    try:
        run(cfg, state_path=args.state, start_at=args.start_at, stop_after=args.stop_after)
    except ValueError as e:
        logger.error("Error: %s", e)
        return 2
    except BootstrapError as e:
        logger.error("Error: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130

    success(logger, "")
    success(logger, "Done!")
    success(logger, "")
    return 0
