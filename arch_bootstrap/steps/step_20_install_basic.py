from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import requests

from ..lib.archive import uncompress
from ..lib.download import fetch_file
from ..lib.http import DEFAULT_TIMEOUT
from ..lib.repo import ResolvedArtifact, fetch_packages_list, resolve_package
from ..pipeline import BootstrapCtx
from ..state_store import record_artifact

logger = logging.getLogger(__name__)


def install_basic_packages(
    *,
    repo: str,
    dest: str,
    packages: Sequence[str],
    download_dir: Path,
    index: Sequence[str],
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[ResolvedArtifact]:
    """Resolve, download and unpack each package straight into ``dest``.

    Declaration order, no dependency ordering, first failure aborts. Every
    archive is unpacked again on each run, overwriting what is there.
    """

    installed: List[ResolvedArtifact] = []
    for package in packages:
        artifact = resolve_package(package, index, repo)
        filepath = download_dir / artifact.filename

        logger.debug("Downloading package: %s", artifact.url)
        fetch_file(artifact.url, filepath, session=session, timeout=timeout)
        uncompress(filepath, dest)
        installed.append(artifact)
    return installed


class InstallBasicStep:
    step_id = "20_install_basic"

    def run(self, ctx: BootstrapCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        cfg = ctx.cfg
        logger.info("Installing pacman packages and dependencies: %s", " ".join(cfg.basic_packages))

        index = fetch_packages_list(cfg.core_repo, session=ctx.session, timeout=cfg.http_timeout)
        artifacts = install_basic_packages(
            repo=cfg.core_repo,
            dest=ctx.dest,
            packages=cfg.basic_packages,
            download_dir=ctx.download_dir,
            index=index,
            session=ctx.session,
            timeout=cfg.http_timeout,
        )
        for a in artifacts:
            record_artifact(state, a.package, a.filename, a.url)

        logger.info("Unpacked %d packages into %s", len(artifacts), ctx.dest)
        return state
