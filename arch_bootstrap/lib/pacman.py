from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ConfigureError
from .arch import qemu_arch
from .chroot import ChrootEnv

logger = logging.getLogger(__name__)

PACMAN_BIN = "/usr/bin/pacman"


def pacman_install_argv(arch: str, packages: Sequence[str]) -> list[str]:
    # -Sy + --overwrite: refresh databases, then reinstall over the files
    # that stage 1 unpacked without a package database.
    return [PACMAN_BIN, "--noconfirm", "--arch", arch, "-Sy", "--overwrite", "*", *packages]


def install_packages(chroot: ChrootEnv, arch: str, packages: Sequence[str]) -> None:
    if not packages:
        return
    logger.info("Installing packages: %s", " ".join(packages))
    chroot.run(pacman_install_argv(arch, packages), capture=False)


def find_static_qemu(arch: str) -> Optional[str]:
    return shutil.which(f"qemu-{qemu_arch(arch)}-static")


def configure_static_qemu(arch: str, target_root: str) -> Optional[str]:
    """Copy the host's static user emulator into the target, if there is one."""

    qemu = find_static_qemu(arch)
    if not qemu:
        logger.warning("No static qemu for %s, ignoring", arch)
        return None
    dst_dir = Path(target_root) / "usr/bin"
    dst = dst_dir / Path(qemu).name
    try:
        dst_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(qemu, dst)
    except OSError as e:
        raise ConfigureError(f"Cannot copy {qemu} into {dst_dir}: {e}") from e
    logger.info("Copied %s into %s", qemu, dst_dir)
    return str(dst)
