from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path
from typing import List

from ..errors import ConfigureError

logger = logging.getLogger(__name__)

HOST_RESOLV_CONF = "/etc/resolv.conf"

# Default credential of a freshly bootstrapped tree: user root, password 3355.
ROOT_SHADOW_ENTRY = "root:$1$GT9AUpJe$uTUJeUtwcBVzlA.aYn5yK.:14657::::::"
MTAB_ENTRY = "rootfs / rootfs rw 0 0\n"


def _path(root: str, rel: str) -> Path:
    return Path(root) / rel.lstrip("/")


def _sed(path: Path, pattern: str, repl: str) -> bool:
    """Multiline regex substitution in place; False when ``path`` is missing."""

    if not path.is_file():
        logger.warning("Skipping %s (not present in this snapshot)", path)
        return False
    text = path.read_text(encoding="utf-8")
    new = re.sub(pattern, repl, text, flags=re.MULTILINE)
    if new != text:
        path.write_text(new, encoding="utf-8")
    return True


def copy_resolv_conf(target_root: str, *, host_resolv_conf: str = HOST_RESOLV_CONF) -> None:
    src = Path(host_resolv_conf)
    dst = _path(target_root, "etc/resolv.conf")
    if not src.exists():
        logger.warning("Host has no %s; DNS may not work inside the chroot", src)
        return
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        if dst.is_symlink():
            dst.unlink()
        shutil.copyfile(src, dst)
    except OSError as e:
        logger.warning("Cannot copy %s into target: %s", src, e)


def write_mirrorlist(target_root: str, server: str) -> None:
    p = _path(target_root, "etc/pacman.d/mirrorlist")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(f"Server = {server}\n", encoding="utf-8")
    except OSError as e:
        raise ConfigureError(f"Cannot write mirror list {p}: {e}") from e
    logger.debug("Mirror list: Server = %s", server)


def set_root_credential(target_root: str) -> None:
    p = _path(target_root, "etc/shadow")
    try:
        if p.is_file():
            text = p.read_text(encoding="utf-8")
            if re.search(r"^root:.*$", text, flags=re.MULTILINE):
                text = re.sub(r"^root:.*$", lambda _: ROOT_SHADOW_ENTRY, text, flags=re.MULTILINE)
            else:
                text = ROOT_SHADOW_ENTRY + "\n" + text
            p.write_text(text, encoding="utf-8")
        else:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(ROOT_SHADOW_ENTRY + "\n", encoding="utf-8")
            os.chmod(p, 0o600)
    except OSError as e:
        raise ConfigureError(f"Cannot set root credential in {p}: {e}") from e


def ensure_group_file(target_root: str) -> None:
    p = _path(target_root, "etc/group")
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.touch(exist_ok=True)
    except OSError as e:
        raise ConfigureError(f"Cannot create {p}: {e}") from e


def write_mtab(target_root: str) -> None:
    # No mount event happened in the new root; give it a static table.
    p = _path(target_root, "etc/mtab")
    try:
        p.unlink(missing_ok=True)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(MTAB_ENTRY, encoding="utf-8")
    except OSError as e:
        raise ConfigureError(f"Cannot write {p}: {e}") from e


def disable_check_space(target_root: str) -> bool:
    return _sed(_path(target_root, "etc/pacman.conf"), r"^[ \t]*(CheckSpace)", r"# \1")


def patch_pacman_conf(target_root: str) -> bool:
    """Bootstrap-friendly pacman.conf: no DownloadUser, no space check, no signatures."""

    p = _path(target_root, "etc/pacman.conf")
    if not _sed(p, r"^DownloadUser", "#DownloadUser"):
        return False
    disable_check_space(target_root)
    _sed(p, r"^[ \t]*SigLevel[ \t]*=.*$", "SigLevel = Never")
    return True


def patch_makepkg_conf(target_root: str) -> bool:
    return _sed(
        _path(target_root, "etc/makepkg.conf"),
        re.escape("PKGEXT='.pkg.tar.xz'"),
        "PKGEXT='.pkg.tar.zst'",
    )


def configure_pacman(target_root: str, server: str, *, host_resolv_conf: str = HOST_RESOLV_CONF) -> None:
    """DNS and mirror list, so pacman can reach the repository from inside the chroot."""

    copy_resolv_conf(target_root, host_resolv_conf=host_resolv_conf)
    write_mirrorlist(target_root, server)


def configure_minimal_system(target_root: str) -> None:
    try:
        _path(target_root, "dev").mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigureError(f"Cannot create {target_root}/dev: {e}") from e
    set_root_credential(target_root)
    ensure_group_file(target_root)
    write_mtab(target_root)
    try:
        patch_pacman_conf(target_root)
        patch_makepkg_conf(target_root)
    except OSError as e:
        logger.warning("Cannot patch package manager config: %s", e)


def configure(target_root: str, server: str, *, host_resolv_conf: str = HOST_RESOLV_CONF) -> None:
    """Make a freshly unpacked tree self-sufficient for a pacman run."""

    configure_pacman(target_root, server, host_resolv_conf=host_resolv_conf)
    configure_minimal_system(target_root)


def replace_pacnew_files(target_root: str) -> List[str]:
    """Promote every ``etc/**/*.pacnew`` over the file it shadows."""

    replaced: List[str] = []
    etc = _path(target_root, "etc")
    if not etc.is_dir():
        return replaced
    for pacnew in sorted(etc.rglob("*.pacnew")):
        if not pacnew.is_file() or pacnew.is_symlink():
            continue
        orig = pacnew.with_name(pacnew.name[: -len(".pacnew")])
        logger.info("Replacing %s with %s", orig, pacnew)
        try:
            os.replace(pacnew, orig)
        except OSError as e:
            raise ConfigureError(f"Cannot replace {orig}: {e}") from e
        replaced.append(str(orig.relative_to(target_root)))
    return replaced


def finalize(target_root: str) -> List[str]:
    replaced = replace_pacnew_files(target_root)
    disable_check_space(target_root)
    return replaced
