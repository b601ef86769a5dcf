from __future__ import annotations

import logging
import lzma
import os
import tarfile
from pathlib import Path, PurePosixPath
from typing import Optional

import zstandard

from ..errors import BootstrapError, UnknownFormat

logger = logging.getLogger(__name__)

# suffix -> tarfile open mode; zstd has no tarfile mode and is streamed instead
_FORMATS = {
    ".gz": "r:gz",
    ".xz": "r:xz",
    ".zst": None,
}


def archive_format(path: str | Path) -> str:
    suffix = Path(path).suffix
    if suffix not in _FORMATS:
        raise UnknownFormat(str(path))
    return suffix


def _unsafe_name(name: str) -> bool:
    p = PurePosixPath(name)
    return p.is_absolute() or ".." in p.parts


def _real_dir(path: str) -> bool:
    return os.path.isdir(path) and not os.path.islink(path)


def _rootfs_filter(member: tarfile.TarInfo, dest: str) -> Optional[tarfile.TarInfo]:
    """Keep modes, owners and special files; refuse paths leaving ``dest``.

    tarfile's ``data``/``tar`` filters strip setuid bits and device nodes,
    both of which a root filesystem needs.
    """

    if _unsafe_name(member.name) or (member.islnk() and _unsafe_name(member.linkname)):
        raise BootstrapError(f"Refusing archive member outside destination: {member.name}")

    # Replace whatever an earlier run or package left at this name. Writing
    # through a symlink would escape dest, and tarfile cannot link over an
    # existing file.
    target = os.path.join(dest, member.name)
    if not member.isdir() and os.path.lexists(target) and not _real_dir(target):
        os.unlink(target)
    return member


def _extract(tar: tarfile.TarFile, dest: Path) -> None:
    if hasattr(tarfile, "fully_trusted_filter"):
        tar.extractall(str(dest), numeric_owner=True, filter=_rootfs_filter)
        return
    for member in tar:
        _rootfs_filter(member, str(dest))
        tar.extract(member, str(dest), numeric_owner=True)


def uncompress(path: str | Path, dest: str | Path) -> None:
    """Unpack a gzip, xz or zstd compressed tar archive into ``dest``.

    Files already present in ``dest`` are overwritten. An unsupported suffix
    raises UnknownFormat before anything is written.
    """

    suffix = archive_format(path)
    dest_dir = Path(dest)
    dest_dir.mkdir(parents=True, exist_ok=True)

    logger.debug("Uncompressing package: %s", path)
    try:
        mode = _FORMATS[suffix]
        if mode is not None:
            with tarfile.open(str(path), mode) as tar:
                _extract(tar, dest_dir)
            return

        with open(path, "rb") as fh:
            dctx = zstandard.ZstdDecompressor()
            with dctx.stream_reader(fh) as reader:
                with tarfile.open(fileobj=reader, mode="r|") as tar:
                    _extract(tar, dest_dir)
    except (tarfile.TarError, zstandard.ZstdError, lzma.LZMAError, EOFError, OSError) as e:
        raise BootstrapError(f"Cannot uncompress {path}: {e}") from e
