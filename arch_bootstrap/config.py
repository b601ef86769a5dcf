from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .lib.arch import core_repo_url, default_repo_url, host_arch, template_repo_url
from .lib.http import DEFAULT_TIMEOUT

# Packages needed by pacman itself (pacman + its shared library closure).
PACMAN_PACKAGES: Tuple[str, ...] = (
    "acl", "archlinux-keyring", "attr", "brotli", "bzip2", "curl", "expat", "glibc", "gpgme",
    "libarchive", "libassuan", "libgpg-error", "libnghttp2", "libnghttp3", "libssh2", "lzo",
    "openssl", "pacman", "pacman-mirrorlist", "xz", "zlib", "krb5", "e2fsprogs", "keyutils",
    "libidn2", "libunistring", "gcc-libs", "lz4", "libpsl", "icu", "zstd", "libxml2",
)
BASIC_PACKAGES: Tuple[str, ...] = PACMAN_PACKAGES + ("filesystem", "base")
EXTRA_PACKAGES: Tuple[str, ...] = (
    "coreutils", "bash", "grep", "gawk", "file", "tar", "gzip", "systemd", "sed",
    "archlinuxarm-keyring",
)

_KNOWN_KEYS = {"arch", "repo_url", "download_dir", "qemu", "http_timeout", "packages"}


@dataclass(frozen=True)
class BootstrapConfig:
    dest: str
    arch: str
    repo_url: str
    download_dir: Optional[str] = None
    use_qemu: bool = False
    basic_packages: Tuple[str, ...] = BASIC_PACKAGES
    extra_packages: Tuple[str, ...] = EXTRA_PACKAGES
    http_timeout: float = DEFAULT_TIMEOUT

    @property
    def core_repo(self) -> str:
        return core_repo_url(self.repo_url, self.arch)

    @property
    def mirror_server(self) -> str:
        return template_repo_url(self.repo_url, self.arch)

    @property
    def all_packages(self) -> Tuple[str, ...]:
        return self.basic_packages + self.extra_packages

    def as_dict(self) -> Dict[str, Any]:
        return {
            "dest": self.dest,
            "arch": self.arch,
            "repo_url": self.repo_url,
            "core_repo": self.core_repo,
            "download_dir": self.download_dir,
            "use_qemu": self.use_qemu,
        }


def load_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("config file must be YAML")

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"{path}: unknown keys: {', '.join(unknown)}")
    return raw


def _package_list(raw: Dict[str, Any], key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = (raw.get("packages") or {}).get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"packages.{key} must be a list of package names")
    return tuple(value)


def resolve_config(
    *,
    dest: str,
    arch: Optional[str] = None,
    repo_url: Optional[str] = None,
    download_dir: Optional[str] = None,
    use_qemu: bool = False,
    file_config: Optional[Dict[str, Any]] = None,
) -> BootstrapConfig:
    """Merge command line values over the config file over host defaults."""

    raw = file_config or {}
    if raw.get("packages") is not None and not isinstance(raw["packages"], dict):
        raise ValueError("packages must be a mapping with 'basic'/'extra' lists")

    final_arch = arch or raw.get("arch") or host_arch()
    final_repo = repo_url or raw.get("repo_url") or default_repo_url(final_arch)
    final_download = download_dir or raw.get("download_dir") or None

    return BootstrapConfig(
        dest=dest,
        arch=str(final_arch),
        repo_url=str(final_repo),
        download_dir=str(final_download) if final_download else None,
        use_qemu=bool(use_qemu or raw.get("qemu", False)),
        basic_packages=_package_list(raw, "basic", BASIC_PACKAGES),
        extra_packages=_package_list(raw, "extra", EXTRA_PACKAGES),
        http_timeout=float(raw.get("http_timeout", DEFAULT_TIMEOUT)),
    )
