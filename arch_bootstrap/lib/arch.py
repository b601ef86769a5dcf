from __future__ import annotations

import platform

DEFAULT_REPO_URL = "http://mirrors.kernel.org/archlinux"
DEFAULT_ARM_REPO_URL = "http://mirror.archlinuxarm.org"
DEFAULT_X86_REPO_URL = "http://mirror.archlinux32.org"


def host_arch() -> str:
    return platform.machine()


def is_arm(arch: str) -> bool:
    return arch.startswith("arm") or arch == "aarch64"


def is_x86_32(arch: str) -> bool:
    return (arch.startswith("i") and arch.endswith("86")) or arch == "pentium4"


def arch_prefixed_layout(arch: str) -> bool:
    """Arch Linux ARM and Arch Linux 32 mirrors put the architecture first."""
    return is_arm(arch) or is_x86_32(arch)


def default_repo_url(arch: str) -> str:
    if is_arm(arch):
        return DEFAULT_ARM_REPO_URL
    if is_x86_32(arch):
        return DEFAULT_X86_REPO_URL
    return DEFAULT_REPO_URL


def core_repo_url(repo_url: str, arch: str) -> str:
    base = repo_url.rstrip("/")
    if arch_prefixed_layout(arch):
        return f"{base}/{arch}/core"
    return f"{base}/core/os/{arch}"


def template_repo_url(repo_url: str, arch: str) -> str:
    """Mirror-list server line; ``$repo`` is expanded by pacman itself."""
    base = repo_url.rstrip("/")
    if arch_prefixed_layout(arch):
        return f"{base}/{arch}/$repo"
    return f"{base}/$repo/os/{arch}"


def qemu_arch(arch: str) -> str:
    # qemu ships a single user emulator for every 32-bit ARM flavour
    return "arm" if arch.startswith("arm") else arch
