from __future__ import annotations

from typing import Sequence


class BootstrapError(RuntimeError):
    """Base for every failure that aborts a bootstrap run."""


class FetchError(BootstrapError):
    """Network or directory-listing failure."""


class PackageNotFound(BootstrapError):
    def __init__(self, package: str) -> None:
        self.package = package
        super().__init__(f"Cannot find package: {package}")


class UnknownFormat(BootstrapError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Unknown package format: {path}")


class ConfigureError(BootstrapError):
    """A filesystem mutation inside the target root failed."""


class ProcessError(BootstrapError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr:
            msg += f"\n{stderr}"
        super().__init__(msg)
