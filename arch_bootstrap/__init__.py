"""arch-bootstrap: build a base Arch Linux root from any Linux host.

Core design goals:
- Two stages: unpack a minimal package set by hand, then hand over to pacman
- Cache-validated downloads and overwrite-idempotent extraction (safe re-runs)
- Architecture-aware mirror layouts
- Centralized logging
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
