from .step_10_prepare_target import PrepareTargetStep
from .step_20_install_basic import InstallBasicStep
from .step_30_configure_pacman import ConfigurePacmanStep
from .step_35_configure_minimal_system import ConfigureMinimalSystemStep
from .step_40_configure_qemu import ConfigureQemuStep
from .step_50_install_packages import InstallPackagesStep
from .step_60_finalize_pacman import FinalizePacmanStep

__all__ = [
    "PrepareTargetStep",
    "InstallBasicStep",
    "ConfigurePacmanStep",
    "ConfigureMinimalSystemStep",
    "ConfigureQemuStep",
    "InstallPackagesStep",
    "FinalizePacmanStep",
]
