from .step_10_prepare_env import PrepareEnvironmentStep
from .step_20_install_dependencies import InstallDependenciesStep
from .step_30_install_debs import InstallDebsStep
from .step_40_install_hook import InstallHookStep
from .step_50_generate_uinitrd import GenerateUInitrdStep

__all__ = [
    "PrepareEnvironmentStep",
    "InstallDependenciesStep",
    "InstallDebsStep",
    "InstallHookStep",
    "GenerateUInitrdStep",
]
