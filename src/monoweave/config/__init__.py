from .loader import ConfigError, MonoweaveConfig, load_config_from_path
from .package_manager import (
    DEFAULT_PACKAGE_MANAGER,
    install_command_for,
    supported_package_managers,
)

__all__ = [
    "ConfigError",
    "MonoweaveConfig",
    "load_config_from_path",
    "DEFAULT_PACKAGE_MANAGER",
    "install_command_for",
    "supported_package_managers",
]
