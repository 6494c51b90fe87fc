import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

from .package_manager import DEFAULT_PACKAGE_MANAGER, install_command_for


class ConfigError(Exception):
    pass


@dataclass
class MonoweaveConfig:
    package_manager: str = DEFAULT_PACKAGE_MANAGER
    install_command: Optional[str] = None
    output: str = "./monorepo"
    source: Optional[Path] = None

    def resolve_install_command(self, plan_command: Optional[str] = None) -> str:
        # Plan wins over config, config wins over the package manager default.
        if plan_command:
            return plan_command
        if self.install_command:
            return self.install_command
        return install_command_for(self.package_manager)


def _find_config_file(search_path: Path) -> Optional[Tuple[Path, Dict[str, Any]]]:
    current_dir = search_path.resolve()
    while True:
        dedicated = current_dir / "monoweave.toml"
        if dedicated.is_file():
            with dedicated.open("rb") as f:
                return dedicated, tomllib.load(f)

        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            with pyproject_path.open("rb") as f:
                data = tomllib.load(f)
            section = data.get("tool", {}).get("monoweave")
            if section is not None:
                return pyproject_path, section

        if current_dir.parent == current_dir:
            return None
        current_dir = current_dir.parent


def load_config_from_path(search_path: Path) -> MonoweaveConfig:
    try:
        found = _find_config_file(search_path)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid configuration file: {e}") from e

    if found is None:
        return MonoweaveConfig()

    config_path, data = found
    package_manager = data.get("package_manager", DEFAULT_PACKAGE_MANAGER)
    # Fails early on an unknown package manager.
    try:
        install_command_for(package_manager)
    except ValueError as e:
        raise ConfigError(f"{config_path}: {e}") from e

    return MonoweaveConfig(
        package_manager=package_manager,
        install_command=data.get("install_command"),
        output=data.get("output", "./monorepo"),
        source=config_path,
    )
