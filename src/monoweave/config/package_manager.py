from typing import Dict, List

DEFAULT_PACKAGE_MANAGER = "pnpm"

# Lifecycle scripts of freshly merged packages are never run on install.
INSTALL_COMMANDS: Dict[str, str] = {
    "pnpm": "pnpm install --ignore-scripts",
    "yarn": "yarn install --ignore-scripts",
    "yarn-berry": "yarn install --ignore-scripts",
    "npm": "npm install --ignore-scripts",
}


def supported_package_managers() -> List[str]:
    return list(INSTALL_COMMANDS)


def install_command_for(package_manager: str) -> str:
    try:
        return INSTALL_COMMANDS[package_manager]
    except KeyError:
        raise ValueError(
            f"Unknown package manager '{package_manager}'. "
            f"Expected one of: {', '.join(INSTALL_COMMANDS)}"
        ) from None
