from pathlib import Path
from typing import Optional

from monoweave.config import MonoweaveConfig, load_config_from_path
from monoweave.engine import ApplyEngine


def get_project_root() -> Path:
    return Path.cwd()


def make_config(package_manager: Optional[str] = None) -> MonoweaveConfig:
    config = load_config_from_path(get_project_root())
    if package_manager:
        config.package_manager = package_manager
    return config


def make_engine(config: MonoweaveConfig) -> ApplyEngine:
    # Composition Root: the CLI uses the global bus and the real filesystem.
    return ApplyEngine(config=config)
