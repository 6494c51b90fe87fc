import re
import secrets
from pathlib import Path
from typing import List

from .oplog import LOG_SUFFIX

STAGING_MARKER = ".staging-"


def compute_staging_path(output_path: Path) -> Path:
    nonce = secrets.token_hex(4)
    return Path(f"{output_path}{STAGING_MARKER}{nonce}")


def _staging_pattern(output_path: Path) -> "re.Pattern[str]":
    return re.compile(
        rf"^{re.escape(output_path.name)}{re.escape(STAGING_MARKER)}[0-9a-f]{{8}}$"
    )


def find_staging_dirs(output_path: Path) -> List[Path]:
    parent = output_path.parent
    if not parent.is_dir():
        return []

    pattern = _staging_pattern(output_path)
    return sorted(p for p in parent.iterdir() if pattern.match(p.name))


def find_orphan_logs(output_path: Path) -> List[Path]:
    """Logs whose staging directory is gone (e.g. a crash right after the final rename)."""
    parent = output_path.parent
    if not parent.is_dir():
        return []

    pattern = _staging_pattern(output_path)
    orphans = []
    for p in parent.iterdir():
        if not p.name.endswith(LOG_SUFFIX):
            continue
        staging_name = p.name[: -len(LOG_SUFFIX)]
        if pattern.match(staging_name) and not (parent / staging_name).exists():
            orphans.append(p)
    return sorted(orphans)
