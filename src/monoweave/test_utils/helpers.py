import json
from pathlib import Path
from typing import Dict, List

from monoweave.spec import LogEntry


def snapshot_tree(root: Path) -> Dict[str, bytes]:
    """Map every file under root (relative posix path) to its bytes."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def read_log_lines(log_path: Path) -> List[dict]:
    return [
        json.loads(line)
        for line in log_path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def write_log(log_path: Path, entries: List[LogEntry]) -> None:
    log_path.write_text(
        "".join(json.dumps(e.to_dict()) + "\n" for e in entries), encoding="utf-8"
    )
