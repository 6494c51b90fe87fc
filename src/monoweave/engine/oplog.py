import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from monoweave.spec import LogEntry, StepId, StepStatus
from .exceptions import CorruptLogError, OperationLogError

LOG_SUFFIX = ".ops.jsonl"


def log_path_for(staging_dir: Path) -> Path:
    # The log lives next to the staging directory, not inside it.
    return Path(f"{staging_dir}{LOG_SUFFIX}")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _step_key(step_id: Union[str, StepId]) -> str:
    return step_id.value if isinstance(step_id, StepId) else str(step_id)


def is_step_completed(entries: List[LogEntry], step_id: Union[str, StepId]) -> bool:
    # Completed-ever counts as done: progress per step is monotonic.
    key = _step_key(step_id)
    return any(e.id == key and e.status == StepStatus.COMPLETED.value for e in entries)


def header_fingerprint(entries: List[LogEntry]) -> Optional[str]:
    for entry in entries:
        if entry.id == StepId.HEADER.value:
            return entry.plan_hash
    return None


def _write_durably(path: Path, line: str, mode: str) -> None:
    try:
        with path.open(mode, encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        raise OperationLogError(path, e) from e


class OperationLog:
    """
    Append-only NDJSON record of step attempts for one staging directory.

    Every write is flushed and fsynced before returning so that a
    `completed` entry survives a crash immediately afterwards.
    """

    def __init__(self, path: Path, entries: Optional[List[LogEntry]] = None):
        self.path = path
        self.entries: List[LogEntry] = entries if entries is not None else []

    @classmethod
    def create(cls, path: Path, fingerprint: str) -> "OperationLog":
        header = LogEntry(
            id=StepId.HEADER.value,
            status=StepStatus.STARTED.value,
            timestamp=utc_timestamp(),
            plan_hash=fingerprint,
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        _write_durably(path, json.dumps(header.to_dict()) + "\n", "w")
        return cls(path, [header])

    @classmethod
    def open(cls, path: Path) -> "OperationLog":
        return cls(path, cls.read(path))

    @staticmethod
    def read(path: Path) -> List[LogEntry]:
        if not path.exists():
            return []

        entries: List[LogEntry] = []
        with path.open("r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                    entries.append(LogEntry.from_dict(data))
                except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
                    raise CorruptLogError(path, line_no, str(e)) from e
        return entries

    def append(self, entry: LogEntry) -> None:
        _write_durably(self.path, json.dumps(entry.to_dict()) + "\n", "a")
        self.entries.append(entry)

    def is_completed(self, step_id: Union[str, StepId]) -> bool:
        return is_step_completed(self.entries, step_id)

    @property
    def fingerprint(self) -> Optional[str]:
        return header_fingerprint(self.entries)

    @property
    def completed_count(self) -> int:
        return len({e.id for e in self.entries if e.status == StepStatus.COMPLETED.value})
