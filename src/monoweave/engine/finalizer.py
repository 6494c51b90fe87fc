from pathlib import Path
from typing import List

from monoweave.spec import StepId
from .exceptions import ApplyError, FinalizeError
from .fs import FileSystemAdapter
from .oplog import OperationLog


def finalize(
    staging_dir: Path,
    output_path: Path,
    log: OperationLog,
    required_steps: List[StepId],
    fs: FileSystemAdapter,
) -> None:
    """
    Promote the staging directory to the output path and retire the log.

    Overwrites an existing output directory. The absence of staging dir and
    log next to an existing output is the only "committed" signal.
    """
    pending = [s.value for s in required_steps if not log.is_completed(s)]
    if pending:
        raise ApplyError(f"Cannot finalize: steps not completed: {', '.join(pending)}")

    try:
        if fs.exists(output_path):
            fs.rmtree(output_path)
        # Sibling paths, so this is a same-filesystem atomic rename.
        fs.rename(staging_dir, output_path)
    except OSError as e:
        raise FinalizeError(
            f"Could not move staging directory into place at {output_path}: {e}"
        ) from e

    try:
        fs.remove(log.path)
    except OSError as e:
        raise FinalizeError(
            f"Output is in place, but the operation log could not be removed: {e}",
            hint="Run with --cleanup to remove the leftover log.",
        ) from e
