from .cancellation import CancellationToken
from .core import ApplyEngine, ApplyResult, CleanupResult
from .exceptions import (
    AmbiguousStateError,
    ApplyError,
    CancellationError,
    CorruptLogError,
    FinalizeError,
    FingerprintMismatchError,
    InstallError,
    NotFoundError,
    OperationLogError,
    SchemaError,
    StepExecutionError,
)
from .executor import StepExecutor
from .finalizer import finalize
from .fs import FileSystemAdapter, RealFileSystem
from .oplog import OperationLog, is_step_completed, log_path_for
from .staging import compute_staging_path, find_orphan_logs, find_staging_dirs
from .steps import StepContext
from .validator import (
    LoadedPlan,
    collect_plan_errors,
    compute_plan_hash,
    load_plan,
    validate_plan,
)

__all__ = [
    "ApplyEngine",
    "ApplyResult",
    "CleanupResult",
    "CancellationToken",
    "StepExecutor",
    "StepContext",
    "finalize",
    "FileSystemAdapter",
    "RealFileSystem",
    "OperationLog",
    "is_step_completed",
    "log_path_for",
    "compute_staging_path",
    "find_staging_dirs",
    "find_orphan_logs",
    "LoadedPlan",
    "collect_plan_errors",
    "compute_plan_hash",
    "load_plan",
    "validate_plan",
    "ApplyError",
    "SchemaError",
    "NotFoundError",
    "AmbiguousStateError",
    "FingerprintMismatchError",
    "CorruptLogError",
    "StepExecutionError",
    "CancellationError",
    "InstallError",
    "OperationLogError",
    "FinalizeError",
]
