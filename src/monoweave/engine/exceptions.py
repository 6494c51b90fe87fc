from pathlib import Path
from typing import List, Optional


class ApplyError(Exception):
    """Base class for every error the apply engine raises to a driver."""

    hint = "Check the error details above and try again."

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint
        # Filled in by the engine once a staging attempt exists.
        self.staging_dir: Optional[Path] = None
        self.log_path: Optional[Path] = None

    @property
    def message(self) -> str:
        return str(self)


class SchemaError(ApplyError):
    hint = "Check version, sources, packagesDir, rootManifest, files and install fields."

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems or []


class NotFoundError(ApplyError):
    hint = "Check that the file or directory exists."


class AmbiguousStateError(ApplyError):
    hint = "Run with --cleanup first, then start a fresh apply."

    def __init__(self, staging_dirs: List[Path]):
        self.staging_dirs = staging_dirs
        names = ", ".join(p.name for p in staging_dirs)
        super().__init__(f"Multiple staging directories found: {names}")


class FingerprintMismatchError(ApplyError):
    hint = "Run with --cleanup first, then start a fresh apply."

    def __init__(self, expected: Optional[str], actual: str):
        self.expected = expected
        self.actual = actual
        if expected is None:
            message = "Operation log has no plan fingerprint; cannot verify the plan."
        else:
            message = "Plan file has changed since the staging directory was created."
        super().__init__(message)


class CorruptLogError(ApplyError):
    hint = "The operation log is unreadable. Run with --cleanup and start over."

    def __init__(self, log_path: Path, line_no: int, reason: str):
        self.line_no = line_no
        super().__init__(f"Corrupt operation log {log_path} (line {line_no}): {reason}")
        self.log_path = log_path


class StepExecutionError(ApplyError):
    hint = "Fix the issue and run with --resume, or use --cleanup to remove staging artifacts."

    def __init__(self, step_id: str, cause: BaseException):
        self.step_id = step_id
        self.cause = cause
        super().__init__(f"Step '{step_id}' failed: {cause}")


class CancellationError(ApplyError):
    hint = "Run with --resume to continue."

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class InstallError(ApplyError):
    hint = "Check that the package manager is installed and the install command is correct."


class OperationLogError(ApplyError):
    hint = "Check free space and permissions next to the output, then run with --resume."

    def __init__(self, log_path: Path, cause: BaseException):
        self.cause = cause
        super().__init__(f"Could not write operation log {log_path}: {cause}")
        self.log_path = log_path


class FinalizeError(ApplyError):
    hint = "Fix the issue and run with --resume to retry the final rename."
