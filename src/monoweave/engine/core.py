from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from monoweave.common import L, MessageBus, bus as global_bus
from monoweave.config import MonoweaveConfig
from monoweave.spec import Plan, StepId
from .cancellation import CancellationToken
from .exceptions import (
    AmbiguousStateError,
    ApplyError,
    FingerprintMismatchError,
    NotFoundError,
)
from .executor import StepExecutor
from .finalizer import finalize
from .fs import FileSystemAdapter, RealFileSystem
from .oplog import OperationLog, log_path_for
from .staging import compute_staging_path, find_orphan_logs, find_staging_dirs
from .steps import StepContext
from .validator import LoadedPlan


@dataclass
class ApplyResult:
    output_dir: Path
    package_count: int
    executed_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)


@dataclass
class CleanupResult:
    removed: List[Path] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.removed)


class ApplyEngine:
    def __init__(
        self,
        config: Optional[MonoweaveConfig] = None,
        bus: Optional[MessageBus] = None,
        fs: Optional[FileSystemAdapter] = None,
    ):
        self.config = config or MonoweaveConfig()
        self.bus = bus or global_bus
        self.fs = fs or RealFileSystem()

    # --- Apply ---

    def run(
        self,
        loaded: LoadedPlan,
        output_path: Path,
        token: Optional[CancellationToken] = None,
        resume: bool = False,
    ) -> ApplyResult:
        token = token or CancellationToken()
        output_path = Path(output_path).resolve()
        plan = loaded.plan

        if resume:
            staging_dir, log = self._attach(output_path, loaded.fingerprint)
            self.bus.info(L.apply.run.resuming, completed=log.completed_count)
        else:
            # Sources are checked before any staging state exists.
            self._check_sources(plan)
            staging_dir, log = self._create_staging(output_path, loaded.fingerprint)
            self.bus.info(L.apply.run.starting)

        ctx = StepContext(
            plan=plan,
            staging_dir=staging_dir,
            token=token,
            bus=self.bus,
            fs=self.fs,
            install_command=self.config.resolve_install_command(plan.install_command),
        )
        steps = plan.required_steps()
        try:
            # On resume the sources are gone once move-packages has completed.
            if resume and not log.is_completed(StepId.MOVE_PACKAGES):
                self._check_sources(plan, staging_dir)
            report = StepExecutor(ctx, log).run(steps)
            self.bus.info(L.apply.run.finalizing)
            finalize(staging_dir, output_path, log, steps, self.fs)
        except ApplyError as e:
            e.staging_dir = staging_dir
            e.log_path = log.path
            raise

        return ApplyResult(
            output_dir=output_path,
            package_count=plan.package_count,
            executed_steps=[s.value for s in report.executed],
            skipped_steps=[s.value for s in report.skipped],
        )

    def _create_staging(self, output_path: Path, fingerprint: str):
        staging_dir = compute_staging_path(output_path)
        log_path = log_path_for(staging_dir)
        try:
            # A log never exists without its staging directory.
            self.fs.ensure_dir(staging_dir)
            log = OperationLog.create(log_path, fingerprint)
        except OSError as e:
            error = ApplyError(f"Could not create staging directory {staging_dir}: {e}")
            error.staging_dir = staging_dir
            raise error from e
        except ApplyError as e:
            e.staging_dir = staging_dir
            e.log_path = log_path
            raise
        return staging_dir, log

    def _attach(self, output_path: Path, fingerprint: str):
        staging_dirs = find_staging_dirs(output_path)
        if not staging_dirs:
            raise NotFoundError(
                "No staging directory found to resume.",
                hint="Run without --resume to start fresh.",
            )
        if len(staging_dirs) > 1:
            raise AmbiguousStateError(staging_dirs)

        staging_dir = staging_dirs[0]
        log = OperationLog.open(log_path_for(staging_dir))
        stored = log.fingerprint
        if stored != fingerprint:
            error = FingerprintMismatchError(stored, fingerprint)
            error.staging_dir = staging_dir
            error.log_path = log.path
            raise error
        return staging_dir, log

    def _check_sources(self, plan: Plan, staging_dir: Optional[Path] = None) -> None:
        for source in plan.sources:
            # A source already relocated by an interrupted move-packages is fine.
            if staging_dir is not None and self.fs.exists(
                staging_dir / plan.packages_dir / source.name
            ):
                continue
            if not self.fs.exists(Path(source.path)):
                raise NotFoundError(
                    f'Source path not found: {source.path} (for package "{source.name}")',
                    hint="Source repos may have been cleaned up. Regenerate the plan file.",
                )

    # --- Cleanup ---

    def cleanup(self, output_path: Path) -> CleanupResult:
        output_path = Path(output_path).resolve()
        result = CleanupResult()
        for staging_dir in find_staging_dirs(output_path):
            self.fs.rmtree(staging_dir)
            self.fs.remove(log_path_for(staging_dir))
            result.removed.append(staging_dir)
            self.bus.info(L.cleanup.removed, name=staging_dir.name)
        for orphan in find_orphan_logs(output_path):
            self.fs.remove(orphan)
            result.removed.append(orphan)
            self.bus.info(L.cleanup.removed, name=orphan.name)
        return result

    # --- Dry run ---

    def preview(self, loaded: LoadedPlan, output_path: Path) -> List[str]:
        plan = loaded.plan
        output_path = Path(output_path).resolve()
        source_names = ", ".join(s.name for s in plan.sources)
        file_paths = ", ".join(f.relative_path for f in plan.files) or "(none)"
        render = self.bus.render_to_string

        lines = [
            render(L.dry_run.plan, path=loaded.path),
            render(L.dry_run.output, path=output_path),
            render(L.dry_run.packages_dir, name=plan.packages_dir),
            render(L.dry_run.steps_header),
            render(L.dry_run.step.scaffold, output=output_path, packages_dir=plan.packages_dir),
            render(L.dry_run.step.move_packages, count=plan.package_count, names=source_names),
        ]
        for source in plan.sources:
            lines.append(
                render(L.dry_run.source, name=source.name, path=source.path, packages_dir=plan.packages_dir)
            )
        lines.append(render(L.dry_run.step.write_root))
        lines.append(render(L.dry_run.step.write_extras, count=len(plan.files), paths=file_paths))
        for entry in plan.files:
            lines.append(render(L.dry_run.file, path=entry.relative_path))
        if plan.install:
            command = self.config.resolve_install_command(plan.install_command)
            lines.append(render(L.dry_run.step.install, command=command))
        else:
            lines.append(render(L.dry_run.step.install_skipped))
        lines.append(render(L.dry_run.finalize, output=output_path))
        return lines
