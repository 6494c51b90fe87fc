from pathlib import Path
from typing import Optional

import typer

from monoweave.common import L, bus, catalog as nexus
from monoweave.config import ConfigError, install_command_for
from monoweave.engine import (
    AmbiguousStateError,
    ApplyError,
    CancellationError,
    CancellationToken,
    FingerprintMismatchError,
    load_plan,
)
from monoweave.cli.factories import make_config, make_engine
from monoweave.cli.signals import cancel_on_interrupt


def _report_preserved(error: ApplyError) -> bool:
    if error.staging_dir is None or not error.staging_dir.exists():
        return False
    bus.info(L.apply.run.staging_preserved, path=error.staging_dir)
    if error.log_path is not None and error.log_path.exists():
        bus.info(L.apply.run.log_preserved, path=error.log_path)
    return True


def _report_failure(error: ApplyError, plan: Optional[Path], output_path: Path) -> None:
    if isinstance(error, CancellationError):
        if _report_preserved(error):
            bus.info(L.apply.run.resume_command, plan=plan, out=output_path)
        return

    if isinstance(error, (AmbiguousStateError, FingerprintMismatchError)):
        bus.error(L.error.generic, error=str(error))
        bus.info(L.error.hint, hint=error.hint)
        bus.info(L.apply.run.cleanup_command, out=output_path)
        return

    bus.error(L.apply.run.failed, error=str(error))
    resumable = _report_preserved(error)
    bus.info(L.error.hint, hint=error.hint)
    if resumable:
        bus.info(L.apply.run.resume_command, plan=plan, out=output_path)


def apply_command(
    plan: Optional[Path] = typer.Option(
        None,
        "--plan",
        "-p",
        dir_okay=False,
        help=nexus(L.cli.option.plan.help),
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help=nexus(L.cli.option.out.help),
    ),
    resume: bool = typer.Option(
        False,
        "--resume",
        help=nexus(L.cli.option.resume.help),
    ),
    cleanup: bool = typer.Option(
        False,
        "--cleanup",
        help=nexus(L.cli.option.cleanup.help),
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help=nexus(L.cli.option.dry_run.help),
    ),
    package_manager: Optional[str] = typer.Option(
        None,
        "--package-manager",
        help=nexus(L.cli.option.package_manager.help),
    ),
):
    if resume and cleanup:
        bus.error(L.error.conflicting_flags, first="--resume", second="--cleanup")
        raise typer.Exit(code=1)
    if dry_run and cleanup:
        bus.error(L.error.conflicting_flags, first="--dry-run", second="--cleanup")
        raise typer.Exit(code=1)

    try:
        if package_manager:
            install_command_for(package_manager)
        config = make_config(package_manager)
    except (ConfigError, ValueError) as e:
        bus.error(L.error.config, error=str(e))
        raise typer.Exit(code=1)

    output_path = Path(out or config.output).resolve()
    engine = make_engine(config)

    # --cleanup: remove staging artifacts and exit
    if cleanup:
        result = engine.cleanup(output_path)
        if result.count == 0:
            bus.info(L.cleanup.none)
        else:
            bus.success(L.cleanup.success, count=result.count)
        return

    if plan is None:
        bus.error(L.error.plan_required)
        raise typer.Exit(code=1)

    failure: Optional[ApplyError] = None
    try:
        loaded = load_plan(plan)

        if dry_run:
            bus.info(L.dry_run.title)
            for line in engine.preview(loaded, output_path):
                typer.echo(line)
            return

        with cancel_on_interrupt(CancellationToken()) as token:
            result = engine.run(loaded, output_path, token=token, resume=resume)
    except ApplyError as e:
        failure = e
    except Exception as e:
        bus.error(L.error.unexpected, error=str(e))
        raise typer.Exit(code=1)

    if failure is not None:
        _report_failure(failure, plan, output_path)
        raise typer.Exit(code=1)

    bus.success(L.apply.run.success)
    bus.info(L.apply.run.location, path=result.output_dir)
    bus.info(L.apply.run.packages, count=result.package_count)
