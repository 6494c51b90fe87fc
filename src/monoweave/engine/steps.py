import os
import shlex
import signal
import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Callable, Dict, List

from monoweave.common import L, MessageBus
from monoweave.spec import ROOT_MANIFEST_FILENAME, Plan, StepId
from .cancellation import CancellationToken
from .exceptions import CancellationError, InstallError
from .fs import FileSystemAdapter

# How often the install step checks the cancellation token while waiting.
INSTALL_POLL_INTERVAL = 0.1
# Upper bound on draining output after the install process is gone.
READER_JOIN_TIMEOUT = 5.0


@dataclass
class StepContext:
    plan: Plan
    staging_dir: Path
    token: CancellationToken
    bus: MessageBus
    fs: FileSystemAdapter
    install_command: str

    @property
    def packages_path(self) -> Path:
        return self.staging_dir / self.plan.packages_dir


StepBody = Callable[[StepContext], List[str]]


def scaffold(ctx: StepContext) -> List[str]:
    ctx.fs.ensure_dir(ctx.staging_dir)
    ctx.fs.ensure_dir(ctx.packages_path)
    return [str(ctx.staging_dir), str(ctx.packages_path)]


def move_packages(ctx: StepContext) -> List[str]:
    outputs: List[str] = []
    for source in ctx.plan.sources:
        ctx.token.raise_if_cancelled(StepId.MOVE_PACKAGES.value)
        relative = f"{ctx.plan.packages_dir}/{source.name}"
        target = ctx.packages_path / source.name
        if ctx.fs.exists(target):
            # Moved by an earlier, interrupted attempt.
            ctx.bus.debug(L.apply.step.package_present, name=source.name)
            outputs.append(relative)
            continue
        ctx.fs.move(Path(source.path), target)
        outputs.append(relative)
        ctx.bus.debug(L.apply.step.package_moved, name=source.name, target=relative)
    return outputs


def write_root(ctx: StepContext) -> List[str]:
    ctx.fs.write_json(ctx.staging_dir / ROOT_MANIFEST_FILENAME, ctx.plan.root_manifest)
    return [ROOT_MANIFEST_FILENAME]


def write_extras(ctx: StepContext) -> List[str]:
    outputs: List[str] = []
    for entry in ctx.plan.files:
        ctx.token.raise_if_cancelled(StepId.WRITE_EXTRAS.value)
        ctx.fs.write_text(ctx.staging_dir / entry.relative_path, entry.content)
        outputs.append(entry.relative_path)
    return outputs


def _forward_lines(stream: IO[str], emit: Callable[[str], None]) -> None:
    for line in iter(stream.readline, ""):
        line = line.rstrip("\r\n")
        if line:
            emit(line)
    stream.close()


def _kill_process_tree(proc: subprocess.Popen) -> None:
    if sys.platform == "win32":
        proc.kill()
    else:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    proc.wait()


def install(ctx: StepContext) -> List[str]:
    argv = shlex.split(ctx.install_command)
    if not argv:
        raise InstallError("Install command is empty")

    ctx.bus.info(L.apply.step.installing, command=ctx.install_command)
    try:
        proc = subprocess.Popen(
            argv,
            cwd=str(ctx.staging_dir),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            # Own process group, so cancellation also reaches grandchildren.
            start_new_session=sys.platform != "win32",
        )
    except FileNotFoundError as e:
        raise InstallError(f"Install command not found: {argv[0]}") from e

    readers = [
        threading.Thread(
            target=_forward_lines,
            args=(proc.stdout, lambda line: ctx.bus.info(L.apply.install.stdout, line=line)),
            daemon=True,
        ),
        threading.Thread(
            target=_forward_lines,
            args=(proc.stderr, lambda line: ctx.bus.warning(L.apply.install.stderr, line=line)),
            daemon=True,
        ),
    ]
    for reader in readers:
        reader.start()

    try:
        while True:
            try:
                return_code = proc.wait(timeout=INSTALL_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if ctx.token.cancelled:
                    break
    finally:
        if proc.poll() is None or ctx.token.cancelled:
            _kill_process_tree(proc)
        for reader in readers:
            reader.join(timeout=READER_JOIN_TIMEOUT)

    # Cancellation wins over whatever exit code the killed child reported.
    if ctx.token.cancelled:
        raise CancellationError(f"Operation cancelled during {StepId.INSTALL.value}")
    if return_code != 0:
        raise InstallError(f"Install command exited with code {return_code}: {ctx.install_command}")
    return ["node_modules/"]


STEP_BODIES: Dict[StepId, StepBody] = {
    StepId.SCAFFOLD: scaffold,
    StepId.MOVE_PACKAGES: move_packages,
    StepId.WRITE_ROOT: write_root,
    StepId.WRITE_EXTRAS: write_extras,
    StepId.INSTALL: install,
}
