import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from monoweave.common import L
from monoweave.spec import LogEntry, StepId, StepStatus
from .exceptions import CancellationError, StepExecutionError
from .oplog import OperationLog, utc_timestamp
from .steps import STEP_BODIES, StepBody, StepContext


@dataclass
class ExecutionReport:
    executed: List[StepId] = field(default_factory=list)
    skipped: List[StepId] = field(default_factory=list)


class StepExecutor:
    """
    Runs the fixed, ordered step sequence against one staging directory.

    A step is skipped when the log already holds a `completed` entry for it.
    Each attempt appends exactly one `completed` or `failed` entry; the first
    failure stops the run.
    """

    def __init__(
        self,
        ctx: StepContext,
        log: OperationLog,
        bodies: Optional[Dict[StepId, StepBody]] = None,
    ):
        self.ctx = ctx
        self.log = log
        self.bodies = bodies or STEP_BODIES

    def run(self, steps: List[StepId]) -> ExecutionReport:
        report = ExecutionReport()
        for step_id in steps:
            if self.ctx.token.cancelled:
                raise CancellationError(f"Operation cancelled before {step_id.value}")

            if self.log.is_completed(step_id):
                self.ctx.bus.debug(L.apply.step.skipped, step=step_id.value)
                report.skipped.append(step_id)
                continue

            self._run_step(step_id)
            report.executed.append(step_id)
        return report

    def _run_step(self, step_id: StepId) -> None:
        body = self.bodies[step_id]
        self.ctx.bus.debug(L.apply.step.started, step=step_id.value)
        start = time.monotonic()
        try:
            outputs = body(self.ctx)
        except Exception as e:
            self.log.append(
                LogEntry(
                    id=step_id.value,
                    status=StepStatus.FAILED.value,
                    timestamp=utc_timestamp(),
                    duration_ms=_elapsed_ms(start),
                    error=str(e) or e.__class__.__name__,
                )
            )
            if isinstance(e, CancellationError):
                raise
            raise StepExecutionError(step_id.value, e) from e

        duration_ms = _elapsed_ms(start)
        self.log.append(
            LogEntry(
                id=step_id.value,
                status=StepStatus.COMPLETED.value,
                timestamp=utc_timestamp(),
                duration_ms=duration_ms,
                outputs=list(outputs),
            )
        )
        self.ctx.bus.debug(L.apply.step.completed, step=step_id.value, duration=duration_ms)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
