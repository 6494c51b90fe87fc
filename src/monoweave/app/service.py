"""
In-process service driver for the apply engine.

Each submitted apply runs on its own worker thread with its own cancellation
token and message bus. Errors are never turned into process exits: they are
stored on the operation and re-raised to whoever calls `result()`.
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from monoweave.common import L, MessageBus, MessageCatalog, catalog as default_catalog
from monoweave.config import MonoweaveConfig, load_config_from_path
from monoweave.engine import (
    ApplyEngine,
    ApplyError,
    ApplyResult,
    CancellationError,
    CancellationToken,
    load_plan,
)

log = logging.getLogger(__name__)

# Finished operations are kept this long for late status/result queries.
DEFAULT_RETENTION_SECONDS = 5 * 60

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class OperationStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class UnknownOperationError(KeyError):
    pass


class OperationRenderer:
    """Captures an operation's messages and mirrors them to `logging`."""

    def __init__(self, op_id: str, events: List[Dict[str, str]]):
        self.op_id = op_id
        self.events = events
        self._lock = threading.Lock()

    def render(self, message: str, level: str) -> None:
        with self._lock:
            self.events.append({"level": level, "message": message})
        log.log(_LOG_LEVELS.get(level, logging.INFO), "[%s] %s", self.op_id, message)


@dataclass
class Operation:
    op_id: str
    plan_path: Path
    output_path: Optional[Path]
    resume: bool
    token: CancellationToken = field(default_factory=CancellationToken)
    status: OperationStatus = OperationStatus.PENDING
    result: Optional[ApplyResult] = None
    error: Optional[BaseException] = None
    events: List[Dict[str, str]] = field(default_factory=list)
    done: threading.Event = field(default_factory=threading.Event)
    finished_at: Optional[float] = None


def run_apply(
    plan_path: Union[str, Path],
    out: Optional[Union[str, Path]] = None,
    resume: bool = False,
    bus: Optional[MessageBus] = None,
    token: Optional[CancellationToken] = None,
    config: Optional[MonoweaveConfig] = None,
) -> ApplyResult:
    """Run one apply synchronously, propagating every error to the caller."""
    config = config or load_config_from_path(Path.cwd())
    engine = ApplyEngine(config=config, bus=bus)
    loaded = load_plan(Path(plan_path))
    output_path = Path(out or config.output)
    return engine.run(loaded, output_path, token=token, resume=resume)


class ApplyService:
    def __init__(
        self,
        config: Optional[MonoweaveConfig] = None,
        catalog: Optional[MessageCatalog] = None,
        retention: float = DEFAULT_RETENTION_SECONDS,
    ):
        self.config = config
        self.retention = retention
        self.catalog = catalog or default_catalog
        self._operations: Dict[str, Operation] = {}
        self._lock = threading.Lock()

    def submit(
        self,
        plan_path: Union[str, Path],
        out: Optional[Union[str, Path]] = None,
        resume: bool = False,
    ) -> str:
        op_id = uuid.uuid4().hex
        operation = Operation(
            op_id=op_id,
            plan_path=Path(plan_path),
            output_path=Path(out) if out is not None else None,
            resume=resume,
        )
        with self._lock:
            self._evict_expired()
            self._operations[op_id] = operation

        worker = threading.Thread(
            target=self._execute, args=(operation,), name=f"apply-{op_id[:8]}", daemon=True
        )
        worker.start()
        log.info(self.catalog(L.service.op.submitted, op_id=op_id))
        return op_id

    def _execute(self, operation: Operation) -> None:
        op_bus = MessageBus(self.catalog, OperationRenderer(operation.op_id, operation.events))
        operation.status = OperationStatus.RUNNING
        try:
            operation.result = run_apply(
                operation.plan_path,
                out=operation.output_path,
                resume=operation.resume,
                bus=op_bus,
                token=operation.token,
                config=self.config,
            )
            operation.status = OperationStatus.SUCCEEDED
        except CancellationError as e:
            operation.error = e
            operation.status = OperationStatus.CANCELLED
        except ApplyError as e:
            operation.error = e
            operation.status = OperationStatus.FAILED
        except Exception as e:
            log.exception("Operation %s crashed", operation.op_id)
            operation.error = e
            operation.status = OperationStatus.FAILED
        finally:
            operation.finished_at = time.monotonic()
            operation.done.set()
            log.info(
                self.catalog(
                    L.service.op.finished,
                    op_id=operation.op_id,
                    status=operation.status.value,
                )
            )

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [
            op_id
            for op_id, op in self._operations.items()
            if op.finished_at is not None and now - op.finished_at >= self.retention
        ]
        for op_id in expired:
            del self._operations[op_id]

    def forget(self, op_id: str) -> bool:
        """Drop a finished operation and its events. Running operations are kept."""
        operation = self.get(op_id)
        if not operation.done.is_set():
            return False
        with self._lock:
            self._operations.pop(op_id, None)
        return True

    def get(self, op_id: str) -> Operation:
        with self._lock:
            self._evict_expired()
            try:
                return self._operations[op_id]
            except KeyError:
                raise UnknownOperationError(op_id) from None

    def status(self, op_id: str) -> OperationStatus:
        return self.get(op_id).status

    def events(self, op_id: str) -> List[Dict[str, str]]:
        return list(self.get(op_id).events)

    def cancel(self, op_id: str) -> bool:
        operation = self.get(op_id)
        if operation.done.is_set():
            return False
        log.info(self.catalog(L.service.op.cancel_requested, op_id=op_id))
        operation.token.cancel("cancel requested")
        return True

    def wait(self, op_id: str, timeout: Optional[float] = None) -> Operation:
        operation = self.get(op_id)
        operation.done.wait(timeout)
        return operation

    def result(self, op_id: str, timeout: Optional[float] = None) -> ApplyResult:
        operation = self.wait(op_id, timeout)
        if not operation.done.is_set():
            raise TimeoutError(f"Operation {op_id} is still running")
        if operation.error is not None:
            raise operation.error
        return operation.result
