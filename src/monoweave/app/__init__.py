from .service import (
    ApplyService,
    Operation,
    OperationRenderer,
    OperationStatus,
    UnknownOperationError,
    run_apply,
)

__all__ = [
    "ApplyService",
    "Operation",
    "OperationRenderer",
    "OperationStatus",
    "UnknownOperationError",
    "run_apply",
]
