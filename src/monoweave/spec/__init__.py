from .models import (
    PLAN_SCHEMA_VERSION,
    ROOT_MANIFEST_FILENAME,
    STEP_ORDER,
    LogEntry,
    Plan,
    PlanFile,
    PlanSource,
    StepId,
    StepStatus,
)

__all__ = [
    "PLAN_SCHEMA_VERSION",
    "ROOT_MANIFEST_FILENAME",
    "STEP_ORDER",
    "LogEntry",
    "Plan",
    "PlanFile",
    "PlanSource",
    "StepId",
    "StepStatus",
]
