from .bus import SpyBus
from .helpers import read_log_lines, snapshot_tree, write_log
from .plan import PlanFactory

__all__ = [
    "SpyBus",
    "PlanFactory",
    "read_log_lines",
    "snapshot_tree",
    "write_log",
]
