"""Poll-based mirroring of growing log files into a flat target directory."""

__version__ = "1.0.0"

from .engine import CycleReport, Decision, SyncEngine, run_loop  # noqa: E402
from .errors import ConfigError, DeleteError, FileSyncError, ScanError  # noqa: E402
from .state import StateMap  # noqa: E402

__all__ = [
    "__version__",
    "ConfigError",
    "CycleReport",
    "Decision",
    "DeleteError",
    "FileSyncError",
    "ScanError",
    "StateMap",
    "SyncEngine",
    "run_loop",
]
