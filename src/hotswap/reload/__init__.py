"""Periodic detection and reloading of changed modules.

Components:
- VersionOracle: compares loaded and on-disk version tags
- ChangeDetector: classifies loaded modules by source modification time
- ReloadCoordinator: reloads module batches without aborting on failure
- Reloader: timer-driven supervisor tying the above together
"""

from hotswap.reload.backends import FileSystem, ImportlibLoader, LocalFileSystem, ModuleLoader
from hotswap.reload.coordinator import ReloadCoordinator
from hotswap.reload.detector import ChangeDetector
from hotswap.reload.errors import HotswapError, LoadFailure, NoVersionTag, TickFailure
from hotswap.reload.models import (
    CheckResult,
    LoadedUnit,
    ReloadOutcome,
    ReloadStatus,
    ScanResult,
    TickReport,
    TimeWindow,
)
from hotswap.reload.supervisor import (
    DEFAULT_CHECK_INTERVAL_MS,
    Reloader,
    ReloaderConfig,
    ReloaderState,
    start_reloader,
)
from hotswap.reload.version import VersionOracle

__all__ = [
    "DEFAULT_CHECK_INTERVAL_MS",
    "ChangeDetector",
    "CheckResult",
    "FileSystem",
    "HotswapError",
    "ImportlibLoader",
    "LoadFailure",
    "LoadedUnit",
    "LocalFileSystem",
    "ModuleLoader",
    "NoVersionTag",
    "ReloadCoordinator",
    "ReloadOutcome",
    "ReloadStatus",
    "Reloader",
    "ReloaderConfig",
    "ReloaderState",
    "ScanResult",
    "TickFailure",
    "TickReport",
    "TimeWindow",
    "VersionOracle",
    "start_reloader",
]
