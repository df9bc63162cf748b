"""Data types shared by the detector, coordinator and supervisor."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from hotswap.reload.errors import TickFailure


class CheckResult(Enum):
    """Classification of a loaded module within one check window."""

    UNMODIFIED = "unmodified"
    MODIFIED = "modified"  # mtime inside the window, reload candidate
    GONE = "gone"  # source file no longer exists
    READ_ERROR = "read_error"


class ReloadStatus(Enum):
    """Status of a single module reload."""

    RELOADED = "reloaded"
    FAILED = "failed"


@dataclass(frozen=True)
class LoadedUnit:
    """A module currently loaded in the process."""

    name: str
    path: Path | None = None


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end) of wall-clock time checked by one tick."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        """Check whether a timestamp falls inside the window."""
        return self.start <= moment < self.end


@dataclass(frozen=True)
class ScanResult:
    """Classification of one module produced by a scan."""

    module: str
    result: CheckResult
    path: Path | None = None
    reason: str | None = None


@dataclass(frozen=True)
class ReloadOutcome:
    """Result of reloading a single module."""

    module: str
    status: ReloadStatus
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status == ReloadStatus.RELOADED


@dataclass
class TickReport:
    """Everything that happened during one check cycle."""

    window: TimeWindow
    scan: list[ScanResult] = field(default_factory=list)
    outcomes: list[ReloadOutcome] = field(default_factory=list)
    error: TickFailure | None = None

    def modules_with(self, result: CheckResult) -> list[str]:
        """Names of scanned modules classified as ``result``."""
        return [r.module for r in self.scan if r.result == result]

    @property
    def reloaded(self) -> list[str]:
        return [o.module for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[str]:
        return [o.module for o in self.outcomes if not o.success]

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dict."""
        return {
            "window": [self.window.start.isoformat(), self.window.end.isoformat()],
            "scanned": len(self.scan),
            "reloaded": self.reloaded,
            "failed": self.failed,
            "gone": self.modules_with(CheckResult.GONE),
            "read_errors": self.modules_with(CheckResult.READ_ERROR),
            "error": self.error.reason if self.error else None,
        }
