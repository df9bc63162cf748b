"""Periodic supervisor that checks for changed modules and reloads them.

Each tick checks the window [last_watermark, now). The watermark always
advances to ``now`` and the timer is always re-armed, even when the tick
fails, so consecutive windows cover all time since start exactly once.
"""

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from hotswap import __version__
from hotswap.events import EventBus, EventType
from hotswap.reload.backends import FileSystem, ImportlibLoader, LocalFileSystem, ModuleLoader, local_now
from hotswap.reload.coordinator import ReloadCoordinator
from hotswap.reload.detector import ChangeDetector
from hotswap.reload.errors import TickFailure
from hotswap.reload.models import CheckResult, ReloadOutcome, TickReport, TimeWindow
from hotswap.reload.version import DEFAULT_VERSION_ATTRIBUTE, VersionOracle

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL_MS = 2000


def validate_interval(check_interval_ms: int) -> int:
    """Ensure a check interval is a positive integer number of milliseconds."""
    if isinstance(check_interval_ms, bool) or not isinstance(check_interval_ms, int):
        raise ValueError(f"check interval must be an integer, got {check_interval_ms!r}")
    if check_interval_ms <= 0:
        raise ValueError(f"check interval must be positive, got {check_interval_ms}")
    return check_interval_ms


class ReloaderState(str, Enum):
    """Supervisor lifecycle states."""

    NEW = "new"
    IDLE = "idle"  # timer armed, waiting
    TICKING = "ticking"
    STOPPED = "stopped"


@dataclass
class ReloaderConfig:
    """Configuration for the reloader."""

    # Milliseconds between checks
    check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS

    # Module attribute compared by the version checks
    version_attribute: str = DEFAULT_VERSION_ATTRIBUTE

    # Packages never scanned or reloaded (e.g. "hotswap")
    ignore_prefixes: list[str] = field(default_factory=list)

    # Number of tick reports kept in memory
    history_limit: int = 50

    def __post_init__(self) -> None:
        validate_interval(self.check_interval_ms)


class Reloader:
    """Periodically reloads modules whose source changed on disk.

    Flow per tick:
    1. Compute window [last_watermark, now)
    2. Scan loaded modules for source files modified in the window
    3. Reload modified modules in enumeration order
    4. Advance the watermark and re-arm the timer

    Usage:
        reloader = await start_reloader(check_interval_ms=1000)
        ...
        reloader.set_check_interval(5000)
        outcomes = reloader.reload_all_changed()
        ...
        await reloader.stop()
    """

    def __init__(
        self,
        config: ReloaderConfig | None = None,
        loader: ModuleLoader | None = None,
        filesystem: FileSystem | None = None,
        clock: Callable[[], datetime] | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = config or ReloaderConfig()
        self.loader = loader or ImportlibLoader()
        self.filesystem = filesystem or LocalFileSystem()
        self.clock = clock or local_now
        self.event_bus = event_bus

        self.oracle = VersionOracle(self.loader, self.config.version_attribute)
        self.detector = ChangeDetector(self.loader, self.filesystem, self.config.ignore_prefixes)
        self.coordinator = ReloadCoordinator(self.loader)

        self.check_interval_ms = self.config.check_interval_ms
        self.armed_interval_ms: int | None = None
        self.last_watermark: datetime | None = None
        self.state = ReloaderState.NEW

        self._timer: asyncio.Task | None = None
        self._history: deque[TickReport] = deque(maxlen=self.config.history_limit)

    @property
    def running(self) -> bool:
        return self._timer is not None

    async def start(self) -> None:
        """Record the start watermark and arm the first timer."""
        if self.state != ReloaderState.NEW:
            raise RuntimeError(f"Reloader cannot be started from state {self.state.value}")

        self.last_watermark = self.clock()
        self.armed_interval_ms = self.check_interval_ms
        self.state = ReloaderState.IDLE
        self._timer = asyncio.create_task(self._check_loop())

        logger.info(
            f"Reloader started, checking every {self.check_interval_ms}ms (hotswap v{__version__})"
        )
        await self._emit(EventType.RELOADER_STARTED, {"check_interval_ms": self.check_interval_ms})

    async def stop(self) -> None:
        """Cancel the outstanding timer. Stopping twice is a no-op."""
        if self.state == ReloaderState.STOPPED:
            logger.debug("Reloader already stopped")
            return

        self.state = ReloaderState.STOPPED
        timer, self._timer = self._timer, None
        # From the loop's own task the loop exits after the current tick
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer

        logger.info("Reloader stopped")
        await self._emit(EventType.RELOADER_STOPPED)

    def set_check_interval(self, check_interval_ms: int) -> None:
        """Change the interval used from the next re-arm on.

        The timer that is already armed keeps its original interval.
        """
        self.check_interval_ms = validate_interval(check_interval_ms)
        logger.info(f"Check interval set to {check_interval_ms}ms")

    async def _check_loop(self) -> None:
        """Timer loop: sleep for the armed interval, tick, re-arm."""
        while self.state != ReloaderState.STOPPED:
            await asyncio.sleep(self.armed_interval_ms / 1000)
            report = self.tick()
            self.armed_interval_ms = self.check_interval_ms
            await self._publish_tick(report)

    def tick(self) -> TickReport:
        """Run one check cycle synchronously.

        Failures inside the cycle are logged and recorded on the report;
        they never propagate. The watermark advances regardless.

        Returns:
            TickReport describing the cycle.
        """
        if self.last_watermark is None:
            raise RuntimeError("Reloader has not been started")

        now = self.clock()
        report = TickReport(window=TimeWindow(self.last_watermark, now))
        previous_state = self.state
        self.state = ReloaderState.TICKING

        try:
            report.scan = self.detector.scan(report.window)
            candidates = report.modules_with(CheckResult.MODIFIED)
            if candidates:
                report.outcomes = self.coordinator.reload_all(candidates)
        except Exception as e:
            report.error = TickFailure(f"{type(e).__name__}: {e}")
            logger.error(f"reload failed: {e}", exc_info=True)
        finally:
            self.last_watermark = now
            self.state = previous_state

        self._history.append(report)
        return report

    async def _publish_tick(self, report: TickReport) -> None:
        """Publish events describing a completed tick."""
        if not self.event_bus:
            return

        for outcome in report.outcomes:
            if outcome.success:
                await self._emit(EventType.MODULE_RELOADED, {"module": outcome.module})
            else:
                await self._emit(
                    EventType.MODULE_RELOAD_FAILED,
                    {"module": outcome.module, "error": outcome.error},
                )
        await self._emit(EventType.RELOADER_TICK, report.to_dict())

    async def _emit(self, event_type: EventType, data: dict | None = None) -> None:
        if self.event_bus:
            await self.event_bus.emit(event_type, data)

    def list_changed_units(self) -> list[str]:
        """Modules whose loaded and on-disk version tags differ.

        Independent of tick timing; modules without version tags are never
        listed.
        """
        return [unit.name for unit in self.detector.units() if self.oracle.is_changed(unit.name)]

    def is_unit_changed(self, module: str) -> bool:
        """Check a single module's version tags."""
        return self.oracle.is_changed(module)

    def reload_units(self, modules: Iterable[str]) -> list[ReloadOutcome]:
        """Reload the given modules now, bypassing the timer and window."""
        return self.coordinator.reload_all(modules)

    def reload_all_changed(self) -> list[ReloadOutcome]:
        """Reload every module whose version tag changed on disk."""
        return self.reload_units(self.list_changed_units())

    def get_tick_history(self, limit: int = 10) -> list[TickReport]:
        """Get recent tick reports.

        Args:
            limit: Maximum number of reports to return.

        Returns:
            List of recent TickReports, oldest first.
        """
        if limit <= 0:
            return []
        return list(self._history)[-limit:]


async def start_reloader(
    config: ReloaderConfig | None = None,
    *,
    check_interval_ms: int | None = None,
    **kwargs,
) -> Reloader:
    """Create and start a reloader.

    Args:
        config: Reloader configuration (defaults to ReloaderConfig()).
        check_interval_ms: Overrides config.check_interval_ms.
        **kwargs: Passed to Reloader (loader, filesystem, clock, event_bus).

    Returns:
        The started Reloader handle.
    """
    config = config or ReloaderConfig()
    if check_interval_ms is not None:
        config = replace(config, check_interval_ms=check_interval_ms)

    reloader = Reloader(config, **kwargs)
    await reloader.start()
    return reloader
