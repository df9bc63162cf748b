"""Change detection by source modification time.

Every loaded module with a source path is classified against a time
window. A module whose file was modified inside the window becomes a
reload candidate.
"""

import logging
from collections.abc import Iterable

from hotswap.reload.backends import FileSystem, ModuleLoader
from hotswap.reload.models import CheckResult, LoadedUnit, ScanResult, TimeWindow

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Classifies loaded modules as unmodified, modified, gone or unreadable."""

    def __init__(
        self,
        loader: ModuleLoader,
        filesystem: FileSystem,
        ignore_prefixes: Iterable[str] = (),
    ):
        self.loader = loader
        self.filesystem = filesystem
        self.ignore_prefixes = tuple(p.rstrip(".") for p in ignore_prefixes)

    def _is_ignored(self, module: str) -> bool:
        """Check if a module belongs to an ignored package."""
        return any(
            module == prefix or module.startswith(f"{prefix}.")
            for prefix in self.ignore_prefixes
        )

    def units(self) -> list[LoadedUnit]:
        """Loaded modules eligible for checking.

        Modules without a source path and ignored packages are left out.
        """
        return [
            unit
            for unit in self.loader.list_loaded()
            if unit.path is not None and not self._is_ignored(unit.name)
        ]

    def classify(self, unit: LoadedUnit, window: TimeWindow) -> ScanResult:
        """Classify a single module against a window."""
        try:
            mtime = self.filesystem.stat(unit.path)
        except FileNotFoundError:
            # Expected while a file is being replaced; not worth an error
            logger.debug(f"Source of {unit.name} is gone: {unit.path}")
            return ScanResult(unit.name, CheckResult.GONE, unit.path)
        except OSError as e:
            logger.error(f"Error reading {unit.name}'s file info ({unit.path}): {e}")
            return ScanResult(unit.name, CheckResult.READ_ERROR, unit.path, reason=str(e))

        if window.contains(mtime):
            return ScanResult(unit.name, CheckResult.MODIFIED, unit.path)
        return ScanResult(unit.name, CheckResult.UNMODIFIED, unit.path)

    def scan(self, window: TimeWindow) -> list[ScanResult]:
        """Classify every eligible loaded module.

        Args:
            window: Half-open interval of modification times to look for.

        Returns:
            One ScanResult per eligible module, in enumeration order.
        """
        results = [self.classify(unit, window) for unit in self.units()]

        modified = sum(1 for r in results if r.result == CheckResult.MODIFIED)
        if modified:
            logger.debug(f"Scanned {len(results)} modules, {modified} modified")
        return results
