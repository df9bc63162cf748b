"""Sequential reloading of module batches."""

import logging
from collections.abc import Iterable

from hotswap.reload.backends import ModuleLoader
from hotswap.reload.errors import LoadFailure
from hotswap.reload.models import ReloadOutcome, ReloadStatus

logger = logging.getLogger(__name__)


class ReloadCoordinator:
    """Reloads modules one at a time, in the order given.

    No dependency ordering is computed; callers pass modules in the order
    they must be reloaded. A failure never stops the rest of the batch.
    """

    def __init__(self, loader: ModuleLoader):
        self.loader = loader

    def reload(self, module: str) -> ReloadOutcome:
        """Evict a module and load it again.

        Args:
            module: Full module name (e.g., "myapp.handlers").

        Returns:
            ReloadOutcome describing the result.
        """
        logger.info(f"Reloading {module} ...")
        try:
            self.loader.evict(module)
            self.loader.load(module)
        except LoadFailure as e:
            logger.error(f"reload {module} failed: {e.reason}")
            return ReloadOutcome(module, ReloadStatus.FAILED, error=e.reason)
        except Exception as e:
            logger.error(f"reload {module} failed: {e}")
            return ReloadOutcome(module, ReloadStatus.FAILED, error=str(e))

        logger.info(f"reload {module} ok")
        return ReloadOutcome(module, ReloadStatus.RELOADED)

    def reload_all(self, modules: Iterable[str]) -> list[ReloadOutcome]:
        """Reload each module in order, collecting every outcome."""
        return [self.reload(module) for module in modules]
