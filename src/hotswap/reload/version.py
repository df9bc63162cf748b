"""Version fingerprints of loaded modules.

A module's fingerprint is the value of its version tag attribute
(``__version__`` by default). The loaded fingerprint comes from the module
object; the on-disk fingerprint comes from parsing the source file.
"""

import logging
from pathlib import Path
from typing import Any

from hotswap.reload.backends import ModuleLoader
from hotswap.reload.errors import NoVersionTag

logger = logging.getLogger(__name__)

DEFAULT_VERSION_ATTRIBUTE = "__version__"


class VersionOracle:
    """Compares in-memory and on-disk version tags of modules."""

    def __init__(self, loader: ModuleLoader, attribute: str = DEFAULT_VERSION_ATTRIBUTE):
        self.loader = loader
        self.attribute = attribute

    def fingerprint_loaded(self, module: str) -> Any:
        """Version tag of the currently loaded module.

        Raises:
            NoVersionTag: If the module is not loaded or has no tag.
        """
        try:
            metadata = self.loader.read_metadata(module)
        except Exception as e:
            raise NoVersionTag(module, f"cannot read loaded metadata: {e}") from e

        if self.attribute not in metadata:
            raise NoVersionTag(module, f"loaded module has no {self.attribute}")
        return metadata[self.attribute]

    def fingerprint_on_disk(self, module: str) -> Any:
        """Version tag declared in the module's source file.

        Raises:
            NoVersionTag: If the file is unknown, unreadable or has no tag.
        """
        try:
            filename = self.loader.read_metadata(module).get("__file__")
        except Exception as e:
            raise NoVersionTag(module, f"cannot read loaded metadata: {e}") from e
        if not filename:
            raise NoVersionTag(module, "module has no source file")

        try:
            metadata = self.loader.read_on_disk_metadata(Path(filename))
        except Exception as e:
            raise NoVersionTag(module, f"cannot read {filename}: {e}") from e

        if self.attribute not in metadata:
            raise NoVersionTag(module, f"{filename} declares no {self.attribute}")
        return metadata[self.attribute]

    def is_changed(self, module: str) -> bool:
        """Check whether the on-disk version tag differs from the loaded one.

        Returns False whenever either tag is unavailable, so modules without
        version information are never reported as changed.
        """
        try:
            return self.fingerprint_loaded(module) != self.fingerprint_on_disk(module)
        except Exception as e:
            logger.debug(f"Treating {module} as unchanged: {e}")
            return False
