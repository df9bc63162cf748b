"""Collaborator backends: module loading and file metadata.

The reloader never touches ``sys.modules`` or the file system directly.
It goes through a ``ModuleLoader`` and a ``FileSystem`` so embedders and
tests can substitute their own.
"""

import ast
import importlib
import logging
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from hotswap.reload.errors import LoadFailure
from hotswap.reload.models import LoadedUnit

logger = logging.getLogger(__name__)

# Modules that can never be reloaded by name
UNRELOADABLE_MODULES = frozenset({"__main__", "__mp_main__"})


def local_now() -> datetime:
    """Current local wall-clock time, truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


class ModuleLoader(ABC):
    """Host loading mechanism used to enumerate, evict and load modules."""

    @abstractmethod
    def list_loaded(self) -> list[LoadedUnit]:
        """List loaded modules, with their source path where known."""

    @abstractmethod
    def evict(self, module: str) -> None:
        """Unload a module. Evicting a module that is not loaded is a no-op."""

    @abstractmethod
    def load(self, module: str) -> Any:
        """Load a module fresh, raising LoadFailure on error."""

    @abstractmethod
    def read_metadata(self, module: str) -> dict[str, Any]:
        """Attributes of the loaded module."""

    @abstractmethod
    def read_on_disk_metadata(self, path: Path) -> dict[str, Any]:
        """Attributes declared by the module file on disk, without loading it."""


class FileSystem(ABC):
    """Source of file modification times."""

    @abstractmethod
    def stat(self, path: Path) -> datetime:
        """Modification time of a file, raising OSError if unreadable."""


class LocalFileSystem(FileSystem):
    """Reads modification times from the local disk."""

    def stat(self, path: Path) -> datetime:
        """Get the modification time of a file.

        Args:
            path: File to inspect.

        Returns:
            Local modification time, truncated to whole seconds.

        Raises:
            FileNotFoundError: If the file does not exist.
            OSError: For any other read failure.
        """
        mtime = Path(path).stat().st_mtime
        return datetime.fromtimestamp(mtime).replace(microsecond=0)


def parse_module_attributes(source: bytes, filename: str = "<unknown>") -> dict[str, Any]:
    """Extract literal dunder assignments from module source.

    Only top-level ``__name__ = <literal>`` assignments are considered;
    anything that is not a literal is ignored.

    Raises:
        SyntaxError: If the source cannot be parsed.
    """
    tree = ast.parse(source, filename=filename)
    attributes: dict[str, Any] = {}

    for node in tree.body:
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            targets = [node.target]
        else:
            continue

        for target in targets:
            if not (isinstance(target, ast.Name) and target.id.startswith("__") and target.id.endswith("__")):
                continue
            try:
                attributes[target.id] = ast.literal_eval(node.value)
            except (ValueError, TypeError, SyntaxError):
                continue

    return attributes


class ImportlibLoader(ModuleLoader):
    """Loads modules through ``sys.modules`` and ``importlib``.

    Eviction takes a module out of ``sys.modules`` but remembers it. Loading
    re-executes the remembered module object in place with
    ``importlib.reload``, so every module that already imported it sees the
    new code. A failed load restores the module's previous namespace.
    """

    def __init__(self) -> None:
        self._evicted: dict[str, ModuleType] = {}

    def list_loaded(self) -> list[LoadedUnit]:
        """List every loaded module with its source path, if any."""
        units: list[LoadedUnit] = []
        for name, module in list(sys.modules.items()):
            if module is None or name in UNRELOADABLE_MODULES:
                continue
            filename = getattr(module, "__file__", None)
            path = Path(filename) if isinstance(filename, str) and filename else None
            units.append(LoadedUnit(name=name, path=path))
        return units

    def evict(self, module: str) -> None:
        """Remove a module from ``sys.modules``; a no-op if it is not loaded."""
        previous = sys.modules.pop(module, None)
        if previous is not None:
            self._evicted[module] = previous
        importlib.invalidate_caches()

    def load(self, module: str) -> ModuleType:
        """Load a module from disk.

        An evicted module is reloaded in place; a module that was never
        loaded is imported.

        Raises:
            LoadFailure: If executing the module raises. The previous module
                object and its attributes are restored.
        """
        previous = self._evicted.pop(module, None)
        if previous is None:
            try:
                return importlib.import_module(module)
            except Exception as e:
                raise LoadFailure(module, f"{type(e).__name__}: {e}") from e

        snapshot = dict(vars(previous))
        sys.modules[module] = previous
        try:
            return importlib.reload(previous)
        except Exception as e:
            namespace = vars(previous)
            namespace.clear()
            namespace.update(snapshot)
            sys.modules[module] = previous
            logger.debug(f"Restored previous version of {module}")
            raise LoadFailure(module, f"{type(e).__name__}: {e}") from e

    def read_metadata(self, module: str) -> dict[str, Any]:
        """Attributes of the loaded module object.

        Raises:
            KeyError: If the module is not loaded.
        """
        loaded = sys.modules.get(module)
        if loaded is None:
            raise KeyError(module)
        return dict(vars(loaded))

    def read_on_disk_metadata(self, path: Path) -> dict[str, Any]:
        """Literal dunder attributes declared in a module's source file.

        The file is parsed, never imported.

        Raises:
            ValueError: If the path is not Python source.
            OSError: If the file cannot be read.
            SyntaxError: If the source cannot be parsed.
        """
        path = Path(path)
        if path.suffix != ".py":
            raise ValueError(f"Not a Python source file: {path}")
        return parse_module_attributes(path.read_bytes(), filename=str(path))
