"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from hotswap.reload import FileSystem, LoadedUnit, LoadFailure, ModuleLoader
from hotswap.reload.backends import parse_module_attributes

T0 = datetime(2024, 3, 1, 12, 0, 0)


class FakeClock:
    """Clock returning a controllable time."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeFileSystem(FileSystem):
    """File system whose stat results are set per path.

    A path maps either to a modification time or to an exception to raise.
    """

    def __init__(self) -> None:
        self.entries: dict[Path, datetime | OSError] = {}
        self.stat_calls: list[Path] = []

    def set(self, path: str | Path, value: datetime | OSError) -> None:
        self.entries[Path(path)] = value

    def stat(self, path: Path) -> datetime:
        self.stat_calls.append(Path(path))
        value = self.entries.get(Path(path))
        if value is None:
            raise FileNotFoundError(2, "No such file or directory", str(path))
        if isinstance(value, OSError):
            raise value
        return value


class FakeLoader(ModuleLoader):
    """In-memory loader recording evict/load calls."""

    def __init__(self) -> None:
        self.units: list[LoadedUnit] = []
        self.metadata: dict[str, dict[str, Any]] = {}
        self.sources: dict[Path, str] = {}
        self.failing: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    def add(
        self,
        name: str,
        path: str | None = None,
        version: Any = None,
        disk_version: Any = None,
    ) -> None:
        self.units.append(LoadedUnit(name=name, path=Path(path) if path else None))
        attrs: dict[str, Any] = {"__name__": name, "__file__": path}
        if version is not None:
            attrs["__version__"] = version
        self.metadata[name] = attrs
        if path and disk_version is not None:
            self.sources[Path(path)] = f"__version__ = {disk_version!r}\n"

    def list_loaded(self) -> list[LoadedUnit]:
        return list(self.units)

    def evict(self, module: str) -> None:
        self.calls.append(("evict", module))

    def load(self, module: str) -> str:
        self.calls.append(("load", module))
        if module in self.failing:
            raise LoadFailure(module, self.failing[module])
        return module

    def read_metadata(self, module: str) -> dict[str, Any]:
        return self.metadata[module]

    def read_on_disk_metadata(self, path: Path) -> dict[str, Any]:
        if Path(path) not in self.sources:
            raise FileNotFoundError(str(path))
        return parse_module_attributes(self.sources[Path(path)].encode())

    @property
    def loaded_modules(self) -> list[str]:
        return [name for action, name in self.calls if action == "load"]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def filesystem() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def loader() -> FakeLoader:
    return FakeLoader()


@pytest.fixture
def module_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Directory on sys.path for throwaway modules.

    Bytecode caching is disabled so a rewrite within the same second is
    always recompiled. Modules imported from the directory are removed
    from sys.modules afterwards.
    """
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.setattr(sys, "dont_write_bytecode", True)
    before = set(sys.modules)

    yield tmp_path

    for name in set(sys.modules) - before:
        module = sys.modules.get(name)
        filename = getattr(module, "__file__", None) or ""
        if filename.startswith(str(tmp_path)):
            del sys.modules[name]
