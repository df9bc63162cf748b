"""Tests for version fingerprints."""

import importlib
from pathlib import Path

import pytest

from hotswap.reload import ImportlibLoader, NoVersionTag, VersionOracle
from hotswap.reload.backends import parse_module_attributes


class TestParseModuleAttributes:
    """Tests for reading literal dunder assignments from source."""

    def test_reads_version_assignment(self):
        attrs = parse_module_attributes(b'__version__ = "1.2.3"\n')
        assert attrs == {"__version__": "1.2.3"}

    def test_reads_annotated_and_tuple_values(self):
        source = b'__version__: str = "2"\n__vsn__ = (1, 2)\n'
        attrs = parse_module_attributes(source)
        assert attrs["__version__"] == "2"
        assert attrs["__vsn__"] == (1, 2)

    def test_ignores_non_literal_and_non_dunder(self):
        source = b"import os\n__version__ = os.getenv('V')\nversion = '3'\n"
        assert parse_module_attributes(source) == {}

    def test_ignores_nested_assignments(self):
        source = b"if True:\n    __version__ = '4'\n"
        assert parse_module_attributes(source) == {}

    def test_syntax_error_raises(self):
        with pytest.raises(SyntaxError):
            parse_module_attributes(b"def broken(:\n")


class TestVersionOracle:
    """Tests for VersionOracle with a fake loader."""

    def test_fingerprint_loaded(self, loader):
        loader.add("app.views", "/src/app/views.py", version="1")
        oracle = VersionOracle(loader)
        assert oracle.fingerprint_loaded("app.views") == "1"

    def test_fingerprint_loaded_without_tag(self, loader):
        loader.add("app.views", "/src/app/views.py")
        oracle = VersionOracle(loader)

        with pytest.raises(NoVersionTag) as exc_info:
            oracle.fingerprint_loaded("app.views")
        assert exc_info.value.module == "app.views"

    def test_fingerprint_loaded_unknown_module(self, loader):
        with pytest.raises(NoVersionTag):
            VersionOracle(loader).fingerprint_loaded("missing")

    def test_fingerprint_on_disk(self, loader):
        loader.add("app.views", "/src/app/views.py", version="1", disk_version="2")
        assert VersionOracle(loader).fingerprint_on_disk("app.views") == "2"

    def test_fingerprint_on_disk_without_file(self, loader):
        loader.add("builtin_thing", None, version="1")
        with pytest.raises(NoVersionTag):
            VersionOracle(loader).fingerprint_on_disk("builtin_thing")

    def test_custom_attribute(self, loader):
        loader.add("app.views", "/src/app/views.py")
        loader.metadata["app.views"]["__vsn__"] = 7
        loader.sources[Path("/src/app/views.py")] = "__vsn__ = 8\n"
        oracle = VersionOracle(loader, attribute="__vsn__")
        assert oracle.is_changed("app.views")

    def test_is_changed_when_tags_differ(self, loader):
        loader.add("app.views", "/src/app/views.py", version="1", disk_version="2")
        assert VersionOracle(loader).is_changed("app.views")

    def test_not_changed_when_tags_equal(self, loader):
        loader.add("app.views", "/src/app/views.py", version="1", disk_version="1")
        assert not VersionOracle(loader).is_changed("app.views")

    def test_missing_tags_are_never_changed(self, loader):
        loader.add("no_loaded_tag", "/src/a.py", disk_version="2")
        loader.add("no_disk_tag", "/src/b.py", version="1")
        loader.add("no_file", None, version="1")
        oracle = VersionOracle(loader)

        assert not oracle.is_changed("no_loaded_tag")
        assert not oracle.is_changed("no_disk_tag")
        assert not oracle.is_changed("no_file")
        assert not oracle.is_changed("not_loaded_at_all")


class TestVersionOracleWithImportlib:
    """VersionOracle against real modules."""

    def test_detects_rewritten_version(self, module_dir: Path):
        source = module_dir / "hs_oracle_demo.py"
        source.write_text('__version__ = "1"\n')
        importlib.import_module("hs_oracle_demo")

        oracle = VersionOracle(ImportlibLoader())
        assert not oracle.is_changed("hs_oracle_demo")

        source.write_text('__version__ = "2"\n')
        assert oracle.fingerprint_loaded("hs_oracle_demo") == "1"
        assert oracle.fingerprint_on_disk("hs_oracle_demo") == "2"
        assert oracle.is_changed("hs_oracle_demo")

    def test_deleted_source_is_unchanged(self, module_dir: Path):
        source = module_dir / "hs_oracle_deleted.py"
        source.write_text('__version__ = "1"\n')
        importlib.import_module("hs_oracle_deleted")
        source.unlink()

        assert not VersionOracle(ImportlibLoader()).is_changed("hs_oracle_deleted")

    def test_non_source_file_is_rejected(self, tmp_path: Path):
        compiled = tmp_path / "ext.so"
        compiled.write_bytes(b"\x7fELF")

        with pytest.raises(ValueError):
            ImportlibLoader().read_on_disk_metadata(compiled)
