"""Tests for input resolution."""

import pytest

from py2hlsl.transpiler.context import RunContext
from py2hlsl.transpiler.errors import ResolutionError
from py2hlsl.transpiler.resolver import (
    build_prefix_map,
    expand_path,
    find_module_file,
    is_usable,
    resolve_inputs,
    walk_directory,
)

REGION = """
# py2hlsl: start demo
X: int32 = 1
# py2hlsl: end
"""


class TestWalkDirectory:
    """Tests for directory expansion."""

    def test_sorted_python_files_only(self, tmp_path, write_source):
        # Arrange
        write_source("pkg/b.py", REGION)
        write_source("pkg/a.py", REGION)
        write_source("pkg/sub/c.py", REGION)
        write_source("pkg/notes.txt", "text")
        write_source("pkg/.hidden.py", REGION)
        write_source("pkg/.venv/d.py", REGION)
        write_source("pkg/__pycache__/e.py", REGION)

        # Act
        files = walk_directory(tmp_path / "pkg")

        # Assert
        assert [f.relative_to(tmp_path / "pkg").as_posix() for f in files] == [
            "a.py",
            "b.py",
            "sub/c.py",
        ]


class TestIsUsable:
    """Tests for candidate file filtering."""

    def test_file_with_directives(self, write_source):
        assert is_usable(write_source("a.py", REGION))

    def test_file_without_directives(self, write_source):
        assert not is_usable(write_source("a.py", "x = 1\n"))

    def test_file_that_does_not_parse(self, write_source):
        assert not is_usable(write_source("a.py", REGION + "def broken(:\n"))


class TestModuleResolution:
    """Tests for dotted module specifiers."""

    def test_find_module_file(self):
        path = find_module_file("json.decoder")

        assert path is not None
        assert path.name == "decoder.py"

    def test_unknown_module(self):
        assert find_module_file("no_such_module_py2hlsl") is None

    def test_expand_missing_path(self):
        assert expand_path("does/not/exist.py") == []


class TestBuildPrefixMap:
    """Tests for package qualifier derivation."""

    def test_module_and_package_names(self, write_source):
        # Arrange
        write_source("chans/__init__.py", "")
        module = write_source("chans/gabab.py", REGION)
        loose = write_source("loose.py", REGION)

        # Act
        prefixes = build_prefix_map([module, loose])

        # Assert
        assert prefixes == {"gabab": True, "chans": True, "loose": True}


class TestResolveInputs:
    """Tests for full argument resolution."""

    def test_argument_order_is_kept(self, write_source):
        # Arrange
        second = write_source("z.py", REGION)
        first = write_source("a.py", REGION)
        ctx = RunContext()

        # Act
        files = resolve_inputs([str(second), str(first)], ctx)

        # Assert
        assert files == [second, first]
        assert {"z", "a"} <= set(ctx.prefixes)

    def test_duplicates_processed_once(self, tmp_path, write_source):
        path = write_source("a.py", REGION)
        ctx = RunContext()

        files = resolve_inputs([str(path), str(tmp_path)], ctx)

        assert files == [path]

    def test_no_usable_files(self, write_source):
        # Arrange
        path = write_source("plain.py", "x = 1\n")

        # Act / Assert
        with pytest.raises(ResolutionError, match="No usable input files"):
            resolve_inputs([str(path)], RunContext())
