"""Tests for the top-level declaration collector."""

import ast
import textwrap

import pytest

from py2hlsl.transpiler.collector import collect_info
from py2hlsl.transpiler.errors import TranspilerError


def collect(code: str, excluded: frozenset[str] = frozenset()):
    return collect_info(ast.parse(textwrap.dedent(code)), excluded)


class TestCollectStructs:
    """Tests for struct collection."""

    def test_fields_and_methods(self):
        # Arrange
        code = """
        class Pt:
            '''A point.'''
            x: float32
            y: np.float32 = 0.0
            count: ClassVar[int] = 0

            def add(self, d: Ref[Pt], k: float32) -> None:
                self.x += d.x * k
        """

        # Act
        info = collect(code)

        # Assert
        pt = info.structs["Pt"]
        assert [(f.name, f.type_name) for f in pt.fields] == [("x", "float32"), ("y", "float32")]
        assert pt.fields[1].default_value == "0.0"
        assert pt.docstring == "A point."
        add = pt.methods["add"]
        assert add.owner == "Pt"
        assert add.param_types == ["Pt", "float32"]
        assert add.inout == [True, False]
        assert [p.arg for p in add.params] == ["d", "k"]

    def test_function_bodies_are_not_visited(self):
        code = """
        def f(x: float32) -> float32:
            class Inner:
                a: float32
            return x
        """

        info = collect(code)

        assert list(info.functions) == ["f"]
        assert info.structs == {}


class TestCollectEnums:
    """Tests for enum collection."""

    def test_explicit_members(self):
        # Arrange
        code = """
        class Mode(IntEnum):
            OFF = 0
            ON = 1
            AUTO = 4
        """

        # Act
        info = collect(code)

        # Assert
        mode = info.enums["Mode"]
        assert [name for name, _ in mode.members] == ["OFF", "ON", "AUTO"]
        assert mode.base_type == "int32"
        assert info.enum_of_member("AUTO") == "Mode"
        assert "Mode" not in info.structs

    def test_auto_is_a_hard_error(self):
        code = """
        class Mode(enum.IntEnum):
            OFF = enum.auto()
        """

        with pytest.raises(TranspilerError, match=r"Mode\.OFF.*auto\(\)"):
            collect(code)


class TestCollectGlobals:
    """Tests for module-level constants."""

    def test_annotated_and_literal_constants(self):
        # Arrange
        code = """
        N: int32 = 4
        SCALE = 2.5
        OFFSET = -3
        derived = N * 2
        """

        # Act
        info = collect(code)

        # Assert
        assert info.globals["N"][0] == "int32"
        assert info.globals["SCALE"][0] == "float32"
        assert info.globals["OFFSET"][0] == "int32"
        assert "derived" not in info.globals

    def test_collects_into_existing_info(self):
        info = collect("A: int32 = 1\n")

        collect_info(ast.parse("B: int32 = 2\n"), collected=info)

        assert list(info.globals) == ["A", "B"]
