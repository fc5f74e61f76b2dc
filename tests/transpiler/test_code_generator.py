"""Tests for declaration-level code generation."""

import ast
import textwrap

import pytest

from py2hlsl.transpiler.code_generator import generate_code
from py2hlsl.transpiler.collector import collect_info
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.postproc import post_process
from py2hlsl.transpiler.target import GLSLTarget, HLSLTarget

POINT = """
class Pt:
    '''A 2D point.'''
    x: float32
    y: float32

    def add(self, d: Ref[Pt]) -> None:
        '''Move by d.'''
        self.x += d.x
        self.y += d.y

    def scaled(self, k: float32) -> Pt:
        return Pt(self.x * k, self.y * k)

    def twice(self) -> Pt:
        self.add(self)
        return self


def shift(p: Pt, q: Pt) -> Pt:
    p.add(q)
    return p.scaled(2.0)
"""


def generate(code: str, target=None, excluded: frozenset[str] = frozenset()) -> str:
    tree = ast.parse(textwrap.dedent(code))
    collected = collect_info(tree, excluded)
    ctx = CodegenContext(collected=collected, target=target or HLSLTarget())
    return generate_code(tree, ctx)


class TestGlobalsAndEnums:
    """Tests for constants and enums."""

    def test_hlsl_constants(self):
        code = """
        N: int32 = 4
        SCALE = 2.5
        """

        assert generate(code) == "static const int N = 4;\n\nstatic const float SCALE = 2.5;"

    def test_glsl_constants(self):
        assert generate("N: uint32 = 4\n", GLSLTarget()) == "const uint N = 4;"

    def test_hlsl_enum(self):
        # Arrange
        code = """
        class Mode(IntEnum):
            OFF = 0
            ON = 1
        """

        # Act
        result = generate(code)

        # Assert
        assert result.splitlines() == [
            "typedef int Mode;",
            "static const Mode OFF = 0;",
            "static const Mode ON = 1;",
        ]

    def test_glsl_enum_uses_base_type(self):
        code = """
        class Mode(IntEnum):
            OFF = 0
        """

        assert generate(code, GLSLTarget()) == "const int OFF = 0;"


class TestFunctions:
    """Tests for free functions."""

    def test_function_with_docstring(self):
        # Arrange
        code = """
        def lerp(x: float32, y: float32, t: float32) -> float32:
            '''Linear interpolation.'''
            return x + (y - x) * t
        """

        # Act
        result = generate(code)

        # Assert
        assert result.splitlines() == [
            "// Linear interpolation.",
            "float lerp(float x, float y, float t) {",
            "    return x + (y - x) * t;",
            "}",
        ]

    def test_ref_parameter_is_inout(self):
        code = """
        def bump(v: Ref[float32]) -> None:
            v += 1.0
        """

        assert generate(code).splitlines()[0] == "void bump(inout float v) {"

    def test_missing_parameter_annotation(self):
        with pytest.raises(TranspilerError, match="Parameter 'x' of 'f' lacks a type annotation"):
            generate("def f(x) -> float32:\n    return x\n")

    def test_excluded_functions_are_omitted(self):
        # Arrange
        code = """
        def f() -> float32:
            return 1.0

        def update() -> None:
            pass

        def g() -> float32:
            return 2.0
        """

        # Act
        result = generate(code, excluded=frozenset({"update"}))

        # Assert
        assert "update" not in result
        assert result.index("float f()") < result.index("float g()")

    def test_imports_are_skipped(self):
        assert generate("import numpy as np\nfrom py2hlsl.sltype import float32\n") == ""


class TestStructs:
    """Tests for structs and their methods."""

    def test_hlsl_methods_are_marked_for_relocation(self):
        result = generate(POINT)

        assert "//<<<<EndClass: Pt>>>>" in result
        assert result.count("//<<<<Method: Pt>>>>") == 3
        assert result.count("//<<<<EndMethod>>>>") == 3

    def test_hlsl_methods_nested_after_post_processing(self):
        # Act
        result = post_process(generate(POINT))

        # Assert
        lines = result.splitlines()
        struct_end = lines.index("};")
        assert lines[:4] == ["// A 2D point.", "struct Pt {", "    float x;", "    float y;"]
        assert lines.index("    void add(inout Pt d) {") < struct_end
        assert "        x += d.x;" in lines
        assert "        return Pt(x * k, y * k);" in lines
        assert "        add(this);" in lines
        assert "        return this;" in lines
        assert lines.index("    // Move by d.") == lines.index("    void add(inout Pt d) {") - 1
        assert "<<<<" not in result

    def test_hlsl_call_sites_keep_method_syntax(self):
        result = post_process(generate(POINT))

        assert "    p.add(q);" in result
        assert "    return p.scaled(2.0);" in result

    def test_glsl_methods_are_flattened(self):
        # Act
        result = post_process(generate(POINT, GLSLTarget()), nest_methods=False)

        # Assert
        assert "void Pt_add(inout Pt self, inout Pt d) {" in result
        assert "    self.x += d.x;" in result
        assert "Pt Pt_scaled(inout Pt self, float k) {" in result
        assert "    Pt_add(self, self);" in result
        assert "    Pt_add(p, q);" in result
        assert "    return Pt_scaled(p, 2.0);" in result
        assert "<<<<" not in result

    def test_glsl_method_prototypes_precede_bodies(self):
        # Arrange
        code = """
        class Out:
            v: float32

            def go(self) -> float32:
                return self.go2()

            def go2(self) -> float32:
                return self.v
        """

        # Act
        result = post_process(generate(code, GLSLTarget()), nest_methods=False)

        # Assert
        lines = result.splitlines()
        prototype = lines.index("float Out_go2(inout Out self);")
        assert "float Out_go(inout Out self);" in lines
        assert prototype < lines.index("    return Out_go2(self);")
        assert prototype < lines.index("float Out_go(inout Out self) {")
        assert lines.index("};") < prototype

    def test_hlsl_methods_have_no_prototypes(self):
        result = generate(POINT)

        assert "void add(inout Pt d);" not in result

    def test_excluded_methods_are_omitted(self):
        code = """
        class S:
            a: float32

            def defaults(self) -> None:
                self.a = 0.0
        """

        result = generate(code, excluded=frozenset({"defaults"}))

        assert result == "struct S {\n    float a;\n};"
