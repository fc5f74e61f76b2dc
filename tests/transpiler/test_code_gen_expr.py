"""Tests for expression code generation."""

import ast
import math

import pytest

from py2hlsl.transpiler.code_gen_expr import generate_constant_expr, generate_expr
from py2hlsl.transpiler.errors import TranspilerError


def gen(code: str, symbols, ctx) -> str:
    return generate_expr(ast.parse(code, mode="eval").body, symbols, 0, ctx)


class TestConstants:
    """Tests for literal printing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(True, "true"), (False, "false"), (3, "3"), (1.5, "1.5"), ('say "hi"\n', '"say \\"hi\\"\\n"')],
    )
    def test_literals(self, value, expected):
        assert generate_constant_expr(ast.Constant(value)) == expected

    def test_non_finite_float(self):
        with pytest.raises(TranspilerError, match="Non-finite"):
            generate_constant_expr(ast.Constant(math.inf))


class TestOperators:
    """Tests for operators and precedence."""

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("a + b * c", "a + b * c"),
            ("(a + b) * c", "(a + b) * c"),
            ("a - (b - c)", "a - (b - c)"),
            ("a - b - c", "a - b - c"),
            ("a / (b * c)", "a / (b * c)"),
            ("count % 3", "count % 3"),
            ("count << 2 | 1", "count << 2 | 1"),
            ("~count", "~count"),
            ("a ** 2.0", "pow(a, 2.0)"),
            ("a // b", "floor(a / b)"),
            ("0.0 < a < 1.0", "0.0 < a && a < 1.0"),
            ("a == b", "a == b"),
            ("flag and not (a > b)", "flag && !(a > b)"),
            ("(a > b or flag) and count > 0", "(a > b || flag) && count > 0"),
            ("-(-a)", "-(-a)"),
            ("a if flag else b", "flag ? a : b"),
        ],
    )
    def test_expressions(self, code, expected, symbols, hlsl_ctx):
        assert gen(code, symbols, hlsl_ctx) == expected

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("i / j", "float(i) / float(j)"),
            ("(i + 1) / j", "float(i + 1) / float(j)"),
            ("a * (i / j)", "a * (float(i) / float(j))"),
            ("a / count", "a / count"),
            ("i // j", "int(floor(float(i) / float(j)))"),
            ("i // 2", "int(floor(float(i) / float(2)))"),
            ("u // 4", "u / 4"),
            ("7 // 2", "7 / 2"),
            ("a // count", "floor(a / count)"),
        ],
    )
    def test_integer_division(self, code, expected, symbols, hlsl_ctx):
        # Arrange
        local_symbols = {**symbols, "i": "int32", "j": "int32", "u": "uint32"}

        # Act
        result = gen(code, local_symbols, hlsl_ctx)

        # Assert
        assert result == expected

    def test_integer_division_glsl(self, symbols, glsl_ctx):
        local_symbols = {**symbols, "i": "int32", "j": "int32"}

        assert gen("i / j", local_symbols, glsl_ctx) == "float(i) / float(j)"
        assert gen("i // j", local_symbols, glsl_ctx) == "int(floor(float(i) / float(j)))"


class TestNamesAndAttributes:
    """Tests for names, members and qualifiers."""

    def test_swizzle_and_fields(self, symbols, hlsl_ctx):
        assert gen("color.xyz", symbols, hlsl_ctx) == "color.xyz"
        assert gen("test_struct.position.x", symbols, hlsl_ctx) == "test_struct.position.x"

    def test_enum_member(self, symbols, hlsl_ctx):
        assert gen("Color.GREEN", symbols, hlsl_ctx) == "GREEN"

    def test_math_constant(self, symbols, hlsl_ctx):
        assert gen("math.pi", symbols, hlsl_ctx) == repr(math.pi)

    def test_boolean_constants(self, symbols, hlsl_ctx):
        assert gen("TRUE", symbols, hlsl_ctx) == "true"
        assert gen("slbool.FALSE", symbols, hlsl_ctx) == "false"

    def test_package_qualifier(self, symbols, hlsl_ctx):
        hlsl_ctx.prefixes["chans"] = True

        assert gen("chans.SCALE * a", symbols, hlsl_ctx) == "SCALE * a"

    def test_indexing(self, symbols, hlsl_ctx):
        assert gen("xs[count + 1]", symbols, hlsl_ctx) == "xs[count + 1]"


class TestCalls:
    """Tests for function and constructor calls."""

    def test_math_builtins(self, symbols, hlsl_ctx):
        assert gen("math.sqrt(a * a + b * b)", symbols, hlsl_ctx) == "sqrt(a * a + b * b)"
        assert gen("np.clip(a, 0.0, 1.0)", symbols, hlsl_ctx) == "clamp(a, 0.0, 1.0)"
        assert gen("max(a, b)", symbols, hlsl_ctx) == "max(a, b)"

    def test_glsl_builtin_names(self, symbols, glsl_ctx):
        assert gen("math.atan2(a, b)", symbols, glsl_ctx) == "atan(a, b)"
        assert gen("math.fmod(a, b)", symbols, glsl_ctx) == "mod(a, b)"

    def test_vector_constructors(self, symbols, hlsl_ctx, glsl_ctx):
        assert gen("Float3(a, b, c)", symbols, hlsl_ctx) == "float3(a, b, c)"
        assert gen("Float3(a, b, c)", symbols, glsl_ctx) == "vec3(a, b, c)"
        assert gen("Uint2(1, 2)", symbols, glsl_ctx) == "uvec2(1, 2)"

    def test_struct_constructor_keywords_in_field_order(self, symbols, hlsl_ctx):
        code = "TestStruct(value=a, position=Float3(0.0, 0.0, 0.0))"

        result = gen(code, symbols, hlsl_ctx)

        assert result == "TestStruct(float3(0.0, 0.0, 0.0), a, 1.0)"

    def test_struct_constructor_missing_field(self, symbols, hlsl_ctx):
        with pytest.raises(TranspilerError, match="Missing required fields.*position"):
            gen("TestStruct(value=a)", symbols, hlsl_ctx)

    def test_function_keywords_by_position(self, symbols, hlsl_ctx):
        assert gen("mix(a, t=0.5, y=b)", symbols, hlsl_ctx) == "mix(a, b, 0.5)"

    def test_unknown_keyword(self, symbols, hlsl_ctx):
        with pytest.raises(TranspilerError, match="Unknown argument 'q'"):
            gen("mix(a, b, q=1.0)", symbols, hlsl_ctx)

    def test_len_becomes_size_variable(self, symbols, hlsl_ctx):
        assert gen("len(xs)", symbols, hlsl_ctx) == "xs_size"

    def test_boolean_helpers(self, symbols, hlsl_ctx):
        assert gen("is_true(flag)", symbols, hlsl_ctx) == "(flag == true)"
        assert gen("slbool.is_false(flag)", symbols, hlsl_ctx) == "(flag == false)"
        assert gen("from_bool(a > b)", symbols, hlsl_ctx) == "(a > b)"

    def test_module_function_printed_as_written(self, symbols, hlsl_ctx):
        assert gen("np.float32(count)", symbols, hlsl_ctx) == "np.float32(count)"
        assert gen("str.lower(name)", symbols, hlsl_ctx) == "str.lower(name)"

    def test_unsupported_expression_passes_through(self, symbols, hlsl_ctx):
        assert gen("[a, b]", symbols, hlsl_ctx) == "[a, b]"
        assert gen("lambda q: q", symbols, hlsl_ctx) == "lambda q: q"
