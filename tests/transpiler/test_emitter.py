"""Tests for the translation driver."""

import shutil
from unittest.mock import MagicMock, patch

import pytest

from py2hlsl.transpiler import translate_source
from py2hlsl.transpiler.context import RunContext
from py2hlsl.transpiler.directives import scan_lines
from py2hlsl.transpiler.emitter import compile_file, parse_unit, run, translate_unit
from py2hlsl.transpiler.errors import DirectiveError, ResolutionError, TranspilerError
from py2hlsl.transpiler.target import GLSLTarget

POINT_SOURCE = """
import numpy as np
from py2hlsl.sltype import Ref, float32

# py2hlsl: start demo
class Pt:
    x: float32
    y: float32

    def add(self, d: Ref[Pt]) -> None:
        self.x += d.x
        self.y += d.y
# py2hlsl: end
"""


@pytest.fixture
def ctx(tmp_path):
    """Fixture providing a run context writing below a temporary directory."""
    return RunContext(out_dir=tmp_path / "out", compile=False)


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestStructWithMethod:
    """A two-field struct with a method in one unit."""

    def test_layout_diagnostic(self, write_source, ctx):
        # Arrange
        path = write_source("demo_a.py", POINT_SOURCE)
        scan_lines(path.read_text().splitlines(), str(path), {}, ctx.units)

        # Act
        parsed = parse_unit(ctx.units["demo"], ctx)
        translate_unit(parsed, ctx)

        # Assert
        assert [str(d) for d in parsed.diagnostics] == ["Pt: total size: 8 not even multiple of 16"]

    def test_hlsl_output_keeps_method_in_struct(self, write_source, ctx):
        # Arrange
        path = write_source("demo_a.py", POINT_SOURCE)

        # Act
        failures = run([str(path)], ctx)

        # Assert
        assert failures == 0
        output = (ctx.out_dir / "demo.hlsl").read_text()
        assert output.index("    void add(inout Pt d) {") < output.index("};")
        assert "        x += d.x;" in output
        assert "<<<<" not in output
        assert not (ctx.out_dir / "demo.py").exists()

    def test_glsl_output_flattens_method(self, write_source, ctx):
        # Arrange
        path = write_source("demo_a.py", POINT_SOURCE)
        ctx.target = GLSLTarget()

        # Act
        run([str(path)], ctx)

        # Assert
        output = (ctx.out_dir / "demo.comp").read_text()
        assert output.index("};") < output.index("void Pt_add(inout Pt self, inout Pt d) {")
        assert "    self.x += d.x;" in output

    def test_intermediate_file_kept(self, write_source, ctx):
        path = write_source("demo_a.py", POINT_SOURCE)
        ctx.keep = True

        run([str(path)], ctx)

        intermediate = (ctx.out_dir / "demo.py").read_text()
        assert intermediate.startswith("class Pt:")
        assert "py2hlsl:" not in intermediate


class TestUnitAccumulation:
    """Regions from several files contributing to one unit."""

    FIRST = """
    # py2hlsl: start shared
    def first() -> float32:
        return 1.0
    # py2hlsl: end
    """

    SECOND = """
    # py2hlsl: start shared
    def second() -> float32:
        return 2.0
    # py2hlsl: end
    """

    @pytest.mark.parametrize("reverse", [False, True])
    def test_command_line_order(self, write_source, ctx, reverse):
        # Arrange
        paths = [
            str(write_source("a.py", self.FIRST)),
            str(write_source("b.py", self.SECOND)),
        ]
        if reverse:
            paths.reverse()

        # Act
        run(paths, ctx)

        # Assert
        output = (ctx.out_dir / "shared.hlsl").read_text()
        first, second = output.index("float first()"), output.index("float second()")
        assert (first > second) is reverse

    def test_functions_shared_across_regions(self, write_source, ctx):
        # Arrange
        a = write_source("a.py", self.FIRST)
        b = write_source(
            "b.py",
            """
            # py2hlsl: start shared
            def twice() -> float32:
                v = first() * 2.0
                return v
            # py2hlsl: end
            """,
        )

        # Act
        failures = run([str(a), str(b)], ctx)

        # Assert
        assert failures == 0
        assert "    float v = first() * 2.0;" in (ctx.out_dir / "shared.hlsl").read_text()


class TestExclusion:
    """Excluded functions are left out."""

    def test_excluded_function_omitted(self, write_source, ctx):
        # Arrange
        path = write_source(
            "ex.py",
            """
            # py2hlsl: start ex
            def f() -> float32:
                return 1.0

            def update() -> None:
                pass

            def g() -> float32:
                return f()
            # py2hlsl: end
            """,
        )

        # Act
        run([str(path)], ctx)

        # Assert
        output = (ctx.out_dir / "ex.hlsl").read_text()
        assert "update" not in output
        assert output.index("float f()") < output.index("float g()")


class TestVerbatimRegions:
    """Verbatim regions are copied as shader text."""

    def test_round_trip(self, write_source, ctx):
        # Arrange
        path = write_source(
            "v.py",
            '''
            # py2hlsl: hlsl shader
            """
            #include "common.hlsl"
            [numthreads(64, 1, 1)]
            void main(uint3 id : SV_DispatchThreadID) {
            }
            """
            # py2hlsl: end
            ''',
        )

        # Act
        run([str(path)], ctx)

        # Assert
        assert (ctx.out_dir / "shader.hlsl").read_text() == (
            '#include "common.hlsl"\n'
            "[numthreads(64, 1, 1)]\n"
            "void main(uint3 id : SV_DispatchThreadID) {\n"
            "}\n"
        )

    def test_chunks_in_input_order(self, write_source, ctx):
        # Arrange
        path = write_source(
            "mixed.py",
            """
            # py2hlsl: hlsl mixed
            # #include "common.hlsl"
            # py2hlsl: end
            # py2hlsl: start mixed
            N: int32 = 4
            # py2hlsl: end
            """,
        )

        # Act
        run([str(path)], ctx)

        # Assert
        output = (ctx.out_dir / "mixed.hlsl").read_text()
        assert output == '#include "common.hlsl"\n\nstatic const int N = 4;\n'


class TestFailures:
    """Failures are recovered at the narrowest scope."""

    def test_enum_auto_fails_unit_only(self, write_source, ctx):
        # Arrange
        path = write_source(
            "modes.py",
            """
            # py2hlsl: start bad
            class Mode(IntEnum):
                OFF = auto()
            # py2hlsl: end

            # py2hlsl: start good
            N: int32 = 1
            # py2hlsl: end
            """,
        )

        # Act
        failures = run([str(path)], ctx)

        # Assert
        assert failures == 1
        assert not (ctx.out_dir / "bad.hlsl").exists()
        assert (ctx.out_dir / "good.hlsl").exists()

    def test_directive_error_skips_file(self, write_source, ctx):
        # Arrange
        broken = write_source("broken.py", "# py2hlsl: start a\nX: int32 = 1\n")
        fine = write_source("fine.py", "# py2hlsl: start b\nY: int32 = 2\n# py2hlsl: end\n")

        # Act
        failures = run([str(broken), str(fine)], ctx)

        # Assert
        assert failures == 0
        assert list(ctx.units) == ["b"]

    def test_no_usable_inputs(self, write_source, ctx):
        path = write_source("plain.py", "x = 1\n")

        with pytest.raises(ResolutionError):
            run([str(path)], ctx)

    def test_error_reports_absolute_line(self, write_source, ctx):
        # Arrange
        path = write_source(
            "lines.py",
            """
            x = 1
            # py2hlsl: start u
            def f() -> float32:
                y = mystery()
                return y
            # py2hlsl: end
            """,
        )

        # Act / Assert
        with pytest.raises(TranspilerError) as exc_info:
            translate_source(path.read_text(), str(path))
        assert exc_info.value.lineno == 4
        assert "lines.py at line 4" in str(exc_info.value)


class TestCompileFile:
    """Tests for the external compiler invocation."""

    def test_command_line(self, tmp_path, ctx):
        # Arrange
        shader = tmp_path / "demo.hlsl"
        shader.write_text("")

        # Act
        with patch("py2hlsl.transpiler.emitter.subprocess.run", return_value=completed()) as mock_run:
            ok = compile_file(shader, ctx)

        # Assert
        assert ok
        mock_run.assert_called_once_with(
            ["glslc", "-fshader-stage=compute", "-o", "demo.spv", "demo.hlsl"],
            cwd=tmp_path,
            capture_output=True,
            text=True,
            check=False,
        )

    def test_compiler_failure_reported(self, tmp_path, ctx):
        shader = tmp_path / "demo.hlsl"
        result = completed(1, stderr="demo.hlsl:1: error: bad")

        with patch("py2hlsl.transpiler.emitter.subprocess.run", return_value=result):
            assert not compile_file(shader, ctx)

    def test_missing_compiler(self, tmp_path, ctx):
        shader = tmp_path / "demo.hlsl"

        with patch("py2hlsl.transpiler.emitter.subprocess.run", side_effect=FileNotFoundError):
            assert not compile_file(shader, ctx)

    def test_run_compiles_each_unit(self, write_source, ctx):
        # Arrange
        path = write_source("demo_a.py", POINT_SOURCE)
        ctx.compile = True

        # Act
        with patch("py2hlsl.transpiler.emitter.subprocess.run", return_value=completed(1)) as mock_run:
            failures = run([str(path)], ctx)

        # Assert
        assert failures == 0
        assert mock_run.call_count == 1
        assert mock_run.call_args.kwargs["cwd"] == ctx.out_dir

    @pytest.mark.compiler
    @pytest.mark.skipif(shutil.which("glslc") is None, reason="glslc not installed")
    def test_real_compiler(self, write_source, ctx):
        path = write_source("demo_a.py", POINT_SOURCE)
        ctx.compile = True

        run([str(path)], ctx)

        assert (ctx.out_dir / "demo.hlsl").exists()


class TestTranslateSource:
    """Tests for the in-memory API."""

    def test_units_by_name(self):
        # Act
        result = translate_source(POINT_SOURCE, target="glsl")

        # Assert
        assert list(result) == ["demo"]
        assert "void Pt_add(inout Pt self, inout Pt d) {" in result["demo"]

    def test_directive_error(self):
        with pytest.raises(DirectiveError):
            translate_source("# py2hlsl: start a\n")
