"""
Translation of directive-marked Python code to HLSL and GLSL shaders.

This module provides the top-level interface of the transpiler: `run` drives
a whole command-line invocation, and `translate_source` translates one source
string in memory without touching the filesystem or the shader compiler.
"""

from loguru import logger

from py2hlsl.transpiler.constants import DEFAULT_EXCLUDED_FUNCTIONS
from py2hlsl.transpiler.context import RunContext
from py2hlsl.transpiler.directives import scan_lines
from py2hlsl.transpiler.emitter import compile_file, emit_unit, parse_unit, run, translate_unit
from py2hlsl.transpiler.errors import DirectiveError, ResolutionError, TranspilerError
from py2hlsl.transpiler.target import GLSLTarget, HLSLTarget, Target, create_target


def translate_source(
    source: str,
    path: str = "<string>",
    target: str = "hlsl",
    exclude: frozenset[str] = DEFAULT_EXCLUDED_FUNCTIONS,
    prefixes: dict[str, bool] | None = None,
) -> dict[str, str]:
    """Translate the directive regions of a source string.

    Args:
        source: Python source with directive comments
        path: Name reported in diagnostics
        target: Target name ("hlsl" or "glsl")
        exclude: Function names dropped from the output
        prefixes: Package identifiers whose qualifiers are removed

    Returns:
        Shader text of each translation unit, by unit name, in creation order

    Raises:
        DirectiveError: If the directives are malformed
        TranspilerError: If a unit cannot be translated
    """
    ctx = RunContext(
        target=create_target(target),
        exclude=frozenset(exclude),
        prefixes=dict(prefixes or {}),
        compile=False,
    )
    scan_lines(source.splitlines(), path, ctx.prefixes, ctx.units)
    logger.debug(f"{path}: {len(ctx.units)} unit(s)")

    parsed_units = [parse_unit(unit, ctx) for unit in ctx.units.values()]
    return {parsed.unit.name: translate_unit(parsed, ctx) for parsed in parsed_units}


__all__ = [
    "DirectiveError",
    "GLSLTarget",
    "HLSLTarget",
    "ResolutionError",
    "RunContext",
    "Target",
    "TranspilerError",
    "compile_file",
    "create_target",
    "emit_unit",
    "run",
    "translate_source",
    "translate_unit",
]
