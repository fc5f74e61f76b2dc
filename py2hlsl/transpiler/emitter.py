"""
Translation driver for the HLSL shader transpiler.

Resolves inputs, scans them into translation units, translates each unit,
writes the results and hands them to the external shader compiler. Failures
are recovered at the narrowest scope: a bad file is skipped, a unit that
fails to translate is not written, and compiler failures are only reported.
"""

import ast
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import arrow
from loguru import logger

from py2hlsl import __version__
from py2hlsl.transpiler.ast_parser import parse_region
from py2hlsl.transpiler.code_generator import generate_code
from py2hlsl.transpiler.collector import collect_info
from py2hlsl.transpiler.context import CodegenContext, RunContext
from py2hlsl.transpiler.directives import has_entry_point, scan_lines, strip_verbatim
from py2hlsl.transpiler.errors import DirectiveError, TranspilerError
from py2hlsl.transpiler.layout import LayoutDiagnostic, check_structs
from py2hlsl.transpiler.models import (
    CollectedInfo,
    DirectiveRegion,
    RegionMode,
    TranslationUnit,
)
from py2hlsl.transpiler.postproc import post_process
from py2hlsl.transpiler.resolver import resolve_inputs
from py2hlsl.transpiler.subset import check_subset, log_violations

ENTRY_POINT_NOTE = "(ignore any 'Entry point not found' warnings for include-only files)"


@dataclass
class ParsedUnit:
    """A translation unit with its translate regions parsed and collected.

    Attributes:
        unit: The translation unit
        trees: Parsed tree of each translate region, by region index
        collected: Declarations of every translate region of the unit
        diagnostics: Layout diagnostics of the unit's structs
    """

    unit: TranslationUnit
    trees: dict[int, ast.Module] = field(default_factory=dict)
    collected: CollectedInfo = field(default_factory=CollectedInfo)
    diagnostics: list[LayoutDiagnostic] = field(default_factory=list)


def _located(error: TranspilerError, region: DirectiveRegion) -> TranspilerError:
    """Place an error raised on a region's tree in the region's source file."""
    if error.file_path:
        return error
    return error.with_location(region.path, region.start_line - 1)


def scan_file(path: Path, ctx: RunContext) -> int:
    """Scan one file into the run's translation units.

    Args:
        path: Source file
        ctx: Run state

    Returns:
        Number of regions found

    Raises:
        DirectiveError: If the directives of the file are malformed
    """
    text = path.read_text(encoding="utf-8")
    regions = scan_lines(text.splitlines(), str(path), ctx.prefixes, ctx.units)
    logger.debug(f"Scanned {path}: {len(regions)} region(s)")
    return len(regions)


def scan_files(files: list[Path], ctx: RunContext) -> None:
    """Scan files in order; files with directive errors are skipped."""
    for path in files:
        try:
            scan_file(path, ctx)
        except DirectiveError as e:
            logger.error(f"Skipping {path}: {e}")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read {path}: {e}")


def parse_unit(unit: TranslationUnit, ctx: RunContext) -> ParsedUnit:
    """Parse and collect every translate region of a unit.

    Args:
        unit: Translation unit
        ctx: Run state; its struct table gains the unit's structs

    Returns:
        The parsed unit

    Raises:
        TranspilerError: If a region does not parse or declares an invalid enum
    """
    parsed = ParsedUnit(unit=unit, collected=CollectedInfo(excluded=ctx.exclude))
    for index, region in enumerate(unit.regions):
        if region.mode is not RegionMode.TRANSLATE:
            continue
        tree = parse_region(region)
        try:
            collect_info(tree, ctx.exclude, parsed.collected)
        except TranspilerError as e:
            raise _located(e, region) from e
        log_violations(check_subset(tree), region.path, region.start_line - 1)
        parsed.trees[index] = tree
    ctx.structs.update(parsed.collected.structs)
    return parsed


def translate_unit(parsed: ParsedUnit, ctx: RunContext) -> str:
    """Translate a parsed unit into shader text.

    Translate regions are printed and post-processed, verbatim regions are
    stripped of their comment fences, and all chunks are joined in input order.

    Args:
        parsed: Unit with collected declarations
        ctx: Run state

    Returns:
        Shader source of the unit

    Raises:
        TranspilerError: If a translate region cannot be printed
    """
    unit = parsed.unit
    logger.info(f"Processing unit: {unit.name} {ENTRY_POINT_NOTE}")
    parsed.diagnostics = check_structs(
        parsed.collected.structs, ctx.structs, parsed.collected.enums
    )

    codegen_ctx = CodegenContext(
        collected=parsed.collected, target=ctx.target, prefixes=ctx.prefixes
    )
    chunks = []
    for index, region in enumerate(unit.regions):
        if region.mode is RegionMode.VERBATIM:
            chunks.append("\n".join(strip_verbatim(region.lines)))
            continue
        try:
            code = generate_code(parsed.trees[index], codegen_ctx)
        except TranspilerError as e:
            raise _located(e, region) from e
        chunks.append(post_process(code, nest_methods=ctx.target.supports_methods))

    code = "\n\n".join(chunk for chunk in chunks if chunk.strip())
    if ctx.header:
        code = "\n".join(header_lines(unit.name, ctx)) + "\n\n" + code
    return code + "\n"


def header_lines(unit_name: str, ctx: RunContext) -> list[str]:
    """Generation header comments for an output file."""
    timestamp = arrow.utcnow().format("YYYY-MM-DD HH:mm:ss UTC")
    return [
        f"// Generated by py2hlsl {__version__}",
        f"// Unit: {unit_name}",
        f"// Target: {ctx.target.name}",
        f"// Generation time: {timestamp}",
    ]


def intermediate_path(unit_name: str, ctx: RunContext) -> Path:
    return ctx.out_dir / f"{unit_name}.py"


def output_path(unit_name: str, ctx: RunContext) -> Path:
    return ctx.out_dir / f"{unit_name}{ctx.target.file_extension}"


def write_intermediate(unit: TranslationUnit, ctx: RunContext) -> Path:
    """Write the concatenated Python source of a unit's translate regions."""
    path = intermediate_path(unit.name, ctx)
    sources = ["\n".join(region.lines) for region in unit.translate_regions]
    path.write_text("\n\n".join(sources) + "\n", encoding="utf-8")
    return path


def compile_file(path: Path, ctx: RunContext) -> bool:
    """Compile a generated shader with the external compiler.

    The compiler runs in the output directory and blocks until it exits.
    Its output is logged verbatim.

    Args:
        path: Generated shader file
        ctx: Run state

    Returns:
        True if the compiler succeeded
    """
    output = path.with_suffix(ctx.target.binary_extension)
    command = ctx.target.compile_command(ctx.compiler, path.name, output.name)
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(
            command, cwd=path.parent, capture_output=True, text=True, check=False
        )
    except FileNotFoundError:
        logger.error(f"Shader compiler not found: {ctx.compiler}")
        return False
    except OSError as e:
        logger.error(f"Cannot run shader compiler {ctx.compiler}: {e}")
        return False

    compiler_output = (result.stdout or "") + (result.stderr or "")
    if compiler_output.strip():
        logger.info(f"{ctx.compiler} output for: {path.name}\n{compiler_output.rstrip()}")
    if result.returncode != 0:
        logger.error(f"{ctx.compiler} failed on {path.name} with exit code {result.returncode}")
        return False
    logger.info(f"Compiled {path.name} -> {output.name}")
    return True


def emit_unit(parsed: ParsedUnit, ctx: RunContext) -> Path:
    """Translate a unit, write its output file and compile it.

    Args:
        parsed: Parsed unit
        ctx: Run state

    Returns:
        Path of the written shader file

    Raises:
        TranspilerError: If the unit cannot be translated; nothing is written
    """
    unit = parsed.unit
    intermediate = write_intermediate(unit, ctx) if unit.translate_regions else None
    try:
        code = translate_unit(parsed, ctx)
    finally:
        if intermediate is not None and not ctx.keep:
            intermediate.unlink(missing_ok=True)

    path = output_path(unit.name, ctx)
    path.write_text(code, encoding="utf-8")
    logger.info(f"Wrote {path}")

    if not has_entry_point(code.splitlines()):
        logger.debug(f"{path.name} has no entry point; it is meant to be included")
    if ctx.compile:
        compile_file(path, ctx)
    return path


def run(paths: list[str], ctx: RunContext) -> int:
    """Translate every unit found in the given inputs.

    Args:
        paths: Files, directories or dotted module names
        ctx: Run state

    Returns:
        Number of units that failed to translate

    Raises:
        ResolutionError: If no usable input file is found
    """
    files = resolve_inputs(paths, ctx)
    scan_files(files, ctx)
    if not ctx.units:
        logger.warning("No directive regions found")
        return 0

    ctx.out_dir.mkdir(parents=True, exist_ok=True)

    # Collect every unit first so nested structs resolve across units
    parsed_units: list[ParsedUnit] = []
    failures = 0
    for unit in ctx.units.values():
        try:
            parsed_units.append(parse_unit(unit, ctx))
        except TranspilerError as e:
            logger.error(f"Unit '{unit.name}' not translated: {e}")
            failures += 1

    for parsed in parsed_units:
        try:
            emit_unit(parsed, ctx)
        except TranspilerError as e:
            logger.error(f"Unit '{parsed.unit.name}' not translated: {e}")
            failures += 1
        except OSError as e:
            logger.error(f"Cannot write unit '{parsed.unit.name}': {e}")
            failures += 1
    return failures
