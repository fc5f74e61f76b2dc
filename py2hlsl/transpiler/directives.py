"""
Directive comment scanning for the HLSL shader transpiler.

Input files mark the code to translate with line comments of the form

    # py2hlsl: start <unit>     open a region translated from Python
    # py2hlsl: hlsl <unit>      open a region copied verbatim as shader text
    # py2hlsl: end              close the active region

Regions for the same unit accumulate across files in input order.
"""

import re

from loguru import logger

from py2hlsl.transpiler.constants import (
    DIRECTIVE_KEY,
    END_KEYWORD,
    INCLUDE_TOKEN,
    START_KEYWORD,
    VERBATIM_KEYWORD,
)
from py2hlsl.transpiler.errors import DirectiveError
from py2hlsl.transpiler.models import DirectiveRegion, RegionMode, TranslationUnit

_OPEN_KEYWORDS = {
    START_KEYWORD: RegionMode.TRANSLATE,
    VERBATIM_KEYWORD: RegionMode.VERBATIM,
}

_VERBATIM_FENCES = ('"""', "'''", "/*", "*/")
_VERBATIM_COMMENT = "# "
_ENTRY_POINT = "void main("


def has_directives(text: str) -> bool:
    """Cheap textual check for the directive key anywhere in a file."""
    return DIRECTIVE_KEY.strip() in text


def parse_directive(line: str) -> tuple[str, str] | None:
    """Split a marker line into its keyword and argument.

    Args:
        line: A source line

    Returns:
        (keyword, argument) for marker lines, None for any other line
    """
    stripped = line.lstrip()
    if not stripped.startswith(DIRECTIVE_KEY):
        return None
    rest = stripped[len(DIRECTIVE_KEY):].strip()
    keyword, _, argument = rest.partition(" ")
    return keyword, argument.strip()


def _prefix_pattern(prefixes: dict[str, bool]) -> re.Pattern[str] | None:
    names = sorted((name for name, strip in prefixes.items() if strip), key=len, reverse=True)
    if not names:
        return None
    alternatives = "|".join(re.escape(name) for name in names)
    return re.compile(rf"(?<![\w.])(?:{alternatives})\.(?=[A-Za-z_])")


def strip_prefixes(line: str, prefixes: dict[str, bool]) -> str:
    """Remove package qualifiers from a translated line.

    Lines containing an include directive are returned unchanged.
    """
    if INCLUDE_TOKEN in line:
        return line
    pattern = _prefix_pattern(prefixes)
    if pattern is None:
        return line
    return pattern.sub("", line)


def scan_lines(
    lines: list[str],
    path: str,
    prefixes: dict[str, bool],
    units: dict[str, TranslationUnit],
) -> list[DirectiveRegion]:
    """Extract directive regions from the lines of one file.

    Marker lines are never copied. Regions are appended to their translation
    unit, which is created the first time a marker names it. Nothing is added
    to `units` when the file contains a grammar violation.

    Args:
        lines: File content split into lines without newlines
        path: File the lines were read from
        prefixes: Package identifiers whose qualifiers are removed
        units: Translation units by name, updated in place

    Returns:
        The regions found in this file, in order

    Raises:
        DirectiveError: If a region is opened while another is active, or a
            region is still open at end of file
    """
    regions: list[DirectiveRegion] = []
    active: DirectiveRegion | None = None
    active_line = 0

    for lineno, line in enumerate(lines, start=1):
        directive = parse_directive(line)
        if directive is not None:
            keyword, argument = directive
            if keyword in _OPEN_KEYWORDS:
                if active is not None:
                    raise DirectiveError(
                        f"'{keyword} {argument}' while region '{active.unit}' "
                        f"opened at line {active_line} is still active",
                        file_path=path,
                        lineno=lineno,
                    )
                if not argument:
                    raise DirectiveError(
                        f"'{keyword}' directive requires a unit name",
                        file_path=path,
                        lineno=lineno,
                    )
                active = DirectiveRegion(
                    unit=argument.split()[0],
                    mode=_OPEN_KEYWORDS[keyword],
                    path=path,
                    start_line=lineno + 1,
                )
                active_line = lineno
                continue
            if keyword == END_KEYWORD:
                if active is None:
                    logger.warning(f"{path}:{lineno}: 'end' directive without an open region")
                    continue
                regions.append(active)
                active = None
                continue
            logger.warning(f"{path}:{lineno}: unknown directive '{keyword}'")
            continue

        if active is None:
            continue
        if active.mode is RegionMode.TRANSLATE:
            line = strip_prefixes(line, prefixes)
        active.lines.append(line)

    if active is not None:
        raise DirectiveError(
            f"Region '{active.unit}' is not closed before end of file",
            file_path=path,
            lineno=active_line,
        )

    for region in regions:
        unit = units.setdefault(region.unit, TranslationUnit(name=region.unit))
        unit.regions.append(region)
        logger.debug(
            f"{path}: {region.mode.value} region for unit '{region.unit}' "
            f"({len(region.lines)} lines from line {region.start_line})"
        )
    return regions


def strip_verbatim(lines: list[str]) -> list[str]:
    """Turn the content of a verbatim region into shader text.

    Fence lines opening or closing a block comment or string are dropped and
    the line comment prefix is removed; other lines pass through unchanged.

    Args:
        lines: Region content lines

    Returns:
        Shader text lines
    """
    result = []
    for line in lines:
        stripped = line.lstrip()
        if stripped.startswith(_VERBATIM_FENCES):
            continue
        if stripped.startswith(_VERBATIM_COMMENT):
            result.append(stripped[len(_VERBATIM_COMMENT):])
        elif stripped == "#":
            result.append("")
        else:
            result.append(line)
    return result


def has_entry_point(lines: list[str]) -> bool:
    """Whether shader text defines a `void main(` entry point."""
    return any(line.lstrip().startswith(_ENTRY_POINT) for line in lines)
