"""
Text-level post-processing of generated shader code.

The printer leaves a few Python idioms in place and marks methods for
relocation; the line edits here finish the job. Each edit is a pure function
over a list of lines and is idempotent: applying it to its own output changes
nothing.
"""

import re
from dataclasses import dataclass, field

from loguru import logger

from py2hlsl.transpiler.constants import (
    END_CLASS_MARKER,
    END_METHOD_MARKER,
    INDENT,
    MARKER_PREFIX,
    MARKER_SUFFIX,
    METHOD_MARKER,
)

_STRING = r'"(?:[^"\\]|\\.)*"'
_PRINT_TUPLE = re.compile(rf"(?<![\w.])print\(\s*({_STRING})\s*%\s*\((.*)\)\s*\)")
_PRINT_SINGLE = re.compile(rf"(?<![\w.])print\(\s*({_STRING})\s*%\s*(.+?)\s*\)(?=\s*;|\s*$)")
_PRINT_BARE = re.compile(r"(?<![\w.])print\(")
_APPEND = re.compile(r"^(\s*)([A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)\.append\((.*)\);\s*$")
_STRING_CALL = re.compile(r"(?<![\w.])str\.(\w+)\(\s*([\w.]+(?:\[[^\]]*\])?)\s*(,\s*)?")
_FLOAT_CAST = re.compile(r"(?<![\w.])(?:(?:np|numpy|sltype)\.)?float(?:32|64)\(")
_INT_CAST = re.compile(r"(?<![\w.])(?:(?:np|numpy|sltype)\.)?int(?:8|16|32|64)\(")
_UINT_CAST = re.compile(r"(?<![\w.])(?:(?:np|numpy|sltype)\.)?uint(?:8|16|32|64)\(")


def fix_print_calls(lines: list[str]) -> list[str]:
    """Turn Python print calls into printf calls.

    `print("fmt" % (a, b));` becomes `printf("fmt", a, b);`,
    `print("fmt" % a);` becomes `printf("fmt", a);` and any other
    `print(` becomes `printf(`.
    """
    result = []
    for line in lines:
        line = _PRINT_TUPLE.sub(r"printf(\1, \2)", line)
        line = _PRINT_SINGLE.sub(r"printf(\1, \2)", line)
        line = _PRINT_BARE.sub("printf(", line)
        result.append(line)
    return result


def fix_append_calls(lines: list[str]) -> list[str]:
    """Turn `xs.append(v);` into `xs[xs_size++] = v;`."""
    return [_APPEND.sub(r"\1\2[\2_size++] = \3;", line) for line in lines]


def fix_string_calls(lines: list[str]) -> list[str]:
    """Turn `str.method(s, args)` into `s.method(args)`."""
    result = []
    for line in lines:
        previous = None
        while previous != line:
            previous = line
            line = _STRING_CALL.sub(r"\2.\1(", line, count=1)
        result.append(line)
    return result


def fix_numeric_casts(lines: list[str]) -> list[str]:
    """Normalize sized cast calls to the target's scalar keywords."""
    result = []
    for line in lines:
        line = _FLOAT_CAST.sub("float(", line)
        line = _UINT_CAST.sub("uint(", line)
        line = _INT_CAST.sub("int(", line)
        result.append(line)
    return result


def _marker_tag(line: str) -> str | None:
    stripped = line.strip()
    if stripped.startswith(MARKER_PREFIX) and stripped.endswith(MARKER_SUFFIX):
        return stripped[len(MARKER_PREFIX) : -len(MARKER_SUFFIX)]
    return None


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith("//") and _marker_tag(line) is None


@dataclass
class _MethodSpan:
    owner: str
    start: int
    end: int


@dataclass
class _Spans:
    class_ends: dict[str, int] = field(default_factory=dict)
    methods: list[_MethodSpan] = field(default_factory=list)
    markers: set[int] = field(default_factory=set)


def _collect_spans(lines: list[str]) -> _Spans:
    """First pass: locate struct ends and method spans with their owners."""
    spans = _Spans()
    open_method: tuple[str, int] | None = None

    for i, line in enumerate(lines):
        tag = _marker_tag(line)
        if tag is None:
            continue
        spans.markers.add(i)
        if tag.startswith(END_CLASS_MARKER):
            owner = tag[len(END_CLASS_MARKER) :].strip()
            # The struct's closing line is the last non-blank line above the marker
            end = i - 1
            while end >= 0 and not lines[end].strip():
                end -= 1
            if end >= 0 and lines[end].strip() == "};":
                spans.class_ends[owner] = end
            else:
                logger.warning(f"No struct end found above marker for '{owner}'")
        elif tag.startswith(METHOD_MARKER):
            owner = tag[len(METHOD_MARKER) :].strip()
            start = i
            # Doc comments directly above the start marker move with the method
            while start > 0 and _is_comment(lines[start - 1]):
                start -= 1
            open_method = (owner, start)
        elif tag == END_METHOD_MARKER:
            if open_method is None:
                logger.warning(f"Method end marker at line {i + 1} without a start")
                continue
            owner, start = open_method
            spans.methods.append(_MethodSpan(owner, start, i))
            open_method = None
    return spans


def relocate_methods(lines: list[str]) -> list[str]:
    """Move marked methods inside their owner struct.

    Method lines, with the comment block directly above the start marker, are
    inserted before the owner's closing `};`, indented one level. Methods whose
    owner has no struct in the text stay in place. All markers are removed.

    Args:
        lines: Generated code lines

    Returns:
        Lines with methods nested in their structs
    """
    spans = _collect_spans(lines)
    if not spans.markers:
        return list(lines)

    moved: dict[str, list[list[str]]] = {}
    skipped: set[int] = set(spans.markers)
    for span in spans.methods:
        if span.owner not in spans.class_ends:
            logger.debug(f"No struct '{span.owner}' in this text, method left in place")
            continue
        body = [lines[i] for i in range(span.start, span.end + 1) if i not in spans.markers]
        moved.setdefault(span.owner, []).append(body)
        skipped.update(range(span.start, span.end + 1))

    ends = {end: owner for owner, end in spans.class_ends.items()}
    result: list[str] = []
    for i, line in enumerate(lines):
        if i in ends:
            for body in moved.get(ends[i], []):
                result.append("")
                result.extend(f"{INDENT}{text}" if text.strip() else "" for text in body)
        if i in skipped:
            continue
        result.append(line)

    # Collapse the blank lines left behind by moved spans
    collapsed: list[str] = []
    for line in result:
        if not line.strip() and collapsed and not collapsed[-1].strip():
            continue
        collapsed.append(line)
    while collapsed and not collapsed[-1].strip():
        collapsed.pop()
    return collapsed


def post_process(text: str, nest_methods: bool = True) -> str:
    """Apply all text edits to generated code.

    Args:
        text: Generated code
        nest_methods: Move marked methods into their structs; when False the
            markers are only removed

    Returns:
        Edited code
    """
    lines = text.split("\n")
    if nest_methods:
        lines = relocate_methods(lines)
    else:
        lines = [line for line in lines if _marker_tag(line) is None]
    lines = fix_print_calls(lines)
    lines = fix_append_calls(lines)
    lines = fix_string_calls(lines)
    lines = fix_numeric_casts(lines)
    return "\n".join(lines)
