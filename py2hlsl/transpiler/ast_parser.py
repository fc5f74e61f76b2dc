"""
AST parsing utilities for the HLSL shader transpiler.

This module provides functions for parsing directive regions into AST nodes
and extracting basic information like type annotations.
"""

import ast
import textwrap

from loguru import logger

from py2hlsl.transpiler.constants import REF_ANNOTATION
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.models import DirectiveRegion


def dotted_name(node: ast.AST) -> str | None:
    """Return `a.b.c` for a chain of attribute accesses on a name."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        base = dotted_name(node.value)
        return f"{base}.{node.attr}" if base else None
    return None


def _unwrap_ref(annotation: ast.AST) -> tuple[ast.AST, bool]:
    if isinstance(annotation, ast.Subscript):
        wrapper = dotted_name(annotation.value)
        if wrapper and wrapper.split(".")[-1] == REF_ANNOTATION:
            return annotation.slice, True
    return annotation, False


def is_ref_annotation(annotation: ast.AST | None) -> bool:
    """Whether an annotation is `Ref[T]`, marking a by-reference parameter."""
    if annotation is None:
        return False
    return _unwrap_ref(annotation)[1]


def get_annotation_type(annotation: ast.AST | None) -> str | None:
    """Extract the type name from an AST annotation node.

    Qualifiers are dropped (`np.float32` gives `float32`) and `Ref[T]` gives `T`.

    Args:
        annotation: AST node representing a type annotation

    Returns:
        String representation of the type or None if no valid annotation
    """
    if annotation is None:
        return None
    annotation, _ = _unwrap_ref(annotation)
    if isinstance(annotation, ast.Constant):
        if annotation.value is None:
            return "None"
        if isinstance(annotation.value, str):
            return annotation.value.split(".")[-1]
        return None
    if isinstance(annotation, ast.Subscript):
        # Containers such as list[float32] are only checked by kind
        return get_annotation_type(annotation.value)
    name = dotted_name(annotation)
    if name is None:
        return None
    return name.split(".")[-1]


def get_docstring(node: ast.AST) -> str | None:
    """Return the cleaned docstring of a module, class or function node."""
    if isinstance(node, ast.Module | ast.ClassDef | ast.FunctionDef):
        return ast.get_docstring(node)
    return None


def is_docstring(stmt: ast.stmt) -> bool:
    """Whether a statement is a bare string expression."""
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


def parse_region(region: DirectiveRegion) -> ast.Module:
    """Parse the lines of a translate region into an AST.

    Line numbers in the tree are relative to the region's first line.

    Args:
        region: Region to parse

    Returns:
        The parsed module

    Raises:
        TranspilerError: If the region is not valid Python on its own
    """
    source = textwrap.dedent("\n".join(region.lines))
    try:
        tree = ast.parse(source)
    except SyntaxError as e:
        raise TranspilerError(
            f"Region of unit '{region.unit}' does not parse: {e.msg}",
            file_path=region.path,
            lineno=(e.lineno or 1) + region.start_line - 1,
        ) from e
    logger.debug(
        f"Parsed region of unit '{region.unit}' from {region.path}:{region.start_line}"
    )
    return tree
