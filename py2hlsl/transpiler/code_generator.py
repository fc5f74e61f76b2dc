"""
HLSL code generation for translated regions.

This module prints the top-level declarations of one region in source order:
global constants, enums, structs with their methods, and free functions.
Methods of targets that support them are emitted after their struct between
relocation markers, for the post-processor to move inside the struct.
"""

import ast
import dataclasses

from loguru import logger

from py2hlsl.transpiler.ast_parser import get_docstring, is_docstring
from py2hlsl.transpiler.code_gen_expr import RECEIVER, generate_expr
from py2hlsl.transpiler.code_gen_stmt import comment_lines, generate_body, passthrough
from py2hlsl.transpiler.collector import collect_function, collect_struct, is_enum_class
from py2hlsl.transpiler.constants import (
    END_CLASS_MARKER,
    END_METHOD_MARKER,
    INDENT,
    MARKER_PREFIX,
    MARKER_SUFFIX,
    METHOD_MARKER,
)
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.models import FunctionInfo, StructDefinition


def marker(text: str) -> str:
    """Format a relocation marker comment."""
    return f"{MARKER_PREFIX}{text}{MARKER_SUFFIX}"


def _create_symbols_dict(info: FunctionInfo, ctx: CodegenContext) -> dict[str, str | None]:
    """Create the symbols dictionary of a function: globals, receiver, parameters."""
    symbols: dict[str, str | None] = {
        name: type_name for name, (type_name, _value) in ctx.collected.globals.items()
    }
    if info.owner is not None:
        symbols[RECEIVER] = info.owner
    for arg, p_type in zip(info.params, info.param_types, strict=False):
        symbols[arg.arg] = p_type
    return symbols


def _function_body(node: ast.FunctionDef) -> list[ast.stmt]:
    if node.body and is_docstring(node.body[0]):
        return node.body[1:]
    return node.body


def function_signature(info: FunctionInfo, ctx: CodegenContext) -> str:
    """Print the return type, name and parameters of a function.

    Flattened methods take the receiver as their first parameter.

    Raises:
        TranspilerError: If a parameter lacks a type annotation
    """
    node = info.node
    target = ctx.target
    collected = ctx.collected

    params = []
    name = node.name
    if info.owner is not None and ctx.flatten_methods:
        name = target.method_name(info.owner, node.name)
        params.append(target.parameter(info.owner, RECEIVER, inout=True))

    inout = info.inout or [False] * len(info.params)
    for arg, p_type, is_ref in zip(info.params, info.param_types, inout, strict=False):
        if p_type is None:
            raise TranspilerError(
                f"Parameter '{arg.arg}' of '{node.name}' lacks a type annotation", node
            )
        params.append(target.parameter(target.type_name(p_type, collected), arg.arg, is_ref))

    return_type = target.type_name(info.return_type, collected)
    return f"{return_type} {name}({', '.join(params)})"


def generate_function(info: FunctionInfo, ctx: CodegenContext) -> list[str]:
    """Generate a function or method definition.

    Args:
        info: Information about the function
        ctx: Code generation context

    Returns:
        List of function definition lines, docstring comments first

    Raises:
        TranspilerError: If a parameter lacks a type annotation
    """
    node = info.node
    signature = function_signature(info, ctx)

    func_ctx = dataclasses.replace(ctx, owner=info.owner)
    symbols = _create_symbols_dict(info, func_ctx)
    body_lines = generate_body(_function_body(node), symbols, func_ctx)

    lines = []
    docstring = get_docstring(node)
    if docstring:
        lines.extend(comment_lines(docstring))
    lines.append(f"{signature} {{")
    lines.extend(f"{INDENT}{line}" for line in body_lines)
    lines.append("}")
    return lines


def generate_struct(struct_def: StructDefinition, ctx: CodegenContext) -> list[str]:
    """Generate a struct definition followed by its methods.

    Args:
        struct_def: Struct to print
        ctx: Code generation context

    Returns:
        Lines of the struct and its methods
    """
    target = ctx.target
    lines = []
    if struct_def.docstring:
        lines.extend(comment_lines(struct_def.docstring))
    lines.append(f"struct {struct_def.name} {{")
    for struct_field in struct_def.fields:
        type_str = target.type_name(struct_field.type_name, ctx.collected)
        lines.append(f"{INDENT}{target.declare(type_str, struct_field.name)};")
    lines.append("};")

    methods = []
    for name, info in struct_def.methods.items():
        if name in ctx.collected.excluded:
            logger.debug(f"Excluding method {struct_def.name}.{name}")
        else:
            methods.append(info)
    if not methods:
        return lines

    if ctx.flatten_methods:
        # Prototypes let methods call each other regardless of order
        lines.append("")
        lines.extend(f"{function_signature(info, ctx)};" for info in methods)
        for info in methods:
            lines.append("")
            lines.extend(generate_function(info, ctx))
        return lines

    lines.append(marker(f"{END_CLASS_MARKER}{struct_def.name}"))
    for info in methods:
        method_lines = generate_function(info, ctx)
        # Docstring comments stay above the start marker
        doc_len = next(
            (i for i, line in enumerate(method_lines) if not line.startswith("//")),
            0,
        )
        lines.append("")
        lines.extend(method_lines[:doc_len])
        lines.append(marker(f"{METHOD_MARKER}{struct_def.name}"))
        lines.extend(method_lines[doc_len:])
        lines.append(marker(END_METHOD_MARKER))
    return lines


def generate_enum(name: str, ctx: CodegenContext) -> list[str]:
    """Generate the type alias and constants of an enum.

    Args:
        name: Enum class name
        ctx: Code generation context

    Returns:
        Alias line (where the target has aliases) and one constant per member
    """
    target = ctx.target
    enum_def = ctx.collected.enums[name]
    base_keyword = target.type_name(enum_def.base_type, ctx.collected)
    lines = list(target.type_alias(name, base_keyword))
    type_str = target.type_name(name, ctx.collected)
    for member, value in enum_def.members:
        lines.append(target.constant(type_str, member, generate_expr(value, {}, 0, ctx)))
    return lines


def generate_global(name: str, ctx: CodegenContext) -> list[str]:
    """Generate a module-level constant declaration."""
    type_name, value = ctx.collected.globals[name]
    type_str = ctx.target.type_name(type_name, ctx.collected)
    return [ctx.target.constant(type_str, name, generate_expr(value, {}, 0, ctx))]


def _global_name(stmt: ast.stmt) -> str | None:
    if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
        return stmt.target.id
    if (
        isinstance(stmt, ast.Assign)
        and len(stmt.targets) == 1
        and isinstance(stmt.targets[0], ast.Name)
    ):
        return stmt.targets[0].id
    return None


def generate_declaration(stmt: ast.stmt, ctx: CodegenContext) -> list[str]:
    """Generate the code of one top-level statement.

    Args:
        stmt: Top-level statement of a region
        ctx: Code generation context

    Returns:
        Generated lines, empty for statements with no output
    """
    collected = ctx.collected
    if isinstance(stmt, ast.Import | ast.ImportFrom):
        return []
    if isinstance(stmt, ast.FunctionDef):
        if stmt.name in collected.excluded:
            logger.debug(f"Excluding function {stmt.name}")
            return []
        return generate_function(collect_function(stmt), ctx)
    if isinstance(stmt, ast.ClassDef):
        if is_enum_class(stmt):
            return generate_enum(stmt.name, ctx)
        return generate_struct(collect_struct(stmt), ctx)
    if is_docstring(stmt):
        return comment_lines(stmt.value.value)  # type: ignore[attr-defined]
    name = _global_name(stmt)
    if name is not None and name in collected.globals:
        return generate_global(name, ctx)
    return passthrough(stmt, "")


def generate_code(tree: ast.Module, ctx: CodegenContext) -> str:
    """Generate shader code for one translated region.

    Args:
        tree: Parsed region
        ctx: Code generation context holding information collected from every
            region of the unit

    Returns:
        Generated code, declarations separated by blank lines

    Raises:
        TranspilerError: If a declaration cannot be translated
    """
    chunks = []
    for stmt in tree.body:
        try:
            lines = generate_declaration(stmt, ctx)
        except TranspilerError as e:
            if e.lineno is None:
                raise e.with_node(stmt) from e
            raise
        if lines:
            chunks.append("\n".join(lines))
    return "\n\n".join(chunks)
