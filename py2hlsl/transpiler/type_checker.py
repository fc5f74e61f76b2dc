"""
Type checking utilities for the HLSL shader transpiler.

This module infers the source type of expressions so that a first assignment
can be printed as a typed declaration. Types are source spellings with
qualifiers removed (`float32`, `Float3`, a struct or enum name); the target
maps them to keywords when printing.
"""

import ast

from py2hlsl.transpiler.ast_parser import dotted_name
from py2hlsl.transpiler.constants import (
    MATH_CONSTANTS,
    MATH_MODULES,
    NUMERIC_RANK,
    PRESERVING_BUILTINS,
    SCALAR_TYPE_KINDS,
    SLBOOL_CONSTANTS,
    SLBOOL_FROM_BOOL,
    SLBOOL_MODULE,
    SLBOOL_PREDICATES,
    UNQUALIFIED_BUILTINS,
    VECTOR_TYPES,
)
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.errors import TranspilerError

UNSIGNED_KINDS = frozenset({"uint8", "uint16", "uint32", "uint64"})
INTEGER_KINDS = frozenset({"int8", "int16", "int32", "int64", "pyint"}) | UNSIGNED_KINDS


# Implementation of the Visitor pattern for type checking
class ExpressionTypeChecker(ast.NodeVisitor):
    """Visitor class for determining the type of AST expressions."""

    def __init__(self, symbols: dict[str, str | None], ctx: CodegenContext):
        """Initialize the type checker.

        Args:
            symbols: Dictionary of variable names to their types
            ctx: Code generation context
        """
        self.symbols = symbols
        self.ctx = ctx
        self._result = ""

    @property
    def result(self) -> str:
        return self._result

    def generic_visit(self, node: ast.AST) -> None:
        raise TranspilerError(f"Cannot determine type for: {type(node).__name__}", node)

    def visit_Name(self, node: ast.Name) -> None:
        self._result = _get_name_type(node, self.symbols, self.ctx)

    def visit_Constant(self, node: ast.Constant) -> None:
        self._result = _get_constant_type(node)

    def visit_BinOp(self, node: ast.BinOp) -> None:
        self._result = _get_binop_type(node, self.symbols, self.ctx)

    def visit_Compare(self, _node: ast.Compare) -> None:
        self._result = "bool"

    def visit_BoolOp(self, _node: ast.BoolOp) -> None:
        self._result = "bool"

    def visit_Call(self, node: ast.Call) -> None:
        self._result = _get_call_type(node, self.symbols, self.ctx)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        self._result = _get_attribute_type(node, self.symbols, self.ctx)

    def visit_IfExp(self, node: ast.IfExp) -> None:
        self._result = get_expr_type(node.body, self.symbols, self.ctx)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:
        if isinstance(node.op, ast.Not):
            self._result = "bool"
        else:
            self._result = get_expr_type(node.operand, self.symbols, self.ctx)


def numeric_kind(type_name: str, ctx: CodegenContext) -> str | None:
    """Canonical scalar kind of a type, enums resolving to their base type."""
    if type_name in ctx.collected.enums:
        return ctx.collected.enums[type_name].base_type
    return SCALAR_TYPE_KINDS.get(type_name)


def _get_name_type(
    node: ast.Name, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Determine the type of a name expression.

    Raises:
        TranspilerError: If the variable is undefined or has no type
    """
    if node.id in symbols:
        symbol_type = symbols[node.id]
        if symbol_type is None:
            raise TranspilerError(f"Variable has no type: {node.id}", node)
        return symbol_type
    collected = ctx.collected
    if node.id in collected.globals:
        return collected.globals[node.id][0]
    enum_name = collected.enum_of_member(node.id)
    if enum_name is not None:
        return enum_name
    if node.id in SLBOOL_CONSTANTS:
        return "Bool"
    raise TranspilerError(f"Undefined variable: {node.id}", node)


def _get_constant_type(node: ast.Constant) -> str:
    if isinstance(node.value, bool):
        return "bool"
    elif isinstance(node.value, int):
        return "int32"
    elif isinstance(node.value, float):
        return "float32"
    raise TranspilerError(f"Unsupported constant type: {type(node.value).__name__}", node)


def _get_binop_type(
    node: ast.BinOp, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Determine the type of a binary operation expression.

    Vectors win over scalars, true division of integers gives a float, and
    otherwise the operand of the wider numeric kind decides.
    """
    left_type = get_expr_type(node.left, symbols, ctx)
    right_type = get_expr_type(node.right, symbols, ctx)

    if left_type in VECTOR_TYPES:
        return left_type
    if right_type in VECTOR_TYPES:
        return right_type

    left_kind = numeric_kind(left_type, ctx)
    right_kind = numeric_kind(right_type, ctx)
    if left_kind is None or right_kind is None:
        return left_type

    if isinstance(node.op, ast.Div | ast.Pow):
        if left_kind in INTEGER_KINDS and right_kind in INTEGER_KINDS:
            return "float32"

    if NUMERIC_RANK.get(right_kind, 0) > NUMERIC_RANK.get(left_kind, 0):
        return right_type
    return left_type


def _vector_of(element_kind: str, count: int) -> str:
    for name, (kind, size) in VECTOR_TYPES.items():
        if kind == element_kind and size == count:
            return name
    raise TranspilerError(f"No vector type of {count} {element_kind} components")


def _get_vector_swizzle_type(swizzle: str, vector_type: str) -> str:
    """Get the type of a vector swizzle.

    Raises:
        TranspilerError: If the swizzle is invalid
    """
    element_kind, count = VECTOR_TYPES[vector_type]
    valid_components = "xyzw"[:count] + "rgba"[:count]
    if not 1 <= len(swizzle) <= 4 or not all(c in valid_components for c in swizzle):
        raise TranspilerError(f"Invalid swizzle '{swizzle}' for {vector_type}")
    if len(swizzle) == 1:
        return element_kind
    return _vector_of(element_kind, len(swizzle))


def _get_attribute_type(
    node: ast.Attribute, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Determine the type of an attribute access expression.

    Raises:
        TranspilerError: If the attribute is invalid or cannot be determined
    """
    collected = ctx.collected
    if isinstance(node.value, ast.Name) and node.value.id not in symbols:
        qualifier = node.value.id
        if qualifier in MATH_MODULES and node.attr in MATH_CONSTANTS:
            return "float32"
        if qualifier == SLBOOL_MODULE and node.attr in SLBOOL_CONSTANTS:
            return "Bool"
        if qualifier in collected.enums:
            return qualifier
        if qualifier in ctx.prefixes and node.attr in collected.globals:
            return collected.globals[node.attr][0]

    value_type = get_expr_type(node.value, symbols, ctx)

    if value_type in collected.structs:
        field_type = collected.structs[value_type].field_type(node.attr)
        if field_type is None:
            raise TranspilerError(
                f"Unknown field '{node.attr}' in struct '{value_type}'", node
            )
        return field_type

    if value_type in VECTOR_TYPES:
        return _get_vector_swizzle_type(node.attr, value_type)

    raise TranspilerError(f"Cannot determine type for attribute on: {value_type}", node)


def _get_call_type(
    node: ast.Call, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Determine the type of a function call expression.

    Raises:
        TranspilerError: If the function is unknown or returns nothing
    """
    collected = ctx.collected
    func = node.func

    if isinstance(func, ast.Attribute) and not (
        isinstance(func.value, ast.Name) and func.value.id not in symbols
    ):
        # Method call on a value
        owner = get_expr_type(func.value, symbols, ctx)
        struct_def = collected.structs.get(owner)
        if struct_def is not None and func.attr in struct_def.methods:
            return _returned(struct_def.methods[func.attr].return_type, func.attr, node)
        raise TranspilerError(f"Unknown method '{func.attr}' on type {owner}", node)

    name = dotted_name(func)
    if name is None:
        raise TranspilerError(f"Unsupported function call type: {type(func).__name__}", node)
    qualifier, _, short = name.rpartition(".")

    if short in SLBOOL_PREDICATES and qualifier in ("", SLBOOL_MODULE):
        return "bool"
    if short == SLBOOL_FROM_BOOL and qualifier in ("", SLBOOL_MODULE):
        return "Bool"
    if short in SCALAR_TYPE_KINDS:
        return short
    if short in VECTOR_TYPES or short in collected.structs:
        return short
    if short in collected.functions and (not qualifier or qualifier in ctx.prefixes):
        return _returned(collected.functions[short].return_type, short, node)
    if (qualifier in MATH_MODULES or (not qualifier and short in UNQUALIFIED_BUILTINS)) and (
        ctx.target.builtin_function(short) is not None
    ):
        if short in ("isnan", "isinf"):
            return "bool"
        if node.args and ctx.target.builtin_function(short) in PRESERVING_BUILTINS:
            return get_expr_type(node.args[0], symbols, ctx)
        return "float32"
    if short == "len":
        return "int32"

    raise TranspilerError(f"Unknown function: {name}", node)


def _returned(return_type: str | None, name: str, node: ast.AST) -> str:
    if return_type is None or return_type == "None":
        raise TranspilerError(f"Function '{name}' does not return a value", node)
    return return_type


def get_expr_type(
    node: ast.AST, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Determine the source type of an expression.

    Args:
        node: AST node representing an expression
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        The type of the expression

    Raises:
        TranspilerError: If the type cannot be determined
    """
    checker = ExpressionTypeChecker(symbols, ctx)
    checker.visit(node)
    return checker.result
