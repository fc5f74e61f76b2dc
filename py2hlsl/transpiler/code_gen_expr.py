"""
HLSL code generation for expressions.

This module contains functions for generating shader code from Python AST
expressions, including names, constants, binary operations, function and
method calls, and more. Expressions outside the supported subset are printed
with `ast.unparse` and left for the shader compiler to reject.
"""

import ast
import math

from loguru import logger

from py2hlsl.transpiler.ast_parser import dotted_name
from py2hlsl.transpiler.constants import (
    MATH_CONSTANTS,
    MATH_MODULES,
    OPERATOR_PRECEDENCE,
    SLBOOL_CONSTANTS,
    SLBOOL_FROM_BOOL,
    SLBOOL_MODULE,
    SLBOOL_PREDICATES,
    UNQUALIFIED_BUILTINS,
    VECTOR_TYPES,
)
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.models import FunctionInfo
from py2hlsl.transpiler.operators import (
    BINARY_OPERATORS,
    BOOL_OPERATORS,
    COMPARISON_OPERATORS,
    UNARY_OPERATORS,
)
from py2hlsl.transpiler.type_checker import (
    INTEGER_KINDS,
    UNSIGNED_KINDS,
    get_expr_type,
    numeric_kind,
)

RECEIVER = "self"


def _wrap(expr: str, precedence: int, parent_precedence: int) -> str:
    return f"({expr})" if precedence < parent_precedence else expr


def _is_free_name(node: ast.AST, symbols: dict[str, str | None]) -> bool:
    """Whether a node is a bare name that is not a local variable."""
    return isinstance(node, ast.Name) and node.id not in symbols


def _in_method(ctx: CodegenContext) -> bool:
    return ctx.owner is not None and not ctx.flatten_methods


def generate_name_expr(
    node: ast.Name, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Generate code for a name expression (variable).

    Args:
        node: AST name node
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        Generated code for the name expression
    """
    if node.id == RECEIVER and _in_method(ctx):
        return "this"
    if node.id not in symbols and node.id not in ctx.collected.globals:
        if node.id in SLBOOL_CONSTANTS:
            return SLBOOL_CONSTANTS[node.id]
    return node.id


def _escape_string(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def generate_constant_expr(node: ast.Constant) -> str:
    """Generate code for a constant expression (literal).

    Args:
        node: AST constant node

    Returns:
        Generated code for the constant expression

    Raises:
        TranspilerError: If the constant type is not supported
    """
    if isinstance(node.value, bool):
        return "true" if node.value else "false"
    elif isinstance(node.value, int):
        return str(node.value)
    elif isinstance(node.value, float):
        if not math.isfinite(node.value):
            raise TranspilerError(f"Non-finite constant: {node.value}", node)
        return repr(node.value)
    elif isinstance(node.value, str):
        return _escape_string(node.value)
    raise TranspilerError(f"Unsupported constant type: {type(node.value).__name__}", node)


def _integer_kind(
    node: ast.expr, symbols: dict[str, str | None], ctx: CodegenContext
) -> str | None:
    """Integer kind of an operand, None for other or unknown types."""
    try:
        kind = numeric_kind(get_expr_type(node, symbols, ctx), ctx)
    except TranspilerError:
        return None
    return kind if kind in INTEGER_KINDS else None


def _is_non_negative(node: ast.expr, kind: str) -> bool:
    if kind in UNSIGNED_KINDS:
        return True
    return isinstance(node, ast.Constant) and not isinstance(node.value, bool) and node.value >= 0


def _cast(
    type_name: str, node: ast.expr, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    keyword = ctx.target.type_name(type_name, ctx.collected)
    return f"{keyword}({generate_expr(node, symbols, 0, ctx)})"


def generate_division_expr(
    node: ast.BinOp,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for `/` and `//` with Python's semantics.

    True division of two integers divides as floats. Floor division of
    integers divides directly when both operands are non-negative and
    otherwise floors the float quotient, rounding toward negative infinity.

    Args:
        node: AST binary operation node with a Div or FloorDiv operator
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the division
    """
    precedence = OPERATOR_PRECEDENCE["/"]
    floor_div = isinstance(node.op, ast.FloorDiv)
    left_kind = _integer_kind(node.left, symbols, ctx)
    right_kind = _integer_kind(node.right, symbols, ctx)
    integers = left_kind is not None and right_kind is not None

    if integers:
        non_negative = _is_non_negative(node.left, left_kind) and _is_non_negative(
            node.right, right_kind
        )
        if not floor_div or not non_negative:
            left = _cast("float32", node.left, symbols, ctx)
            right = _cast("float32", node.right, symbols, ctx)
            if not floor_div:
                return _wrap(f"{left} / {right}", precedence, parent_precedence)
            int_keyword = ctx.target.type_name("int32", ctx.collected)
            return f"{int_keyword}(floor({left} / {right}))"

    left = generate_expr(node.left, symbols, precedence, ctx)
    right = generate_expr(node.right, symbols, precedence + 1, ctx)
    if floor_div and not integers:
        return f"floor({left} / {right})"
    return _wrap(f"{left} / {right}", precedence, parent_precedence)


def generate_binary_op_expr(
    node: ast.BinOp,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for a binary operation expression.

    `**` becomes `pow`; divisions follow Python semantics.

    Args:
        node: AST binary operation node
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the binary operation expression
    """
    if isinstance(node.op, ast.Pow):
        left = generate_expr(node.left, symbols, 0, ctx)
        right = generate_expr(node.right, symbols, 0, ctx)
        return f"pow({left}, {right})"
    if isinstance(node.op, ast.Div | ast.FloorDiv):
        return generate_division_expr(node, symbols, parent_precedence, ctx)

    op = BINARY_OPERATORS.get(type(node.op))
    if not op:
        return ast.unparse(node)

    precedence = OPERATOR_PRECEDENCE[op]
    left = generate_expr(node.left, symbols, precedence, ctx)
    # Operators are left associative: an equal-precedence right operand needs parens
    right = generate_expr(node.right, symbols, precedence + 1, ctx)

    expr = f"{left} {op} {right}"
    return _wrap(expr, precedence, parent_precedence)


def generate_compare_expr(
    node: ast.Compare,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for a comparison expression.

    Chained comparisons `a < b < c` become `a < b && b < c`.

    Args:
        node: AST comparison node
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the comparison expression
    """
    ops = [COMPARISON_OPERATORS.get(type(op)) for op in node.ops]
    if not all(ops):
        return ast.unparse(node)

    operands = [node.left, *node.comparators]
    parts = []
    for i, op in enumerate(ops):
        precedence = OPERATOR_PRECEDENCE[op]
        left = generate_expr(operands[i], symbols, precedence, ctx)
        right = generate_expr(operands[i + 1], symbols, precedence + 1, ctx)
        parts.append(f"{left} {op} {right}")

    if len(parts) == 1:
        return _wrap(parts[0], OPERATOR_PRECEDENCE[ops[0]], parent_precedence)
    return _wrap(" && ".join(parts), OPERATOR_PRECEDENCE["&&"], parent_precedence)


def generate_bool_op_expr(
    node: ast.BoolOp,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for a boolean operation expression.

    Args:
        node: AST boolean operation node
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the boolean operation expression
    """
    op = BOOL_OPERATORS[type(node.op)]
    precedence = OPERATOR_PRECEDENCE[op]
    values = [generate_expr(val, symbols, precedence + 1, ctx) for val in node.values]

    expr = f" {op} ".join(values)
    return _wrap(expr, precedence, parent_precedence)


def generate_unary_op_expr(
    node: ast.UnaryOp,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for a unary operation expression.

    Args:
        node: AST unary operation node
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the unary operation expression
    """
    op = UNARY_OPERATORS[type(node.op)]
    precedence = OPERATOR_PRECEDENCE["unary"]
    operand = generate_expr(node.operand, symbols, precedence, ctx)
    if operand[:1] in ("-", "+") and op in ("-", "+"):
        # Avoid printing a decrement or increment operator
        operand = f"({operand})"

    expr = f"{op}{operand}"
    return _wrap(expr, precedence, parent_precedence)


def generate_if_expr(
    node: ast.IfExp,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate code for a ternary/conditional expression.

    Args:
        node: AST conditional expression node
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the conditional expression
    """
    precedence = OPERATOR_PRECEDENCE["?"]
    condition = generate_expr(node.test, symbols, precedence + 1, ctx)
    true_expr = generate_expr(node.body, symbols, precedence + 1, ctx)
    false_expr = generate_expr(node.orelse, symbols, precedence, ctx)
    expr = f"{condition} ? {true_expr} : {false_expr}"

    return _wrap(expr, precedence, parent_precedence)


def generate_attribute_expr(
    node: ast.Attribute,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> str:
    """Generate code for an attribute access expression.

    Handles the method receiver, enum members, boolean constants, math
    constants and package qualifiers before plain member access.

    Args:
        node: AST attribute node
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        Generated code for the attribute access expression
    """
    if isinstance(node.value, ast.Name):
        qualifier = node.value.id
        if qualifier == RECEIVER and _in_method(ctx):
            return node.attr
        if qualifier not in symbols:
            if qualifier in ctx.collected.enums:
                return node.attr
            if qualifier == SLBOOL_MODULE and node.attr in SLBOOL_CONSTANTS:
                return SLBOOL_CONSTANTS[node.attr]
            if qualifier in MATH_MODULES and node.attr in MATH_CONSTANTS:
                return MATH_CONSTANTS[node.attr]
            if ctx.prefixes.get(qualifier):
                return node.attr

    value = generate_expr(node.value, symbols, OPERATOR_PRECEDENCE["member"], ctx)
    return f"{value}.{node.attr}"


def generate_subscript_expr(
    node: ast.Subscript,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> str:
    """Generate code for an indexing expression; slices pass through."""
    if isinstance(node.slice, ast.Slice | ast.Tuple):
        return ast.unparse(node)
    value = generate_expr(node.value, symbols, OPERATOR_PRECEDENCE["member"], ctx)
    index = generate_expr(node.slice, symbols, 0, ctx)
    return f"{value}[{index}]"


def generate_tuple_expr(
    node: ast.Tuple,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> str:
    """Generate a parenthesized argument list, as used by print formatting."""
    items = [generate_expr(elt, symbols, 0, ctx) for elt in node.elts]
    return f"({', '.join(items)})"


def generate_struct_constructor(
    struct_name: str,
    node: ast.Call,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> str:
    """Generate code for a struct constructor.

    Keyword arguments are placed in field order; omitted fields take their
    declared default.

    Args:
        struct_name: Name of the struct being constructed
        node: AST call node representing the constructor
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        Generated code for the struct constructor

    Raises:
        TranspilerError: If the struct initialization is invalid
    """
    struct_def = ctx.collected.structs[struct_name]
    if not node.keywords:
        args = [generate_expr(arg, symbols, 0, ctx) for arg in node.args]
        return f"{struct_name}({', '.join(args)})"

    field_map = {f.name: i for i, f in enumerate(struct_def.fields)}
    values: list[str] = [""] * len(struct_def.fields)
    for i, arg in enumerate(node.args):
        values[i] = generate_expr(arg, symbols, 0, ctx)
    for kw in node.keywords:
        if kw.arg not in field_map:
            raise TranspilerError(f"Unknown field '{kw.arg}' in struct '{struct_name}'", node)
        values[field_map[kw.arg]] = generate_expr(kw.value, symbols, 0, ctx)

    missing_fields = []
    for i, struct_field in enumerate(struct_def.fields):
        if values[i]:
            continue
        if struct_field.default_value is None:
            missing_fields.append(struct_field.name)
        else:
            default = ast.parse(struct_field.default_value, mode="eval").body
            values[i] = generate_expr(default, symbols, 0, ctx)
    if missing_fields:
        raise TranspilerError(
            f"Missing required fields in struct {struct_name}: {', '.join(missing_fields)}",
            node,
        )
    return f"{struct_name}({', '.join(values)})"


def _generate_args(
    node: ast.Call,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
    func_info: FunctionInfo | None = None,
) -> list[str]:
    """Generate call arguments, placing keywords by parameter position."""
    args = [generate_expr(arg, symbols, 0, ctx) for arg in node.args]
    if not node.keywords:
        return args
    if func_info is None:
        return args + [generate_expr(kw.value, symbols, 0, ctx) for kw in node.keywords]

    names = [param.arg for param in func_info.params]
    slots: list[str | None] = [*args, *([None] * (len(names) - len(args)))]
    for kw in node.keywords:
        if kw.arg not in names:
            raise TranspilerError(f"Unknown argument '{kw.arg}' for '{func_info.name}'", node)
        slots[names.index(kw.arg)] = generate_expr(kw.value, symbols, 0, ctx)
    # Trailing parameters left out rely on their defaults
    while slots and slots[-1] is None:
        slots.pop()
    if any(slot is None for slot in slots):
        raise TranspilerError(f"Cannot order arguments for '{func_info.name}'", node)
    return [slot for slot in slots if slot is not None]


def _owner_type(
    node: ast.expr, symbols: dict[str, str | None], ctx: CodegenContext
) -> str | None:
    """Struct type of a method call receiver, None if it is not a known struct."""
    try:
        owner = get_expr_type(node, symbols, ctx)
    except TranspilerError as e:
        logger.debug(f"Receiver type unknown, printing call as written: {e}")
        return None
    return owner if owner in ctx.collected.structs else None


def generate_method_call_expr(
    node: ast.Call,
    func: ast.Attribute,
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> str:
    """Generate code for a call of a method on a value.

    On targets with methods, `self.m(a)` inside a method prints `m(a)` and
    other receivers print as written. Otherwise the method is flattened and
    the call becomes `Owner_m(receiver, a)`.
    """
    if isinstance(func.value, ast.Name) and func.value.id == RECEIVER and _in_method(ctx):
        method = ctx.collected.structs[ctx.owner].methods.get(func.attr) if ctx.owner else None
        args = _generate_args(node, symbols, ctx, method)
        return f"{func.attr}({', '.join(args)})"

    owner = _owner_type(func.value, symbols, ctx)
    method = ctx.collected.structs[owner].methods.get(func.attr) if owner else None
    args = _generate_args(node, symbols, ctx, method)

    if owner is not None and method is not None and ctx.flatten_methods:
        receiver = generate_expr(func.value, symbols, 0, ctx)
        name = ctx.target.method_name(owner, func.attr)
        return f"{name}({', '.join([receiver, *args])})"

    value = generate_expr(func.value, symbols, OPERATOR_PRECEDENCE["member"], ctx)
    return f"{value}.{func.attr}({', '.join(args)})"


def generate_call_expr(
    node: ast.Call, symbols: dict[str, str | None], ctx: CodegenContext
) -> str:
    """Generate code for a function call expression.

    Args:
        node: AST call node
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        Generated code for the function call expression
    """
    func = node.func
    collected = ctx.collected

    if isinstance(func, ast.Attribute) and not _is_free_name(func.value, symbols):
        return generate_method_call_expr(node, func, symbols, ctx)

    name = dotted_name(func)
    if name is None:
        return ast.unparse(node)
    qualifier, _, short = name.rpartition(".")

    # Boolean substitute helpers inline to plain comparisons
    if qualifier == SLBOOL_MODULE or (not qualifier and short not in collected.functions):
        if short in SLBOOL_PREDICATES and len(node.args) == 1:
            value = generate_expr(node.args[0], symbols, OPERATOR_PRECEDENCE["=="], ctx)
            return f"({value} == {SLBOOL_PREDICATES[short]})"
        if short == SLBOOL_FROM_BOOL and len(node.args) == 1:
            return f"({generate_expr(node.args[0], symbols, 0, ctx)})"

    if qualifier in MATH_MODULES or (not qualifier and short in UNQUALIFIED_BUILTINS):
        builtin = ctx.target.builtin_function(short)
        if builtin is not None:
            args = _generate_args(node, symbols, ctx)
            return f"{builtin}({', '.join(args)})"

    if qualifier and not ctx.prefixes.get(qualifier):
        # Module functions such as np.float32 or str.lower print as written
        args = _generate_args(node, symbols, ctx)
        return f"{name}({', '.join(args)})"

    if short in VECTOR_TYPES:
        args = _generate_args(node, symbols, ctx)
        return f"{ctx.target.type_name(short, collected)}({', '.join(args)})"
    if short in collected.structs:
        return generate_struct_constructor(short, node, symbols, ctx)
    if short == "len" and len(node.args) == 1:
        return f"{generate_expr(node.args[0], symbols, OPERATOR_PRECEDENCE['member'], ctx)}_size"

    args = _generate_args(node, symbols, ctx, collected.functions.get(short))
    return f"{short}({', '.join(args)})"


# Implementation of the Visitor pattern for expression generation
class ExpressionCodeGenerator(ast.NodeVisitor):
    """Visitor class for generating shader code from AST expressions."""

    def __init__(
        self,
        symbols: dict[str, str | None],
        parent_precedence: int,
        ctx: CodegenContext,
    ):
        """Initialize the expression code generator.

        Args:
            symbols: Dictionary of variable names to their types
            parent_precedence: Precedence level of the parent operation
            ctx: Code generation context
        """
        self.symbols = symbols
        self.parent_precedence = parent_precedence
        self.ctx = ctx
        self._result = ""

    @property
    def result(self) -> str:
        """Get the generated code."""
        return self._result

    def generic_visit(self, node: ast.AST) -> None:
        """Print expressions outside the supported subset unchanged."""
        logger.debug(f"Passing through unsupported expression: {type(node).__name__}")
        self._result = ast.unparse(node)

    def visit_Name(self, node: ast.Name) -> None:  # noqa: N802
        self._result = generate_name_expr(node, self.symbols, self.ctx)

    def visit_Constant(self, node: ast.Constant) -> None:  # noqa: N802
        self._result = generate_constant_expr(node)

    def visit_BinOp(self, node: ast.BinOp) -> None:  # noqa: N802
        self._result = generate_binary_op_expr(
            node, self.symbols, self.parent_precedence, self.ctx
        )

    def visit_Compare(self, node: ast.Compare) -> None:  # noqa: N802
        self._result = generate_compare_expr(
            node, self.symbols, self.parent_precedence, self.ctx
        )

    def visit_BoolOp(self, node: ast.BoolOp) -> None:  # noqa: N802
        self._result = generate_bool_op_expr(
            node, self.symbols, self.parent_precedence, self.ctx
        )

    def visit_Call(self, node: ast.Call) -> None:  # noqa: N802
        self._result = generate_call_expr(node, self.symbols, self.ctx)

    def visit_Attribute(self, node: ast.Attribute) -> None:  # noqa: N802
        self._result = generate_attribute_expr(node, self.symbols, self.ctx)

    def visit_Subscript(self, node: ast.Subscript) -> None:  # noqa: N802
        self._result = generate_subscript_expr(node, self.symbols, self.ctx)

    def visit_Tuple(self, node: ast.Tuple) -> None:  # noqa: N802
        self._result = generate_tuple_expr(node, self.symbols, self.ctx)

    def visit_IfExp(self, node: ast.IfExp) -> None:  # noqa: N802
        self._result = generate_if_expr(
            node, self.symbols, self.parent_precedence, self.ctx
        )

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:  # noqa: N802
        self._result = generate_unary_op_expr(
            node, self.symbols, self.parent_precedence, self.ctx
        )


def generate_expr(
    node: ast.AST,
    symbols: dict[str, str | None],
    parent_precedence: int,
    ctx: CodegenContext,
) -> str:
    """Generate shader code for an expression.

    Args:
        node: AST node representing an expression
        symbols: Dictionary of variable names to their types
        parent_precedence: Precedence level of the parent operation
        ctx: Code generation context

    Returns:
        Generated code for the expression

    Raises:
        TranspilerError: If a supported expression is malformed
    """
    generator = ExpressionCodeGenerator(symbols, parent_precedence, ctx)
    generator.visit(node)
    return generator.result
