"""
HLSL code generation for statements.

This module contains functions for generating shader code from Python AST
statements, including assignments, loops, conditionals, and return statements.
Statements outside the supported subset are printed with `ast.unparse`.
"""

import ast
from collections.abc import Iterator

from loguru import logger

from py2hlsl.transpiler.ast_parser import get_annotation_type, is_docstring
from py2hlsl.transpiler.code_gen_expr import generate_expr
from py2hlsl.transpiler.constants import INDENT
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.operators import AUGASSIGN_OPERATORS
from py2hlsl.transpiler.type_checker import get_expr_type


def comment_lines(text: str, indent: str = "") -> list[str]:
    """Render a docstring as `//` line comments."""
    return [f"{indent}// {line}".rstrip() for line in text.splitlines()]


def passthrough(stmt: ast.stmt, indent: str) -> list[str]:
    """Print a statement outside the supported subset unchanged."""
    logger.debug(f"Passing through unsupported statement: {type(stmt).__name__}")
    return [f"{indent}{line}" for line in ast.unparse(stmt).splitlines()]


def declaration(type_name: str, name: str, ctx: CodegenContext) -> str:
    """Declare a variable of a source type in the target's order."""
    return ctx.target.declare(ctx.target.type_name(type_name, ctx.collected), name)


def generate_assignment(
    node: ast.Assign,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> list[str]:
    """Generate code for an assignment statement.

    The first assignment of a local name declares it with the inferred type.

    Args:
        node: AST assignment node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        Generated code lines for the assignment

    Raises:
        TranspilerError: If the type of a new local cannot be inferred
    """
    if len(node.targets) != 1 or isinstance(node.targets[0], ast.Tuple | ast.List):
        return passthrough(node, indent)
    target = node.targets[0]
    value_str = generate_expr(node.value, symbols, 0, ctx)

    if isinstance(target, ast.Name):
        if target.id in symbols:
            return [f"{indent}{target.id} = {value_str};"]
        try:
            inferred_type = get_expr_type(node.value, symbols, ctx)
        except TranspilerError as e:
            raise TranspilerError(
                f"Cannot infer type of '{target.id}' ({e.message}); add a type annotation",
                node,
            ) from e
        symbols[target.id] = inferred_type
        return [f"{indent}{declaration(inferred_type, target.id, ctx)} = {value_str};"]

    target_str = generate_expr(target, symbols, 0, ctx)
    return [f"{indent}{target_str} = {value_str};"]


def generate_annotated_assignment(
    stmt: ast.AnnAssign,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> list[str]:
    """Generate code for an annotated assignment.

    Args:
        stmt: AST annotated assignment node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        Generated code lines for the annotated assignment

    Raises:
        TranspilerError: If the annotation is not a type name
    """
    expr = generate_expr(stmt.value, symbols, 0, ctx) if stmt.value else None
    if not isinstance(stmt.target, ast.Name):
        if expr is None:
            return []
        return [f"{indent}{generate_expr(stmt.target, symbols, 0, ctx)} = {expr};"]

    name = stmt.target.id
    if name in symbols and name not in ctx.collected.globals:
        # Declared earlier in an enclosing block
        return [f"{indent}{name} = {expr};"] if expr else []

    expr_type = get_annotation_type(stmt.annotation)
    if expr_type is None:
        raise TranspilerError(f"Unsupported annotation for '{name}'", stmt)
    symbols[name] = expr_type
    decl = declaration(expr_type, stmt.target.id, ctx)
    return [f"{indent}{decl}{f' = {expr}' if expr else ''};"]


def generate_augmented_assignment(
    stmt: ast.AugAssign,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> list[str]:
    """Generate code for an augmented assignment (e.g., +=, &=).

    Args:
        stmt: AST augmented assignment node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        Generated code lines for the augmented assignment
    """
    target = generate_expr(stmt.target, symbols, 0, ctx)
    value = generate_expr(stmt.value, symbols, 0, ctx)

    op = AUGASSIGN_OPERATORS.get(type(stmt.op))
    if op:
        return [f"{indent}{target} {op} {value};"]
    if isinstance(stmt.op, ast.Pow | ast.FloorDiv):
        expr = ast.BinOp(left=stmt.target, op=stmt.op, right=stmt.value)
        return [f"{indent}{target} = {generate_expr(expr, symbols, 0, ctx)};"]
    return passthrough(stmt, indent)


def _parse_range_arguments(
    args: list[ast.expr], symbols: dict[str, str | None], ctx: CodegenContext
) -> tuple[str, str, str]:
    """Parse the arguments to a range() call.

    Returns:
        Tuple of (start, end, step) values as strings

    Raises:
        TranspilerError: If the range has an invalid number of arguments
    """
    values = [generate_expr(arg, symbols, 0, ctx) for arg in args]
    if len(values) == 1:
        return "0", values[0], "1"
    elif len(values) == 2:
        return values[0], values[1], "1"
    elif len(values) == 3:
        return values[0], values[1], values[2]
    raise TranspilerError("Range function must have 1 to 3 arguments", args[0] if args else None)


def _is_negative(node: ast.expr) -> bool:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        return isinstance(node.operand, ast.Constant)
    return isinstance(node, ast.Constant) and isinstance(node.value, int | float) and node.value < 0


def _is_range_call(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id == "range"
        and not node.keywords
    )


def _nested_statements(body: list[ast.stmt]) -> Iterator[ast.stmt]:
    """Yield statements of a block and its nested blocks in source order."""
    for stmt in body:
        yield stmt
        if isinstance(stmt, ast.If | ast.For | ast.While):
            yield from _nested_statements(stmt.body)
            yield from _nested_statements(stmt.orelse)


def _read_names(body: list[ast.stmt]) -> set[str]:
    names = set()
    for stmt in body:
        for node in ast.walk(stmt):
            if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load):
                names.add(node.id)
            elif isinstance(node, ast.AugAssign) and isinstance(node.target, ast.Name):
                names.add(node.target.id)
    return names


def hoisted_locals(
    stmt: ast.If | ast.For | ast.While,
    following: list[ast.stmt],
    symbols: dict[str, str | None],
    ctx: CodegenContext,
) -> dict[str, str]:
    """Find locals first assigned inside a block and read after it.

    Shader blocks scope their declarations, so these names are declared
    before the block and only assigned inside it.

    Args:
        stmt: Compound statement opening the block
        following: Statements after the block in the same body
        symbols: Dictionary of variable names to their types
        ctx: Code generation context

    Returns:
        Dictionary of hoisted names to their types, in first-assignment order
    """
    read_later = _read_names(following)
    scope = symbols.copy()
    hoisted: dict[str, str] = {}

    for inner in _nested_statements([stmt]):
        if isinstance(inner, ast.For) and isinstance(inner.target, ast.Name):
            if not _is_range_call(inner.iter):
                continue
            name, type_name = inner.target.id, "int32"
        elif isinstance(inner, ast.AnnAssign) and isinstance(inner.target, ast.Name):
            name, type_name = inner.target.id, get_annotation_type(inner.annotation)
        elif (
            isinstance(inner, ast.Assign)
            and len(inner.targets) == 1
            and isinstance(inner.targets[0], ast.Name)
        ):
            name = inner.targets[0].id
            if name in scope:
                continue
            try:
                type_name = get_expr_type(inner.value, scope, ctx)
            except TranspilerError:
                # Reported with a position when the block itself is generated
                continue
        else:
            continue

        if name in scope or type_name is None:
            continue
        scope[name] = type_name
        if name in read_later:
            hoisted[name] = type_name

    if hoisted:
        logger.debug(f"Declaring block locals ahead of their block: {', '.join(hoisted)}")
    return hoisted


def generate_for_loop(
    stmt: ast.For, symbols: dict[str, str | None], indent: str, ctx: CodegenContext
) -> list[str]:
    """Generate code for a range-based for loop.

    Other iterations and loops with an `else` clause are printed unchanged.

    Args:
        stmt: AST for loop node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        List of generated code lines for the for loop
    """
    if not _is_range_call(stmt.iter) or not isinstance(stmt.target, ast.Name) or stmt.orelse:
        return passthrough(stmt, indent)

    range_args = stmt.iter.args  # type: ignore[attr-defined]
    start, end, step = _parse_range_arguments(range_args, symbols, ctx)
    target = stmt.target.id
    descending = len(range_args) == 3 and _is_negative(range_args[2])

    body_symbols = symbols.copy()
    if target in symbols:
        init = f"{target} = {start}"
    else:
        init = f"{declaration('int32', target, ctx)} = {start}"
        body_symbols[target] = "int32"
    condition = f"{target} {'>' if descending else '<'} {end}"
    if step == "1":
        update = f"{target}++"
    elif step == "-1":
        update = f"{target}--"
    else:
        update = f"{target} += {step}"

    code = [f"{indent}for ({init}; {condition}; {update}) {{"]
    for line in generate_body(stmt.body, body_symbols, ctx):
        code.append(f"{indent}{INDENT}{line}")
    code.append(f"{indent}}}")
    return code


def generate_while_loop(
    stmt: ast.While,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> list[str]:
    """Generate code for a while loop.

    Args:
        stmt: AST while loop node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        List of generated code lines for the while loop
    """
    if stmt.orelse:
        return passthrough(stmt, indent)
    condition = generate_expr(stmt.test, symbols, 0, ctx)
    body_code = generate_body(stmt.body, symbols.copy(), ctx)

    code = [f"{indent}while ({condition}) {{"]
    code.extend(f"{indent}{INDENT}{line}" for line in body_code)
    code.append(f"{indent}}}")
    return code


def generate_if_statement(
    stmt: ast.If, symbols: dict[str, str | None], indent: str, ctx: CodegenContext
) -> list[str]:
    """Generate code for an if statement; `elif` chains print as `else if`.

    Args:
        stmt: AST if statement node
        symbols: Dictionary of variable names to their types
        indent: Indentation string
        ctx: Code generation context

    Returns:
        List of generated code lines for the if statement
    """
    condition = generate_expr(stmt.test, symbols, 0, ctx)
    code = [f"{indent}if ({condition}) {{"]
    code.extend(f"{indent}{INDENT}{line}" for line in generate_body(stmt.body, symbols.copy(), ctx))

    orelse = stmt.orelse
    while len(orelse) == 1 and isinstance(orelse[0], ast.If):
        elif_stmt = orelse[0]
        condition = generate_expr(elif_stmt.test, symbols, 0, ctx)
        code.append(f"{indent}}} else if ({condition}) {{")
        code.extend(
            f"{indent}{INDENT}{line}"
            for line in generate_body(elif_stmt.body, symbols.copy(), ctx)
        )
        orelse = elif_stmt.orelse

    if orelse:
        code.append(f"{indent}}} else {{")
        code.extend(
            f"{indent}{INDENT}{line}" for line in generate_body(orelse, symbols.copy(), ctx)
        )

    code.append(f"{indent}}}")
    return code


def generate_return_statement(
    stmt: ast.Return,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> str:
    """Generate code for a return statement."""
    if stmt.value is None:
        return f"{indent}return;"
    expr = generate_expr(stmt.value, symbols, 0, ctx)
    return f"{indent}return {expr};"


def generate_expression_statement(
    stmt: ast.Expr,
    symbols: dict[str, str | None],
    indent: str,
    ctx: CodegenContext,
) -> list[str]:
    """Generate code for an expression statement; string literals become comments."""
    if is_docstring(stmt):
        return comment_lines(stmt.value.value, indent)  # type: ignore[attr-defined]
    return [f"{indent}{generate_expr(stmt.value, symbols, 0, ctx)};"]


def generate_body(
    body: list[ast.stmt], symbols: dict[str, str | None], ctx: CodegenContext
) -> list[str]:
    """Generate shader code for a block of statements.

    Args:
        body: List of AST nodes representing statements in the block
        symbols: Dictionary of variable names to their types, updated in place
        ctx: Code generation context

    Returns:
        List of generated code lines for the block, unindented

    Raises:
        TranspilerError: If a supported statement cannot be translated
    """
    code: list[str] = []
    indent = ""

    for position, stmt in enumerate(body):
        try:
            if isinstance(stmt, ast.If | ast.For | ast.While):
                hoisted = hoisted_locals(stmt, body[position + 1 :], symbols, ctx)
                for name, type_name in hoisted.items():
                    code.append(f"{indent}{declaration(type_name, name, ctx)};")
                    symbols[name] = type_name

            if isinstance(stmt, ast.Assign):
                code.extend(generate_assignment(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.AnnAssign):
                code.extend(generate_annotated_assignment(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.AugAssign):
                code.extend(generate_augmented_assignment(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.For):
                code.extend(generate_for_loop(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.While):
                code.extend(generate_while_loop(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.If):
                code.extend(generate_if_statement(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.Return):
                code.append(generate_return_statement(stmt, symbols, indent, ctx))
            elif isinstance(stmt, ast.Break):
                code.append(f"{indent}break;")
            elif isinstance(stmt, ast.Continue):
                code.append(f"{indent}continue;")
            elif isinstance(stmt, ast.Pass):
                continue
            elif isinstance(stmt, ast.Expr):
                code.extend(generate_expression_statement(stmt, symbols, indent, ctx))
            else:
                code.extend(passthrough(stmt, indent))
        except TranspilerError as e:
            # Attach the innermost statement when the error has no position
            if e.lineno is None:
                raise e.with_node(stmt) from e
            raise

    return code
