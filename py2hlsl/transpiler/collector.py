"""
AST collector for the HLSL shader transpiler.

This module collects information about functions, structs, enums, and global
constants from the top level of translated regions to prepare for code
generation. Function bodies are not visited.
"""

import ast

from loguru import logger

from py2hlsl.transpiler.ast_parser import (
    dotted_name,
    get_annotation_type,
    get_docstring,
    is_ref_annotation,
)
from py2hlsl.transpiler.constants import ENUM_BASES, SCALAR_TYPE_KINDS
from py2hlsl.transpiler.errors import TranspilerError
from py2hlsl.transpiler.models import (
    CollectedInfo,
    EnumDefinition,
    FunctionInfo,
    StructDefinition,
    StructField,
)


def _base_names(node: ast.ClassDef) -> list[str]:
    names = []
    for base in node.bases:
        name = dotted_name(base)
        if name:
            names.append(name.split(".")[-1])
    return names


def is_enum_class(node: ast.ClassDef) -> bool:
    """Whether a class declares an enumerated constant group."""
    return any(name in ENUM_BASES for name in _base_names(node))


def _is_auto_call(node: ast.expr) -> bool:
    if not isinstance(node, ast.Call):
        return False
    name = dotted_name(node.func)
    return name is not None and name.split(".")[-1] == "auto"


def _is_class_var(annotation: ast.expr) -> bool:
    if isinstance(annotation, ast.Subscript):
        annotation = annotation.value
    name = dotted_name(annotation)
    return name is not None and name.split(".")[-1] == "ClassVar"


def _constant_type(node: ast.expr) -> str | None:
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub | ast.UAdd):
        return _constant_type(node.operand)
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool):
            return "bool"
        if isinstance(node.value, int):
            return "int32"
        if isinstance(node.value, float):
            return "float32"
    return None


def collect_function(node: ast.FunctionDef, owner: str | None = None) -> FunctionInfo:
    """Collect the signature of a function or method.

    Args:
        node: Function definition
        owner: Name of the struct owning a method

    Returns:
        Function information with the receiver excluded from the parameters
    """
    args = node.args.args[1:] if owner is not None else node.args.args
    return FunctionInfo(
        name=node.name,
        return_type=get_annotation_type(node.returns),
        param_types=[get_annotation_type(arg.annotation) for arg in args],
        node=node,
        owner=owner,
        inout=[is_ref_annotation(arg.annotation) for arg in args],
    )


def collect_enum(node: ast.ClassDef) -> EnumDefinition:
    """Collect the members of an enum class.

    Args:
        node: Class deriving from an enum base

    Returns:
        Enum definition with members in declaration order

    Raises:
        TranspilerError: If a member uses `auto()` instead of an explicit value
    """
    base_type = "int32"
    for name in _base_names(node):
        if SCALAR_TYPE_KINDS.get(name) in ("int32", "uint32"):
            base_type = SCALAR_TYPE_KINDS[name]

    members: list[tuple[str, ast.expr]] = []
    for stmt in node.body:
        if isinstance(stmt, ast.Assign) and len(stmt.targets) == 1:
            target = stmt.targets[0]
            value = stmt.value
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
            target = stmt.target
            value = stmt.value
        else:
            continue
        if not isinstance(target, ast.Name):
            continue
        if _is_auto_call(value):
            raise TranspilerError(
                f"Enum member '{node.name}.{target.id}' uses auto(); "
                "give it an explicit value",
                stmt,
            )
        members.append((target.id, value))
    return EnumDefinition(name=node.name, members=members, base_type=base_type)


def collect_struct(node: ast.ClassDef) -> StructDefinition:
    """Collect the fields and methods of a class.

    Args:
        node: Class definition

    Returns:
        Struct definition with fields and methods in declaration order
    """
    fields = []
    methods: dict[str, FunctionInfo] = {}
    for stmt in node.body:
        if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            if _is_class_var(stmt.annotation):
                continue
            field_type = get_annotation_type(stmt.annotation)
            if field_type is None:
                raise TranspilerError(
                    f"Unsupported annotation for struct field {stmt.target.id}", stmt
                )
            default_value = ast.unparse(stmt.value) if stmt.value else None
            fields.append(
                StructField(
                    name=stmt.target.id,
                    type_name=field_type,
                    default_value=default_value,
                )
            )
        elif isinstance(stmt, ast.FunctionDef):
            methods[stmt.name] = collect_function(stmt, owner=node.name)
    return StructDefinition(
        name=node.name,
        fields=fields,
        methods=methods,
        docstring=get_docstring(node),
    )


def collect_info(
    tree: ast.AST,
    excluded: frozenset[str] = frozenset(),
    collected: CollectedInfo | None = None,
) -> CollectedInfo:
    """Collect information about functions, structs, enums, and globals.

    Args:
        tree: AST of one translated region
        excluded: Function names dropped from the output
        collected: Existing information to extend with this region

    Returns:
        CollectedInfo containing functions, structs, enums and global constants
    """
    if collected is None:
        collected = CollectedInfo(excluded=excluded)

    class Visitor(ast.NodeVisitor):
        """AST visitor collecting top-level declarations."""

        def generic_visit(self, node: ast.AST) -> None:
            """Other top-level statements declare nothing."""

        def visit_FunctionDef(self, node: ast.FunctionDef) -> None:  # noqa: N802
            info = collect_function(node)
            collected.functions[node.name] = info
            logger.debug(
                f"Collected function: {node.name}, return_type: {info.return_type}, "
                f"params: {info.param_types}"
            )

        def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
            if is_enum_class(node):
                enum_def = collect_enum(node)
                collected.enums[node.name] = enum_def
                logger.debug(
                    f"Collected enum: {node.name}, "
                    f"members: {[name for name, _ in enum_def.members]}"
                )
                return
            struct_def = collect_struct(node)
            collected.structs[node.name] = struct_def
            logger.debug(
                f"Collected struct: {node.name}, "
                f"fields: {[(f.name, f.type_name) for f in struct_def.fields]}, "
                f"methods: {list(struct_def.methods)}"
            )

        def visit_AnnAssign(self, node: ast.AnnAssign) -> None:  # noqa: N802
            """Collect annotated module-level constants."""
            if isinstance(node.target, ast.Name) and node.value is not None:
                expr_type = get_annotation_type(node.annotation) or "float32"
                collected.globals[node.target.id] = (expr_type, node.value)
                logger.debug(f"Collected global: {node.target.id}, type: {expr_type}")

        def visit_Assign(self, node: ast.Assign) -> None:  # noqa: N802
            """Collect module-level constants whose type follows from a literal."""
            if len(node.targets) != 1 or not isinstance(node.targets[0], ast.Name):
                return
            expr_type = _constant_type(node.value)
            if expr_type is not None:
                collected.globals[node.targets[0].id] = (expr_type, node.value)
                logger.debug(f"Collected global: {node.targets[0].id}, type: {expr_type}")

    visitor = Visitor()
    for stmt in getattr(tree, "body", [tree]):
        visitor.visit(stmt)
    return collected
