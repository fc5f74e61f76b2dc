"""
Subset conformance checking for translated regions.

Constructs outside the translatable subset are printed unchanged and fail
later in the shader compiler. This pass reports them up front as warnings
with their line numbers; it never changes the output.
"""

import ast
from dataclasses import dataclass

from loguru import logger

from py2hlsl.transpiler.ast_parser import dotted_name, is_docstring


@dataclass
class SubsetViolation:
    """A construct outside the translatable subset.

    Attributes:
        construct: Short description of the construct
        lineno: Line of the construct, relative to the parsed text
    """

    construct: str
    lineno: int | None

    def __str__(self) -> str:
        where = f"line {self.lineno}: " if self.lineno else ""
        return f"{where}{self.construct} is not translated"


_UNSUPPORTED: dict[type[ast.AST], str] = {
    ast.Dict: "dict display",
    ast.Set: "set display",
    ast.List: "list display",
    ast.ListComp: "list comprehension",
    ast.SetComp: "set comprehension",
    ast.DictComp: "dict comprehension",
    ast.GeneratorExp: "generator expression",
    ast.JoinedStr: "f-string",
    ast.Lambda: "lambda",
    ast.Try: "try statement",
    ast.With: "with statement",
    ast.Yield: "yield",
    ast.YieldFrom: "yield from",
    ast.Await: "await",
    ast.Global: "global statement",
    ast.Nonlocal: "nonlocal statement",
    ast.Slice: "slice",
    ast.Starred: "starred expression",
    ast.NamedExpr: "assignment expression",
    ast.AsyncFunctionDef: "async function",
    ast.Raise: "raise statement",
    ast.Assert: "assert statement",
    ast.Delete: "del statement",
}

# Calls whose string arguments are rewritten by the text editor
_STRING_CALLS = {"print", "printf"}


class SubsetChecker(ast.NodeVisitor):
    """Visitor collecting constructs outside the translatable subset."""

    def __init__(self) -> None:
        self.violations: list[SubsetViolation] = []
        self._string_context = 0

    def _report(self, node: ast.AST, construct: str) -> None:
        self.violations.append(SubsetViolation(construct, getattr(node, "lineno", None)))

    def generic_visit(self, node: ast.AST) -> None:
        construct = _UNSUPPORTED.get(type(node))
        if construct is not None:
            self._report(node, construct)
        super().generic_visit(node)

    def _visit_body(self, body: list[ast.stmt]) -> None:
        for stmt in body:
            if not is_docstring(stmt):
                self.visit(stmt)

    def visit_Module(self, node: ast.Module) -> None:  # noqa: N802
        self._visit_body(node.body)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:  # noqa: N802
        for decorator in node.decorator_list:
            self.visit(decorator)
        self._visit_body(node.body)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:  # noqa: N802
        self._visit_body(node.body)

    def visit_Import(self, node: ast.Import) -> None:  # noqa: N802
        pass

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:  # noqa: N802
        pass

    def visit_Assign(self, node: ast.Assign) -> None:  # noqa: N802
        if len(node.targets) > 1:
            self._report(node, "chained assignment")
        elif isinstance(node.targets[0], ast.Tuple | ast.List):
            self._report(node, "multi-variable assignment")
            self.visit(node.value)
            return
        self.generic_visit(node)

    def visit_Return(self, node: ast.Return) -> None:  # noqa: N802
        if isinstance(node.value, ast.Tuple):
            self._report(node, "multiple return values")
            return
        self.generic_visit(node)

    def visit_Call(self, node: ast.Call) -> None:  # noqa: N802
        name = dotted_name(node.func) or ""
        in_string_call = name in _STRING_CALLS or name.startswith("str.")
        if in_string_call:
            self._string_context += 1
        self.generic_visit(node)
        if in_string_call:
            self._string_context -= 1

    def visit_Constant(self, node: ast.Constant) -> None:  # noqa: N802
        if isinstance(node.value, str) and not self._string_context:
            self._report(node, "string constant")
        elif isinstance(node.value, bytes):
            self._report(node, "bytes constant")


def check_subset(tree: ast.AST) -> list[SubsetViolation]:
    """Report constructs in a parsed region that are not translated.

    Args:
        tree: Parsed region

    Returns:
        Violations in source order
    """
    checker = SubsetChecker()
    checker.visit(tree)
    return checker.violations


def log_violations(violations: list[SubsetViolation], path: str, line_offset: int = 0) -> None:
    """Log violations as warnings with absolute file positions."""
    for violation in violations:
        lineno = violation.lineno + line_offset if violation.lineno else "?"
        logger.warning(f"{path}:{lineno}: {violation.construct} is not translated")
