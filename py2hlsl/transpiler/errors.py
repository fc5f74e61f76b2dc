"""
Exceptions and error handling for the HLSL shader transpiler.

This module defines custom exceptions that are raised during the translation process.
"""

import os
from typing import Any, Optional


class TranspilerError(Exception):
    """Exception raised for errors during shader code translation.

    This is the main exception class used throughout the transpiler to report errors
    in a user-friendly way.

    The error can carry the source file and line number in the user's Python code
    where it originated. Nodes parsed from a directive region report lines relative
    to the region, so `with_location` shifts them by the region's first line.

    Examples:
        >>> raise TranspilerError("Unknown function: my_func")
        TranspilerError: Unknown function: my_func
    """

    def __init__(
        self,
        message: str,
        node: Optional[Any] = None,
        file_path: Optional[str] = None,
        lineno: Optional[int] = None,
    ):
        """Initialize the exception with a message and optional AST node.

        Args:
            message: The error message
            node: Optional AST node where the error occurred
            file_path: Optional source file of the offending code
            lineno: Optional line number in the source file
        """
        self.message = message
        self.node = node
        self.file_path = file_path
        self.lineno = lineno
        if self.lineno is None and node is not None:
            self.lineno = getattr(node, "lineno", None)

        location_info = ""
        if self.file_path:
            location_info = f" in {os.path.basename(self.file_path)}"
        if self.lineno:
            location_info += f" at line {self.lineno}"

        super().__init__(f"{message}{location_info}")

    def with_node(self, node: Any) -> "TranspilerError":
        """Create a new error with the same message but a different node.

        Args:
            node: AST node to associate with the error

        Returns:
            A new error instance of the same class with the updated node
        """
        return type(self)(self.message, node, self.file_path)

    def with_location(self, file_path: str, line_offset: int = 0) -> "TranspilerError":
        """Create a new error located in a source file.

        Args:
            file_path: Path of the file the code was extracted from
            line_offset: Number of lines preceding the parsed fragment in the file

        Returns:
            A new error instance of the same class with file and absolute line
        """
        lineno = self.lineno + line_offset if self.lineno else None
        return type(self)(self.message, self.node, file_path, lineno)


class DirectiveError(TranspilerError):
    """Raised when directive comments in a source file are malformed."""


class ResolutionError(TranspilerError):
    """Raised when no usable input file remains after resolution."""
