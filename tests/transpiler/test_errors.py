"""Tests for the transpiler errors module."""

import ast

import pytest

from py2hlsl.transpiler.errors import DirectiveError, ResolutionError, TranspilerError


def test_transpiler_error_message():
    """A bare error carries only its message."""
    error = TranspilerError("Unknown function: my_func")

    assert str(error) == "Unknown function: my_func"
    assert error.lineno is None


def test_line_taken_from_node():
    # Arrange
    node = ast.parse("x = 1\ny = mystery()\n").body[1]

    # Act
    error = TranspilerError("Unknown function: mystery", node)

    # Assert
    assert error.lineno == 2
    assert str(error) == "Unknown function: mystery at line 2"


def test_with_location_shifts_line():
    # Arrange
    node = ast.parse("y = mystery()\n").body[0]
    error = TranspilerError("Unknown function: mystery", node)

    # Act
    located = error.with_location("/src/shaders/noise.py", 9)

    # Assert
    assert located.lineno == 10
    assert str(located) == "Unknown function: mystery in noise.py at line 10"


def test_with_location_without_line():
    located = TranspilerError("bad").with_location("a.py", 5)

    assert located.lineno is None
    assert str(located) == "bad in a.py"


@pytest.mark.parametrize("error_class", [DirectiveError, ResolutionError])
def test_subclass_preserved(error_class):
    # Arrange
    error = error_class("problem", lineno=3)

    # Act
    located = error.with_location("a.py", 1)
    renoded = error.with_node(ast.parse("pass").body[0])

    # Assert
    assert type(located) is error_class
    assert type(renoded) is error_class
    assert isinstance(located, TranspilerError)
    assert located.lineno == 4
