"""Tests for subset conformance checking."""

import ast
import textwrap

import pytest

from py2hlsl.transpiler.subset import check_subset


def constructs(code: str) -> list[str]:
    return [v.construct for v in check_subset(ast.parse(textwrap.dedent(code)))]


class TestCheckSubset:
    """Tests for check_subset."""

    def test_conforming_code(self):
        code = '''
        """Module docstring."""
        import numpy as np

        class Pt:
            """A point."""
            x: float32
            y: float32

        def f(p: Pt, n: int32) -> float32:
            """Sum."""
            total = 0.0
            for i in range(n):
                total += p.x * i
            print("total=%f" % total)
            return total
        '''

        assert constructs(code) == []

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("a, b = 1, 2", ["multi-variable assignment"]),
            ("a = b = 1", ["chained assignment"]),
            ("def f():\n    return 1, 2", ["multiple return values"]),
            ("xs = [i for i in range(3)]", ["list comprehension"]),
            ("d = {1: 2}", ["dict display"]),
            ("s = f'{x}'", ["f-string"]),
            ("g = lambda q: q", ["lambda"]),
            ("y = xs[1:3]", ["slice"]),
            ("name = 'abc'", ["string constant"]),
            ("def f():\n    global N", ["global statement"]),
            ("try:\n    pass\nexcept ValueError:\n    pass", ["try statement"]),
        ],
    )
    def test_violations(self, code, expected):
        assert constructs(code) == expected

    def test_strings_allowed_in_print_and_str_calls(self):
        assert constructs("print('x')\nn = str.replace(s, 'a', 'b')\n") == []

    def test_violation_line_numbers(self):
        # Arrange
        code = "a = 1.0\nb = 2.0\nc, d = a, b\n"

        # Act
        violations = check_subset(ast.parse(code))

        # Assert
        assert [v.lineno for v in violations] == [3]
        assert str(violations[0]) == "line 3: multi-variable assignment is not translated"
