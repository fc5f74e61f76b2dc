"""
Shader-compatible booleans.

Struct fields shared with the GPU must be 32 bits wide, so booleans are stored
as `int32` values. The transpiler renders `Bool` as the target `bool` type,
`TRUE`/`FALSE` as literals, and the helpers below as comparisons.
"""

import numpy as np

Bool = np.int32

TRUE = Bool(1)
FALSE = Bool(0)


def is_true(value: Bool) -> bool:
    """Whether a shader boolean is set."""
    return bool(value == TRUE)


def is_false(value: Bool) -> bool:
    return bool(value == FALSE)


def from_bool(value: bool) -> Bool:
    """Convert a Python bool to a shader boolean."""
    return TRUE if value else FALSE
