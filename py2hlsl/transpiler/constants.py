"""
Constants and predefined values for the HLSL shader transpiler.

This module contains dictionaries and definitions used throughout the transpiler,
including the accepted spellings of source types, builtin function mappings and
operator precedence.
"""

import math

# Directive key that opens every marker comment, followed by a sub-keyword
DIRECTIVE_KEY = "# py2hlsl: "
START_KEYWORD = "start"
VERBATIM_KEYWORD = "hlsl"
END_KEYWORD = "end"

# Lines containing this token keep their package qualifiers
INCLUDE_TOKEN = "#include"

# Function names dropped from translated output unless configured otherwise
DEFAULT_EXCLUDED_FUNCTIONS = frozenset({"update", "defaults"})

# Struct sizes must be a multiple of this many bytes
ALIGNMENT_UNIT = 16

INDENT = "    "

# Canonical kind of every accepted scalar type spelling, keyed by the last
# dotted component so that `np.float32`, `numpy.float32`, `sltype.float32`
# and `float32` resolve alike
SCALAR_TYPE_KINDS: dict[str, str] = {
    "float32": "float32",
    "Float": "float32",
    "single": "float32",
    "c_float": "float32",
    "float64": "float64",
    "double": "float64",
    "c_double": "float64",
    "int8": "int8",
    "int16": "int16",
    "int32": "int32",
    "intc": "int32",
    "c_int": "int32",
    "c_int32": "int32",
    "int64": "int64",
    "uint8": "uint8",
    "uint16": "uint16",
    "uint32": "uint32",
    "uintc": "uint32",
    "c_uint": "uint32",
    "c_uint32": "uint32",
    "uint64": "uint64",
    "Bool": "slbool",
    "float": "pyfloat",
    "int": "pyint",
    "bool": "bool",
    "str": "str",
    "list": "list",
    "List": "list",
    "dict": "dict",
    "Dict": "dict",
}

# Vector type aliases: name -> (element kind, component count)
VECTOR_TYPES: dict[str, tuple[str, int]] = {
    "Float2": ("float32", 2),
    "Float3": ("float32", 3),
    "Float4": ("float32", 4),
    "Int2": ("int32", 2),
    "Int3": ("int32", 3),
    "Int4": ("int32", 4),
    "Uint2": ("uint32", 2),
    "Uint3": ("uint32", 3),
    "Uint4": ("uint32", 4),
}

# Numeric kinds ranked for binary operation result types
NUMERIC_RANK: dict[str, int] = {
    "bool": 0,
    "slbool": 0,
    "int8": 1,
    "uint8": 1,
    "int16": 2,
    "uint16": 2,
    "int32": 3,
    "pyint": 3,
    "uint32": 4,
    "int64": 5,
    "uint64": 6,
    "float32": 7,
    "pyfloat": 7,
    "float64": 8,
}

# Modules whose functions map onto shader builtins
MATH_MODULES = frozenset({"math", "np", "numpy", "mat32", "math32"})

# Python math function name -> shader builtin
BUILTIN_FUNCTIONS: dict[str, str] = {
    "sin": "sin",
    "cos": "cos",
    "tan": "tan",
    "asin": "asin",
    "acos": "acos",
    "atan": "atan",
    "arcsin": "asin",
    "arccos": "acos",
    "arctan": "atan",
    "atan2": "atan2",
    "arctan2": "atan2",
    "sinh": "sinh",
    "cosh": "cosh",
    "tanh": "tanh",
    "exp": "exp",
    "exp2": "exp2",
    "log": "log",
    "log2": "log2",
    "log10": "log10",
    "sqrt": "sqrt",
    "pow": "pow",
    "power": "pow",
    "fabs": "abs",
    "abs": "abs",
    "floor": "floor",
    "ceil": "ceil",
    "trunc": "trunc",
    "fmod": "fmod",
    "clip": "clamp",
    "clamp": "clamp",
    "min": "min",
    "max": "max",
    "minimum": "min",
    "maximum": "max",
    "isnan": "isnan",
    "isinf": "isinf",
    "round": "round",
}

# Python builtins that are valid without a module qualifier
UNQUALIFIED_BUILTINS = frozenset({"abs", "min", "max", "round", "pow"})

# Builtins whose result has the type of their first argument
PRESERVING_BUILTINS = frozenset({"abs", "min", "max", "clamp", "floor", "ceil", "trunc", "round"})

# Module level numeric constants
MATH_CONSTANTS: dict[str, str] = {
    "pi": repr(math.pi),
    "e": repr(math.e),
    "tau": repr(math.tau),
}

# Boolean substitute helpers
SLBOOL_MODULE = "slbool"
SLBOOL_CONSTANTS: dict[str, str] = {"TRUE": "true", "FALSE": "false"}
SLBOOL_PREDICATES: dict[str, str] = {"is_true": "true", "is_false": "false"}
SLBOOL_FROM_BOOL = "from_bool"

# Enum base classes recognized as enumerated constant groups
ENUM_BASES = frozenset({"IntEnum", "IntFlag", "Enum", "Flag"})

# Annotation wrapper marking a by-reference (inout) parameter
REF_ANNOTATION = "Ref"

# Relocation markers written by the printer and consumed by the post-processor
MARKER_PREFIX = "//<<<<"
MARKER_SUFFIX = ">>>>"
METHOD_MARKER = "Method: "
END_METHOD_MARKER = "EndMethod"
END_CLASS_MARKER = "EndClass: "

# Operator precedence for generating correct expressions
OPERATOR_PRECEDENCE: dict[str, int] = {
    # Assignment has lowest precedence
    "=": 1,
    # Ternary operator
    "?": 2,
    # Logical operators
    "||": 3,
    "&&": 4,
    # Bitwise operators
    "|": 5,
    "^": 6,
    "&": 7,
    # Equality operators
    "==": 8,
    "!=": 8,
    # Relational operators
    "<": 9,
    ">": 9,
    "<=": 9,
    ">=": 9,
    # Shift operators
    "<<": 10,
    ">>": 10,
    # Additive operators
    "+": 11,
    "-": 11,
    # Multiplicative operators
    "*": 12,
    "/": 12,
    "%": 12,
    # Unary operators
    "unary": 13,
    # Function calls and member access
    "call": 14,
    "member": 15,
}
