from py2hlsl.slbool import FALSE, TRUE, Bool, from_bool, is_false, is_true
from py2hlsl.sltype import (
    Float,
    Float2,
    Float3,
    Float4,
    Int2,
    Int3,
    Int4,
    Ref,
    Uint2,
    Uint3,
    Uint4,
    float32,
    float64,
    int32,
    uint32,
)

__version__ = "0.1.0"


__all__ = [
    "Bool",
    "FALSE",
    "TRUE",
    "from_bool",
    "is_false",
    "is_true",
    "Float",
    "Float2",
    "Float3",
    "Float4",
    "Int2",
    "Int3",
    "Int4",
    "Ref",
    "Uint2",
    "Uint3",
    "Uint4",
    "float32",
    "float64",
    "int32",
    "uint32",
]
