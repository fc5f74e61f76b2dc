"""
Shader-language scalar and vector types usable from plain Python.

Code inside translate regions annotates with these names; the transpiler maps
them to target keywords, and on the CPU they behave as numpy scalars and small
numpy-backed vectors so the same code can be run and tested directly.
"""

from __future__ import annotations

from typing import Any, TypeVar

import numpy as np

float32 = np.float32
float64 = np.float64
int32 = np.int32
uint32 = np.uint32

Float = np.float32

T = TypeVar("T", bound="ShaderVector")

_COMPONENTS = "xyzw"


class ShaderVector:
    """Base class for fixed-size shader vectors"""

    _size: int
    _dtype: type[np.generic]

    def __init__(self, *args: Any):
        if len(args) == 1 and isinstance(args[0], ShaderVector):
            values = args[0].data
        elif len(args) == 1 and np.isscalar(args[0]):
            values = [args[0]] * self._size
        elif len(args) == 1 and isinstance(args[0], list | tuple | np.ndarray):
            values = args[0]
        elif not args:
            values = [0] * self._size
        else:
            values = args

        data = np.asarray(values, dtype=self._dtype).flatten()
        if len(data) != self._size:
            raise ValueError(
                f"Invalid input size for {self.__class__.__name__}. "
                f"Expected {self._size}, got {len(data)}"
            )
        object.__setattr__(self, "data", data)

    def __repr__(self) -> str:
        vals = ", ".join(str(x) for x in self.data)
        return f"{self.__class__.__name__}({vals})"

    def __add__(self: T, other: Any) -> T:
        return self._apply_op(other, lambda a, b: a + b)

    def __sub__(self: T, other: Any) -> T:
        return self._apply_op(other, lambda a, b: a - b)

    def __mul__(self: T, other: Any) -> T:
        return self._apply_op(other, lambda a, b: a * b)

    def __rmul__(self: T, other: Any) -> T:
        return self.__mul__(other)

    def __truediv__(self: T, other: Any) -> T:
        return self._apply_op(other, lambda a, b: a / b)

    def __neg__(self: T) -> T:
        return self.__class__(-self.data)

    def _apply_op(self: T, other: Any, op: Any) -> T:
        """Apply an operation with scalar/vector broadcasting"""
        if isinstance(other, ShaderVector):
            if self._size != other._size:
                raise ValueError("Vector size mismatch")
            return self.__class__(op(self.data, other.data))
        if np.isscalar(other):
            return self.__class__(op(self.data, other))
        raise TypeError(f"Unsupported operand type: {type(other)}")

    def _index(self, component: str) -> int:
        idx = _COMPONENTS.index(component)
        if idx >= self._size:
            raise AttributeError(
                f"Component {component} not available for {self.__class__.__name__}"
            )
        return idx

    def __getattr__(self, name: str) -> Any:
        """Handle swizzle patterns only"""
        if not all(c in _COMPONENTS for c in name) or not 1 <= len(name) <= 4:
            raise AttributeError(
                f"'{self.__class__.__name__}' object has no attribute '{name}'"
            )
        components = [self.data[self._index(c)] for c in name]
        if len(components) == 1:
            return components[0]
        return _VECTOR_TYPES[(self._dtype, len(components))](components)

    def __setattr__(self, name: str, value: Any) -> None:
        if len(name) == 1 and name in _COMPONENTS:
            self.data[self._index(name)] = value
            return
        object.__setattr__(self, name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return np.array_equal(self.data, other.data)

    def to_array(self) -> np.ndarray:
        return self.data.copy()


class Float2(ShaderVector):
    _size = 2
    _dtype = np.float32


class Float3(ShaderVector):
    _size = 3
    _dtype = np.float32


class Float4(ShaderVector):
    _size = 4
    _dtype = np.float32


class Int2(ShaderVector):
    _size = 2
    _dtype = np.int32


class Int3(ShaderVector):
    _size = 3
    _dtype = np.int32


class Int4(ShaderVector):
    _size = 4
    _dtype = np.int32


class Uint2(ShaderVector):
    _size = 2
    _dtype = np.uint32


class Uint3(ShaderVector):
    _size = 3
    _dtype = np.uint32


class Uint4(ShaderVector):
    _size = 4
    _dtype = np.uint32


_VECTOR_TYPES: dict[tuple[type[np.generic], int], type[ShaderVector]] = {
    (cls._dtype, cls._size): cls
    for cls in (Float2, Float3, Float4, Int2, Int3, Int4, Uint2, Uint3, Uint4)
}


class Ref:
    """Marks a parameter that the callee modifies in place.

    `Ref[T]` evaluates to `T`, so annotated code runs unchanged; the
    transpiler emits the parameter as `inout`.
    """

    def __class_getitem__(cls, item: Any) -> Any:
        return item
