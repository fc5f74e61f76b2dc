"""
Struct layout and alignment checking for the HLSL shader transpiler.

Structs shared between the CPU and GPU must be built from 32-bit fields
(`float32`, `int32`, `uint32`, or nested structs of the same) and have a total
size that is a multiple of 16 bytes (four `float32` values). Violations are
reported as diagnostics; they never stop translation.

Sizes and alignments of primitive kinds come from numpy dtypes; offsets use
natural alignment, as a C compiler or `numpy.dtype(..., align=True)` would.
"""

from dataclasses import dataclass, field

import numpy as np
from loguru import logger

from py2hlsl.transpiler.constants import ALIGNMENT_UNIT, SCALAR_TYPE_KINDS, VECTOR_TYPES
from py2hlsl.transpiler.models import EnumDefinition, StructDefinition

PERMITTED_KINDS = frozenset({"float32", "int32", "uint32", "slbool"})

# numpy dtype of every fixed-size scalar kind
KIND_DTYPES: dict[str, type[np.generic]] = {
    "float32": np.float32,
    "float64": np.float64,
    "pyfloat": np.float64,
    "int8": np.int8,
    "int16": np.int16,
    "int32": np.int32,
    "int64": np.int64,
    "pyint": np.int64,
    "uint8": np.uint8,
    "uint16": np.uint16,
    "uint32": np.uint32,
    "uint64": np.uint64,
    "bool": np.bool_,
    "slbool": np.int32,
}

POINTER_SIZE = np.dtype(np.intp).itemsize

# (size, alignment) placeholders of reference kinds
REFERENCE_LAYOUTS: dict[str, tuple[int, int]] = {
    "str": (2 * POINTER_SIZE, POINTER_SIZE),
    "list": (3 * POINTER_SIZE, POINTER_SIZE),
    "dict": (POINTER_SIZE, POINTER_SIZE),
}

HEADER = (
    "struct type alignment checking\n"
    f"    checks that struct sizes are an even multiple of {ALIGNMENT_UNIT} bytes "
    "(4 float32's)\n"
    "    and are of 32 bit types: [U]Int32, Float32"
)


@dataclass
class FieldLayout:
    """Placement of one field.

    Attributes:
        name: Field name
        type_name: Source type of the field
        offset: Byte offset from the start of the struct
        size: Size in bytes
        alignment: Alignment in bytes
    """

    name: str
    type_name: str
    offset: int
    size: int
    alignment: int


@dataclass
class StructLayout:
    """Resolved layout of a struct.

    Attributes:
        name: Struct name
        fields: Field placements in declaration order
        size: Offset of the last field plus its size
        alignment: Largest field alignment
    """

    name: str
    fields: list[FieldLayout] = field(default_factory=list)
    size: int = 0
    alignment: int = 1

    @property
    def padded_size(self) -> int:
        """Size rounded up to the alignment, as when nested or in an array."""
        return _align(self.size, self.alignment)


@dataclass
class LayoutDiagnostic:
    """A layout rule violation in a struct.

    Attributes:
        struct: Name of the offending struct
        message: Description of the violation
        field: Offending field, None for size violations
    """

    struct: str
    message: str
    field: str | None = None

    def __str__(self) -> str:
        return f"{self.struct}: {self.message}"


def _align(offset: int, alignment: int) -> int:
    return (offset + alignment - 1) // alignment * alignment


class LayoutChecker:
    """Computes struct layouts against a table of known structs and enums.

    Args:
        structs: Every struct visible in the run, by name
        enums: Enums whose members give an integer field type
    """

    def __init__(
        self,
        structs: dict[str, StructDefinition],
        enums: dict[str, EnumDefinition] | None = None,
    ):
        self.structs = structs
        self.enums = enums or {}
        self._layouts: dict[str, StructLayout] = {}
        self._resolving: set[str] = set()

    def kind_of(self, type_name: str) -> str | None:
        """Scalar kind of a field type, enums resolving to their base type."""
        if type_name in self.enums:
            return self.enums[type_name].base_type
        return SCALAR_TYPE_KINDS.get(type_name)

    def field_size(self, type_name: str) -> tuple[int, int]:
        """Size and alignment of a field type in bytes."""
        kind = self.kind_of(type_name)
        if kind in KIND_DTYPES:
            dtype = np.dtype(KIND_DTYPES[kind])
            return dtype.itemsize, dtype.alignment
        if kind in REFERENCE_LAYOUTS:
            return REFERENCE_LAYOUTS[kind]
        if type_name in VECTOR_TYPES:
            element_kind, count = VECTOR_TYPES[type_name]
            dtype = np.dtype(KIND_DTYPES[element_kind])
            return dtype.itemsize * count, dtype.alignment
        if type_name in self.structs and type_name not in self._resolving:
            nested = self.layout(type_name)
            return nested.padded_size, nested.alignment
        return POINTER_SIZE, POINTER_SIZE

    def layout(self, name: str) -> StructLayout:
        """Resolve the layout of a struct, nested structs first."""
        if name in self._layouts:
            return self._layouts[name]
        self._resolving.add(name)
        try:
            result = StructLayout(name=name)
            offset = 0
            for struct_field in self.structs[name].fields:
                size, alignment = self.field_size(struct_field.type_name)
                offset = _align(offset, alignment)
                result.fields.append(
                    FieldLayout(struct_field.name, struct_field.type_name, offset, size, alignment)
                )
                result.alignment = max(result.alignment, alignment)
                offset += size
            if result.fields:
                last = result.fields[-1]
                result.size = last.offset + last.size
        finally:
            self._resolving.discard(name)
        self._layouts[name] = result
        return result

    def check_field(self, struct_name: str, name: str, type_name: str) -> LayoutDiagnostic | None:
        """Check that a field has a permitted kind."""
        kind = self.kind_of(type_name)
        if kind in PERMITTED_KINDS:
            return None
        if type_name in VECTOR_TYPES:
            return None
        if kind in KIND_DTYPES:
            return LayoutDiagnostic(
                struct_name,
                f"{name}:  basic type != [U]Int32 or Float32: {type_name}",
                name,
            )
        if kind is None and type_name in self.structs:
            if type_name in self._resolving:
                return LayoutDiagnostic(struct_name, f"{name}:  recursive type: {type_name}", name)
            return None
        return LayoutDiagnostic(struct_name, f"{name}:  unsupported type: {type_name}", name)

    def check(self, name: str) -> list[LayoutDiagnostic]:
        """Check the fields and total size of one struct.

        Args:
            name: Struct name

        Returns:
            One diagnostic per non-permitted field, plus one if the total size
            is not a multiple of 16 bytes
        """
        struct_def = self.structs[name]
        if not struct_def.fields:
            return []
        diagnostics = []
        self._resolving.add(name)
        try:
            for struct_field in struct_def.fields:
                diagnostic = self.check_field(name, struct_field.name, struct_field.type_name)
                if diagnostic is not None:
                    diagnostics.append(diagnostic)
        finally:
            self._resolving.discard(name)
        total = self.layout(name).size
        if total % ALIGNMENT_UNIT != 0:
            diagnostics.append(
                LayoutDiagnostic(name, f"total size: {total} not even multiple of {ALIGNMENT_UNIT}")
            )
        return diagnostics


def check_structs(
    structs: dict[str, StructDefinition],
    all_structs: dict[str, StructDefinition] | None = None,
    enums: dict[str, EnumDefinition] | None = None,
) -> list[LayoutDiagnostic]:
    """Check the layout of every struct, in declaration order.

    Args:
        structs: Structs to check
        all_structs: Every struct visible for nested lookups, defaults to `structs`
        enums: Enums usable as field types

    Returns:
        All diagnostics found, also logged as warnings
    """
    table = dict(all_structs or {})
    table.update(structs)
    checker = LayoutChecker(table, enums)

    if structs:
        logger.info(HEADER)
    diagnostics: list[LayoutDiagnostic] = []
    for name in structs:
        found = checker.check(name)
        for diagnostic in found:
            logger.warning(str(diagnostic))
        diagnostics.extend(found)
    return diagnostics
