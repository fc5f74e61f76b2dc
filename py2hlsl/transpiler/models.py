"""
Data models and structures for the HLSL shader transpiler.

This module contains the dataclass definitions used throughout the transpiler
to represent translation units, directive regions, functions, structs, enums,
fields, and collected information.
"""

import ast
from dataclasses import dataclass, field
from enum import Enum


class RegionMode(Enum):
    """How the content of a directive region is handled."""

    TRANSLATE = "translate"
    VERBATIM = "verbatim"


@dataclass
class DirectiveRegion:
    """Contiguous lines between a start marker and its end marker.

    Attributes:
        unit: Name of the translation unit the region belongs to
        mode: Whether the region is translated or copied verbatim
        path: Source file the region was read from
        start_line: 1-based line number of the first content line
        lines: Content lines without trailing newlines
    """

    unit: str
    mode: RegionMode
    path: str
    start_line: int
    lines: list[str] = field(default_factory=list)


@dataclass
class TranslationUnit:
    """Named output artifact accumulating regions across input files.

    Attributes:
        name: Output name of the unit
        regions: Regions in input order
    """

    name: str
    regions: list[DirectiveRegion] = field(default_factory=list)

    @property
    def translate_regions(self) -> list[DirectiveRegion]:
        return [r for r in self.regions if r.mode is RegionMode.TRANSLATE]

    @property
    def verbatim_regions(self) -> list[DirectiveRegion]:
        return [r for r in self.regions if r.mode is RegionMode.VERBATIM]


@dataclass
class StructField:
    """Field definition in a struct.

    Attributes:
        name: Field name
        type_name: Source type of the field with qualifiers removed
        default_value: Optional default value as source text
    """

    name: str
    type_name: str
    default_value: str | None = None


@dataclass
class FunctionInfo:
    """Information about a function or method to be translated.

    Attributes:
        name: Function name
        return_type: Return type or None if not specified
        param_types: List of parameter types, receiver excluded
        node: AST node for the function
        owner: Name of the struct owning a method, None for free functions
        inout: Per parameter flag, True when annotated `Ref[T]`
    """

    name: str
    return_type: str | None
    param_types: list[str | None]
    node: ast.FunctionDef
    owner: str | None = None
    inout: list[bool] = field(default_factory=list)

    @property
    def params(self) -> list[ast.arg]:
        """Parameter nodes without the method receiver."""
        args = self.node.args.args
        return args[1:] if self.owner is not None else list(args)


@dataclass
class StructDefinition:
    """Representation of a struct definition.

    Attributes:
        name: Name of the struct
        fields: List of field definitions
        methods: Methods keyed by name, in declaration order
        docstring: Class docstring, if any
    """

    name: str
    fields: list[StructField]
    methods: dict[str, FunctionInfo] = field(default_factory=dict)
    docstring: str | None = None

    def field_type(self, name: str) -> str | None:
        for struct_field in self.fields:
            if struct_field.name == name:
                return struct_field.type_name
        return None


@dataclass
class EnumDefinition:
    """An enumerated constant group sharing an integer type.

    Attributes:
        name: Name of the enum class
        members: (member name, value source) pairs in declaration order
        base_type: Integer type the members share
    """

    name: str
    members: list[tuple[str, ast.expr]]
    base_type: str = "int32"


@dataclass
class CollectedInfo:
    """Information collected from Python code to be translated.

    Attributes:
        functions: Dictionary mapping free function names to function information
        structs: Dictionary mapping struct names to struct definitions
        enums: Dictionary mapping enum names to enum definitions
        globals: Dictionary mapping global constant names to (type, value node)
        excluded: Function and method names dropped from the output
    """

    functions: dict[str, FunctionInfo] = field(default_factory=dict)
    structs: dict[str, StructDefinition] = field(default_factory=dict)
    enums: dict[str, EnumDefinition] = field(default_factory=dict)
    globals: dict[str, tuple[str, ast.expr]] = field(default_factory=dict)
    excluded: frozenset[str] = frozenset()

    def enum_of_member(self, member: str) -> str | None:
        for enum_def in self.enums.values():
            if any(name == member for name, _ in enum_def.members):
                return enum_def.name
        return None
