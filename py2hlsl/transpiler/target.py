"""Target abstraction for shader translation.

A Target encapsulates the grammar rules that differ between output languages:
- Type keywords for scalar and vector types
- Declaration order of names and types
- Whether struct methods are kept or flattened into free functions
- Constant and type alias declarations
- The external compiler command line
"""

from abc import ABC, abstractmethod
from enum import Enum, auto

from py2hlsl.transpiler.constants import (
    BUILTIN_FUNCTIONS,
    SCALAR_TYPE_KINDS,
    VECTOR_TYPES,
)
from py2hlsl.transpiler.models import CollectedInfo


class DeclarationOrder(Enum):
    """Order of the type and the name in declarations."""

    TYPE_NAME = auto()  # float x
    NAME_TYPE = auto()  # x: float


# =============================================================================
# Target ABC
# =============================================================================


class Target(ABC):
    """Base class for all translation targets."""

    name: str = ""
    file_extension: str = ""
    binary_extension: str = ".spv"
    declaration_order: DeclarationOrder = DeclarationOrder.TYPE_NAME

    # --- Capabilities ---

    @property
    @abstractmethod
    def supports_methods(self) -> bool:
        """Whether structs may contain member functions."""
        ...

    # --- Types ---

    @abstractmethod
    def scalar_keywords(self) -> dict[str, str]:
        """Map canonical scalar kinds to target keywords."""
        ...

    @abstractmethod
    def vector_keyword(self, element_kind: str, count: int) -> str:
        """Return the keyword of a vector type."""
        ...

    def type_name(self, type_name: str | None, collected: CollectedInfo) -> str:
        """Map a source type name to the target type keyword.

        Args:
            type_name: Source type with qualifiers removed, None for no value
            collected: Information about structs and enums in scope

        Returns:
            Target type keyword
        """
        if type_name is None or type_name == "None":
            return "void"
        if type_name in VECTOR_TYPES:
            element_kind, count = VECTOR_TYPES[type_name]
            return self.vector_keyword(element_kind, count)
        if type_name in collected.enums:
            return self.enum_type_name(type_name, collected)
        if type_name in collected.structs:
            return type_name
        kind = SCALAR_TYPE_KINDS.get(type_name)
        if kind is not None:
            keyword = self.scalar_keywords().get(kind)
            if keyword is not None:
                return keyword
        # Containers and types from other units or verbatim code pass through
        # unchanged; the shader compiler rejects what it does not know
        return type_name

    def enum_type_name(self, enum_name: str, collected: CollectedInfo) -> str:
        """Return the type used for values of an enum. Default: the alias name."""
        return enum_name

    # --- Declarations ---

    def declare(self, type_str: str, name: str) -> str:
        """Format a variable, field or constant declaration."""
        if self.declaration_order is DeclarationOrder.NAME_TYPE:
            return f"{name}: {type_str}"
        return f"{type_str} {name}"

    def parameter(self, type_str: str, name: str, inout: bool = False) -> str:
        """Format a function parameter."""
        decl = self.declare(type_str, name)
        return f"inout {decl}" if inout else decl

    @abstractmethod
    def constant(self, type_str: str, name: str, value: str) -> str:
        """Format a module-level constant declaration."""
        ...

    @abstractmethod
    def type_alias(self, name: str, type_str: str) -> list[str]:
        """Return the lines declaring a type alias."""
        ...

    def method_name(self, owner: str, method: str) -> str:
        """Name of a flattened method on targets without methods."""
        return f"{owner}_{method}"

    # --- Builtins ---

    def builtin_function(self, name: str) -> str | None:
        """Map a math function name to the target builtin."""
        return BUILTIN_FUNCTIONS.get(name)

    # --- Compilation ---

    @abstractmethod
    def compile_command(self, compiler: str, source: str, output: str) -> list[str]:
        """Return the external compiler command line."""
        ...


# =============================================================================
# HLSL Target
# =============================================================================


class HLSLTarget(Target):
    """HLSL compute shaders compiled to SPIR-V by glslc."""

    name = "HLSL"
    file_extension = ".hlsl"

    @property
    def supports_methods(self) -> bool:
        return True

    def scalar_keywords(self) -> dict[str, str]:
        return {
            "float32": "float",
            "pyfloat": "float",
            "float64": "double",
            "int8": "int",
            "int16": "int16_t",
            "int32": "int",
            "pyint": "int",
            "int64": "int64_t",
            "uint8": "uint",
            "uint16": "uint16_t",
            "uint32": "uint",
            "uint64": "uint64_t",
            "bool": "bool",
            "slbool": "bool",
        }

    def vector_keyword(self, element_kind: str, count: int) -> str:
        base = self.scalar_keywords()[element_kind]
        return f"{base}{count}"

    def constant(self, type_str: str, name: str, value: str) -> str:
        return f"static const {self.declare(type_str, name)} = {value};"

    def type_alias(self, name: str, type_str: str) -> list[str]:
        return [f"typedef {type_str} {name};"]

    def compile_command(self, compiler: str, source: str, output: str) -> list[str]:
        return [compiler, "-fshader-stage=compute", "-o", output, source]


# =============================================================================
# GLSL Target
# =============================================================================


class GLSLTarget(Target):
    """GLSL compute shaders; structs carry no methods."""

    name = "GLSL"
    file_extension = ".comp"

    @property
    def supports_methods(self) -> bool:
        return False

    def scalar_keywords(self) -> dict[str, str]:
        return {
            "float32": "float",
            "pyfloat": "float",
            "float64": "double",
            "int8": "int",
            "int16": "int",
            "int32": "int",
            "pyint": "int",
            "int64": "int64_t",
            "uint8": "uint",
            "uint16": "uint",
            "uint32": "uint",
            "uint64": "uint64_t",
            "bool": "bool",
            "slbool": "bool",
        }

    def vector_keyword(self, element_kind: str, count: int) -> str:
        prefix = {"float32": "", "int32": "i", "uint32": "u"}[element_kind]
        return f"{prefix}vec{count}"

    def enum_type_name(self, enum_name: str, collected: CollectedInfo) -> str:
        base_type = collected.enums[enum_name].base_type
        return self.scalar_keywords()[SCALAR_TYPE_KINDS[base_type]]

    def constant(self, type_str: str, name: str, value: str) -> str:
        return f"const {self.declare(type_str, name)} = {value};"

    def type_alias(self, name: str, type_str: str) -> list[str]:
        # GLSL has no typedef; enum values use the underlying type
        return []

    def builtin_function(self, name: str) -> str | None:
        mapped = BUILTIN_FUNCTIONS.get(name)
        if mapped == "atan2":
            return "atan"
        if mapped == "fmod":
            return "mod"
        return mapped

    def compile_command(self, compiler: str, source: str, output: str) -> list[str]:
        return [compiler, "-o", output, source]


# =============================================================================
# Target Type Enum and Factory
# =============================================================================


class TargetType(Enum):
    """Supported translation targets."""

    HLSL = auto()
    GLSL = auto()

    def create(self) -> Target:
        """Create a Target instance for this type."""
        factories: dict[TargetType, type[Target]] = {
            TargetType.HLSL: HLSLTarget,
            TargetType.GLSL: GLSLTarget,
        }
        return factories[self]()


def create_target(name: str) -> Target:
    """Create a target from its command-line name.

    Args:
        name: Target name, case-insensitive ("hlsl" or "glsl")

    Returns:
        The target instance

    Raises:
        ValueError: If the name is not a supported target
    """
    try:
        return TargetType[name.upper()].create()
    except KeyError as e:
        supported = ", ".join(t.name.lower() for t in TargetType)
        raise ValueError(f"Unknown target '{name}'; supported: {supported}") from e


DEFAULT_TARGET = TargetType.HLSL
