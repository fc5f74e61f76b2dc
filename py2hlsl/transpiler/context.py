"""
Run and code generation state for the HLSL shader transpiler.

`RunContext` is owned by the driver and passed explicitly through every pass;
`CodegenContext` bundles what the printer needs while generating one unit.
"""

from dataclasses import dataclass, field
from pathlib import Path

from py2hlsl.transpiler.constants import DEFAULT_EXCLUDED_FUNCTIONS
from py2hlsl.transpiler.models import (
    CollectedInfo,
    StructDefinition,
    TranslationUnit,
)
from py2hlsl.transpiler.target import DEFAULT_TARGET, Target


@dataclass
class RunContext:
    """State of one translation run.

    Attributes:
        target: Output language rules
        out_dir: Directory receiving generated files
        exclude: Function names dropped from translated output
        keep: Keep the intermediate Python file of each unit
        compile: Invoke the external compiler on each output file
        compiler: Compiler executable
        header: Prefix outputs with a generation header
        prefixes: Package identifiers whose qualifiers are removed
        units: Translation units by name, in creation order
        processed: Files already scanned in this run
        structs: Struct definitions of every unit, for nested layout lookups
    """

    target: Target = field(default_factory=DEFAULT_TARGET.create)
    out_dir: Path = Path("shaders")
    exclude: frozenset[str] = DEFAULT_EXCLUDED_FUNCTIONS
    keep: bool = False
    compile: bool = True
    compiler: str = "glslc"
    header: bool = False
    prefixes: dict[str, bool] = field(default_factory=dict)
    units: dict[str, TranslationUnit] = field(default_factory=dict)
    processed: set[Path] = field(default_factory=set)
    structs: dict[str, StructDefinition] = field(default_factory=dict)


@dataclass
class CodegenContext:
    """Everything the printer consults while generating code.

    Attributes:
        collected: Functions, structs, enums and globals of the unit
        target: Output language rules
        prefixes: Package identifiers whose qualifiers are removed
        owner: Struct owning the method being generated, if any
    """

    collected: CollectedInfo
    target: Target
    prefixes: dict[str, bool] = field(default_factory=dict)
    owner: str | None = None

    @property
    def flatten_methods(self) -> bool:
        return not self.target.supports_methods
