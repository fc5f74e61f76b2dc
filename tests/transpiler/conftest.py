"""
Pytest configuration and shared fixtures for transpiler tests.

This module contains fixtures that are shared across multiple test modules.
"""

import ast

import pytest

from py2hlsl.transpiler.collector import collect_function
from py2hlsl.transpiler.context import CodegenContext
from py2hlsl.transpiler.models import (
    CollectedInfo,
    EnumDefinition,
    StructDefinition,
    StructField,
)
from py2hlsl.transpiler.target import GLSLTarget, HLSLTarget


@pytest.fixture
def symbols():
    """Fixture providing a sample symbol table."""
    return {
        "uv": "Float2",
        "color": "Float4",
        "time": "float32",
        "count": "int32",
        "flag": "Bool",
        "a": "float32",
        "b": "float32",
        "c": "float32",
        "xs": "list",
        "test_struct": "TestStruct",
    }


@pytest.fixture
def collected_info():
    """Fixture providing a sample collected info structure."""
    info = CollectedInfo()

    # Add a test struct
    info.structs["TestStruct"] = StructDefinition(
        name="TestStruct",
        fields=[
            StructField(name="position", type_name="Float3"),
            StructField(name="value", type_name="float32"),
            StructField(name="weight", type_name="float32", default_value="1.0"),
        ],
    )

    # Add an enum
    info.enums["Color"] = EnumDefinition(
        name="Color",
        members=[("RED", ast.Constant(0)), ("GREEN", ast.Constant(1))],
    )

    # Add a test function
    node = ast.parse(
        "def mix(x: float32, y: float32, t: float32) -> float32:\n"
        "    return x * (1.0 - t) + y * t\n"
    ).body[0]
    info.functions["mix"] = collect_function(node)

    return info


@pytest.fixture
def hlsl_ctx(collected_info):
    """Fixture providing an HLSL code generation context."""
    return CodegenContext(collected=collected_info, target=HLSLTarget())


@pytest.fixture
def glsl_ctx(collected_info):
    """Fixture providing a GLSL code generation context."""
    return CodegenContext(collected=collected_info, target=GLSLTarget())
