"""Fixtures and configuration for pytest."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "compiler: mark test as requiring glslc on PATH")


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[[str, str], Path]:
    """Fixture writing dedented Python sources below a temporary directory."""

    def write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    return write
