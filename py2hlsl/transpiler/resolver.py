"""
Input resolution for the HLSL shader transpiler.

Command-line arguments name files, directories or importable modules. This
module turns them into the ordered list of source files that carry directive
regions and parse as Python, and derives the package qualifiers to strip.
"""

import ast
import importlib.util
from pathlib import Path

from loguru import logger

from py2hlsl.transpiler.context import RunContext
from py2hlsl.transpiler.directives import has_directives
from py2hlsl.transpiler.errors import ResolutionError

SOURCE_SUFFIX = ".py"
_SKIPPED_DIRS = {"__pycache__"}


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def walk_directory(root: Path) -> list[Path]:
    """List Python files below a directory in sorted order.

    Dotfiles, dot-directories and `__pycache__` are skipped.

    Args:
        root: Directory to walk

    Returns:
        Source files in sorted, depth-first order
    """
    files: list[Path] = []
    for entry in sorted(root.iterdir()):
        if _is_hidden(entry):
            continue
        if entry.is_dir():
            if entry.name not in _SKIPPED_DIRS:
                files.extend(walk_directory(entry))
        elif entry.suffix == SOURCE_SUFFIX:
            files.append(entry)
    return files


def find_module_file(specifier: str) -> Path | None:
    """Locate the source file of an importable dotted module name.

    Only the module itself is loaded, never its dependencies.

    Args:
        specifier: Dotted module name such as `pkg.module`

    Returns:
        Path to the module source, or None if it cannot be resolved
    """
    try:
        spec = importlib.util.find_spec(specifier)
    except (ImportError, ValueError) as e:
        logger.debug(f"Cannot resolve module '{specifier}': {e}")
        return None
    if spec is None or spec.origin is None or not spec.origin.endswith(SOURCE_SUFFIX):
        return None
    return Path(spec.origin)


def expand_path(arg: str) -> list[Path]:
    """Expand one command-line argument into candidate source files."""
    path = Path(arg)
    if path.is_dir():
        return walk_directory(path)
    if path.is_file():
        return [path]
    module_file = find_module_file(arg)
    if module_file is not None:
        if module_file.name == "__init__.py":
            return walk_directory(module_file.parent)
        return [module_file]
    logger.error(f"Input not found: {arg}")
    return []


def is_usable(path: Path) -> bool:
    """Check that a file carries directives and is valid Python.

    Args:
        path: Candidate source file

    Returns:
        True if the file should be scanned
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read {path}: {e}")
        return False
    if not has_directives(text):
        logger.debug(f"No directives in {path}, skipping")
        return False
    try:
        ast.parse(text, filename=str(path))
    except SyntaxError as e:
        logger.error(f"Cannot parse {path}: {e.msg} at line {e.lineno}")
        return False
    return True


def build_prefix_map(files: list[Path]) -> dict[str, bool]:
    """Derive the package qualifiers removed from translated code.

    Every input module name and the name of its containing package are
    stripped, so `chans.GABABParams` translates as `GABABParams`.

    Args:
        files: Resolved source files

    Returns:
        Map from short package identifier to whether it is stripped
    """
    prefixes: dict[str, bool] = {}
    for path in files:
        if path.stem != "__init__":
            prefixes[path.stem] = True
        if (path.parent / "__init__.py").exists():
            prefixes[path.parent.resolve().name] = True
    return prefixes


def resolve_inputs(paths: list[str], ctx: RunContext) -> list[Path]:
    """Resolve command-line arguments into usable source files.

    Updates `ctx.processed` and `ctx.prefixes`.

    Args:
        paths: Files, directories or dotted module names
        ctx: Run state

    Returns:
        Usable files in argument order

    Raises:
        ResolutionError: If no usable file remains
    """
    files: list[Path] = []
    for arg in paths:
        for path in expand_path(arg):
            resolved = path.resolve()
            if resolved in ctx.processed:
                logger.debug(f"Already processed {path}, skipping")
                continue
            ctx.processed.add(resolved)
            if is_usable(path):
                files.append(path)

    if not files:
        raise ResolutionError(f"No usable input files in: {', '.join(paths)}")

    ctx.prefixes.update(build_prefix_map(files))
    logger.info(f"Resolved {len(files)} input file(s)")
    logger.debug(f"Package prefixes: {sorted(ctx.prefixes)}")
    return files
