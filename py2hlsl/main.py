"""Command line interface for py2hlsl.

This module provides a command-line interface for translating the
directive-marked regions of Python files into HLSL or GLSL compute shaders
and compiling them with an external compiler.
"""

import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import typer
import watchdog.events
import watchdog.observers
from loguru import logger
from watchdog.events import FileSystemEventHandler

from py2hlsl.transpiler import run
from py2hlsl.transpiler.constants import DEFAULT_EXCLUDED_FUNCTIONS
from py2hlsl.transpiler.context import RunContext
from py2hlsl.transpiler.errors import ResolutionError
from py2hlsl.transpiler.target import create_target

# Define type variables for TypedCallable
F = TypeVar("F", bound=Callable[..., Any])


# TypedCommand decorator helper
def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="py2hlsl",
    help="Translate directive-marked Python code into HLSL or GLSL compute shaders.",
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr at INFO, or DEBUG when verbose."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def parse_exclude(value: str) -> frozenset[str]:
    """Split a comma-separated list of function names."""
    return frozenset(name.strip() for name in value.split(",") if name.strip())


def build_context(
    out: Path,
    exclude: str,
    keep: bool,
    target: str,
    no_compile: bool,
    compiler: str,
    header: bool,
) -> RunContext:
    """Create the run state from command-line options.

    Raises:
        typer.BadParameter: If the target is not supported
    """
    try:
        target_obj = create_target(target)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--target") from e
    return RunContext(
        target=target_obj,
        out_dir=out,
        exclude=parse_exclude(exclude),
        keep=keep,
        compile=not no_compile,
        compiler=compiler,
        header=header,
    )


def translate(paths: list[str], ctx: RunContext) -> int:
    """Run one translation pass.

    Returns:
        Exit status: 1 if resolution failed or any unit failed, else 0
    """
    try:
        failures = run(paths, ctx)
    except ResolutionError as e:
        logger.error(str(e))
        return 1
    if failures:
        logger.error(f"{failures} unit(s) failed to translate")
        return 1
    return 0


class TranslationChangeHandler(FileSystemEventHandler):  # type: ignore
    """Event handler flagging changes to Python sources."""

    def __init__(self) -> None:
        self.needs_rerun = False

    def on_modified(self, event: watchdog.events.FileSystemEvent) -> None:
        """Handle file modified event.

        Args:
            event: File system event
        """
        if event.is_directory or not str(event.src_path).endswith(".py"):
            return
        logger.info(f"Detected changes in {event.src_path}")
        self.needs_rerun = True

    def on_created(self, event: watchdog.events.FileSystemEvent) -> None:
        self.on_modified(event)


def watch_directories(paths: list[str]) -> list[Path]:
    """Directories to observe for the given inputs."""
    directories: set[Path] = set()
    for arg in paths:
        path = Path(arg)
        if path.is_dir():
            directories.add(path.resolve())
        elif path.exists():
            directories.add(path.resolve().parent)
    return sorted(directories)


def watch(paths: list[str], make_context: Callable[[], RunContext]) -> None:
    """Re-run the translation whenever a watched source changes.

    The observer thread only sets a flag; translation runs on this thread.
    Each pass starts from a fresh run context.
    """
    handler = TranslationChangeHandler()
    observer = watchdog.observers.Observer()
    directories = watch_directories(paths)
    for directory in directories:
        observer.schedule(handler, path=str(directory), recursive=True)
    observer.start()
    logger.info(f"Watching {len(directories)} director(ies), press Ctrl+C to stop")

    try:
        while True:
            if handler.needs_rerun:
                handler.needs_rerun = False
                translate(paths, make_context())
            time.sleep(0.2)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, stopping...")
    finally:
        observer.stop()
        observer.join()


@typed_command(app.command())
def main(
    paths: list[str] = typer.Argument(
        ..., help="Python files, directories or dotted module names"
    ),
    out: Path = typer.Option(Path("shaders"), "--out", "-o", help="Output directory"),
    exclude: str = typer.Option(
        ",".join(sorted(DEFAULT_EXCLUDED_FUNCTIONS)),
        "--exclude",
        "-e",
        help="Comma-separated function names left out of the output",
    ),
    keep: bool = typer.Option(
        False, "--keep", "-k", help="Keep the intermediate Python file of each unit"
    ),
    target: str = typer.Option("hlsl", "--target", "-t", help="Target language (hlsl, glsl)"),
    no_compile: bool = typer.Option(
        False, "--no-compile", help="Write shader files without compiling them"
    ),
    compiler: str = typer.Option(
        "glslc", "--compiler", envvar="PY2HLSL_COMPILER", help="Shader compiler executable"
    ),
    header: bool = typer.Option(
        False, "--header", help="Prefix outputs with a generation header"
    ),
    watch_mode: bool = typer.Option(
        False, "--watch", "-w", help="Translate again whenever an input changes"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Translate the directive regions of Python sources into shaders.

    Each translation unit is written to <out>/<unit>.hlsl (.comp for glsl)
    and compiled to <out>/<unit>.spv.

    Example: py2hlsl chans/ -o shaders --exclude update,defaults
    """
    configure_logging(verbose)

    def make_context() -> RunContext:
        return build_context(out, exclude, keep, target, no_compile, compiler, header)

    status = translate(paths, make_context())
    if watch_mode:
        watch(paths, make_context)
    if status:
        raise typer.Exit(status)


if __name__ == "__main__":
    app()
