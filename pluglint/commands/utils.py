"""
Shared utilities for CLI commands.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, NoReturn, Optional

import click
from rich.console import Console

from ..core.context import ResolutionContext
from ..core.exceptions import ExitCode, ProjectNotFound, format_json_error
from ..core.logging import get_logger

logger = get_logger(__name__)
console = Console()
err_console = Console(stderr=True)


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Execute an async coroutine synchronously.

    Usage:
        def my_command(...):
            run_async(_my_command_async(...))
    """
    return asyncio.run(coro)


def fail(ctx: click.Context, exc: Exception, context: Optional[dict] = None) -> NoReturn:
    """Report a fatal input error and exit with its exit code.

    Honors the global ``--json-errors`` flag.
    """
    obj = ctx.find_root().obj or {}
    exit_code = getattr(exc, "exit_code", ExitCode.GENERAL_ERROR)
    if obj.get("json_errors"):
        click.echo(format_json_error(exc, context), err=True)
    else:
        err_console.print(f"[red]Error: {exc}[/red]", highlight=False)
    logger.debug(f"Exiting with code {exit_code}: {exc!r}")
    sys.exit(exit_code)


def require_project(ctx: click.Context, project_dir: str) -> Path:
    """Validate the --project option before any resolution happens."""
    path = Path(project_dir)
    if not path.is_dir():
        fail(ctx, ProjectNotFound(path))
    return path


def new_context() -> ResolutionContext:
    """Fresh resolution context for one CLI invocation."""
    return ResolutionContext()
