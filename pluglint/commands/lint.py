"""
pluglint lint - Resolve and verify one or more plugin descriptors.

Usage:
    pluglint lint plugin.yaml --project .
    pluglint lint plugins/*.yaml --project build/ping --parallel 4 --json
"""

import asyncio
import json
from pathlib import Path

import click
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..core.context import ResolutionContext
from ..core.descriptor import PluginDescriptor
from ..core.exceptions import ExitCode, InvalidDescriptor
from ..core.logging import get_logger
from ..lint import LintReport, lint_plugin
from ..resources.roots import ResourceRoot, resolve_shared_root
from .utils import console, fail, new_context, require_project, run_async

logger = get_logger(__name__)


@click.command("lint")
@click.argument("descriptors", nargs=-1, required=True, type=click.Path())
@click.option("--project", "-p", "project_dir", default=".", type=click.Path(),
              help="Project directory (build output or checkout)")
@click.option("--parallel", "-j", type=int, default=1, help="Plugins linted concurrently")
@click.option("--deep", is_flag=True, help="Include nested module build outputs when loading types")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_context
def lint(
    ctx: click.Context,
    descriptors: tuple[str, ...],
    project_dir: str,
    parallel: int,
    deep: bool,
    json_output: bool,
) -> None:
    """Lint plugin descriptors against a project."""
    project = require_project(ctx, project_dir)

    plugins: list[PluginDescriptor] = []
    for path in descriptors:
        try:
            plugins.append(PluginDescriptor.from_file(Path(path)))
        except InvalidDescriptor as e:
            fail(ctx, e, {"project": str(project)})

    with new_context() as context:
        shared = resolve_shared_root(project, plugins, context)
        logger.info(f"Shared resource root: {shared}")
        reports = run_async(_lint_all(plugins, project, context, max(parallel, 1), deep, json_output))
        logger.debug(f"Cache stats: {context.cache_stats()}")

        # Reports point at materialized files, which the context deletes on exit
        _print_reports(project, shared, reports, json_output)

    if any(not r.passed for r in reports):
        ctx.exit(ExitCode.FINDINGS)


async def _lint_all(
    plugins: list[PluginDescriptor],
    project: Path,
    context: ResolutionContext,
    parallel_limit: int,
    deep: bool,
    quiet_progress: bool,
) -> list[LintReport]:
    """Lint plugins on worker threads, at most ``parallel_limit`` at a time."""
    semaphore = asyncio.Semaphore(parallel_limit)

    async def lint_one(plugin: PluginDescriptor, progress: Progress) -> LintReport:
        async with semaphore:
            task_id = progress.add_task(f"Linting {plugin.name}", total=None)
            try:
                return await asyncio.to_thread(lint_plugin, plugin, project, context, deep)
            finally:
                progress.remove_task(task_id)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
        disable=quiet_progress,
    ) as progress:
        return list(await asyncio.gather(*(lint_one(p, progress) for p in plugins)))


def _print_reports(project: Path, shared: ResourceRoot, reports: list[LintReport], json_output: bool) -> None:
    if json_output:
        console.print_json(json.dumps({
            "project": str(project),
            "shared_root": str(shared.path),
            "total": len(reports),
            "passed": sum(1 for r in reports if r.passed),
            "failed": sum(1 for r in reports if not r.passed),
            "reports": [r.to_json() for r in reports],
        }))
    else:
        for report in reports:
            console.print(report.to_markdown(), markup=False, highlight=False)
        failed = [r for r in reports if not r.passed]
        console.print(
            f"[bold]{len(reports) - len(failed)}/{len(reports)} plugins passed[/bold]"
        )
