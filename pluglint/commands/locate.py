"""
pluglint locate - Show how references resolve against a project.

Usage:
    pluglint locate fhir/ActivityDefinition/ping.xml --project .
    pluglint locate bpe/ping.bpmn --project . --plugin ping.yaml --json
"""

import json
from pathlib import Path
from typing import Optional

import click
from rich.table import Table

from ..core.descriptor import PluginDescriptor
from ..core.exceptions import ExitCode, InvalidDescriptor
from ..resources.locator import FoundInDependency, FoundOutsideRoot, locate as locate_reference
from ..resources.roots import resolve_root
from .utils import console, fail, new_context, require_project

SOURCE_STYLES = {
    "disk_in_root": "green",
    "disk_outside_root": "red",
    "dependency": "yellow",
    "not_found": "red",
}


@click.command("locate")
@click.argument("references", nargs=-1, required=True)
@click.option("--project", "-p", "project_dir", default=".", type=click.Path(),
              help="Project directory")
@click.option("--plugin", "plugin_path", default=None, type=click.Path(),
              help="Plugin descriptor selecting a plugin-specific resource root")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_context
def locate(
    ctx: click.Context,
    references: tuple[str, ...],
    project_dir: str,
    plugin_path: Optional[str],
    json_output: bool,
) -> None:
    """Locate resource references and classify each result."""
    project = require_project(ctx, project_dir)
    plugin = None
    if plugin_path:
        try:
            plugin = PluginDescriptor.from_file(Path(plugin_path))
        except InvalidDescriptor as e:
            fail(ctx, e)

    rows = []
    with new_context() as context:
        root = resolve_root(project, plugin, context)
        for ref in references:
            result = locate_reference(ref, root, context)
            row = {
                "reference": ref,
                "source": result.source.value,
                "file": str(result.file) if result.file else None,
                "actual_location": None,
                "entry": None,
            }
            if isinstance(result, (FoundOutsideRoot, FoundInDependency)):
                row["actual_location"] = str(result.actual_location)
            if isinstance(result, FoundInDependency):
                row["entry"] = result.entry
            rows.append(row)

        if json_output:
            console.print_json(json.dumps({
                "resource_root": str(root.path),
                "strategy": root.strategy.value,
                "results": rows,
            }))
        else:
            console.print(f"Resource root: {root.path} ({root.strategy.name})", highlight=False)
            table = Table()
            table.add_column("Reference")
            table.add_column("Result")
            table.add_column("Location")
            for row in rows:
                style = SOURCE_STYLES[row["source"]]
                table.add_row(
                    row["reference"],
                    f"[{style}]{row['source']}[/{style}]",
                    row["actual_location"] or row["file"] or "-",
                )
            console.print(table)

    if any(row["source"] in ("not_found", "disk_outside_root") for row in rows):
        ctx.exit(ExitCode.FINDINGS)
