"""
pluglint xref - Find the FHIR resource that declares a value.

Usage:
    pluglint xref message-name pingMessage --project .
    pluglint xref structure-definition http://dsf.dev/fhir/StructureDefinition/task-ping|1.0
"""

import json

import click

from ..core.exceptions import ExitCode
from ..resources.crossref import CrossReferenceKind, find_definition
from .utils import console, new_context, require_project


@click.command("xref")
@click.argument("kind", type=click.Choice([k.value for k in CrossReferenceKind]))
@click.argument("value")
@click.option("--project", "-p", "project_dir", default=".", type=click.Path(),
              help="Project directory")
@click.option("--no-dependencies", is_flag=True, help="Search the project's own files only")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_context
def xref(
    ctx: click.Context,
    kind: str,
    value: str,
    project_dir: str,
    no_dependencies: bool,
    json_output: bool,
) -> None:
    """Find a FHIR definition by message name, URL or profile."""
    project = require_project(ctx, project_dir)

    with new_context() as context:
        found = find_definition(
            project, kind, value, context, include_dependencies=not no_dependencies
        )
        # Materialized files vanish with the context; report before leaving it
        if json_output:
            console.print_json(json.dumps({
                "kind": kind,
                "value": value,
                "found": found is not None,
                "file": str(found) if found else None,
            }))
        elif found:
            console.print(f"[green]Found[/green] {found}", highlight=False)
        else:
            console.print(f"[red]Not found[/red] {kind} {value}", highlight=False)

    if found is None:
        ctx.exit(ExitCode.FINDINGS)
