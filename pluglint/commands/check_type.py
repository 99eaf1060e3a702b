"""
pluglint check-type - Verify implementation types against a capability contract.

Usage:
    pluglint check-type dev.dsf.bpe.ping.SendPing --project . --role send_task
    pluglint check-type com.example.Listener --api-version v1 --role user_task_listener --deep
"""

import json

import click

from ..core.descriptor import ApiVersion, ElementRole
from ..core.exceptions import ExitCode
from ..inspection.capabilities import capabilities_for
from ..inspection.registry import for_project, for_project_deep
from ..inspection.verifier import verify
from .utils import console, new_context, require_project


@click.command("check-type")
@click.argument("type_names", nargs=-1, required=True)
@click.option("--project", "-p", "project_dir", default=".", type=click.Path(),
              help="Project directory")
@click.option("--api-version", "api_version", default="v2",
              type=click.Choice([v.value for v in ApiVersion]), help="Plugin API generation")
@click.option("--role", default="generic",
              type=click.Choice([r.value for r in ElementRole]), help="Role of the declaring element")
@click.option("--deep", is_flag=True, help="Include nested module build outputs")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_context
def check_type(
    ctx: click.Context,
    type_names: tuple[str, ...],
    project_dir: str,
    api_version: str,
    role: str,
    deep: bool,
    json_output: bool,
) -> None:
    """Check that types exist and satisfy their capability contract."""
    project = require_project(ctx, project_dir)
    capabilities = capabilities_for(api_version, role)

    with new_context() as context:
        registry = for_project_deep(project, context) if deep else for_project(project, context)
        results = [verify(name, capabilities, registry) for name in type_names]

    if json_output:
        console.print_json(json.dumps({
            "api_version": api_version,
            "role": role,
            "required": capabilities.names,
            "results": [r.to_json() for r in results],
        }))
    else:
        for result in results:
            mark = "[green]✓[/green]" if result.passed else "[red]✗[/red]"
            console.print(f"{mark} {result.message}", highlight=False)

    if any(not r.passed for r in results):
        ctx.exit(ExitCode.FINDINGS)
