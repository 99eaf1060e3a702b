#!/usr/bin/env python3
"""
pluglint - Static resolution and verification of process plugins

Checks that every resource a plugin references resolves to exactly one
file inside the plugin's resource root, and that every implementation
type it declares exists and satisfies its API contract.

Usage:
    pluglint lint plugin.yaml --project .
    pluglint locate fhir/ActivityDefinition/ping.xml --project .
    pluglint check-type dev.dsf.bpe.ping.SendPing --role send_task
    pluglint xref message-name pingMessage

For more information: pluglint --help
"""

import click

from . import __version__
from .commands import check_type, lint, locate, xref
from .core.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="pluglint")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v, -vv, -vvv)")
@click.option("-q", "--quiet", is_flag=True, help="Suppress output except errors")
@click.option("--json-errors", is_flag=True, help="Output errors as JSON for CI integration")
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool, json_errors: bool) -> None:
    """pluglint - Static resolution and verification of process plugins

    \b
    Commands:
      lint        Resolve references and verify types of plugin descriptors
      locate      Show how individual references resolve
      check-type  Verify implementation types against a capability contract
      xref        Find the FHIR resource declaring a value

    \b
    Verbosity:
      -v       INFO level (resolved roots, per-plugin summary)
      -vv      DEBUG level (archives, lookup locations, skipped files)
      -vvv     TRACE level (every probe)
      -q       Quiet mode (errors only)

    \b
    Exit codes:
      0  clean
      1  findings reported
      2  unexpected error
      3  project directory missing
      4  invalid plugin descriptor

    \b
    Examples:
      pluglint lint plugin.yaml --project .
      pluglint lint plugins/*.yaml --parallel 4 --json
      pluglint --json-errors lint plugin.yaml 2>&1 | jq .error  # CI mode
    """
    ctx.ensure_object(dict)
    ctx.obj["verbosity"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["json_errors"] = json_errors
    setup_logging(verbose, quiet)


cli.add_command(lint)
cli.add_command(locate)
cli.add_command(check_type)
cli.add_command(xref)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
