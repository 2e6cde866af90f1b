"""Click command for cfnpreview.

Exit codes:
    0   -- preview completed, with or without changes
    1   -- any pipeline failure (message names the failing stage)
    130 -- interrupted; the changeset has already been released
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from cfnpreview import __version__
from cfnpreview.app import Previewer, PreviewRequest
from cfnpreview.config import load_config
from cfnpreview.errors import PreviewError
from cfnpreview.gateway.base import StackGateway
from cfnpreview.gateway.cloudformation import CloudFormationGateway
from cfnpreview.models.config import PreviewConfig
from cfnpreview.observability.logging import bind_run_context, get_logger, setup_logging
from cfnpreview.report import render_report

_EXIT_FAILURE = 1
_EXIT_INTERRUPTED = 130


def build_gateway(config: PreviewConfig) -> StackGateway:
    """Create the remote gateway.  Replaced in tests."""
    return CloudFormationGateway.from_config(config)


@click.command(name="cfnpreview")
@click.version_option(__version__, prog_name="cfnpreview")
@click.argument(
    "template",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-s",
    "--stack-name",
    required=True,
    help="Name of the CloudFormation stack to diff against.",
)
@click.option(
    "-p",
    "--parameters",
    "parameters",
    multiple=True,
    metavar="KEY=VALUE",
    help="Template parameter override; may be repeated.",
)
@click.option(
    "--color/--no-color",
    default=None,
    help="Force coloured output on or off (default: only on a terminal).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug events to stderr.")
def cli(
    template: Path,
    stack_name: str,
    parameters: tuple[str, ...],
    color: bool | None,
    verbose: bool,
) -> None:
    """Preview the effect of deploying TEMPLATE to an existing stack."""
    try:
        config = load_config()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    setup_logging("debug" if verbose else config.log.level, config.log.format)
    bind_run_context(stack=stack_name)
    log = get_logger("cli")
    if color is None:
        color = sys.stdout.isatty()

    try:
        # Malformed overrides fail before a client is even built.
        request = PreviewRequest.from_arguments(stack_name, template, parameters)
        report = Previewer(build_gateway(config), config).run(request)
    except PreviewError as exc:
        log.error("preview_failed", stage=exc.stage, error=exc.message)
        click.echo(f"error [{exc.stage}]: {exc.message}", err=True)
        sys.exit(_EXIT_FAILURE)
    except KeyboardInterrupt:
        click.echo("interrupted", err=True)
        sys.exit(_EXIT_INTERRUPTED)

    click.echo(render_report(report, color=color), color=color)
