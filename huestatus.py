#!/usr/bin/env python3
"""
huestatus CLI
Show build and test status on Philips Hue lights: green for success, red for failure.
"""

from pathlib import Path

import click

from core.log import setup_logging

from commands.setup import ColouredGroup, help_command, setup_command, discover_command
from commands.control import success_command, failure_command, test_scene_command
from commands.status import status_command, validate_command
from models.utils import CliOptions


@click.group(
    cls=ColouredGroup,
    context_settings={
        'help_option_names': ['-h', '--help'],
        'max_content_width': 120
    }
)
@click.version_option(version='0.1.0', prog_name='huestatus')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress all output except errors')
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False, path_type=Path),
              help='Use a custom configuration file')
@click.option('--timeout', '-t', type=click.FloatRange(min=0, min_open=True), metavar='SECONDS',
              help='Bridge request timeout [default: 10]')
@click.option('--retry-attempts', type=click.IntRange(min=1), metavar='COUNT',
              help='Attempts per bridge request [default: 3]')
@click.option('--retry-delay', type=click.FloatRange(min=0), metavar='SECONDS',
              help='Delay between attempts [default: 1]')
@click.option('--log-file', type=click.Path(dir_okay=False, path_type=Path),
              help='Also write debug logs to this file')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool, config_path: Path | None, timeout: float | None,
        retry_attempts: int | None, retry_delay: float | None, log_file: Path | None):
    """huestatus - Show success or failure on your Philips Hue lights.

Run 'setup' once to discover your bridge, authenticate with the link button
and create the status scenes. Then use 'success' and 'failure' from scripts and CI.

Configuration: ~/.huestatus/config.json (override with HUESTATUS_CONFIG_DIR)
Use 'COMMAND -h' or 'COMMAND --help' for detailed help on a specific command."""
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet cannot be used together")

    setup_logging(verbose=verbose, log_file=log_file)
    ctx.obj = CliOptions(
        verbose=verbose,
        quiet=quiet,
        config_path=config_path,
        timeout=timeout,
        retry_attempts=retry_attempts,
        retry_delay=retry_delay,
    )


# Register status commands
cli.add_command(success_command, name='success')
cli.add_command(failure_command, name='failure')
cli.add_command(test_scene_command, name='test-scene')

# Register setup and help commands
cli.add_command(help_command)
cli.add_command(setup_command, name='setup')
cli.add_command(discover_command, name='discover')

# Register diagnostic commands
cli.add_command(status_command, name='status')
cli.add_command(validate_command, name='validate')


if __name__ == '__main__':
    cli()
