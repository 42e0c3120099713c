"""
Status commands: show success/failure on the lights and dry-run a scene.
"""

import click

from core.client import BridgeClient
from core.config import SCENE_KINDS
from core.errors import SceneNotFound, ValidationFailed
from core.scenes import SceneManager
from models.execution import (
    BackupAndRestore,
    Delayed,
    ExecutionOptions,
    ExecutionStrategy,
    Fade,
    Immediate,
)
from models.utils import CliOptions, format_duration, handle_errors, load_effective_config


def build_strategy(delay: float | None, fade: int | None, restore: bool) -> ExecutionStrategy:
    """Map the status command flags to one execution strategy."""
    if restore:
        return BackupAndRestore()
    if fade is not None:
        return Fade(fade)
    if delay is not None:
        return Delayed(delay)
    return Immediate()


def show_status(ctx: click.Context, kind: str, validate: bool, delay: float | None,
                fade: int | None, restore: bool):
    options = ctx.find_object(CliOptions) or CliOptions()
    config = load_effective_config(options)

    execution_options = ExecutionOptions(validate_before_execution=validate)
    manager = SceneManager(BridgeClient.from_config(config))
    result = manager.execute_status_scene(
        kind, config, options=execution_options, strategy=build_strategy(delay, fade, restore),
    )

    if config.verbose and not options.quiet:
        colour = 'green' if kind == 'success' else 'red'
        click.secho(f"✓ {kind} status displayed ({format_duration(result.execution_time_ms)})", fg=colour)
        if result.metrics:
            click.echo(f"  {result.metrics.summary()}")


def status_options(command):
    command = click.option('--restore', is_flag=True,
                           help='Restore previous light states if the scene fails')(command)
    command = click.option('--fade', type=click.IntRange(min=0), metavar='MS',
                           help='Allow for a bridge transition of MS milliseconds')(command)
    command = click.option('--delay', type=click.FloatRange(min=0), metavar='SECONDS',
                           help='Wait before applying the scene')(command)
    command = click.option('--validate', is_flag=True,
                           help='Check the scene and its lights before applying it')(command)
    return command


@click.command()
@status_options
@click.pass_context
@handle_errors
def success_command(ctx, validate: bool, delay: float | None, fade: int | None, restore: bool):
    """Show success status (green lights).

    \b
    Examples:
      make test && huestatus success || huestatus failure
      huestatus success --validate
    """
    show_status(ctx, 'success', validate, delay, fade, restore)


@click.command()
@status_options
@click.pass_context
@handle_errors
def failure_command(ctx, validate: bool, delay: float | None, fade: int | None, restore: bool):
    """Show failure status (red lights)."""
    show_status(ctx, 'failure', validate, delay, fade, restore)


@click.command()
@click.argument('kind', type=click.Choice(SCENE_KINDS))
@click.pass_context
@handle_errors
def test_scene_command(ctx, kind: str):
    """Dry run a status scene without changing any light.

    Reports every light of the scene, whether it is reachable and whether
    it can show colour.

    \b
    Examples:
      huestatus test-scene success
    """
    options = ctx.find_object(CliOptions) or CliOptions()
    config = load_effective_config(options)

    scene = config.get_scene(kind)
    if scene is None:
        raise SceneNotFound(kind)

    manager = SceneManager(BridgeClient.from_config(config))
    report = manager.executor.test_execution(scene.id)

    click.secho(f"\n=== {kind.title()} scene: {scene.name} ({scene.id}) ===\n", fg='cyan', bold=True)
    for light in report.lights_status:
        reachable = click.style('●', fg='green' if light.is_reachable else 'red')
        capability = 'Color' if light.supports_color else 'White'
        click.echo(f"  {reachable} {light.light_name} ({light.light_id}) - {capability}")

    click.echo()
    click.echo(f"  Reachable:     {report.reachable_lights_count()}/{len(report.lights_status)}")
    click.echo(f"  Colour lights: {report.color_capable_lights_count()}")
    click.echo()

    if not report.is_valid:
        for issue in report.issues:
            click.secho(f"  ✗ {issue}", fg='red')
        click.echo()
        raise ValidationFailed(f"{len(report.issues)} issue(s) found in {kind} scene")

    click.secho(f"✓ {report.summary()}", fg='green')
