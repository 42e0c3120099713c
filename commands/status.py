"""
Diagnostic commands: bridge status and configuration validation.
"""

import click

from core.auth import AuthState, BridgeAuth
from core.client import BridgeClient
from core.errors import ValidationFailed
from core.scenes import SceneManager
from models.utils import CliOptions, handle_errors, load_effective_config


@click.command()
@click.pass_context
@handle_errors
def status_command(ctx):
    """Show bridge health, credentials and scene capacity."""
    options = ctx.find_object(CliOptions) or CliOptions()
    config = load_effective_config(options)
    client = BridgeClient.from_config(config)

    click.secho("\n=== Bridge Status ===\n", fg='cyan', bold=True)

    auth_status = BridgeAuth(config.bridge_ip, request_timeout=config.timeout_seconds).get_auth_status(
        config.username or ''
    )
    auth_colour = 'green' if auth_status.state == AuthState.SUCCESS else 'red'
    click.echo(f"  Credentials:  {click.style(str(auth_status), fg=auth_colour)}")
    if auth_status.state != AuthState.SUCCESS:
        click.echo()
        return

    status = client.get_bridge_status()
    click.echo(f"  Bridge:       {status.bridge_name} ({status.bridge_id})")
    click.echo(f"  Address:      {config.bridge_ip}")
    click.echo(f"  API version:  {status.api_version} (software {status.sw_version})")
    click.echo(f"  Lights:       {status.reachable_lights}/{status.total_lights} reachable, "
               f"{status.suitable_lights} suitable for status")
    click.echo(f"  Scenes:       {status.total_scenes} stored, {status.available_scenes} of "
               f"{status.max_scenes} slots free")

    score = status.health_score()
    score_colour = 'green' if score >= 80 else 'yellow' if score >= 50 else 'red'
    click.echo(f"  Health:       {click.style(f'{score}/100', fg=score_colour, bold=True)}")

    click.echo()
    for kind in ('success', 'failure'):
        scene = config.get_scene(kind)
        if scene is None:
            click.echo(f"  {kind.title()} scene: {click.style('not configured', fg='yellow')}")
            continue
        present = client.scene_exists(scene.id)
        state = click.style('present', fg='green') if present else click.style('missing', fg='red')
        click.echo(f"  {kind.title()} scene: {scene.name} ({scene.id}) {state}")
    click.echo()


@click.command()
@click.pass_context
@handle_errors
def validate_command(ctx):
    """Validate the configuration, the bridge connection and both status scenes."""
    options = ctx.find_object(CliOptions) or CliOptions()
    config = load_effective_config(options)
    click.secho("✓ Configuration is valid", fg='green')

    client = BridgeClient.from_config(config)
    client.test_connection()
    click.secho(f"✓ Bridge at {config.bridge_ip} is reachable", fg='green')

    total_issues = 0
    for result in SceneManager(client).validate_status_scenes(config):
        if result.is_valid:
            click.secho(f"✓ {result.summary()}", fg='green')
            continue
        total_issues += len(result.issues)
        click.secho(f"✗ Scene '{result.scene_name}' has issues:", fg='red')
        for issue in result.issues:
            click.echo(f"  • {issue}")

    if total_issues:
        raise ValidationFailed(f"Found {total_issues} validation issues")
