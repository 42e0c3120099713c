"""
Setup, discovery and help commands for huestatus.

ColouredGroup is the top-level click group: it lists commands by section and
suggests the closest command names when one is mistyped.
"""

import json
import time
from dataclasses import dataclass

import click

from core.auth import AuthState, AuthStatus, BridgeAuth
from core.client import BridgeClient
from core.config import HueStatusConfig, get_config_file, load_config, save_config
from core.discovery import BridgeDiscovery
from core.errors import BridgeNotFound, HueStatusError, SetupFailed
from core.scenes import SceneManager
from models.discovery import BridgeCandidate, DiscoveryOutcome
from models.utils import APP_NAME, CliOptions, find_similar_strings, handle_errors, instance_name


@dataclass(frozen=True)
class CommandSection:
    """A group of commands in the help output; ``examples`` are (usage, description)."""
    name: str
    icon: str
    colour: str
    examples: list[tuple[str, str]]

    @property
    def command_names(self) -> set[str]:
        return {usage.split()[0] for usage, _ in self.examples}


COMMAND_SECTIONS = [
    CommandSection("Status", "🚦", 'green', [
        ("success", "Show success status (green lights)"),
        ("failure", "Show failure status (red lights)"),
        ("success --validate", "Check lights are reachable first"),
        ("failure --restore", "Put lights back if the scene fails"),
        ("failure --fade 2000", "Allow for a 2 second transition"),
    ]),
    CommandSection("Setup", "🛠️", 'cyan', [
        ("setup", "Discover bridge, press link button, create scenes"),
        ("setup --ip <address>", "Set up a bridge at a known address"),
        ("setup --force", "Replace an existing configuration"),
        ("discover", "List bridges found on the network"),
    ]),
    CommandSection("Diagnostics", "🔍", 'yellow', [
        ("status", "Bridge health, credentials and scene capacity"),
        ("validate", "Check the configured scenes and their lights"),
        ("test-scene <success|failure>", "Dry run a status scene"),
        ("help", "Show this quick reference"),
    ]),
]

# Exit codes scripts can branch on
EXIT_CODES = [
    (0, "Scene shown"),
    (1, "Configuration missing or invalid"),
    (2, "Bridge, network or discovery error"),
    (3, "Authentication failed"),
    (4, "Scene missing or failed to execute"),
    (5, "Unreadable bridge response"),
    (6, "Validation or setup failed"),
]


class ColouredGroup(click.Group):
    """Top-level group: commands listed by section, typo suggestions for unknown commands."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            name = args[0] if args else ''
            if not name or 'No such command' not in str(e):
                raise
            suggestions = find_similar_strings(name, self.visible_commands(ctx))
            if not suggestions:
                raise
            lines = [f"No such command '{name}'.", "", click.style("Did you mean one of these?", fg='yellow')]
            lines += [click.style(f"  • {suggestion}", fg='green') for suggestion in suggestions]
            raise click.UsageError('\n'.join(lines), ctx) from e

    def visible_commands(self, ctx) -> list[str]:
        return [name for name in self.list_commands(ctx) if not self.get_command(ctx, name).hidden]

    def format_commands(self, ctx, formatter):
        """Write one coloured block of commands per section."""
        names = self.visible_commands(ctx)
        if not names:
            return
        width = max(len(name) for name in names) + 2

        listed = set()
        for section in COMMAND_SECTIONS:
            members = [name for name in names if name in section.command_names]
            listed.update(members)
            self._write_section(ctx, formatter, section.name, section.colour, members, width)

        self._write_section(ctx, formatter, 'Other', 'white',
                            [name for name in names if name not in listed], width)

    def _write_section(self, ctx, formatter, title: str, colour: str, names: list[str], width: int):
        if not names:
            return
        formatter.write_paragraph()
        formatter.write_text(click.style(f'{title} commands:', fg=colour, bold=True))
        with formatter.indentation():
            for name in names:
                short_help = self.get_command(ctx, name).get_short_help_str(limit=80)
                formatter.write_text(click.style(name.ljust(width), fg=colour) + short_help)


@click.command(name='help')
def help_command():
    """Show common commands and exit codes."""
    click.secho(f"\n{APP_NAME} quick reference\n", fg='cyan', bold=True)

    for section in COMMAND_SECTIONS:
        click.secho(f"{section.icon} {section.name}", fg=section.colour, bold=True)
        for usage, description in section.examples:
            click.echo(f"  {click.style(usage.ljust(32), fg=section.colour)}{description}")
        click.echo()

    click.secho("Exit codes", bold=True)
    for code, meaning in EXIT_CODES:
        click.echo(f"  {code}  {meaning}")
    click.echo()
    click.echo(f"Run '{APP_NAME} <command> -h' for the options of a command.\n")


def _show_auth_status(status: AuthStatus):
    colours = {
        AuthState.WAITING_FOR_BUTTON: 'yellow',
        AuthState.SUCCESS: 'green',
        AuthState.TIMEOUT: 'red',
        AuthState.ERROR: 'red',
    }
    click.secho(f"  {status}", fg=colours.get(status.state, 'white'))


def _echo_candidates(outcome: DiscoveryOutcome):
    for index, candidate in enumerate(outcome.bridges, start=1):
        click.echo(f"  {index}. {click.style(candidate.display_name, fg='green')}")
        click.echo(f"     {candidate.summary()}")


def _choose_candidate(outcome: DiscoveryOutcome, interactive: bool) -> BridgeCandidate:
    if outcome.bridge_count() == 1 or not interactive:
        return BridgeDiscovery.select_best_bridge([outcome])

    _echo_candidates(outcome)
    choice = click.prompt("Select a bridge", type=click.IntRange(1, outcome.bridge_count()), default=1)
    return outcome.bridges[choice - 1]


def _prompt_for_bridge(discovery: BridgeDiscovery) -> BridgeCandidate:
    click.echo("You can find your bridge IP in your router's DHCP client list,")
    click.echo("or in the Hue app under Settings → Hue Bridges → (i).")
    while True:
        ip = click.prompt("Bridge IP address", type=str).strip()
        try:
            outcome = discovery.discover_manual(ip)
        except HueStatusError as e:
            click.secho(f"✗ {e}", fg='red')
            continue
        click.secho(f"✓ Bridge found at {ip}", fg='green')
        return outcome.first_bridge()


def find_bridge(discovery: BridgeDiscovery, ip: str | None, interactive: bool) -> BridgeCandidate:
    """Resolve the bridge to set up: a given IP, automatic discovery, then a manual prompt."""
    if ip:
        return discovery.discover_manual(ip).first_bridge()

    try:
        outcome = discovery.discover_all()
    except BridgeNotFound:
        if not interactive:
            raise
        click.secho("⚠ Automatic bridge discovery failed.", fg='yellow')
        return _prompt_for_bridge(discovery)

    click.secho(f"✓ {outcome.summary()}", fg='green')
    return _choose_candidate(outcome, interactive)


def _remove_previous_scenes(config: HueStatusConfig, options: CliOptions):
    """Delete scenes left by an earlier setup of the same bridge."""
    try:
        previous = load_config(options.config_path)
    except HueStatusError:
        return
    if previous.bridge_ip != config.bridge_ip or not previous.username:
        return

    SceneManager(BridgeClient.from_config(previous)).delete_status_scenes(previous)


@click.command()
@click.option('--ip', 'bridge_ip', help='Bridge IP address (skip discovery)')
@click.option('--force', '-f', is_flag=True, help='Overwrite existing configuration')
@click.option('--non-interactive', is_flag=True, help='Run setup without prompts')
@click.option('--test', 'test_scenes', is_flag=True, help='Dry run both scenes after setup')
@click.option('--auth-timeout', type=click.IntRange(min=1), default=30, show_default=True,
              help='Seconds to wait for the link button')
@click.pass_context
@handle_errors
def setup_command(ctx, bridge_ip: str | None, force: bool, non_interactive: bool,
                  test_scenes: bool, auth_timeout: int):
    """Configure huestatus for a Hue bridge.

    Discovers the bridge, creates API credentials via the link button,
    creates the green and red status scenes and saves the configuration.

    \b
    Examples:
      huestatus setup
      huestatus setup --ip 192.168.1.20
      huestatus setup --force --non-interactive
    """
    options = ctx.find_object(CliOptions) or CliOptions()
    interactive = not non_interactive
    config_path = options.config_path or get_config_file()
    start = time.monotonic()

    if not force and config_path.exists():
        click.secho(f"⚠ Configuration already exists at {config_path}", fg='yellow')
        click.echo("Use --force to overwrite it, or 'huestatus validate' to check it.")
        raise SetupFailed('Configuration already exists')

    timeout = options.timeout or 10

    # Step 1: Discover bridge
    click.secho("Step 1/4: Discovering Hue bridges...", fg='cyan', bold=True)
    discovery = BridgeDiscovery(timeout=timeout)
    bridge = find_bridge(discovery, bridge_ip, interactive)
    click.echo(f"  Using {bridge.display_name}")
    click.echo()

    # Step 2: Authenticate
    click.secho("Step 2/4: Creating API credentials...", fg='cyan', bold=True)
    auth = BridgeAuth(bridge.ip, timeout=auth_timeout, request_timeout=timeout)
    auth.check_bridge_accessibility()
    click.echo("Press the link button on your Hue bridge now.")
    click.echo("It is the large round button on top of the bridge.")
    if interactive:
        click.pause(f"Press any key once you have pressed it (you then have {auth_timeout} seconds)...")
    credential = auth.authenticate(APP_NAME, instance_name(), callback=_show_auth_status)
    click.echo()

    config = HueStatusConfig(bridge_ip=bridge.ip, username=credential.username)
    if options.timeout is not None:
        config.timeout_seconds = options.timeout
    if options.retry_attempts is not None:
        config.retry_attempts = options.retry_attempts
    if options.retry_delay is not None:
        config.retry_delay_seconds = options.retry_delay

    # Step 3: Create scenes
    click.secho("Step 3/4: Creating status scenes...", fg='cyan', bold=True)
    client = BridgeClient.from_config(config)
    if force:
        _remove_previous_scenes(config, options)

    for light_id, light in client.get_suitable_lights():
        kind = 'Color' if light.supports_color() else 'White'
        click.echo(f"  💡 {light.name} ({light_id}) - {kind}")

    manager = SceneManager(client)
    result = manager.create_status_scenes(config)
    click.secho(f"✓ {result.summary()}", fg='green')

    warnings = []
    for validation in manager.validate_status_scenes(config):
        warnings.extend(validation.issues)
    click.echo()

    # Step 4: Save configuration
    click.secho("Step 4/4: Saving configuration...", fg='cyan', bold=True)
    try:
        saved_path = save_config(config, options.config_path)
    except OSError as e:
        raise SetupFailed(f"Failed to save configuration: {e}") from e

    if test_scenes:
        for kind in ('success', 'failure'):
            scene = config.get_scene(kind)
            report = manager.executor.test_execution(scene.id)
            colour = 'green' if report.is_valid else 'yellow'
            click.secho(f"  {kind}: {report.summary()}", fg=colour)

    click.echo()
    click.secho("✨ Setup completed successfully!", fg='green', bold=True)
    click.echo(f"  Bridge:          {bridge.display_name}")
    click.echo(f"  User:            {credential.summary()}")
    click.echo(f"  Lights:          {len(result.lights_used)}")
    click.echo(f"  Setup time:      {time.monotonic() - start:.1f}s")
    click.echo(f"  Config saved to: {click.style(str(saved_path), fg='cyan')}")

    if warnings:
        click.echo()
        click.secho("⚠ Warnings:", fg='yellow')
        for warning in warnings:
            click.echo(f"  • {warning}")

    click.echo()
    click.echo(f"Next: {click.style('huestatus success', fg='green')} or "
               f"{click.style('huestatus failure', fg='red')}")


@click.command()
@click.option('--ip', 'bridge_ip', help='Check a specific address instead of searching')
@click.option('--scan', is_flag=True, help='Only scan the local network')
@click.option('--json', 'as_json', is_flag=True, help='Print the bridges as JSON')
@click.pass_context
@handle_errors
def discover_command(ctx, bridge_ip: str | None, scan: bool, as_json: bool):
    """List Hue bridges found on the local network.

    \b
    Examples:
      huestatus discover
      huestatus discover --scan
      huestatus discover --ip 192.168.1.20
      huestatus discover --json
    """
    options = ctx.find_object(CliOptions) or CliOptions()
    discovery = BridgeDiscovery(timeout=options.timeout or 10)

    if bridge_ip:
        outcome = discovery.discover_manual(bridge_ip)
    elif scan:
        outcome = discovery.discover_via_network_scan()
        if not outcome.has_bridges():
            raise BridgeNotFound()
    else:
        outcome = discovery.discover_all()

    if as_json:
        click.echo(json.dumps([bridge.to_bridge_info() for bridge in outcome.bridges], indent=2))
        return

    click.secho(f"✓ {outcome.summary()}", fg='green')
    _echo_candidates(outcome)
