"""Helpers shared by the CLI commands.

This module contains:
- CliOptions: global options collected by the top-level click group
- load_effective_config: configuration with env and command-line overrides applied
- handle_errors: turns HueStatusError into a message and an exit code
- similarity_score / find_similar_strings: fuzzy matching for command typos
"""

import functools
import socket
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from loguru import logger

from core.config import HueStatusConfig, load_config
from core.errors import (
    AuthenticationFailed,
    BridgeNotFound,
    ConfigNotFound,
    HueStatusError,
    NetworkError,
    OperationTimeout,
    SceneNotFound,
)

APP_NAME = 'huestatus'


@dataclass
class CliOptions:
    verbose: bool = False
    quiet: bool = False
    config_path: Path | None = None
    timeout: float | None = None
    retry_attempts: int | None = None
    retry_delay: float | None = None


def load_effective_config(options: CliOptions) -> HueStatusConfig:
    """Load the config file, then apply env overrides, then command-line options."""
    config = load_config(options.config_path)
    config.apply_env_overrides()

    if options.timeout is not None:
        config.timeout_seconds = options.timeout
    if options.retry_attempts is not None:
        config.retry_attempts = options.retry_attempts
    if options.retry_delay is not None:
        config.retry_delay_seconds = options.retry_delay
    config.verbose = config.verbose or options.verbose

    config.validate()
    return config


def instance_name() -> str:
    """Second half of the device type sent to the bridge (``huestatus#<host>``)."""
    return socket.gethostname().split('.')[0] or 'cli'


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


def error_suggestions(error: HueStatusError) -> list[str]:
    """Next steps to print after ``error``."""
    if isinstance(error, ConfigNotFound):
        return ["Run: huestatus setup"]
    if isinstance(error, BridgeNotFound):
        return [
            "Ensure your Hue bridge is connected and powered on",
            "Check that this machine is on the same network as the bridge",
            "Run: huestatus setup --ip <bridge-ip>",
        ]
    if isinstance(error, (AuthenticationFailed, SceneNotFound)):
        return ["Run: huestatus setup --force"]
    if isinstance(error, (NetworkError, OperationTimeout)):
        return [
            "Check your network connection",
            "Verify the bridge IP address is correct",
            "Try increasing the timeout with --timeout <seconds>",
        ]
    if error.recoverable_with_setup:
        return ["Run: huestatus setup --force"]
    return []


def report_error(error: HueStatusError, verbose: bool = False):
    click.secho(f"✗ {error}", fg='red', err=True)
    if verbose:
        click.echo(f"  Error type: {type(error).__name__} ({error.category.value})", err=True)
        click.echo(f"  Exit code:  {error.exit_code}", err=True)

    suggestions = error_suggestions(error)
    if suggestions:
        click.echo(err=True)
        for suggestion in suggestions:
            click.secho(f"  • {suggestion}", fg='yellow', err=True)


def handle_errors(command):
    """Exit with the error's exit code instead of a traceback.

    The wrapped command must take the click context as its first argument.
    """
    @functools.wraps(command)
    def wrapper(ctx: click.Context, *args, **kwargs):
        options = ctx.find_object(CliOptions) or CliOptions()
        try:
            return command(ctx, *args, **kwargs)
        except HueStatusError as e:
            logger.debug(f"{command.__name__} failed: {e!r}")
            if not options.quiet:
                report_error(e, options.verbose)
            sys.exit(e.exit_code)
    return wrapper


def similarity_score(s1: str, s2: str) -> int:
    """Score how alike two strings are, case-insensitively.

    Returns:
        100 for an exact match, 80 when one is a prefix of the other, 60 when one
        contains the other, up to 50 for an in-order character match, else 0
    """
    a, b = s1.lower(), s2.lower()

    if a == b:
        return 100
    if a.startswith(b) or b.startswith(a):
        return 80
    if a in b or b in a:
        return 60

    # Characters of a found in order within b
    matches = 0
    remaining = iter(b)
    for char in a:
        if char in remaining:
            matches += 1

    score = int(matches / max(len(a), len(b)) * 50) if matches else 0
    return score if score > 20 else 0


def find_similar_strings(target: str, candidates: list[str], limit: int = 3) -> list[str]:
    scored = [(similarity_score(target, candidate), candidate) for candidate in candidates]
    matches = sorted((item for item in scored if item[0] > 0), key=lambda item: item[0], reverse=True)
    return [candidate for _, candidate in matches[:limit]]
