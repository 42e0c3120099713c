"""Configuration loading and persistence.

This module handles:
- The configuration record handed to BridgeClient and the scene code
- Loading/saving it as JSON under ~/.huestatus (or HUESTATUS_CONFIG_DIR)
- Environment variable overrides
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path

from core.errors import ConfigCorrupted, ConfigNotFound, InvalidConfig

CONFIG_DIR_ENV = 'HUESTATUS_CONFIG_DIR'
CONFIG_FILENAME = 'config.json'
DEFAULT_CONFIG_DIR = Path.home() / '.huestatus'

SUCCESS_SCENE = 'success'
FAILURE_SCENE = 'failure'
SCENE_KINDS = (SUCCESS_SCENE, FAILURE_SCENE)


@dataclass
class SceneConfig:
    id: str
    name: str
    auto_created: bool = True


@dataclass
class HueStatusConfig:
    bridge_ip: str
    username: str | None = None
    timeout_seconds: float = 10
    retry_attempts: int = 3
    retry_delay_seconds: float = 1.0
    verbose: bool = False
    scenes: dict[str, SceneConfig] = field(default_factory=dict)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_dict(cls, data: dict) -> 'HueStatusConfig':
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values['scenes'] = {
            kind: SceneConfig(**scene) for kind, scene in (data.get('scenes') or {}).items()
        }
        config = cls(**values)
        config.validate()
        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self):
        if not self.bridge_ip:
            raise InvalidConfig('Bridge IP address is missing')
        if self.timeout_seconds <= 0:
            raise InvalidConfig('Timeout must be positive')
        if self.retry_attempts < 1:
            raise InvalidConfig('Retry attempts must be at least 1')
        if self.retry_delay_seconds < 0:
            raise InvalidConfig('Retry delay cannot be negative')
        for kind in self.scenes:
            if kind not in SCENE_KINDS:
                raise InvalidConfig(f"Unknown scene type '{kind}'")

    def get_scene(self, kind: str) -> SceneConfig | None:
        return self.scenes.get(kind)

    def set_scene(self, kind: str, scene_id: str, name: str, auto_created: bool = True):
        self.scenes[kind] = SceneConfig(id=scene_id, name=name, auto_created=auto_created)

    def apply_env_overrides(self, environ: dict | None = None):
        """Apply HUESTATUS_TIMEOUT, HUESTATUS_VERBOSE and HUESTATUS_BRIDGE_IP."""
        env = os.environ if environ is None else environ

        if 'HUESTATUS_TIMEOUT' in env:
            try:
                self.timeout_seconds = float(env['HUESTATUS_TIMEOUT'])
            except ValueError as e:
                raise InvalidConfig(f"HUESTATUS_TIMEOUT must be a number, got {env['HUESTATUS_TIMEOUT']!r}") from e

        if 'HUESTATUS_VERBOSE' in env:
            self.verbose = env['HUESTATUS_VERBOSE'].lower() in ('1', 'true', 'yes', 'on')

        if env.get('HUESTATUS_BRIDGE_IP'):
            self.bridge_ip = env['HUESTATUS_BRIDGE_IP']

        self.validate()


def get_config_dir() -> Path:
    override = os.getenv(CONFIG_DIR_ENV)
    return Path(override) if override else DEFAULT_CONFIG_DIR


def get_config_file() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> HueStatusConfig:
    """Load configuration from disk.

    Raises:
        ConfigNotFound: if the file does not exist
        ConfigCorrupted: if it is not valid JSON
        InvalidConfig: if required values are missing or out of range
    """
    path = path or get_config_file()
    if not path.exists():
        raise ConfigNotFound()

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigCorrupted() from e

    if not isinstance(data, dict):
        raise ConfigCorrupted()

    try:
        return HueStatusConfig.from_dict(data)
    except TypeError as e:
        raise InvalidConfig(str(e)) from e


def save_config(config: HueStatusConfig, path: Path | None = None) -> Path:
    """Save configuration to disk with user-only permissions.

    Returns:
        The path written
    """
    path = path or get_config_file()

    # Create config directory if it doesn't exist
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    os.chmod(path, 0o600)
    return path
