"""BridgeClient: resilient HTTP access to the Hue Bridge API v1.

This module owns URL building, per-request timeouts, fixed-delay retries and
translation of bridge error payloads into typed errors. Everything above it
(discovery enrichment aside) talks to the bridge through this class.
"""

import copy
import time
from dataclasses import dataclass
from typing import Any, Callable, TYPE_CHECKING

import requests
from loguru import logger

from core.errors import (
    AuthenticationFailed,
    BridgeConnectionFailed,
    HueStatusError,
    InvalidConfig,
    NoLightsFound,
    OperationTimeout,
    ParseError,
    RESOURCE_NOT_AVAILABLE,
    ValidationFailed,
    extract_bridge_errors,
    from_bridge_error,
    network_error,
)
from models.bridge import (
    BridgeCapabilities,
    BridgeConfiguration,
    CreateSceneRequest,
    Group,
    Light,
    LightState,
    Scene,
)

if TYPE_CHECKING:
    from core.config import HueStatusConfig

USER_AGENT = 'huestatus/1.0'
DEFAULT_TIMEOUT = 10
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0
ALL_LIGHTS_GROUP = '0'


def _raw(body: Any) -> Any:
    return body


def _mapping_of(parse_item: Callable[[dict], Any]) -> Callable[[Any], dict]:
    def parse(body: dict) -> dict:
        return {str(key): parse_item(value) for key, value in body.items()}
    return parse


def _success_list(body: Any) -> list:
    """Action/creation/deletion responses are arrays of {"success": ...} objects."""
    if not isinstance(body, list):
        raise TypeError(f'expected a list, got {type(body).__name__}')
    return [item['success'] for item in body]


class BridgeClient:
    """Manages requests to one Hue Bridge using API v1."""

    def __init__(self, bridge_ip: str, username: str | None = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 retry_attempts: int = DEFAULT_RETRY_ATTEMPTS,
                 retry_delay: float = DEFAULT_RETRY_DELAY,
                 session: requests.Session | None = None):
        """Initialise BridgeClient.

        Args:
            bridge_ip: Bridge IP address (or host[:port])
            username: API username issued by the bridge; required for authenticated paths
            timeout: Per-request timeout in seconds
            retry_attempts: Total attempts per call for retryable failures
            retry_delay: Fixed delay between attempts, in seconds
            session: Optional requests session (a new one is created otherwise)
        """
        self.bridge_ip = bridge_ip
        self.username = username
        self.timeout = timeout
        self.retry_attempts = max(retry_attempts, 1)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.setdefault('User-Agent', USER_AGENT)

    @classmethod
    def from_config(cls, config: 'HueStatusConfig', session: requests.Session | None = None) -> 'BridgeClient':
        return cls(
            config.bridge_ip,
            username=config.username,
            timeout=config.timeout_seconds,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay_seconds,
            session=session,
        )

    def with_username(self, username: str) -> 'BridgeClient':
        """Return a copy of this client that authenticates as ``username``."""
        clone = copy.copy(self)
        clone.username = username
        return clone

    @property
    def base_url(self) -> str:
        return f"http://{self.bridge_ip}/api"

    @property
    def authenticated_url(self) -> str:
        if not self.username:
            raise AuthenticationFailed()
        return f"{self.base_url}/{self.username}"

    def build_url(self, path: str) -> str:
        """Resolve ``path``: '/x' is unauthenticated, 'x' lives under the username."""
        if path.startswith('/'):
            return f"{self.base_url}{path}".rstrip('/')
        return f"{self.authenticated_url}/{path}"

    # Request primitives

    def get(self, path: str, parse: Callable[[Any], Any] = _raw, timeout: float | None = None):
        return self.request('GET', path, parse=parse, timeout=timeout)

    def post(self, path: str, body: Any = None, parse: Callable[[Any], Any] = _raw,
             timeout: float | None = None):
        return self.request('POST', path, body, parse=parse, timeout=timeout)

    def put(self, path: str, body: Any = None, parse: Callable[[Any], Any] = _raw,
            timeout: float | None = None, deadline: float | None = None):
        return self.request('PUT', path, body, parse=parse, timeout=timeout, deadline=deadline)

    def delete(self, path: str, parse: Callable[[Any], Any] = _raw, timeout: float | None = None):
        return self.request('DELETE', path, parse=parse, timeout=timeout)

    def request(self, method: str, path: str, body: Any = None,
                parse: Callable[[Any], Any] = _raw, timeout: float | None = None,
                deadline: float | None = None):
        """Perform one logical call, retrying retryable failures.

        ``deadline`` is a time.monotonic() value bounding the whole call,
        retries and delays included; each request timeout is clamped to the
        time left.

        Raises:
            HueStatusError: the last failure once attempts are exhausted,
                or the first non-retryable failure
            OperationTimeout: the deadline passed before a request could start
        """
        url = self.build_url(path)
        operation = f"{method} {url}"

        def send():
            return self._send(method, url, body, parse, self._time_left(operation, timeout, deadline))

        return self.with_retry(send, deadline=deadline)

    def _time_left(self, operation: str, timeout: float | None, deadline: float | None) -> float:
        timeout = timeout or self.timeout
        if deadline is None:
            return timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise OperationTimeout(operation)
        return min(timeout, remaining)

    def with_retry(self, operation: Callable[[], Any], deadline: float | None = None):
        """Run ``operation`` up to retry_attempts times with a fixed delay between attempts.

        No further attempt is made once the delay would run past ``deadline``.
        """
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return operation()
            except HueStatusError as e:
                if not e.retryable or attempt == self.retry_attempts:
                    raise
                if deadline is not None and time.monotonic() + self.retry_delay >= deadline:
                    raise
                logger.debug(f"Attempt {attempt}/{self.retry_attempts} failed ({e}); "
                             f"retrying in {self.retry_delay}s")
                time.sleep(self.retry_delay)

    def _send(self, method: str, url: str, body: Any, parse: Callable[[Any], Any],
              timeout: float | None):
        operation = f"{method} {url}"
        logger.debug(operation)
        if body is not None:
            logger.debug(f"Body: {body}")

        try:
            response = self.session.request(method, url, json=body, timeout=timeout or self.timeout)
        except requests.exceptions.RequestException as e:
            raise network_error(e, operation) from e

        logger.debug(f"Response: {response.status_code} {url}")

        try:
            payload = response.json()
        except ValueError as e:
            if not response.ok:
                raise BridgeConnectionFailed(f"HTTP {response.status_code}",
                                             status_code=response.status_code) from e
            raise ParseError(f"{operation}: invalid JSON response") from e

        errors = extract_bridge_errors(payload)
        if errors:
            raise from_bridge_error(errors[0])

        if not response.ok:
            raise BridgeConnectionFailed(f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            return parse(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ParseError(f"{operation}: unexpected response shape ({e!r})") from e

    # Bridge resources

    def test_connection(self):
        """Check the bridge answers on its unauthenticated config endpoint."""
        self.get('/0/config')

    def get_config(self) -> BridgeConfiguration:
        return self.get('config', parse=BridgeConfiguration.from_api)

    def get_capabilities(self) -> BridgeCapabilities:
        return self.get('capabilities', parse=BridgeCapabilities.from_api)

    def get_lights(self) -> dict[str, Light]:
        return self.get('lights', parse=_mapping_of(Light.from_api))

    def get_light(self, light_id: str) -> Light:
        return self.get(f'lights/{light_id}', parse=Light.from_api)

    def set_light_state(self, light_id: str, state: LightState) -> list:
        return self.put(f'lights/{light_id}/state', state.to_api(), parse=_success_list)

    def get_scenes(self) -> dict[str, Scene]:
        return self.get('scenes', parse=_mapping_of(Scene.from_api))

    def get_scene(self, scene_id: str) -> Scene:
        return self.get(f'scenes/{scene_id}', parse=Scene.from_api)

    def create_scene(self, scene: CreateSceneRequest) -> str:
        """Create a scene and return its bridge-assigned id."""
        scene.validate()
        results = self.post('scenes', scene.to_api(), parse=_success_list)
        return results[0]['id']

    def delete_scene(self, scene_id: str) -> list:
        return self.delete(f'scenes/{scene_id}', parse=_success_list)

    def execute_scene(self, scene_id: str, timeout: float | None = None,
                      deadline: float | None = None) -> list:
        """Recall a scene on all lights (group 0)."""
        return self.execute_scene_on_group(ALL_LIGHTS_GROUP, scene_id, timeout=timeout, deadline=deadline)

    def execute_scene_on_group(self, group_id: str, scene_id: str, timeout: float | None = None,
                               deadline: float | None = None) -> list:
        return self.put(f'groups/{group_id}/action', {'scene': scene_id},
                        parse=_success_list, timeout=timeout, deadline=deadline)

    def get_groups(self) -> dict[str, Group]:
        return self.get('groups', parse=_mapping_of(Group.from_api))

    def get_group(self, group_id: str) -> Group:
        return self.get(f'groups/{group_id}', parse=Group.from_api)

    # Higher level checks

    def get_suitable_lights(self) -> list[tuple[str, Light]]:
        """Reachable lights that can show a colour, sorted by id."""
        suitable = [
            (light_id, light) for light_id, light in sorted(self.get_lights().items())
            if light.is_suitable_for_status()
        ]
        if not suitable:
            raise NoLightsFound()
        return suitable

    def scene_exists(self, scene_id: str) -> bool:
        try:
            self.get_scene(scene_id)
        except InvalidConfig as e:
            if e.bridge_code == RESOURCE_NOT_AVAILABLE:
                return False
            raise
        return True

    def validate_scene(self, scene_id: str):
        """Raise ValidationFailed unless the scene can be recalled on reachable lights."""
        scene = self.get_scene(scene_id)
        if not scene.is_suitable_for_status():
            raise ValidationFailed(f"Scene '{scene.name}' is not suitable for status indication")

        lights = self.get_lights()
        for light_id in scene.lights:
            light = lights.get(light_id)
            if light is None:
                raise ValidationFailed(f"Light '{light_id}' in scene '{scene.name}' not found")
            if not light.is_reachable():
                raise ValidationFailed(f"Light '{light.name}' in scene '{scene.name}' is not reachable")

    def get_bridge_status(self) -> 'BridgeStatus':
        config = self.get_config()
        capabilities = self.get_capabilities()
        lights = self.get_lights()
        scenes = self.get_scenes()

        return BridgeStatus(
            bridge_name=config.name,
            bridge_id=config.bridgeid,
            api_version=config.apiversion,
            sw_version=config.swversion,
            total_lights=len(lights),
            reachable_lights=sum(1 for light in lights.values() if light.is_reachable()),
            suitable_lights=sum(1 for light in lights.values() if light.is_suitable_for_status()),
            total_scenes=len(scenes),
            available_scenes=capabilities.scenes.available,
            max_scenes=capabilities.scenes.total,
        )


@dataclass
class BridgeStatus:
    bridge_name: str
    bridge_id: str
    api_version: str
    sw_version: str
    total_lights: int
    reachable_lights: int
    suitable_lights: int
    total_scenes: int
    available_scenes: int
    max_scenes: int

    def is_healthy(self) -> bool:
        return self.reachable_lights > 0 and self.suitable_lights > 0

    def health_score(self) -> int:
        score = 100

        if self.reachable_lights == 0:
            score -= 50
        elif self.reachable_lights < self.total_lights // 2:
            score -= 20

        if self.suitable_lights == 0:
            score -= 30
        elif self.suitable_lights < self.total_lights // 2:
            score -= 10

        if self.available_scenes < 10:
            score -= 10

        return max(score, 0)

    def summary(self) -> str:
        return (f"Bridge: {self.bridge_name} ({self.bridge_id}), API: {self.api_version}, "
                f"SW: {self.sw_version}, Lights: {self.reachable_lights}/{self.total_lights} reachable, "
                f"Scenes: {self.total_scenes}/{self.max_scenes}")
