"""Typed errors for huestatus.

Every failure in the bridge layer is raised as exactly one HueStatusError
subclass. Callers decide what to do (retry, exit code, re-run setup) from
the class attributes rather than from the message text.

The bridge reports its own errors as JSON arrays of
``{"error": {"type": int, "address": str, "description": str}}`` objects.
These are translated through BRIDGE_ERROR_TABLE, the only place where
numeric bridge codes are interpreted.
"""

from enum import Enum

import requests


class ErrorCategory(Enum):
    """Closed classification of failures."""
    CONFIGURATION = 'configuration'
    CONNECTIVITY = 'connectivity'
    AUTHENTICATION = 'authentication'
    BRIDGE_API = 'bridge_api'
    SCENE = 'scene'
    DISCOVERY = 'discovery'
    DATA = 'data'
    SETUP = 'setup'


class HueStatusError(Exception):
    """Base class for all huestatus failures."""
    category = ErrorCategory.BRIDGE_API
    retryable = False
    recoverable_with_setup = False
    exit_code = 2
    default_reason = 'Unknown error'
    template = '{reason}'

    def __init__(self, reason: str | None = None, bridge_code: int | None = None):
        self.reason = reason or self.default_reason
        self.bridge_code = bridge_code
        super().__init__(self.template.format(reason=self.reason))

    @property
    def requires_network(self) -> bool:
        return self.category in (
            ErrorCategory.CONNECTIVITY,
            ErrorCategory.DISCOVERY,
            ErrorCategory.BRIDGE_API,
        )


# Configuration

class ConfigNotFound(HueStatusError):
    category = ErrorCategory.CONFIGURATION
    recoverable_with_setup = True
    exit_code = 1
    default_reason = "Configuration file not found. Run 'huestatus setup' to configure."


class InvalidConfig(HueStatusError):
    category = ErrorCategory.CONFIGURATION
    recoverable_with_setup = True
    exit_code = 1
    template = 'Invalid configuration: {reason}'


class ConfigCorrupted(HueStatusError):
    category = ErrorCategory.CONFIGURATION
    recoverable_with_setup = True
    exit_code = 1
    default_reason = "Configuration file corrupted. Run 'huestatus setup' to reconfigure."


# Connectivity

class BridgeNotFound(HueStatusError):
    category = ErrorCategory.CONNECTIVITY
    default_reason = 'Bridge not found. Check network connection and try again.'


class BridgeConnectionFailed(HueStatusError):
    category = ErrorCategory.CONNECTIVITY
    retryable = True
    template = 'Bridge connection failed: {reason}'

    def __init__(self, reason: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(reason)


class NetworkError(HueStatusError):
    category = ErrorCategory.CONNECTIVITY
    retryable = True
    template = 'Network error: {reason}'


class OperationTimeout(HueStatusError):
    """An operation exceeded its time budget (one request or a whole polling loop)."""
    category = ErrorCategory.CONNECTIVITY
    retryable = True
    template = 'Timeout error: {reason}'

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(operation)


# Authentication

class AuthenticationFailed(HueStatusError):
    category = ErrorCategory.AUTHENTICATION
    recoverable_with_setup = True
    exit_code = 3
    default_reason = "Authentication failed. Run 'huestatus setup' to re-authenticate."


class LinkButtonNotPressed(HueStatusError):
    # Only the auth poller treats this as "keep waiting"
    category = ErrorCategory.AUTHENTICATION
    exit_code = 3
    default_reason = 'Link button not pressed. Press the link button on your Hue bridge and try again.'


# Bridge API and data

class ApiError(HueStatusError):
    category = ErrorCategory.BRIDGE_API
    template = 'API error: {reason}'


class ParseError(HueStatusError):
    category = ErrorCategory.DATA
    exit_code = 5
    template = 'JSON parsing error: {reason}'


# Scenes and validation

class SceneNotFound(HueStatusError):
    category = ErrorCategory.SCENE
    recoverable_with_setup = True
    exit_code = 4
    template = "Scene '{reason}' not found. Run 'huestatus setup' to recreate scenes."

    def __init__(self, scene_name: str):
        self.scene_name = scene_name
        super().__init__(scene_name)


class SceneExecutionFailed(HueStatusError):
    category = ErrorCategory.SCENE
    retryable = True
    exit_code = 4
    template = 'Scene execution failed: {reason}'


class ValidationFailed(HueStatusError):
    category = ErrorCategory.SCENE
    recoverable_with_setup = True
    exit_code = 6
    template = 'Validation failed: {reason}'


class NoLightsFound(HueStatusError):
    category = ErrorCategory.SCENE
    recoverable_with_setup = True
    exit_code = 6
    default_reason = 'No lights found. Ensure your Hue bridge has lights connected.'


class SceneStorageLimitExceeded(HueStatusError):
    category = ErrorCategory.SCENE
    exit_code = 4

    def __init__(self, max_scenes: int):
        self.max_scenes = max_scenes
        super().__init__(f'Scene storage limit exceeded. Bridge can store maximum {max_scenes} scenes.')


class InvalidSceneData(HueStatusError):
    category = ErrorCategory.SCENE
    exit_code = 4
    template = 'Invalid scene data: {reason}'


# Discovery and setup

class DiscoveryServiceUnreachable(HueStatusError):
    category = ErrorCategory.DISCOVERY
    retryable = True
    template = 'Discovery service unreachable: {reason}'


class MdnsDiscoveryFailed(HueStatusError):
    category = ErrorCategory.DISCOVERY
    template = 'mDNS discovery failed: {reason}'


class SetupFailed(HueStatusError):
    category = ErrorCategory.SETUP
    exit_code = 6
    template = 'Setup process failed: {reason}'


# Bridge error code -> (exception class, message template or None for the class default)
BRIDGE_ERROR_TABLE: dict[int, tuple[type[HueStatusError], str | None]] = {
    1: (AuthenticationFailed, None),
    101: (LinkButtonNotPressed, None),
    3: (InvalidConfig, 'Resource not available: {description}'),
    4: (InvalidConfig, 'Method not available: {description}'),
    5: (InvalidConfig, 'Missing parameter: {description}'),
    6: (InvalidConfig, 'Parameter not available: {description}'),
    7: (InvalidConfig, 'Invalid value: {description}'),
    8: (InvalidConfig, 'Parameter not modifiable: {description}'),
    11: (ApiError, 'Too many items in list'),
    12: (ApiError, 'Portal connection required'),
}

LINK_BUTTON_NOT_PRESSED = 101
RESOURCE_NOT_AVAILABLE = 3


def _is_error_element(item) -> bool:
    return isinstance(item, dict) and isinstance(item.get('error'), dict)


def extract_bridge_errors(body) -> list[dict]:
    """Return the bridge error elements of a response body.

    Only a non-empty array made entirely of error elements counts as an
    error envelope; mixed success/error arrays are left to the caller.
    """
    if isinstance(body, list) and body and all(_is_error_element(item) for item in body):
        return body
    return []


def from_bridge_error(element: dict) -> HueStatusError:
    """Convert one ``{"error": {...}}`` element into a typed error."""
    details = element.get('error', {})
    code = details.get('type')
    description = details.get('description', '')

    entry = BRIDGE_ERROR_TABLE.get(code)
    if entry is None:
        return ApiError(f'API error {code}: {description}', bridge_code=code)

    error_class, message = entry
    reason = message.format(description=description) if message else None
    return error_class(reason, bridge_code=code)


def network_error(exc: requests.exceptions.RequestException, operation: str) -> HueStatusError:
    """Translate a requests exception raised while performing ``operation``."""
    if isinstance(exc, requests.exceptions.Timeout):
        return OperationTimeout(operation)
    if isinstance(exc, requests.exceptions.ConnectionError):
        return BridgeConnectionFailed(f'{operation}: connection refused')
    return NetworkError(f'{operation}: {exc}')
