"""Link button authentication for the Hue Bridge.

The bridge only issues a new username within ~30 seconds of its physical
link button being pressed. BridgeAuth polls POST /api once per interval
until the bridge answers with a username, reports a real error, or the
overall deadline passes.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

import requests
from loguru import logger

from core.client import BridgeClient
from core.errors import (
    ApiError,
    AuthenticationFailed,
    BridgeConnectionFailed,
    HueStatusError,
    LinkButtonNotPressed,
    OperationTimeout,
)

DEFAULT_AUTH_TIMEOUT = 30
DEFAULT_POLL_INTERVAL = 1
DEFAULT_REQUEST_TIMEOUT = 10
ACCESSIBILITY_TIMEOUT = 5


class AuthState(Enum):
    WAITING_FOR_BUTTON = 'waiting_for_button'
    BUTTON_PRESSED = 'button_pressed'
    SUCCESS = 'success'
    TIMEOUT = 'timeout'
    ERROR = 'error'


@dataclass(frozen=True)
class AuthStatus:
    """A state of the polling loop; ``detail`` holds the username or the error text."""
    state: AuthState
    detail: str | None = None

    def __str__(self) -> str:
        if self.state == AuthState.WAITING_FOR_BUTTON:
            return 'Waiting for button press'
        if self.state == AuthState.BUTTON_PRESSED:
            return 'Button pressed'
        if self.state == AuthState.SUCCESS:
            return f'Success ({self.detail})'
        if self.state == AuthState.TIMEOUT:
            return 'Timeout'
        return f'Error: {self.detail}'


@dataclass(frozen=True)
class Credential:
    """A username issued by the bridge."""
    username: str
    device_type: str
    created_at: datetime

    def age(self) -> timedelta:
        return datetime.now(timezone.utc) - self.created_at

    def is_recent(self) -> bool:
        return self.age() < timedelta(hours=1)

    def is_old(self) -> bool:
        return self.age() > timedelta(days=30)

    def age_string(self) -> str:
        age = self.age()
        if age < timedelta(minutes=1):
            return 'just now'
        if age < timedelta(hours=1):
            return f'{int(age.total_seconds() // 60)} minutes ago'
        if age < timedelta(days=1):
            return f'{int(age.total_seconds() // 3600)} hours ago'
        return f'{age.days} days ago'

    def summary(self) -> str:
        return f'User: {self.username}, Device: {self.device_type}, Created: {self.age_string()}'


def _username_from(body) -> str:
    """Extract the username from a POST /api response array."""
    if not isinstance(body, list):
        raise TypeError(f'expected a list, got {type(body).__name__}')
    if not body:
        raise ApiError('Empty response from bridge')

    success = body[0].get('success') if isinstance(body[0], dict) else None
    if isinstance(success, dict) and isinstance(success.get('username'), str):
        return success['username']
    raise ApiError('Unexpected response format')


class BridgeAuth:
    """Obtains and checks API credentials for one bridge."""

    def __init__(self, bridge_ip: str, timeout: float = DEFAULT_AUTH_TIMEOUT,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 session: requests.Session | None = None):
        """Initialise BridgeAuth.

        Args:
            bridge_ip: Address of a discovered bridge
            timeout: Deadline for the whole polling loop, in seconds
            poll_interval: Time between credential requests, in seconds
            request_timeout: Timeout of each individual request, in seconds
            session: Optional requests session shared with the single-shot client
        """
        self.bridge_ip = bridge_ip
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        # One attempt per tick: the polling loop is the retry mechanism here
        self.client = BridgeClient(bridge_ip, timeout=request_timeout, retry_attempts=1, session=session)

    def authenticate(self, app_name: str, instance_name: str,
                     callback: Callable[[AuthStatus], None] | None = None) -> Credential:
        """Poll the bridge until the link button is pressed.

        Args:
            app_name: Application part of the device type
            instance_name: Instance part of the device type (e.g. hostname)
            callback: Receives each state transition; repeated waiting ticks are not reported

        Returns:
            The issued Credential

        Raises:
            OperationTimeout: if the deadline passes before the button is pressed
            HueStatusError: any other failure, immediately
        """
        device_type = f"{app_name}#{instance_name}"
        notify = callback or (lambda status: None)

        logger.debug(f"Starting authentication with device type: {device_type}")
        notify(AuthStatus(AuthState.WAITING_FOR_BUTTON))

        start = time.monotonic()
        next_tick = start

        while True:
            # First tick is immediate, later ticks are poll_interval apart
            delay = next_tick - time.monotonic()
            if delay > 0:
                time.sleep(delay)
            next_tick += self.poll_interval

            if time.monotonic() - start > self.timeout:
                logger.debug(f"Authentication timed out after {self.timeout} seconds")
                notify(AuthStatus(AuthState.TIMEOUT))
                raise OperationTimeout('Authentication')

            try:
                username = self.try_authenticate(device_type)
            except LinkButtonNotPressed:
                remaining = max(self.timeout - (time.monotonic() - start), 0)
                logger.debug(f"Waiting for button press... ({remaining:.0f} seconds remaining)")
                continue
            except HueStatusError as e:
                logger.debug(f"Authentication error: {e}")
                notify(AuthStatus(AuthState.ERROR, str(e)))
                raise

            logger.debug("Authentication successful")
            notify(AuthStatus(AuthState.SUCCESS, username))
            return Credential(username=username, device_type=device_type,
                              created_at=datetime.now(timezone.utc))

    def try_authenticate(self, device_type: str) -> str:
        """Make one credential request and return the issued username."""
        return self.client.post('/', {'devicetype': device_type}, parse=_username_from)

    def quick_authenticate(self, app_name: str, instance_name: str) -> Credential:
        """Single attempt, for when the user has already pressed the button."""
        device_type = f"{app_name}#{instance_name}"
        username = self.try_authenticate(device_type)
        return Credential(username=username, device_type=device_type,
                          created_at=datetime.now(timezone.utc))

    def test_authentication(self, username: str):
        """Check ``username`` is accepted by the bridge.

        Raises:
            AuthenticationFailed: on a non-success HTTP status or a body without bridgeid
        """
        logger.debug(f"Testing authentication for user: {username}")
        client = self.client.with_username(username)
        try:
            config = client.get('config')
        except BridgeConnectionFailed as e:
            if e.status_code is not None:
                raise AuthenticationFailed() from e
            raise

        if not isinstance(config, dict) or 'bridgeid' not in config:
            raise AuthenticationFailed()

    def get_auth_status(self, username: str) -> AuthStatus:
        try:
            self.test_authentication(username)
        except AuthenticationFailed:
            return AuthStatus(AuthState.ERROR, 'Invalid credentials')
        except LinkButtonNotPressed:
            return AuthStatus(AuthState.WAITING_FOR_BUTTON)
        except HueStatusError as e:
            return AuthStatus(AuthState.ERROR, str(e))
        return AuthStatus(AuthState.SUCCESS, username)

    def check_bridge_accessibility(self):
        """Raise unless the bridge answers its unauthenticated config endpoint."""
        self.client.get('/0/config', timeout=ACCESSIBILITY_TIMEOUT)

    def create_authenticated_client(self, username: str) -> BridgeClient:
        return BridgeClient(self.bridge_ip, username=username)
