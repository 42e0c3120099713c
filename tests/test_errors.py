"""Tests for the error taxonomy in core/errors.py"""

import pytest
import requests

from core.errors import (
    ApiError,
    AuthenticationFailed,
    BridgeConnectionFailed,
    ConfigNotFound,
    DiscoveryServiceUnreachable,
    ErrorCategory,
    InvalidConfig,
    LinkButtonNotPressed,
    NetworkError,
    OperationTimeout,
    SceneExecutionFailed,
    SceneNotFound,
    SceneStorageLimitExceeded,
    ValidationFailed,
    extract_bridge_errors,
    from_bridge_error,
    network_error,
)


class TestRetryable:
    """Only transient failures are retryable."""

    @pytest.mark.parametrize('error', [
        NetworkError('reset'),
        OperationTimeout('GET /api/0/config'),
        BridgeConnectionFailed('HTTP 500', status_code=500),
        SceneExecutionFailed('bridge busy'),
        DiscoveryServiceUnreachable('HTTP 429'),
    ])
    def test_retryable(self, error):
        assert error.retryable is True

    @pytest.mark.parametrize('error', [
        AuthenticationFailed(),
        LinkButtonNotPressed(),
        InvalidConfig('x'),
        ValidationFailed('x'),
        SceneNotFound('success'),
        ApiError('x'),
    ])
    def test_not_retryable(self, error):
        assert error.retryable is False


class TestExitCodes:
    """Exit codes per category."""

    def test_exit_codes(self):
        assert ConfigNotFound().exit_code == 1
        assert BridgeConnectionFailed('x').exit_code == 2
        assert AuthenticationFailed().exit_code == 3
        assert SceneNotFound('success').exit_code == 4
        assert ValidationFailed('x').exit_code == 6

    def test_categories(self):
        assert ConfigNotFound().category == ErrorCategory.CONFIGURATION
        assert DiscoveryServiceUnreachable('x').category == ErrorCategory.DISCOVERY
        assert OperationTimeout('x').requires_network

    def test_messages(self):
        assert str(OperationTimeout('Authentication')) == 'Timeout error: Authentication'
        assert str(SceneNotFound('success')).startswith("Scene 'success' not found")
        assert SceneStorageLimitExceeded(200).max_scenes == 200
        assert '200' in str(SceneStorageLimitExceeded(200))


class TestBridgeErrorTable:
    """Test translation of bridge error payloads."""

    def element(self, code, description='desc'):
        return {'error': {'type': code, 'address': '/', 'description': description}}

    def test_unauthorized_user(self):
        error = from_bridge_error(self.element(1))
        assert isinstance(error, AuthenticationFailed)
        assert error.bridge_code == 1

    def test_link_button(self):
        assert isinstance(from_bridge_error(self.element(101)), LinkButtonNotPressed)

    @pytest.mark.parametrize('code, prefix', [
        (3, 'Resource not available'),
        (4, 'Method not available'),
        (5, 'Missing parameter'),
        (6, 'Parameter not available'),
        (7, 'Invalid value'),
        (8, 'Parameter not modifiable'),
    ])
    def test_invalid_config_codes(self, code, prefix):
        error = from_bridge_error(self.element(code, 'body'))
        assert isinstance(error, InvalidConfig)
        assert error.reason == f'{prefix}: body'
        assert error.bridge_code == code

    def test_list_too_long(self):
        error = from_bridge_error(self.element(11))
        assert isinstance(error, ApiError)
        assert error.reason == 'Too many items in list'

    def test_unknown_code(self):
        error = from_bridge_error(self.element(999, 'weird'))
        assert isinstance(error, ApiError)
        assert error.reason == 'API error 999: weird'


class TestExtractBridgeErrors:

    def test_error_list(self):
        body = [{'error': {'type': 1, 'address': '/', 'description': 'x'}}]
        assert extract_bridge_errors(body) == body

    def test_success_list(self):
        assert extract_bridge_errors([{'success': {'username': 'u'}}]) == []

    def test_empty_list_and_objects(self):
        assert extract_bridge_errors([]) == []
        assert extract_bridge_errors({'name': 'Philips hue'}) == []


class TestNetworkError:
    """Test translation of requests exceptions."""

    def test_timeout(self):
        error = network_error(requests.exceptions.Timeout(), 'GET /x')
        assert isinstance(error, OperationTimeout)
        assert error.operation == 'GET /x'

    def test_connection_error(self):
        error = network_error(requests.exceptions.ConnectionError(), 'GET /x')
        assert isinstance(error, BridgeConnectionFailed)
        assert error.status_code is None

    def test_other(self):
        error = network_error(requests.exceptions.TooManyRedirects('loop'), 'GET /x')
        assert isinstance(error, NetworkError)
