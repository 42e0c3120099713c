"""Tests for status scene management in core/scenes.py"""

from unittest.mock import ANY, MagicMock

import pytest

from conftest import light_payload
from core.config import HueStatusConfig
from core.errors import (
    ApiError,
    BridgeConnectionFailed,
    NoLightsFound,
    SceneExecutionFailed,
    SceneNotFound,
    SceneStorageLimitExceeded,
)
from core.scenes import SceneManager
from models.bridge import BridgeCapabilities, CapabilityLimits, FAILURE_HUE, Light, SUCCESS_HUE
from models.execution import ExecutionOptions, Fade, SceneValidationResult


def capabilities(available=150, total=200):
    limits = CapabilityLimits(available=40, total=63)
    return BridgeCapabilities(lights=limits, scenes=CapabilityLimits(available, total), groups=limits)


@pytest.fixture
def client():
    mock_client = MagicMock()
    mock_client.get_suitable_lights.return_value = [
        ('1', Light.from_api(light_payload('Desk'))),
        ('4', Light.from_api(light_payload('Shelf', colorgamut=False))),
    ]
    mock_client.get_capabilities.return_value = capabilities()
    mock_client.create_scene.side_effect = ['SuCc3', 'FaIl4']
    return mock_client


@pytest.fixture
def config():
    return HueStatusConfig(bridge_ip='192.168.1.20', username='user123')


class TestCreateStatusScenes:

    def test_creates_green_and_red_scenes(self, client, config):
        result = SceneManager(client).create_status_scenes(config)

        success_request, failure_request = [call.args[0] for call in client.create_scene.call_args_list]
        assert success_request.name == 'huestatus-success'
        assert success_request.lights == ['1', '4']
        assert success_request.lightstates['1'].hue == SUCCESS_HUE
        assert failure_request.name == 'huestatus-failure'
        assert failure_request.lightstates['4'].hue == FAILURE_HUE

        assert result.success_scene_id == 'SuCc3'
        assert result.failure_scene_id == 'FaIl4'
        assert result.summary() == 'Created 2 scenes using 2 lights (Success: SuCc3, Failure: FaIl4)'

    def test_records_scene_ids_on_config(self, client, config):
        SceneManager(client).create_status_scenes(config)

        assert config.get_scene('success').id == 'SuCc3'
        assert config.get_scene('failure').name == 'huestatus-failure'
        assert config.get_scene('failure').auto_created

    def test_storage_full(self, client, config):
        client.get_capabilities.return_value = capabilities(available=1, total=200)

        with pytest.raises(SceneStorageLimitExceeded) as exc_info:
            SceneManager(client).create_status_scenes(config)

        assert exc_info.value.max_scenes == 200
        client.create_scene.assert_not_called()

    def test_no_lights(self, client, config):
        client.get_suitable_lights.side_effect = NoLightsFound()
        with pytest.raises(NoLightsFound):
            SceneManager(client).create_status_scenes(config)
        assert config.scenes == {}


class TestExecuteStatusScene:

    def test_unconfigured_scene(self, client, config):
        with pytest.raises(SceneNotFound):
            SceneManager(client).execute_status_scene('success', config)

    def test_executes_configured_scene(self, client, config):
        config.set_scene('failure', 'FaIl4', 'huestatus-failure')

        result = SceneManager(client).execute_status_scene(
            'failure', config, options=ExecutionOptions(retry_on_failure=False), strategy=Fade(1000),
        )

        assert result.scene_id == 'FaIl4'
        assert result.success
        client.execute_scene.assert_called_once_with('FaIl4', timeout=6.0, deadline=ANY)

    def test_execution_failure(self, client, config, no_sleep):
        config.set_scene('success', 'SuCc3', 'huestatus-success')
        client.execute_scene.side_effect = BridgeConnectionFailed('HTTP 503', status_code=503)

        with pytest.raises(SceneExecutionFailed):
            SceneManager(client).execute_status_scene('success', config, ExecutionOptions(max_retries=2))

        assert client.execute_scene.call_count == 2

    def test_rejected_recall_keeps_its_error(self, client, config, no_sleep):
        config.set_scene('success', 'SuCc3', 'huestatus-success')
        client.execute_scene.side_effect = ApiError('parameter not available')

        with pytest.raises(ApiError):
            SceneManager(client).execute_status_scene('success', config, ExecutionOptions(max_retries=2))

        assert client.execute_scene.call_count == 1
        assert no_sleep == []


class TestValidateAndDelete:

    def test_validate_uses_configured_names(self, client, config):
        config.set_scene('success', 'SuCc3', 'huestatus-success')
        config.set_scene('failure', 'FaIl4', 'huestatus-failure')
        manager = SceneManager(client)
        manager.executor = MagicMock()
        manager.executor.test_execution.side_effect = [
            SceneValidationResult('SuCc3', 'huestatus-success', True),
            SceneValidationResult('FaIl4', 'Unknown', False, ['Scene not found']),
        ]

        results = manager.validate_status_scenes(config)

        assert [result.is_valid for result in results] == [True, False]
        assert results[1].scene_name == 'huestatus-failure'
        assert results[1].issues == ["Scene 'huestatus-failure' not found"]

    def test_delete_only_auto_created(self, client, config):
        config.set_scene('success', 'SuCc3', 'huestatus-success')
        config.set_scene('failure', 'Mine', 'my own red', auto_created=False)

        SceneManager(client).delete_status_scenes(config)

        client.delete_scene.assert_called_once_with('SuCc3')

    def test_delete_failures_are_ignored(self, client, config):
        config.set_scene('success', 'SuCc3', 'huestatus-success')
        config.set_scene('failure', 'FaIl4', 'huestatus-failure')
        client.delete_scene.side_effect = [ApiError('gone'), None]

        SceneManager(client).delete_status_scenes(config)

        assert client.delete_scene.call_count == 2

    def test_refresh(self, client, config):
        config.set_scene('success', 'Old1', 'huestatus-success')
        config.set_scene('failure', 'Old2', 'huestatus-failure')

        result = SceneManager(client).refresh_status_scenes(config)

        assert [call.args[0] for call in client.delete_scene.call_args_list] == ['Old1', 'Old2']
        assert result.success_scene_id == 'SuCc3'
        assert config.get_scene('success').id == 'SuCc3'
