"""Tests for the data models in models/bridge.py and models/execution.py"""

import pytest

from conftest import light_payload, scene_payload
from core.errors import InvalidSceneData
from models.bridge import (
    CreateSceneRequest,
    Light,
    LightState,
    Scene,
    SUCCESS_HUE,
)
from models.execution import (
    ExecutionMetrics,
    ExecutionOptions,
    LightStatus,
    SceneExecutionResult,
    SceneValidationResult,
)


class TestLightState:

    def test_zero_brightness_is_invalid(self):
        with pytest.raises(InvalidSceneData, match='Brightness cannot be 0'):
            LightState(on=True, bri=0).validate()

    def test_saturation_range(self):
        LightState(on=True, sat=254).validate()
        with pytest.raises(InvalidSceneData):
            LightState(on=True, sat=255).validate()

    def test_to_api_skips_read_only_and_unset_fields(self):
        state = LightState.from_api(light_payload()['state'])
        body = state.to_api()
        assert 'reachable' not in body
        assert 'colormode' not in body
        assert body['bri'] == 200
        assert LightState(on=False).to_api() == {'on': False}

    def test_ct_mode_writes_only_colour_temperature(self):
        state = LightState.from_api(light_payload()['state'])
        assert state.colormode == 'ct'
        assert state.to_api() == {'on': True, 'bri': 200, 'ct': 366}

    def test_xy_and_hs_modes(self):
        xy_state = LightState(on=True, hue=100, sat=50, xy=[0.3, 0.3], ct=300, colormode='xy')
        hs_state = LightState(on=True, hue=100, sat=50, xy=[0.3, 0.3], ct=300, colormode='hs')
        assert xy_state.to_api() == {'on': True, 'xy': [0.3, 0.3]}
        assert hs_state.to_api() == {'on': True, 'hue': 100, 'sat': 50}

    def test_unknown_mode_writes_every_colour_field(self):
        state = LightState(on=True, hue=100, xy=[0.3, 0.3], ct=300)
        assert state.to_api() == {'on': True, 'hue': 100, 'xy': [0.3, 0.3], 'ct': 300}


class TestLight:

    def test_colour_light_is_suitable(self):
        assert Light.from_api(light_payload()).is_suitable_for_status()

    def test_white_ambiance_is_suitable(self):
        light = Light.from_api(light_payload(colorgamut=False))
        assert not light.supports_color()
        assert light.is_suitable_for_status()

    def test_plain_dimmable_is_not_suitable(self):
        light = Light.from_api(light_payload(colorgamut=False, ct=False))
        assert not light.is_suitable_for_status()

    def test_unreachable_is_not_suitable(self):
        assert not Light.from_api(light_payload(reachable=False)).is_suitable_for_status()


class TestScene:

    def test_light_ids_are_strings(self):
        scene = Scene.from_api(dict(scene_payload(), lights=[1, 2]))
        assert scene.lights == ['1', '2']

    def test_locked_scene_is_not_suitable(self):
        assert not Scene.from_api(scene_payload(locked=True)).is_suitable_for_status()

    def test_empty_scene_is_not_suitable(self):
        assert not Scene.from_api(scene_payload(lights=())).is_suitable_for_status()


class TestCreateSceneRequest:

    def test_success_scene(self):
        request = CreateSceneRequest.success_scene('huestatus-success', ['1', '3'])
        request.validate()
        body = request.to_api()
        assert body['recycle'] is True
        assert body['lightstates']['3'] == {'on': True, 'bri': 254, 'hue': SUCCESS_HUE, 'sat': 254}

    def test_empty_name(self):
        with pytest.raises(InvalidSceneData, match='name'):
            CreateSceneRequest.failure_scene('', ['1']).validate()

    def test_no_lights(self):
        with pytest.raises(InvalidSceneData, match='at least one light'):
            CreateSceneRequest.failure_scene('red', []).validate()

    def test_light_without_state(self):
        request = CreateSceneRequest('red', ['1', '2'], {'1': LightState(on=True)})
        with pytest.raises(InvalidSceneData, match='Light 2'):
            request.validate()


class TestExecutionOptions:

    def test_defaults(self):
        options = ExecutionOptions()
        assert options.timeout_ms == 5000
        assert options.max_attempts == 3

    def test_no_retry_means_one_attempt(self):
        assert ExecutionOptions(retry_on_failure=False, max_retries=5).max_attempts == 1

    def test_zero_retries_still_attempts_once(self):
        assert ExecutionOptions(max_retries=0).max_attempts == 1

    def test_presets(self):
        assert ExecutionOptions.fast().max_attempts == 1
        assert ExecutionOptions.reliable().restore_previous_state
        assert ExecutionOptions.reliable().max_attempts == 5
        assert ExecutionOptions.testing().validate_before_execution


class TestExecutionMetrics:

    def test_failed_execution_scores_zero(self):
        assert ExecutionMetrics(execution_time_ms=10).performance_score() == 0

    def test_fast_execution(self):
        metrics = ExecutionMetrics(execution_time_ms=120, success=True)
        assert metrics.performance_score() == 100
        assert metrics.is_fast_execution()

    def test_penalties(self):
        metrics = ExecutionMetrics(execution_time_ms=1500, retry_count=2,
                                   validation_time_ms=1200, success=True)
        assert metrics.performance_score() == 100 - 15 - 20 - 10

    def test_score_floor(self):
        assert ExecutionMetrics(execution_time_ms=3000, retry_count=9, success=True).performance_score() == 0


class TestResults:

    def test_execution_result(self):
        result = SceneExecutionResult('abc', 'huestatus-success', 3500, True)
        assert result.is_slow()
        assert not result.is_fast()
        assert result.summary() == "Scene 'huestatus-success' succeeded in 3500ms"

    def test_validation_summary(self):
        lights = [
            LightStatus('1', 'Desk', True, True),
            LightStatus('2', 'Hall', False, False),
        ]
        valid = SceneValidationResult('abc', 'green', True, lights_status=lights)
        assert valid.summary() == "Scene 'green' is valid (1/2 lights reachable)"
        assert valid.color_capable_lights_count() == 1

        invalid = SceneValidationResult('abc', 'green', False, ['a', 'b'])
        assert invalid.summary() == "Scene 'green' has 2 issue(s): a; b"
