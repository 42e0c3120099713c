"""Scene execution with validation, state backup, retries and rollback.

execute() runs a fixed pipeline for one ExecutionContext:

1. validation (optional): the scene exists, is unlocked, has lights, and
   every light is reachable; nothing is changed if this fails
2. snapshot (optional): the current state of every light in the scene
3. execution: the strategy is applied, retried per ExecutionOptions
4. metrics: phase timings are recorded on the result
"""

import time
from datetime import datetime, timezone

from loguru import logger

from core.client import BridgeClient
from core.errors import (
    HueStatusError,
    InvalidConfig,
    OperationTimeout,
    RESOURCE_NOT_AVAILABLE,
    SceneExecutionFailed,
    SceneNotFound,
    ValidationFailed,
)
from models.bridge import Scene
from models.execution import (
    BackupAndRestore,
    Delayed,
    ExecutionContext,
    ExecutionMetrics,
    Fade,
    LightStatus,
    SceneExecutionResult,
    SceneValidationResult,
    StateSnapshot,
    ValidatedExecution,
)

FADE_TIMEOUT_MARGIN_MS = 5000


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class SceneExecutor:
    """Executes bridge scenes on behalf of the status commands."""

    def __init__(self, client: BridgeClient):
        self.client = client

    def execute(self, context: ExecutionContext) -> SceneExecutionResult:
        """Run the validation/snapshot/execute pipeline for ``context``.

        Raises:
            ValidationFailed, SceneNotFound: validation failed; no light was changed
            SceneExecutionFailed, OperationTimeout: every execution attempt failed
            AuthenticationFailed, ApiError: the bridge rejected the recall outright
        """
        start = time.monotonic()
        metrics = ExecutionMetrics()
        options = context.options

        logger.debug(f"Executing scene: {context.scene_name} ({context.scene_id}), "
                     f"strategy: {type(context.strategy).__name__}")

        if options.validate_before_execution:
            phase_start = time.monotonic()
            scene = self.validate_scene_execution(context.scene_id)
            metrics.validation_time_ms = _elapsed_ms(phase_start)
            metrics.lights_affected = len(scene.lights)
            logger.debug(f"Scene validation passed ({metrics.validation_time_ms}ms)")

        backup_requested = options.restore_previous_state or isinstance(context.strategy, BackupAndRestore)
        if backup_requested:
            phase_start = time.monotonic()
            context.snapshots = self.backup_current_states(context.scene_id)
            metrics.backup_time_ms = _elapsed_ms(phase_start)
            metrics.lights_affected = len(context.snapshots)
            logger.debug(f"Backed up {len(context.snapshots)} light states ({metrics.backup_time_ms}ms)")

        try:
            execution_time_ms = self._execute_with_retry(context, metrics)
        except HueStatusError as e:
            metrics.total_time_ms = _elapsed_ms(start)
            logger.debug(f"Scene execution failed: {e} ({metrics.summary()})")
            if isinstance(context.strategy, BackupAndRestore) and context.snapshots:
                self.restore_states(context.snapshots)
            raise

        metrics.total_time_ms = _elapsed_ms(start)
        metrics.success = True
        logger.debug(metrics.summary())

        return SceneExecutionResult(
            scene_id=context.scene_id,
            scene_name=context.scene_name,
            execution_time_ms=execution_time_ms,
            success=True,
            metrics=metrics,
        )

    def _execute_with_retry(self, context: ExecutionContext, metrics: ExecutionMetrics) -> int:
        options = context.options
        max_attempts = options.max_attempts

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                metrics.retry_count += 1
                logger.debug(f"Retrying execution (attempt {attempt}/{max_attempts}) "
                             f"after {options.retry_delay_ms}ms")
                time.sleep(options.retry_delay_ms / 1000)

            try:
                execution_time_ms = self._execute_single_attempt(context)
            except HueStatusError as e:
                logger.debug(f"Attempt {attempt} failed: {e}")
                if not e.retryable or attempt == max_attempts:
                    raise
                continue

            metrics.execution_time_ms = execution_time_ms
            return execution_time_ms

        # max_attempts is always >= 1, so the loop returns or raises
        raise SceneExecutionFailed('All retry attempts failed')

    def _execute_single_attempt(self, context: ExecutionContext) -> int:
        start = time.monotonic()
        strategy = context.strategy
        timeout_ms = context.options.timeout_ms

        if isinstance(strategy, Delayed):
            time.sleep(strategy.seconds)
            self.execute_immediate(context.scene_id, timeout_ms)
        elif isinstance(strategy, Fade):
            logger.debug(f"Executing scene with fade ({strategy.duration_ms}ms)")
            self.execute_immediate(context.scene_id, strategy.duration_ms + FADE_TIMEOUT_MARGIN_MS)
        elif isinstance(strategy, ValidatedExecution):
            self.validate_scene_execution(context.scene_id)
            self.execute_immediate(context.scene_id, timeout_ms)
        else:
            # Immediate and BackupAndRestore; snapshots are handled by execute()
            self.execute_immediate(context.scene_id, timeout_ms)

        return _elapsed_ms(start)

    def execute_immediate(self, scene_id: str, timeout_ms: int):
        """Recall ``scene_id`` on all lights within ``timeout_ms``.

        The budget covers the client's own retries. Non-retryable errors such
        as AuthenticationFailed are raised unchanged.
        """
        timeout = timeout_ms / 1000
        try:
            self.client.execute_scene(scene_id, timeout=timeout, deadline=time.monotonic() + timeout)
        except OperationTimeout as e:
            raise OperationTimeout(f"Scene execution for {scene_id}") from e
        except HueStatusError as e:
            if not e.retryable:
                raise
            raise SceneExecutionFailed(str(e)) from e

    def _get_scene(self, scene_id: str) -> Scene:
        try:
            return self.client.get_scene(scene_id)
        except InvalidConfig as e:
            if e.bridge_code == RESOURCE_NOT_AVAILABLE:
                raise SceneNotFound(scene_id) from e
            raise

    def validate_scene_execution(self, scene_id: str) -> Scene:
        """Check the scene can be executed right now; returns the scene."""
        scene = self._get_scene(scene_id)

        if not scene.is_suitable_for_status():
            raise ValidationFailed(f"Scene '{scene.name}' is not suitable for execution")

        lights = self.client.get_lights()
        missing = [light_id for light_id in scene.lights if light_id not in lights]
        if missing:
            raise ValidationFailed(f"Lights not found: {', '.join(missing)}")

        unreachable = [lights[light_id].name for light_id in scene.lights
                       if not lights[light_id].is_reachable()]
        if unreachable:
            raise ValidationFailed(f"Unreachable lights: {', '.join(unreachable)}")

        return scene

    def backup_current_states(self, scene_id: str) -> list[StateSnapshot]:
        """Capture the current state of every light referenced by the scene."""
        scene = self._get_scene(scene_id)
        lights = self.client.get_lights()

        snapshots = []
        for light_id in scene.lights:
            light = lights.get(light_id)
            if light is None:
                continue
            snapshots.append(StateSnapshot(
                light_id=light_id,
                light_name=light.name,
                previous_state=light.state,
                captured_at=datetime.now(timezone.utc),
            ))
        return snapshots

    def restore_states(self, snapshots: list[StateSnapshot]) -> int:
        """Put each light back to its captured state, best effort.

        Returns:
            Number of lights restored
        """
        logger.debug(f"Restoring {len(snapshots)} light states...")
        restored = 0
        for snapshot in snapshots:
            try:
                self.client.set_light_state(snapshot.light_id, snapshot.previous_state)
            except HueStatusError as e:
                logger.warning(f"Could not restore {snapshot.light_name} ({snapshot.light_id}): {e}")
                continue
            restored += 1
        return restored

    def execute_with_rollback(self, scene_id: str, rollback_scene_id: str,
                              timeout_ms: int = 5000) -> SceneExecutionResult:
        """Execute ``scene_id``; if that fails, execute ``rollback_scene_id`` once.

        The original failure is always raised, whether or not the rollback worked.
        """
        start = time.monotonic()
        logger.debug(f"Executing scene with rollback: {scene_id} -> {rollback_scene_id}")

        try:
            self.execute_immediate(scene_id, timeout_ms)
        except HueStatusError:
            logger.debug("Scene execution failed, rolling back...")
            try:
                self.execute_immediate(rollback_scene_id, timeout_ms)
            except HueStatusError as rollback_error:
                logger.warning(f"Rollback to {rollback_scene_id} failed: {rollback_error}")
            else:
                logger.debug("Rollback successful")
            raise

        return SceneExecutionResult(
            scene_id=scene_id,
            scene_name=scene_id,
            execution_time_ms=_elapsed_ms(start),
            success=True,
        )

    def test_execution(self, scene_id: str) -> SceneValidationResult:
        """Dry run: report what would stop the scene from executing, without applying it."""
        try:
            scene = self.client.get_scene(scene_id)
        except HueStatusError as e:
            logger.debug(f"Scene {scene_id} could not be loaded: {e}")
            return SceneValidationResult(scene_id=scene_id, scene_name='Unknown',
                                         is_valid=False, issues=['Scene not found'])

        issues = []
        if not scene.is_suitable_for_status():
            issues.append('Scene is not suitable for status indication')

        lights = self.client.get_lights()
        lights_status = []
        for light_id in scene.lights:
            light = lights.get(light_id)
            if light is None:
                issues.append(f"Light '{light_id}' not found")
                continue

            lights_status.append(LightStatus(
                light_id=light_id,
                light_name=light.name,
                is_reachable=light.is_reachable(),
                supports_color=light.supports_color(),
                current_state=light.state,
            ))
            if not light.is_reachable():
                issues.append(f"Light '{light.name}' is not reachable")

        return SceneValidationResult(
            scene_id=scene_id,
            scene_name=scene.name,
            is_valid=not issues,
            issues=issues,
            lights_status=lights_status,
        )
