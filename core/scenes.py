"""Status scene provisioning and management.

The success (green) and failure (red) scenes live on the bridge; only their
ids are kept in the configuration.
"""

from dataclasses import dataclass

from loguru import logger

from core.client import BridgeClient
from core.config import FAILURE_SCENE, SCENE_KINDS, SUCCESS_SCENE, HueStatusConfig
from core.errors import HueStatusError, SceneNotFound, SceneStorageLimitExceeded
from core.executor import SceneExecutor
from models.bridge import CreateSceneRequest
from models.execution import (
    ExecutionContext,
    ExecutionOptions,
    ExecutionStrategy,
    Immediate,
    SceneExecutionResult,
    SceneValidationResult,
)

SCENE_NAMES = {
    SUCCESS_SCENE: 'huestatus-success',
    FAILURE_SCENE: 'huestatus-failure',
}

SCENE_BUILDERS = {
    SUCCESS_SCENE: CreateSceneRequest.success_scene,
    FAILURE_SCENE: CreateSceneRequest.failure_scene,
}


@dataclass
class SceneCreationResult:
    success_scene_id: str
    failure_scene_id: str
    lights_used: list[str]
    scenes_created: int = 2

    def summary(self) -> str:
        return (f"Created {self.scenes_created} scenes using {len(self.lights_used)} lights "
                f"(Success: {self.success_scene_id}, Failure: {self.failure_scene_id})")


class SceneManager:
    """Creates, runs, checks and removes the two status scenes."""

    def __init__(self, client: BridgeClient):
        self.client = client
        self.executor = SceneExecutor(client)

    def create_status_scenes(self, config: HueStatusConfig) -> SceneCreationResult:
        """Create both status scenes on every suitable light and record them on ``config``.

        The caller is responsible for saving ``config`` afterwards.

        Raises:
            NoLightsFound: if no reachable colour-capable light exists
            SceneStorageLimitExceeded: if the bridge has no room for two more scenes
        """
        logger.debug("Creating status scenes...")

        suitable = self.client.get_suitable_lights()
        light_ids = [light_id for light_id, _ in suitable]
        for light_id, light in suitable:
            logger.debug(f"Using light {light.name} ({light_id})")

        capabilities = self.client.get_capabilities()
        if capabilities.scenes.available < len(SCENE_KINDS):
            raise SceneStorageLimitExceeded(capabilities.scenes.total)

        created = {}
        for kind in SCENE_KINDS:
            name = SCENE_NAMES[kind]
            scene_id = self.client.create_scene(SCENE_BUILDERS[kind](name, light_ids))
            logger.debug(f"Created {kind} scene: {name} ({scene_id})")
            config.set_scene(kind, scene_id, name, auto_created=True)
            created[kind] = scene_id

        return SceneCreationResult(
            success_scene_id=created[SUCCESS_SCENE],
            failure_scene_id=created[FAILURE_SCENE],
            lights_used=light_ids,
        )

    def execute_status_scene(self, kind: str, config: HueStatusConfig,
                             options: ExecutionOptions | None = None,
                             strategy: ExecutionStrategy | None = None) -> SceneExecutionResult:
        """Show ``kind`` ('success' or 'failure') on the lights."""
        scene = config.get_scene(kind)
        if scene is None:
            raise SceneNotFound(kind)

        logger.debug(f"Executing {kind} scene: {scene.name} ({scene.id})")
        context = ExecutionContext(
            scene_id=scene.id,
            scene_name=scene.name,
            strategy=strategy or Immediate(),
            options=options or ExecutionOptions(),
        )
        return self.executor.execute(context)

    def validate_status_scenes(self, config: HueStatusConfig) -> list[SceneValidationResult]:
        """Dry-run check of each configured status scene."""
        results = []
        for kind in SCENE_KINDS:
            scene = config.get_scene(kind)
            if scene is None:
                continue

            result = self.executor.test_execution(scene.id)
            if result.scene_name == 'Unknown':
                result.scene_name = scene.name
                result.issues = [f"Scene '{scene.name}' not found"]
            results.append(result)
            logger.debug(result.summary())
        return results

    def delete_status_scenes(self, config: HueStatusConfig):
        """Delete the status scenes this tool created; failures are only logged."""
        for kind in SCENE_KINDS:
            scene = config.get_scene(kind)
            if scene is None or not scene.auto_created:
                continue
            try:
                self.client.delete_scene(scene.id)
            except HueStatusError as e:
                logger.warning(f"Failed to delete {kind} scene {scene.name}: {e}")
                continue
            logger.debug(f"Deleted {kind} scene: {scene.name}")

    def refresh_status_scenes(self, config: HueStatusConfig) -> SceneCreationResult:
        logger.debug("Refreshing status scenes...")
        self.delete_status_scenes(config)
        return self.create_status_scenes(config)
