"""Scene execution types: strategies, options, context, snapshots and metrics.

ExecutionStrategy is a tagged union of small frozen dataclasses; the
executor dispatches on the variant type.
"""

from dataclasses import dataclass, field
from datetime import datetime

from models.bridge import LightState


@dataclass(frozen=True)
class Immediate:
    """Apply the scene now."""


@dataclass(frozen=True)
class Delayed:
    """Sleep for ``seconds`` then apply the scene."""
    seconds: float


@dataclass(frozen=True)
class Fade:
    """Apply the scene with an extended timeout budget of ``duration_ms`` + 5s.

    The bridge performs the transition itself; no gradual stepping is done here.
    """
    duration_ms: int


@dataclass(frozen=True)
class ValidatedExecution:
    """Re-run validation immediately before each apply."""


@dataclass(frozen=True)
class BackupAndRestore:
    """Snapshot affected lights first and restore them if execution fails."""


ExecutionStrategy = Immediate | Delayed | Fade | ValidatedExecution | BackupAndRestore


@dataclass
class ExecutionOptions:
    validate_before_execution: bool = False
    timeout_ms: int = 5000
    retry_on_failure: bool = True
    max_retries: int = 3
    retry_delay_ms: int = 1000
    measure_performance: bool = True
    restore_previous_state: bool = False

    @classmethod
    def fast(cls) -> 'ExecutionOptions':
        return cls(timeout_ms=2000, retry_on_failure=False, max_retries=1,
                   retry_delay_ms=500, measure_performance=False)

    @classmethod
    def reliable(cls) -> 'ExecutionOptions':
        return cls(validate_before_execution=True, timeout_ms=10000, max_retries=5,
                   retry_delay_ms=2000, restore_previous_state=True)

    @classmethod
    def testing(cls) -> 'ExecutionOptions':
        return cls(validate_before_execution=True, timeout_ms=15000, retry_on_failure=False,
                   max_retries=1, retry_delay_ms=0, restore_previous_state=True)

    @property
    def max_attempts(self) -> int:
        return max(self.max_retries, 1) if self.retry_on_failure else 1


@dataclass(frozen=True)
class StateSnapshot:
    """State of one light captured before the scene was applied."""
    light_id: str
    light_name: str
    previous_state: LightState
    captured_at: datetime


@dataclass
class ExecutionContext:
    """Everything one execute() call needs; never shared between calls."""
    scene_id: str
    scene_name: str
    strategy: ExecutionStrategy = field(default_factory=Immediate)
    options: ExecutionOptions = field(default_factory=ExecutionOptions)
    snapshots: list[StateSnapshot] = field(default_factory=list)


@dataclass
class ExecutionMetrics:
    total_time_ms: int = 0
    validation_time_ms: int = 0
    backup_time_ms: int = 0
    execution_time_ms: int = 0
    lights_affected: int = 0
    retry_count: int = 0
    success: bool = False

    def performance_score(self) -> int:
        """0-100, penalising slow execution, retries and slow validation."""
        if not self.success:
            return 0

        score = 100
        if self.execution_time_ms > 2000:
            score -= 30
        elif self.execution_time_ms > 1000:
            score -= 15
        elif self.execution_time_ms > 500:
            score -= 5

        score -= self.retry_count * 10

        if self.validation_time_ms > 1000:
            score -= 10

        return max(score, 0)

    def is_fast_execution(self) -> bool:
        return self.success and self.execution_time_ms < 500 and self.retry_count == 0

    def summary(self) -> str:
        return (f"Execution: {self.execution_time_ms}ms, Total: {self.total_time_ms}ms, "
                f"Retries: {self.retry_count}, Score: {self.performance_score()}")


@dataclass
class SceneExecutionResult:
    scene_id: str
    scene_name: str
    execution_time_ms: int
    success: bool
    metrics: ExecutionMetrics | None = None

    def is_fast(self) -> bool:
        return self.execution_time_ms < 1000

    def is_slow(self) -> bool:
        return self.execution_time_ms > 3000

    def summary(self) -> str:
        status = 'succeeded' if self.success else 'failed'
        return f"Scene '{self.scene_name}' {status} in {self.execution_time_ms}ms"


@dataclass
class LightStatus:
    light_id: str
    light_name: str
    is_reachable: bool
    supports_color: bool
    current_state: LightState | None = None


@dataclass
class SceneValidationResult:
    """Dry-run report: problems are collected, not raised."""
    scene_id: str
    scene_name: str
    is_valid: bool
    issues: list[str] = field(default_factory=list)
    lights_status: list[LightStatus] = field(default_factory=list)

    def reachable_lights_count(self) -> int:
        return sum(1 for light in self.lights_status if light.is_reachable)

    def color_capable_lights_count(self) -> int:
        return sum(1 for light in self.lights_status if light.supports_color)

    def summary(self) -> str:
        if self.is_valid:
            return (f"Scene '{self.scene_name}' is valid "
                    f"({self.reachable_lights_count()}/{len(self.lights_status)} lights reachable)")
        return f"Scene '{self.scene_name}' has {len(self.issues)} issue(s): {'; '.join(self.issues)}"
