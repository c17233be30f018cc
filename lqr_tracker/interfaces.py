"""Contracts between the tracker and the outside world.

The tracker only depends on these small interfaces. Host-specific code (the
WebSocket client, the simulator) implements them in separate modules.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .geometry import Pose


@runtime_checkable
class PoseProvider(Protocol):
    """Source of the robot pose in the planning frame."""

    def get_robot_pose(self) -> Pose:
        """Return the current robot pose.

        Raises:
            TransformUnavailable: If the pose cannot be resolved right now.
        """
        ...


@runtime_checkable
class OdometryProvider(Protocol):
    """Source of the robot's current linear speed."""

    def get_linear_speed(self) -> float:
        ...


@runtime_checkable
class CostmapProvider(Protocol):
    """Local costmap extent, used only to bound plan relevance."""

    def get_size_in_meters(self) -> Tuple[float, float]:
        ...


@runtime_checkable
class TelemetrySink(Protocol):
    """One-way observation channel. Never read back by the tracker."""

    def publish(self, target: Pose, robot: Pose, diagnostics: Dict[str, Any]) -> None:
        ...


class TrajectoryTracker(ABC):
    """Capability interface of a path-tracking controller."""

    @abstractmethod
    def set_plan(self, poses: Sequence[Pose]) -> bool:
        """Replace the plan being tracked. Returns False if the plan is rejected."""

    @abstractmethod
    def is_goal_reached(self) -> bool:
        """Report whether the goal has been reached, without side effects."""

    @abstractmethod
    def compute_velocity_commands(self) -> Tuple[Any, bool]:
        """Run one control tick. Returns (command, success)."""

    def initialize(
        self,
        name: str,
        pose_provider: PoseProvider,
        costmap_provider: Optional[CostmapProvider] = None,
    ) -> None:
        """Attach collaborators. Trackers that need no setup may keep this no-op."""
