#!/usr/bin/env python3
"""
WebSocket Host Adapter for the LQR Tracker

This module connects a tracker to a host that streams robot poses and plans
over a WebSocket. It translates host messages into TrajectoryTracker calls and
answers every pose with a velocity command:

    host -> {"message_type": "plan", "poses": [[x, y, theta], ...]}
    host <- {"message_type": "plan_ack", "accepted": true}

    host -> {"message_type": "pose", "x": .., "y": .., "theta": .., "v": ..}
    host <- {"message_type": "cmd_vel", "linear": .., "angular": .., "v_left": ..,
             "v_right": .., "goal_reached": .., "success": ..}

The algorithmic core never sees the WebSocket; this module is the only place
that knows about the host protocol.
"""

import asyncio
import json
import logging
import math
import signal
import time
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import websockets

from .config import (
    POSE_TIMEOUT_SECONDS,
    TERM_BLUE,
    TERM_RESET,
    WS_MAX_RETRY_DELAY_SECONDS,
    WS_RETRY_DELAY_SECONDS,
    WS_TIMEOUT_SECONDS,
    TrackerConfig,
)
from .data_collector import DataCollector
from .errors import TransformUnavailable
from .geometry import Pose
from .model import inverse_kinematics
from .path import path_from_points
from .tracker import LQRTracker


class CustomFormatter(logging.Formatter):
    """Custom logging formatter that removes timestamps from INFO messages.

    This formatter provides clean console output by showing INFO messages without
    timestamps while preserving full context for WARNING, ERROR, and DEBUG messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record based on its level.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        if record.levelno == logging.INFO:
            return record.getMessage()
        return f"{self.formatTime(record, self.datefmt)} - {record.levelname} - {record.getMessage()}"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbose: If True, show all levels with timestamps. If False, show INFO
                 without timestamps and WARNING/ERROR with timestamps.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        handler = logging.StreamHandler()
        formatter = CustomFormatter(datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger = logging.getLogger()
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)


class LatestPoseProvider:
    """Pose provider fed by the latest pose message from the host.

    The pose is reported as unavailable until the first message arrives and
    again whenever the latest message is older than ``timeout`` seconds.

    Attributes:
        timeout: Maximum pose age (seconds)
        clock: Monotonic time source
    """

    def __init__(
        self,
        timeout: float = POSE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout = timeout
        self.clock = clock
        self._pose: Optional[Pose] = None
        self._speed: float = 0.0
        self._received_at: Optional[float] = None

    def update(self, pose: Pose, speed: Optional[float] = None) -> None:
        """Store a freshly received pose (and speed, if the host sent one)."""
        self._pose = pose
        if speed is not None and math.isfinite(speed):
            self._speed = speed
        self._received_at = self.clock()

    def get_robot_pose(self) -> Pose:
        if self._pose is None or self._received_at is None:
            raise TransformUnavailable("No pose received from host yet")

        age = self.clock() - self._received_at
        if age > self.timeout:
            raise TransformUnavailable(f"Latest pose is stale ({age:.2f}s old)")
        return self._pose

    def get_linear_speed(self) -> float:
        return self._speed


def parse_plan(data: Dict[str, Any]) -> List[Pose]:
    """Convert a plan message into poses.

    Entries without a heading take the direction of the segment leaving them
    (the final segment's direction for the last waypoint).

    Args:
        data: Parsed message with a "poses" list of [x, y] or [x, y, theta] entries.

    Returns:
        List of poses (empty if the message carries no poses)

    Raises:
        ValueError: If an entry is malformed.
    """
    entries = data.get("poses", [])
    if not isinstance(entries, list):
        raise ValueError(f"Invalid poses type: expected list, got {type(entries)}")

    for entry in entries:
        if not isinstance(entry, (list, tuple)) or len(entry) not in (2, 3):
            raise ValueError(f"Invalid plan entry: {entry!r}")

    derived = path_from_points([(float(entry[0]), float(entry[1])) for entry in entries])
    return [
        Pose(pose.x, pose.y, float(entry[2])) if len(entry) == 3 else pose
        for entry, pose in zip(entries, derived)
    ]


def parse_pose(data: Dict[str, Any]) -> Tuple[Pose, Optional[float]]:
    """Convert a pose message into (pose, speed).

    Raises:
        KeyError: If x, y or theta is missing.
        ValueError: If a value is not numeric.
    """
    pose = Pose(float(data["x"]), float(data["y"]), float(data["theta"]))
    speed = float(data["v"]) if data.get("v") is not None else None
    return pose, speed


class TrackerClient:
    """WebSocket adapter driving an LQR tracker from host messages.

    Attributes:
        uri: WebSocket URI to connect to.
        tracker: Tracker receiving plans and computing commands.
        pose_provider: Latest-pose provider fed by pose messages.
        data_collector: Optional telemetry sink, also receiving plans.
        should_stop: Flag indicating whether to stop the control loop.
    """

    def __init__(
        self,
        uri: str,
        tracker: Optional[LQRTracker] = None,
        data_collector: Optional[DataCollector] = None,
        pose_timeout: float = POSE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the client and the tracker's collaborators.

        Args:
            uri: WebSocket URI to connect to (must start with ws:// or wss://).
            tracker: Uninitialized tracker. Defaults to LQRTracker().
            data_collector: Optional telemetry sink.
            pose_timeout: Maximum age of a pose before it counts as unavailable (s).
            clock: Monotonic time source for pose ageing.

        Raises:
            ValueError: If URI format is invalid.
        """
        if not uri or not uri.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URI: {uri}. Must start with 'ws://' or 'wss://'")

        self.uri: str = uri
        self.should_stop: bool = False
        self.tracker = tracker if tracker is not None else LQRTracker()
        self.data_collector = data_collector
        self.pose_provider = LatestPoseProvider(timeout=pose_timeout, clock=clock)

        self.tracker.initialize(
            "websocket",
            self.pose_provider,
            odometry_provider=self.pose_provider,
            telemetry=data_collector,
        )

    def handle_plan(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Hand a plan message to the tracker and build the acknowledgement."""
        poses = parse_plan(data)
        accepted = self.tracker.set_plan(poses)
        if accepted and self.data_collector is not None:
            self.data_collector.log_plan(poses)
        return {"message_type": "plan_ack", "accepted": accepted}

    def handle_pose(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Store a pose message, run one control tick and build the command reply."""
        pose, speed = parse_pose(data)
        self.pose_provider.update(pose, speed)

        command, success = self.tracker.compute_velocity_commands()
        v_left, v_right = inverse_kinematics(
            command.linear, command.angular, self.tracker.config.wheelbase
        )
        return {
            "message_type": "cmd_vel",
            "linear": command.linear,
            "angular": command.angular,
            "v_left": v_left,
            "v_right": v_right,
            "goal_reached": self.tracker.is_goal_reached(),
            "success": success,
        }

    def handle_message(self, message: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Parse incoming message and route to appropriate handler.

        Args:
            message: Raw JSON message string or bytes from WebSocket.

        Returns:
            Reply to send back, or None if the message was dropped.
        """
        try:
            if isinstance(message, bytes):
                message = message.decode("utf-8")
            data = json.loads(message)
            if not isinstance(data, dict):
                raise TypeError(f"expected JSON object, got {type(data).__name__}")

            message_type = data.get("message_type")
            if message_type == "pose":
                return self.handle_pose(data)
            if message_type == "plan":
                return self.handle_plan(data)
            if message_type == "stop":
                logging.info("Stop requested by host")
                self.should_stop = True
                return None

            logging.debug(f"Ignoring unknown message type: {message_type}")
            return None

        except json.JSONDecodeError as e:
            logging.error(f"Error parsing JSON: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logging.error(f"Error processing message data: {e}")
        return None

    async def run_control_loop(self) -> None:
        """Connect to WebSocket and serve the host until stopped.

        Maintains a connection to the WebSocket server with automatic retry logic
        and exponential backoff. Continues running until should_stop is set.
        """
        retry_delay = WS_RETRY_DELAY_SECONDS

        while not self.should_stop:
            try:
                async with websockets.connect(self.uri) as websocket:
                    logging.info(f"{TERM_BLUE}✓ Connected to {self.uri}{TERM_RESET}")
                    retry_delay = WS_RETRY_DELAY_SECONDS

                    while not self.should_stop:
                        try:
                            message = await asyncio.wait_for(
                                websocket.recv(), timeout=WS_TIMEOUT_SECONDS
                            )
                        except asyncio.TimeoutError:
                            continue
                        except websockets.exceptions.ConnectionClosed:
                            logging.warning("Connection closed by server")
                            break

                        reply = self.handle_message(message)
                        if reply is not None:
                            await websocket.send(json.dumps(reply))

            except (OSError, websockets.exceptions.WebSocketException) as e:
                if self.should_stop:
                    break
                logging.error(f"Connection error: {e}")
                logging.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, WS_MAX_RETRY_DELAY_SECONDS)

    def stop(self) -> None:
        """Signal the client to stop."""
        self.should_stop = True

    def __enter__(self) -> "TrackerClient":
        if self.data_collector is not None:
            self.data_collector.setup()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.data_collector is not None:
            self.data_collector.cleanup()


async def main(
    uri: str, config: Optional[TrackerConfig] = None, record: bool = True, output_dir: str = "."
) -> None:
    """Run the WebSocket adapter until interrupted.

    Args:
        uri: WebSocket URI of the host.
        config: Tracker configuration (defaults if None).
        record: If True, record telemetry to a run directory.
        output_dir: Base directory for recorded runs.
    """
    data_collector = DataCollector(output_dir=output_dir) if record else None
    tracker = LQRTracker(config)

    with TrackerClient(uri, tracker=tracker, data_collector=data_collector) as client:
        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            """Handle shutdown signals (SIGINT, SIGTERM)."""
            logging.info("\nShutdown signal received...")
            client.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

        await client.run_control_loop()
