import math
import unittest

from lqr_tracker.config import TrackerConfig
from lqr_tracker.geometry import Pose
from lqr_tracker.interfaces import PoseProvider, TelemetrySink, TrajectoryTracker
from lqr_tracker.path import straight_path
from lqr_tracker.riccati import SolverStatus
from lqr_tracker.simulation import UnicycleSimulator, make_simulated_tracker
from lqr_tracker.synthesizer import ControlCommand
from lqr_tracker.tracker import LQRTracker, TrackerState


class RecordingSink:
    def __init__(self):
        self.records = []

    def publish(self, target, robot, diagnostics):
        self.records.append((target, robot, diagnostics))


class FailingSink:
    def publish(self, target, robot, diagnostics):
        raise IOError("disk full")


class TestTrackerScenarios(unittest.TestCase):
    def test_straight_line_start(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker)
        self.assertTrue(tracker.set_plan(straight_path()))

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertGreater(command.linear, 0.0)
        self.assertAlmostEqual(command.angular, 0.0, places=9)
        self.assertEqual(tracker.state, TrackerState.TRACKING)
        self.assertEqual(tracker.last_target.index, 1)

    def test_heading_error_corrected(self):
        config = TrackerConfig()
        tracker = LQRTracker(config)
        make_simulated_tracker(tracker, initial_pose=Pose(0.0, 0.0, math.pi / 2))
        tracker.set_plan(straight_path())

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        # Target lies to the right, so the robot turns clockwise on the spot
        self.assertEqual(command.linear, 0.0)
        self.assertLess(command.angular, 0.0)
        self.assertGreaterEqual(command.angular, config.min_angular_velocity)
        self.assertLessEqual(abs(command.angular), config.max_angular_velocity)

    def test_goal_within_tolerance(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker)
        tracker.set_plan([Pose(0.1, 0.0, 0.1)])

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertTrue(tracker.is_goal_reached())
        self.assertEqual(command.linear, 0.0)
        self.assertEqual(command.angular, 0.0)
        self.assertEqual(tracker.state, TrackerState.GOAL_REACHED)

    def test_empty_plan_rejected(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker)
        tracker.set_plan(straight_path())
        before = tracker.plan

        self.assertFalse(tracker.set_plan([]))
        self.assertEqual(tracker.plan, before)
        self.assertEqual(tracker.state, TrackerState.READY)

    def test_singular_solve_zero_command(self):
        config = TrackerConfig(Q=[0.0, 0.0, 0.0], R=[1e-12, 1e-12])
        tracker = LQRTracker(config)
        make_simulated_tracker(tracker)
        tracker.set_plan(straight_path())

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertEqual(command, ControlCommand.zero())
        self.assertIs(tracker.last_solution.status, SolverStatus.SINGULAR)

    def test_target_behind_turns_in_place(self):
        sink = RecordingSink()
        config = TrackerConfig()
        tracker = LQRTracker(config)
        make_simulated_tracker(tracker, initial_pose=Pose(0.0, 0.0, math.pi), telemetry=sink)
        tracker.set_plan(straight_path())

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertEqual(command.linear, 0.0)
        self.assertAlmostEqual(command.angular, config.max_angular_velocity)
        self.assertIsNone(tracker.last_solution)
        diagnostics = sink.records[0][2]
        self.assertEqual(diagnostics["mode"], "rotate_to_path")
        self.assertEqual(diagnostics["solver_status"], "")

    def test_beside_goal_turns_onto_goal_heading(self):
        sink = RecordingSink()
        tracker = LQRTracker()
        make_simulated_tracker(tracker, telemetry=sink)
        tracker.set_plan([Pose(0.1, 0.0, 1.2)])

        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertFalse(tracker.is_goal_reached())
        self.assertEqual(command.linear, 0.0)
        self.assertGreater(command.angular, 0.0)
        self.assertEqual(sink.records[0][2]["mode"], "rotate_to_goal")


class TestTrackerLifecycle(unittest.TestCase):
    def test_is_trajectory_tracker(self):
        self.assertIsInstance(LQRTracker(), TrajectoryTracker)
        self.assertIsInstance(UnicycleSimulator(), PoseProvider)
        self.assertIsInstance(RecordingSink(), TelemetrySink)

    def test_uninitialized(self):
        tracker = LQRTracker()
        tracker.set_plan(straight_path())
        command, success = tracker.compute_velocity_commands()
        self.assertFalse(success)
        self.assertTrue(command.is_zero())

    def test_no_plan(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker)
        command, success = tracker.compute_velocity_commands()
        self.assertFalse(success)
        self.assertTrue(command.is_zero())
        self.assertEqual(tracker.state, TrackerState.UNINITIALIZED)

    def test_initialize_only_once(self):
        tracker = LQRTracker()
        first = UnicycleSimulator()
        second = UnicycleSimulator(initial_pose=Pose(5.0, 5.0))
        tracker.initialize("first", first)
        tracker.initialize("second", second)
        self.assertIs(tracker.pose_provider, first)
        self.assertEqual(tracker.name, "first")

    def test_pose_unavailable(self):
        tracker = LQRTracker()
        simulator = make_simulated_tracker(tracker)
        tracker.set_plan(straight_path())
        simulator.pose_available = False

        command, success = tracker.compute_velocity_commands()
        self.assertFalse(success)
        self.assertTrue(command.is_zero())

        simulator.pose_available = True
        _, success = tracker.compute_velocity_commands()
        self.assertTrue(success)

    def test_goal_latched_until_new_plan(self):
        tracker = LQRTracker()
        simulator = make_simulated_tracker(tracker)
        tracker.set_plan([Pose(0.0, 0.0, 0.0)])
        tracker.compute_velocity_commands()
        self.assertTrue(tracker.is_goal_reached())

        simulator.pose = Pose(3.0, 0.0, 0.0)
        command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertTrue(command.is_zero())
        self.assertTrue(tracker.is_goal_reached())
        # Querying has no side effects
        self.assertTrue(tracker.is_goal_reached())

        self.assertTrue(tracker.set_plan(straight_path(start=(3.0, 0.0))))
        self.assertFalse(tracker.is_goal_reached())
        self.assertEqual(tracker.state, TrackerState.READY)

    def test_plan_is_pruned(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker, initial_pose=Pose(2.2, 0.0, 0.0))
        tracker.set_plan(straight_path())
        tracker.compute_velocity_commands()
        self.assertEqual(len(tracker.plan), 7)
        self.assertEqual(tracker.plan[-1], Pose(9.0, 0.0, 0.0))

    def test_telemetry_published(self):
        sink = RecordingSink()
        tracker = LQRTracker()
        make_simulated_tracker(tracker, telemetry=sink)
        tracker.set_plan(straight_path())
        tracker.compute_velocity_commands()

        self.assertEqual(len(sink.records), 1)
        target, robot, diagnostics = sink.records[0]
        self.assertEqual(target, Pose(1.0, 0.0, 0.0))
        self.assertEqual(robot, Pose(0.0, 0.0, 0.0))
        self.assertIn("solver_status", diagnostics)
        self.assertEqual(diagnostics["mode"], "lqr")
        self.assertFalse(diagnostics["goal_reached"])

    def test_telemetry_failure_does_not_stop_tick(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker, telemetry=FailingSink())
        tracker.set_plan(straight_path())
        with self.assertLogs(level="ERROR"):
            command, success = tracker.compute_velocity_commands()
        self.assertTrue(success)
        self.assertGreater(command.linear, 0.0)

    def test_speed_from_last_command_without_odometry(self):
        tracker = LQRTracker()
        simulator = UnicycleSimulator()
        tracker.initialize("no-odometry", simulator)
        tracker.set_plan(straight_path())
        command, _ = tracker.compute_velocity_commands()
        self.assertAlmostEqual(tracker._current_speed(), command.linear)

    def test_relevance_distance_from_costmap(self):
        tracker = LQRTracker()
        make_simulated_tracker(tracker)
        self.assertAlmostEqual(tracker._relevance_distance(), 3.0)

        bare = LQRTracker(TrackerConfig(max_relevance_dist=2.0))
        bare.initialize("bare", UnicycleSimulator())
        self.assertAlmostEqual(bare._relevance_distance(), 2.0)


if __name__ == "__main__":
    unittest.main()
