import math
import unittest

import numpy as np

from lqr_tracker.geometry import Pose
from lqr_tracker.riccati import RiccatiResult, SolverStatus
from lqr_tracker.synthesizer import ControlCommand, ControlSynthesizer


def make_result(K, status=SolverStatus.CONVERGED):
    K = np.asarray(K, dtype=float)
    return RiccatiResult(status, np.eye(3), K, 10, 1e-6)


class TestControlSynthesizer(unittest.TestCase):
    def setUp(self):
        self.synthesizer = ControlSynthesizer(
            min_linear=0.0,
            max_linear=0.5,
            min_angular=-1.57,
            max_angular=1.57,
            goal_dist_tolerance=0.2,
            goal_heading_tolerance=0.5,
        )
        self.identity_gain = make_result([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])

    def test_control_law(self):
        command = self.synthesizer.compute_control(np.array([-0.3, 0.0, -0.2]), self.identity_gain)
        self.assertAlmostEqual(command.linear, 0.3)
        self.assertAlmostEqual(command.angular, 0.2)

    def test_clamping_extreme_errors(self):
        for error in ([-1e6, 0.0, 1e6], [1e6, 0.0, -1e6], [-50.0, 3.0, math.pi]):
            command = self.synthesizer.compute_control(np.array(error), self.identity_gain)
            self.assertGreaterEqual(command.linear, 0.0)
            self.assertLessEqual(command.linear, 0.5)
            self.assertGreaterEqual(command.angular, -1.57)
            self.assertLessEqual(command.angular, 1.57)

    def test_goal_reached_zero(self):
        command = self.synthesizer.compute_control(
            np.array([-1.0, 0.0, 0.0]), self.identity_gain, goal_reached=True
        )
        self.assertTrue(command.is_zero())

    def test_singular_zero(self):
        result = make_result(np.ones((2, 3)), SolverStatus.SINGULAR)
        command = self.synthesizer.compute_control(np.array([-1.0, 0.0, 0.0]), result)
        self.assertEqual(command, ControlCommand.zero())

    def test_non_finite_zero(self):
        command = self.synthesizer.compute_control(np.array([float("nan"), 0.0, 0.0]), self.identity_gain)
        self.assertTrue(command.is_zero())

    def test_degraded_gain_applied(self):
        result = make_result([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]], SolverStatus.DEGRADED)
        command = self.synthesizer.compute_control(np.array([-0.3, 0.0, 0.0]), result)
        self.assertAlmostEqual(command.linear, 0.3)

    def test_rotate_in_place(self):
        command = self.synthesizer.rotate_in_place(0.1)
        self.assertEqual(command.linear, 0.0)
        self.assertAlmostEqual(command.angular, 1.0)
        command = self.synthesizer.rotate_in_place(-0.05)
        self.assertAlmostEqual(command.angular, -0.5)

    def test_rotate_in_place_saturates(self):
        self.assertAlmostEqual(self.synthesizer.rotate_in_place(math.pi).angular, 1.57)
        self.assertAlmostEqual(self.synthesizer.rotate_in_place(-math.pi).angular, -1.57)

    def test_rotate_in_place_non_finite(self):
        self.assertTrue(self.synthesizer.rotate_in_place(float("nan")).is_zero())

    def test_rotate_in_place_respects_linear_bounds(self):
        synthesizer = ControlSynthesizer(min_linear=0.05, max_linear=0.5, rotation_gain=2.0)
        command = synthesizer.rotate_in_place(0.25)
        self.assertAlmostEqual(command.linear, 0.05)
        self.assertAlmostEqual(command.angular, 0.5)

    def test_goal_check(self):
        goal = Pose(1.0, 1.0, 0.0)
        self.assertTrue(self.synthesizer.is_goal_reached(Pose(1.1, 1.0, 0.3), goal))
        self.assertFalse(self.synthesizer.is_goal_reached(Pose(1.3, 1.0, 0.0), goal))
        self.assertFalse(self.synthesizer.is_goal_reached(Pose(1.0, 1.0, 0.6), goal))

    def test_goal_check_wraps_heading(self):
        goal = Pose(0.0, 0.0, math.pi - 0.1)
        self.assertTrue(self.synthesizer.is_goal_reached(Pose(0.0, 0.0, -math.pi + 0.1), goal))

    def test_diagnostics(self):
        error = np.array([-0.3, 0.1, -0.2])
        command = self.synthesizer.compute_control(error, self.identity_gain)
        diagnostics = self.synthesizer.get_diagnostics(error, self.identity_gain, command, 0.6)
        self.assertEqual(diagnostics["solver_status"], "converged")
        self.assertEqual(diagnostics["iterations"], 10)
        self.assertAlmostEqual(diagnostics["e_lateral"], 0.1)
        self.assertAlmostEqual(diagnostics["v_cmd"], command.linear)
        self.assertAlmostEqual(diagnostics["lookahead_distance"], 0.6)
        self.assertEqual(diagnostics["mode"], "lqr")

    def test_diagnostics_without_solve(self):
        error = np.array([1.0, 0.0, 0.0])
        command = self.synthesizer.rotate_in_place(math.pi)
        diagnostics = self.synthesizer.get_diagnostics(
            error, None, command, 0.3, mode="rotate_to_path"
        )
        self.assertEqual(diagnostics["mode"], "rotate_to_path")
        self.assertEqual(diagnostics["solver_status"], "")
        self.assertEqual(diagnostics["iterations"], 0)
        self.assertAlmostEqual(diagnostics["omega_cmd"], 1.57)


if __name__ == "__main__":
    unittest.main()
