import math
import unittest

from lqr_tracker.geometry import (
    Pose,
    distance,
    heading_between,
    normalize_angle,
    to_global_frame,
    to_local_frame,
)
from lqr_tracker.path import lemniscate_path, path_from_points, straight_path


class TestNormalizeAngle(unittest.TestCase):
    def test_range(self):
        for angle in [-10.0, -math.pi, -1.0, 0.0, 1.0, math.pi, 3 * math.pi, 10.0]:
            wrapped = normalize_angle(angle)
            self.assertGreater(wrapped, -math.pi)
            self.assertLessEqual(wrapped, math.pi)

    def test_minus_pi_maps_to_pi(self):
        self.assertAlmostEqual(normalize_angle(-math.pi), math.pi)

    def test_full_turn(self):
        self.assertAlmostEqual(normalize_angle(2 * math.pi + 0.3), 0.3)


class TestFrames(unittest.TestCase):
    def test_point_ahead(self):
        origin = Pose(1.0, 1.0, math.pi / 2)
        forward, lateral = to_local_frame(origin, 1.0, 3.0)
        self.assertAlmostEqual(forward, 2.0)
        self.assertAlmostEqual(lateral, 0.0)

    def test_point_left(self):
        forward, lateral = to_local_frame(Pose(0.0, 0.0, 0.0), 0.0, 1.0)
        self.assertAlmostEqual(forward, 0.0)
        self.assertAlmostEqual(lateral, 1.0)

    def test_inverse(self):
        origin = Pose(0.5, -2.0, 0.7)
        forward, lateral = to_local_frame(origin, 3.0, 4.0)
        x, y = to_global_frame(origin, forward, lateral)
        self.assertAlmostEqual(x, 3.0)
        self.assertAlmostEqual(y, 4.0)

    def test_distance_and_heading(self):
        a = Pose(0.0, 0.0)
        b = Pose(3.0, 4.0)
        self.assertAlmostEqual(distance(a, b), 5.0)
        self.assertAlmostEqual(heading_between(a, b), math.atan2(4.0, 3.0))

    def test_is_finite(self):
        self.assertTrue(Pose(1.0, 2.0, 3.0).is_finite())
        self.assertFalse(Pose(float("nan"), 0.0).is_finite())
        self.assertFalse(Pose(0.0, 0.0, float("inf")).is_finite())


class TestPaths(unittest.TestCase):
    def test_straight_path(self):
        poses = straight_path()
        self.assertEqual(len(poses), 10)
        self.assertEqual(poses[0].as_tuple(), (0.0, 0.0, 0.0))
        self.assertAlmostEqual(poses[-1].x, 9.0)

    def test_straight_path_heading(self):
        poses = straight_path(length=2.0, spacing=1.0, heading=math.pi / 2)
        self.assertEqual(len(poses), 3)
        self.assertAlmostEqual(poses[2].x, 0.0)
        self.assertAlmostEqual(poses[2].y, 2.0)
        self.assertTrue(all(p.theta == math.pi / 2 for p in poses))

    def test_lemniscate_closed_loop(self):
        poses = lemniscate_path(duration=20.0, dt=0.1)
        self.assertEqual(len(poses), 201)
        self.assertAlmostEqual(poses[0].x, poses[-1].x)
        self.assertAlmostEqual(poses[0].y, poses[-1].y)

    def test_lemniscate_open(self):
        poses = lemniscate_path(duration=20.0, dt=0.1, t_max=18.0)
        self.assertEqual(len(poses), 181)
        self.assertGreater(distance(poses[0], poses[-1]), 0.5)

    def test_path_from_points(self):
        poses = path_from_points([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)])
        self.assertAlmostEqual(poses[0].theta, math.pi / 2)
        self.assertAlmostEqual(poses[1].theta, 0.0)
        self.assertAlmostEqual(poses[2].theta, 0.0)
        self.assertEqual(path_from_points([]), [])


if __name__ == "__main__":
    unittest.main()
