import unittest

from lqr_tracker.errors import InputError
from lqr_tracker.geometry import Pose
from lqr_tracker.path import straight_path
from lqr_tracker.plan import PathBuffer, passed_count, prune_plan, relevance_window


class TestPathBuffer(unittest.TestCase):
    def setUp(self):
        self.buffer = PathBuffer()
        self.buffer.replace(straight_path())

    def test_replace(self):
        self.assertEqual(len(self.buffer), 10)
        self.assertEqual(self.buffer.goal, Pose(9.0, 0.0, 0.0))

    def test_empty_plan_rejected(self):
        with self.assertRaises(InputError):
            self.buffer.replace([])
        self.assertEqual(len(self.buffer), 10)

    def test_non_finite_rejected(self):
        with self.assertRaises(InputError):
            self.buffer.replace([Pose(0.0, 0.0), Pose(float("nan"), 1.0)])
        self.assertEqual(len(self.buffer), 10)

    def test_non_pose_rejected(self):
        with self.assertRaises(InputError):
            self.buffer.replace([(0.0, 0.0, 0.0)])

    def test_input_error_is_value_error(self):
        with self.assertRaises(ValueError):
            self.buffer.replace([])

    def test_trim_keeps_goal(self):
        dropped = self.buffer.trim_front(100)
        self.assertEqual(dropped, 9)
        self.assertEqual(self.buffer.view(), (Pose(9.0, 0.0, 0.0),))

    def test_view_does_not_alias(self):
        original = straight_path()
        self.buffer.replace(original)
        self.buffer.trim_front(3)
        self.assertEqual(len(original), 10)
        self.assertEqual(len(self.buffer), 7)


class TestPruning(unittest.TestCase):
    def test_relevance_window(self):
        poses = tuple(straight_path())
        self.assertEqual(relevance_window(poses, 3.0), 4)
        self.assertEqual(relevance_window(poses, 0.5), 1)
        self.assertEqual(relevance_window((), 3.0), 0)

    def test_robot_at_start_prunes_nothing(self):
        poses = tuple(straight_path())
        self.assertEqual(passed_count(Pose(0.0, 0.0), poses, 3.0), 0)

    def test_robot_past_waypoint(self):
        poses = tuple(straight_path())
        # Closest to waypoint 2 and already past it
        self.assertEqual(passed_count(Pose(2.2, 0.1), poses, 3.0), 3)

    def test_robot_before_waypoint(self):
        poses = tuple(straight_path())
        self.assertEqual(passed_count(Pose(1.8, 0.0), poses, 3.0), 2)

    def test_search_limited_to_window(self):
        poses = tuple(straight_path())
        # Robot near the end, but only waypoints 0..2 are searched
        self.assertEqual(passed_count(Pose(8.0, 0.0), poses, 2.0), 3)

    def test_pruning_never_grows_plan(self):
        buffer = PathBuffer()
        buffer.replace(straight_path())
        previous = len(buffer)
        for x in [0.0, 0.5, 1.5, 1.0, 3.2, 2.0, 6.7, 9.5, 20.0]:
            remaining = prune_plan(Pose(x, 0.3), buffer, 3.0)
            self.assertLessEqual(len(remaining), previous)
            self.assertEqual(remaining[-1], Pose(9.0, 0.0, 0.0))
            previous = len(remaining)

    def test_single_point_plan_kept(self):
        buffer = PathBuffer()
        buffer.replace([Pose(1.0, 1.0)])
        self.assertEqual(prune_plan(Pose(5.0, 5.0), buffer, 3.0), (Pose(1.0, 1.0),))


if __name__ == "__main__":
    unittest.main()
