import csv
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from lqr_tracker.data_collector import DIAGNOSTIC_FIELDS, DataCollector
from lqr_tracker.geometry import Pose
from lqr_tracker.path import straight_path
from lqr_tracker.simulation import make_simulated_tracker, run_simulation
from lqr_tracker.tracker import LQRTracker


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.reader(f))


class TestDataCollector(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.run_dir = Path(self.tmp.name) / "run_test"

    def tearDown(self):
        self.tmp.cleanup()

    def test_timestamped_run_dir(self):
        with patch.dict(os.environ):
            os.environ.pop("RUN_DIR", None)
            collector = DataCollector(output_dir=self.tmp.name)
        self.assertEqual(collector.run_dir.parent.name, "results")
        self.assertTrue(collector.run_dir.name.startswith("run_"))
        self.assertTrue(collector.run_dir.is_dir())

    def test_headers(self):
        with DataCollector(run_dir=str(self.run_dir)):
            pass
        self.assertEqual(read_rows(self.run_dir / "robot_pose.csv"), [["timestamp", "x", "y", "theta"]])
        self.assertEqual(read_rows(self.run_dir / "target_point.csv"), [["timestamp", "x", "y", "theta"]])
        self.assertEqual(
            read_rows(self.run_dir / "tracker_diagnostics.csv"), [["timestamp"] + DIAGNOSTIC_FIELDS]
        )

    def test_publish_rows(self):
        with DataCollector(run_dir=str(self.run_dir)) as collector:
            collector.publish(
                Pose(1.0, 0.0, 0.0),
                Pose(0.0, 0.5, 0.1),
                {"v_cmd": 0.5, "solver_status": "converged"},
                timestamp=12.5,
            )

        pose_rows = read_rows(self.run_dir / "robot_pose.csv")
        self.assertEqual(pose_rows[1], ["12.5", "0.0", "0.5", "0.1"])

        diagnostics = read_rows(self.run_dir / "tracker_diagnostics.csv")
        row = dict(zip(diagnostics[0], diagnostics[1]))
        self.assertEqual(row["v_cmd"], "0.5")
        self.assertEqual(row["solver_status"], "converged")
        self.assertEqual(row["e_forward"], "")

    def test_publish_before_setup(self):
        collector = DataCollector(run_dir=str(self.run_dir))
        with self.assertRaises(RuntimeError):
            collector.publish(Pose(0.0, 0.0), Pose(0.0, 0.0), {})

    def test_log_plan(self):
        collector = DataCollector(run_dir=str(self.run_dir))
        collector.log_plan(straight_path(length=2.0))
        rows = read_rows(self.run_dir / "plan.csv")
        self.assertEqual(rows[0], ["index", "x", "y", "theta"])
        self.assertEqual(len(rows), 4)

    def test_records_simulated_run(self):
        tracker = LQRTracker()
        with DataCollector(run_dir=str(self.run_dir)) as collector:
            simulator = make_simulated_tracker(tracker, telemetry=collector)
            tracker.set_plan(straight_path())
            result = run_simulation(tracker, simulator, max_steps=10)

        rows = read_rows(self.run_dir / "robot_pose.csv")
        self.assertEqual(len(rows) - 1, result.steps)

    def test_output_path_is_file(self):
        path = Path(self.tmp.name) / "file.txt"
        path.write_text("x")
        with self.assertRaises(ValueError):
            DataCollector(output_dir=str(path))


if __name__ == "__main__":
    unittest.main()
