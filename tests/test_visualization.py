import tempfile
import unittest
from argparse import Namespace
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

from lqr_tracker.data_collector import DataCollector
from lqr_tracker.path import straight_path
from lqr_tracker.plot_results import find_latest_run, list_available_runs, run
from lqr_tracker.plot_styles import load_csv_to_dict
from lqr_tracker.simulation import make_simulated_tracker, run_simulation
from lqr_tracker.tracker import LQRTracker
from lqr_tracker.visualization import load_solver_status, plot_run_summary


def record_run(run_dir):
    tracker = LQRTracker()
    plan = straight_path(length=3.0)
    with DataCollector(run_dir=str(run_dir)) as collector:
        collector.log_plan(plan)
        simulator = make_simulated_tracker(tracker, telemetry=collector)
        tracker.set_plan(plan)
        run_simulation(tracker, simulator, max_steps=20)


class TestVisualization(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.results_dir = Path(self.tmp.name) / "results"
        self.run_dir = self.results_dir / "run_20250101_120000"
        record_run(self.run_dir)

    def tearDown(self):
        self.tmp.cleanup()

    def test_load_recorded_csv(self):
        robot = load_csv_to_dict(self.run_dir / "robot_pose.csv")
        self.assertEqual(set(robot), {"timestamp", "x", "y", "theta"})
        self.assertEqual(len(robot["x"]), 20)

        statuses = load_solver_status(self.run_dir / "tracker_diagnostics.csv")
        self.assertEqual(len(statuses), 20)
        self.assertIn(statuses[0], {"converged", "degraded"})

    def test_plot_run_summary_saves(self):
        plot_run_summary(self.run_dir, save_plots=True, show_plots=False)
        self.assertTrue((self.run_dir / "tracking.png").exists())
        self.assertTrue((self.run_dir / "diagnostics.png").exists())

    def test_missing_files(self):
        with self.assertRaises(FileNotFoundError):
            plot_run_summary(Path(self.tmp.name) / "missing", show_plots=False)

    def test_find_latest_run(self):
        (self.results_dir / "run_20240101_000000").mkdir()
        self.assertEqual(find_latest_run(self.results_dir), self.run_dir)
        self.assertEqual(len(list_available_runs(self.results_dir)), 2)

    def test_find_latest_run_empty(self):
        with self.assertRaises(FileNotFoundError):
            find_latest_run(Path(self.tmp.name) / "nothing")

    def test_plot_command(self):
        args = Namespace(
            results_dir=str(self.results_dir), run=None, save=True, no_show=True, list=False
        )
        self.assertEqual(run(args), 0)
        self.assertTrue((self.run_dir / "tracking.png").exists())

    def test_plot_command_unknown_run(self):
        args = Namespace(
            results_dir=str(self.results_dir), run="run_missing", save=False, no_show=True, list=False
        )
        self.assertEqual(run(args), 1)


if __name__ == "__main__":
    unittest.main()
