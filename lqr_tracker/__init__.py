"""LQR Tracker - Path Tracking for Differential-Drive Robots

A local trajectory tracker that follows a global plan with a per-tick
Linear Quadratic Regulator (LQR) gain.

## Control Tick

Each call to `LQRTracker.compute_velocity_commands()` runs the pipeline:

### 1. Plan Pruning (plan.py)
Drops waypoints the robot has passed, searching only the part of the plan
that fits in the local costmap. The goal is never pruned.

### 2. Lookahead Selection (lookahead.py)
Picks the target waypoint at a speed-scaled distance along the plan.
- Lookahead distance = clamp(lookahead_time * |v|, min, max)
- Falls back to the goal when the plan is shorter than the lookahead

### 3. State Error (state_error.py)
Expresses robot minus reference in the robot frame: (forward, lateral, heading).
Near the goal the goal itself replaces the lookahead target.

### 4. LQR Gain (model.py, riccati.py)
Linearizes the unicycle error dynamics around the reference heading and
iterates the discrete Riccati equation to a gain K.
- Converged, degraded (iteration cap) or singular solver status

### 5. Command Synthesis (synthesizer.py)
u = -K e, clamped to the platform's velocity bounds. Zero at the goal or
when the solve is singular.

## Modules

### Core
- `config.py` - Documented defaults and the validated `TrackerConfig`
- `geometry.py` - Pose type and frame transforms
- `plan.py` - Plan buffer and pruning
- `lookahead.py` - Lookahead distance and target selection
- `state_error.py` - Robot-frame error vector
- `model.py` - Error dynamics linearization and inverse kinematics
- `riccati.py` - Discrete algebraic Riccati solver
- `synthesizer.py` - Control law and goal check
- `tracker.py` - `LQRTracker`, sequencing one control tick
- `interfaces.py` - Provider and telemetry contracts

### Hosts & Data
- `simulation.py` - Kinematic simulator for offline runs
- `client.py` - WebSocket host adapter and logging setup
- `data_collector.py` - CSV telemetry
- `path.py` - Straight-line and lemniscate reference paths

### Visualization
- `plot_styles.py` - Shared plotting utilities and color scheme
- `visualization.py` - Post-run tracking and diagnostics plots
- `plot_results.py` - CLI for visualization

## Quick Start

```python
from lqr_tracker import LQRTracker, straight_path
from lqr_tracker.simulation import make_simulated_tracker, run_simulation

tracker = LQRTracker()
simulator = make_simulated_tracker(tracker)
tracker.set_plan(straight_path())
result = run_simulation(tracker, simulator)
```

Or use the command-line interface:
```bash
python -m lqr_tracker simulate --path lemniscate
python -m lqr_tracker plot --save
```

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .config import TrackerConfig
from .data_collector import DataCollector
from .errors import InputError, TrackerError, TransformUnavailable
from .geometry import Pose
from .path import lemniscate_path, straight_path
from .riccati import RiccatiResult, SolverStatus, solve_dare
from .synthesizer import ControlCommand
from .tracker import LQRTracker, TrackerState

__all__ = [
    "LQRTracker",
    "TrackerState",
    "TrackerConfig",
    "Pose",
    "ControlCommand",
    "SolverStatus",
    "RiccatiResult",
    "solve_dare",
    "DataCollector",
    "TrackerError",
    "InputError",
    "TransformUnavailable",
    "straight_path",
    "lemniscate_path",
]
