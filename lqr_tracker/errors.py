"""Exceptions raised by the tracker and its collaborators.

Numeric degradation of the Riccati solver is not an exception: it is reported
through :class:`lqr_tracker.riccati.SolverStatus` so a tick never aborts on it.
"""


class TrackerError(Exception):
    """Base class for tracker errors."""


class InputError(TrackerError, ValueError):
    """A plan or other input was empty or malformed.

    The call that received it is rejected and the previous state is kept.
    """


class TransformUnavailable(TrackerError):
    """The robot pose could not be resolved in the planning frame.

    Raised by pose providers. The current tick fails and the next one retries.
    """
