"""Discrete algebraic Riccati equation solver for the LQR feedback gain.

The gain is recomputed every control tick because the linearized error
dynamics change with the robot's heading and speed. The solver is a bounded
fixed-point iteration:

    P <- Q + A^T P A - A^T P B (R + B^T P B)^-1 B^T P A,   P_0 = Q
    K  = (R + B^T P B)^-1 B^T P A

It never raises for numeric reasons. Instead the result is tagged with a
:class:`SolverStatus` so callers can log degradation and fall back without
special control flow.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class SolverStatus(Enum):
    """Outcome of a Riccati solve."""

    CONVERGED = "converged"
    DEGRADED = "degraded"  # iteration cap reached, final iterate returned
    SINGULAR = "singular"  # (R + B^T P B) near singular or iterate not finite, K is zero


@dataclass(frozen=True)
class RiccatiResult:
    """Result of :func:`solve_dare`.

    Attributes:
        status: Convergence outcome
        P: Final cost-to-go matrix (n×n)
        K: Feedback gain (m×n); zeros when status is SINGULAR
        iterations: Number of recursion steps performed
        residual: max |P_k - P_{k-1}| of the last step (inf if no step completed)
    """

    status: SolverStatus
    P: np.ndarray
    K: np.ndarray
    iterations: int
    residual: float

    @property
    def converged(self) -> bool:
        return self.status is SolverStatus.CONVERGED

    @property
    def usable(self) -> bool:
        """True if K may be applied (converged or degraded)."""
        return self.status is not SolverStatus.SINGULAR


def feedback_gain(
    P: np.ndarray,
    A: np.ndarray,
    B: np.ndarray,
    R: np.ndarray,
    singular_tolerance: float = 1e-9,
) -> Optional[np.ndarray]:
    """Compute K = (R + B^T P B)^-1 B^T P A.

    Args:
        P: Cost-to-go matrix (n×n)
        A: State transition matrix (n×n)
        B: Control influence matrix (n×m)
        R: Control cost matrix (m×m)
        singular_tolerance: Smallest admissible singular value of R + B^T P B

    Returns:
        Gain matrix (m×n), or None if R + B^T P B is near singular or not finite
    """
    S = R + B.T @ P @ B
    if not np.all(np.isfinite(S)):
        return None

    if np.linalg.svd(S, compute_uv=False).min() <= singular_tolerance:
        return None

    try:
        return np.linalg.solve(S, B.T @ P @ A)
    except np.linalg.LinAlgError:
        return None


def riccati_step(
    P: np.ndarray,
    A: np.ndarray,
    B: np.ndarray,
    Q: np.ndarray,
    R: np.ndarray,
    singular_tolerance: float = 1e-9,
) -> Optional[np.ndarray]:
    """Apply one step of the Riccati recursion.

    Returns:
        Next iterate P_{k+1} (symmetrized), or None if the inverse is near singular
    """
    K = feedback_gain(P, A, B, R, singular_tolerance)
    if K is None:
        return None

    P_next = Q + A.T @ P @ A - A.T @ P @ B @ K
    # Keep P symmetric against round-off
    return 0.5 * (P_next + P_next.T)


def solve_dare(
    A: np.ndarray,
    B: np.ndarray,
    Q: np.ndarray,
    R: np.ndarray,
    max_iterations: int = 100,
    tolerance: float = 1e-4,
    singular_tolerance: float = 1e-9,
) -> RiccatiResult:
    """Solve the discrete algebraic Riccati equation by fixed-point iteration.

    Iterates from P_0 = Q until max |P_{k+1} - P_k| < tolerance or the
    iteration cap is reached. Running out of iterations is not an error: the
    final iterate and its gain are returned with status DEGRADED.

    Args:
        A: State transition matrix (n×n)
        B: Control influence matrix (n×m)
        Q: State cost matrix (n×n), symmetric positive semi-definite
        R: Control cost matrix (m×m), symmetric positive definite
        max_iterations: Iteration cap (bounds the latency of a tick)
        tolerance: Convergence threshold on the max-abs change of P
        singular_tolerance: Smallest admissible singular value of R + B^T P B

    Returns:
        RiccatiResult tagged CONVERGED, DEGRADED or SINGULAR
    """
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    Q = np.asarray(Q, dtype=float)
    R = np.asarray(R, dtype=float)

    P = Q.copy()
    zero_gain = np.zeros((B.shape[1], A.shape[0]))
    residual = float("inf")
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        P_next = riccati_step(P, A, B, Q, R, singular_tolerance)
        if P_next is None or not np.all(np.isfinite(P_next)):
            return RiccatiResult(SolverStatus.SINGULAR, P, zero_gain, iterations, residual)

        residual = float(np.max(np.abs(P_next - P)))
        P = P_next
        if residual < tolerance:
            break

    K = feedback_gain(P, A, B, R, singular_tolerance)
    if K is None:
        return RiccatiResult(SolverStatus.SINGULAR, P, zero_gain, iterations, residual)

    status = SolverStatus.CONVERGED if residual < tolerance else SolverStatus.DEGRADED
    return RiccatiResult(status, P, K, iterations, residual)
