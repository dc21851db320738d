"""
Linear state transition models for free-floating rigid bodies.
Features:
1. Per-part constant-velocity motion with velocity damping (object model)
2. Damped integrated Brownian motion (auxiliary model)
3. Batched propagation of whole particle sets (Numba kernel for large N)

Both models have the form x' = A x + B n + C u where n carries 6 noise
entries per body (3 linear, 3 angular) and u is a 1-D control input.
"""

import logging

import numpy as np

from pose_tracker.config.schemas import (
    BrownianTransitionParameters,
    ObjectTransitionParameters,
)
from pose_tracker.core.state import (
    ANGULAR_VELOCITY,
    LINEAR_VELOCITY,
    ORIENTATION,
    POSE_DIMENSION,
    POSITION,
    body_offset,
    noise_dimension,
    state_dimension,
)
from pose_tracker.utils.gpu_utils import NUMBA_AVAILABLE, njit

logger = logging.getLogger(__name__)

INPUT_DIMENSION = 1


# --- Numba Kernel (Optimized for Large N) ---
def _propagate_loops(A, B, C, X, N, U, out):
    """Row-by-row x' = A x + B n + C u for every particle."""
    for i in range(X.shape[0]):
        for r in range(A.shape[0]):
            acc = 0.0
            for c in range(A.shape[1]):
                acc += A[r, c] * X[i, c]
            for c in range(B.shape[1]):
                acc += B[r, c] * N[i, c]
            for c in range(C.shape[1]):
                acc += C[r, c] * U[i, c]
            out[i, r] = acc
    return out


_propagate_kernel = njit(cache=True)(_propagate_loops) if NUMBA_AVAILABLE else None


class LinearStateTransition:
    """
    Linear Gaussian state transition x' = A x + B n + C u.
    """

    def __init__(self, dynamics_matrix, noise_matrix, input_matrix):
        self.A = np.ascontiguousarray(dynamics_matrix, dtype=np.float64)
        self.B = np.ascontiguousarray(noise_matrix, dtype=np.float64)
        self.C = np.ascontiguousarray(input_matrix, dtype=np.float64)
        if self.A.shape[0] != self.A.shape[1]:
            raise ValueError("Dynamics matrix must be square")
        if self.B.shape[0] != self.A.shape[0] or self.C.shape[0] != self.A.shape[0]:
            raise ValueError("Noise and input matrices must match the state dimension")
        for m in (self.A, self.B, self.C):
            m.flags.writeable = False

    @property
    def state_dimension(self) -> int:
        return self.A.shape[0]

    @property
    def noise_dimension(self) -> int:
        return self.B.shape[1]

    @property
    def input_dimension(self) -> int:
        return self.C.shape[1]

    def zero_input(self, count: int = 1) -> np.ndarray:
        return np.zeros((count, self.input_dimension), dtype=np.float64)

    def state(self, states, noises, inputs=None) -> np.ndarray:
        """
        Propagate one or many states.

        Args:
            states: (D,) or (N, D) current states
            noises: (Nn,) or (N, Nn) standard-normal noise samples
            inputs: (Nu,) or (N, Nu) control inputs, zero if None

        Returns:
            np.ndarray: Next states with the leading shape of ``states``
        """
        single = np.ndim(states) == 1
        X = np.atleast_2d(np.asarray(states, dtype=np.float64))
        N = np.atleast_2d(np.asarray(noises, dtype=np.float64))
        U = (
            self.zero_input(X.shape[0])
            if inputs is None
            else np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        )
        if X.shape[1] != self.state_dimension:
            raise ValueError(
                f"State has dimension {X.shape[1]}, expected {self.state_dimension}"
            )
        if N.shape != (X.shape[0], self.noise_dimension):
            raise ValueError(
                f"Noise has shape {N.shape}, expected {(X.shape[0], self.noise_dimension)}"
            )
        if U.shape != (X.shape[0], self.input_dimension):
            raise ValueError(
                f"Input has shape {U.shape}, expected {(X.shape[0], self.input_dimension)}"
            )

        if NUMBA_AVAILABLE:
            out = np.empty_like(X)
            out = _propagate_kernel(
                self.A,
                self.B,
                self.C,
                np.ascontiguousarray(X),
                np.ascontiguousarray(N),
                np.ascontiguousarray(U),
                out,
            )
        else:
            # Basic NumPy Fallback
            out = X @ self.A.T + N @ self.B.T + U @ self.C.T

        return out[0] if single else out


class ObjectTransitionModelBuilder:
    """
    Builds the per-object linear transition for ``part_count`` rigid bodies.

    For every body the velocity is damped by ``velocity_factor`` and the pose
    integrates the damped velocity; the same noise sample perturbs pose and
    velocity so the velocity tracks the last pose increment.
    """

    def __init__(self, params: ObjectTransitionParameters, part_count: int):
        if part_count < 1:
            raise ValueError("part_count must be positive")
        self.params = params
        self.part_count = int(part_count)

    def build(self) -> LinearStateTransition:
        D = state_dimension(self.part_count)
        Nn = noise_dimension(self.part_count)
        vf = self.params.velocity_factor
        linear_sigma = np.diag(self.params.linear_sigma)
        angular_sigma = np.diag(self.params.angular_sigma)

        A = np.eye(D)
        B = np.zeros((D, Nn))
        for i in range(self.part_count):
            o = body_offset(i)
            n = i * POSE_DIMENSION
            pos = _rows(o, POSITION)
            ori = _rows(o, ORIENTATION)
            lin = _rows(o, LINEAR_VELOCITY)
            ang = _rows(o, ANGULAR_VELOCITY)

            A[pos, lin] = np.eye(3) * vf
            A[ori, ang] = np.eye(3) * vf
            A[lin, lin] = np.eye(3) * vf
            A[ang, ang] = np.eye(3) * vf

            B[pos, n : n + 3] = linear_sigma
            B[ori, n + 3 : n + 6] = angular_sigma
            B[lin, n : n + 3] = linear_sigma
            B[ang, n + 3 : n + 6] = angular_sigma

        logger.debug(
            "Object transition model: %d part(s), state dim %d, noise dim %d",
            self.part_count,
            D,
            Nn,
        )
        return LinearStateTransition(A, B, np.zeros((D, INPUT_DIMENSION)))


class BrownianMotionModelBuilder:
    """
    Builds a damped integrated Brownian motion transition.

    Accelerations are white noise; velocities decay with ``exp(-damping * dt)``
    and poses integrate the decaying velocity over ``delta_time``.
    """

    def __init__(self, params: BrownianTransitionParameters, part_count: int):
        if part_count < 1:
            raise ValueError("part_count must be positive")
        self.params = params
        self.part_count = int(part_count)

    def build(self) -> LinearStateTransition:
        D = state_dimension(self.part_count)
        Nn = noise_dimension(self.part_count)
        dt = self.params.delta_time
        damping = self.params.damping

        decay = np.exp(-damping * dt)
        integrated = (1.0 - decay) / damping if damping > 0 else dt

        A = np.eye(D)
        B = np.zeros((D, Nn))
        for i in range(self.part_count):
            o = body_offset(i)
            n = i * POSE_DIMENSION
            for pose_rows, vel_rows, noise_cols, sigma in (
                (
                    _rows(o, POSITION),
                    _rows(o, LINEAR_VELOCITY),
                    slice(n, n + 3),
                    self.params.linear_acceleration_sigma,
                ),
                (
                    _rows(o, ORIENTATION),
                    _rows(o, ANGULAR_VELOCITY),
                    slice(n + 3, n + 6),
                    self.params.angular_acceleration_sigma,
                ),
            ):
                A[pose_rows, vel_rows] = np.eye(3) * integrated
                A[vel_rows, vel_rows] = np.eye(3) * decay
                B[pose_rows, noise_cols] = np.eye(3) * (0.5 * dt * dt * sigma)
                B[vel_rows, noise_cols] = np.eye(3) * (dt * sigma)

        return LinearStateTransition(A, B, np.zeros((D, INPUT_DIMENSION)))


def _rows(offset: int, part: slice) -> slice:
    return slice(offset + part.start, offset + part.stop)
