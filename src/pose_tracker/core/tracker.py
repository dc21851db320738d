"""
Rigid-body particle filter object tracker.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pose_tracker.core.filters.particle_filter import (
    ParticleBelief,
    RbCoordinateParticleFilter,
)
from pose_tracker.core.object_model import ObjectModel
from pose_tracker.core.state import body_poses, make_state

logger = logging.getLogger(__name__)


class RbcParticleFilterObjectTracker:
    """
    Tracks the poses of all parts of an object in a stream of depth frames.

    The tracker owns the filter, the object model and its particle belief.
    """

    def __init__(
        self,
        particle_filter: RbCoordinateParticleFilter,
        object_model: ObjectModel,
        update_rate: float,
        seed: Optional[int] = None,
    ):
        self.filter = particle_filter
        self.object_model = object_model
        self.update_rate = float(update_rate)
        self._rng = np.random.default_rng(seed)
        self._belief: Optional[ParticleBelief] = None
        self.frame_count = 0

    @property
    def period(self) -> float:
        """Seconds between two tracking updates."""
        return 1.0 / self.update_rate

    @property
    def belief(self) -> Optional[ParticleBelief]:
        return self._belief

    @property
    def is_initialized(self) -> bool:
        return self._belief is not None

    def initialize(self, initial_poses: Sequence[Sequence[float]]) -> np.ndarray:
        """
        Reset the belief to the given poses with zero velocities.

        Args:
            initial_poses: One [x, y, z, rx, ry, rz] pose per object part

        Returns:
            np.ndarray: The initial joint state
        """
        if len(initial_poses) != self.object_model.count_parts():
            raise ValueError(
                f"Expected {self.object_model.count_parts()} initial pose(s), "
                f"got {len(initial_poses)}"
            )
        state = make_state(initial_poses)
        self._belief = self.filter.initial_belief(state)
        self.frame_count = 0
        logger.info(
            "Tracker initialized with %d particle(s) for %d part(s)",
            self._belief.size,
            self.object_model.count_parts(),
        )
        return state

    def track(self, depth_image: np.ndarray) -> np.ndarray:
        """
        Incorporate one depth frame and return the mean joint state.
        """
        if self._belief is None:
            raise RuntimeError("Tracker must be initialized before tracking.")

        belief = self.filter.filter(self._belief, depth_image, self._rng)
        # Bring the particle set back to the configured size with uniform weights
        self._belief = self.filter.resample(belief, self.filter.sample_count, self._rng)
        self.frame_count += 1
        return belief.mean()

    def poses(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Mean (position, rotation_vector) of every object part."""
        if self._belief is None:
            raise RuntimeError("Tracker must be initialized before reading poses.")
        return body_poses(self._belief.mean(), self.object_model.count_parts())

    def __repr__(self):
        return (
            f"RbcParticleFilterObjectTracker(parts={self.object_model.count_parts()}, "
            f"samples={self.filter.sample_count}, "
            f"runtime={self.filter.observation_model.runtime!r}, "
            f"update_rate={self.update_rate})"
        )
