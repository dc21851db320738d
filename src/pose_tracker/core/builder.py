"""
Rigid-body coordinate particle filter tracker builder.

The builder captures the configuration and camera data at construction and
performs all model work in ``build()``:

1. load the object model
2. build the linear object transition model
3. select and build the observation model (CPU or GPU)
4. partition the pose coordinates into sampling blocks
5. assemble the filter with the selected numeric profile
6. wrap filter, object model and update rate into the tracker

A GPU request on a build without GPU support is reported as the error
variant of the returned ``BuildResult``. Object resource failures propagate
as ``ResourceResolutionError``.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from pose_tracker.config.schemas import (
    ObjectResourceIdentifier,
    ObjectTransitionParameters,
    ObservationParameters,
    TrackerBuilderParameters,
    TrackerParameters,
    select_profile,
)
from pose_tracker.core.camera import CameraData
from pose_tracker.core.filters.particle_filter import RbCoordinateParticleFilter
from pose_tracker.core.filters.transition import (
    LinearStateTransition,
    ObjectTransitionModelBuilder,
)
from pose_tracker.core.object_model import ObjectModel, ObjectModelLoader
from pose_tracker.core.observation.model import ObservationModel
from pose_tracker.core.observation.selector import create_observation_model
from pose_tracker.core.sampling import create_sampling_blocks
from pose_tracker.core.tracker import RbcParticleFilterObjectTracker
from pose_tracker.errors import CapabilityUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of ``RbcParticleFilterTrackerBuilder.build``: a tracker or an error."""

    tracker: Optional[RbcParticleFilterObjectTracker] = None
    error: Optional[CapabilityUnavailableError] = None

    @property
    def ok(self) -> bool:
        return self.tracker is not None

    def unwrap(self) -> RbcParticleFilterObjectTracker:
        """Return the tracker or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.tracker


class RbcParticleFilterTrackerBuilder:
    """
    Builds Rbc particle filter based trackers.

    Args:
        param: Builder and sub-builder parameters
        camera_data: Tracker camera data object
        loader: Object model loader, a fresh ``ObjectModelLoader`` if None
        seed: Seed of the tracker's random generator
    """

    def __init__(
        self,
        param: TrackerBuilderParameters,
        camera_data: CameraData,
        loader: Optional[ObjectModelLoader] = None,
        seed: Optional[int] = None,
    ):
        self.param = select_profile(param)
        self.camera_data = camera_data
        self.loader = loader if loader is not None else ObjectModelLoader()
        self.seed = seed

    def build(self) -> BuildResult:
        """
        Builds the Rbc PF tracker.

        Raises:
            ResourceResolutionError: The object resource cannot be loaded
        """
        param = self.param
        object_model = self.create_object_model(param.ori)
        transition = self.create_object_transition_model(
            param.object_transition, object_model.count_parts()
        )

        try:
            observation_model = self.create_obsrv_model(
                param.use_gpu, object_model, self.camera_data, param.observation
            )
        except CapabilityUnavailableError as exc:
            logger.warning("Tracker build rejected: %s", exc)
            return BuildResult(error=exc)

        parts = object_model.count_parts()
        sampling_blocks = self.create_sampling_blocks(
            parts, transition.noise_dimension // parts
        )
        particle_filter = self.create_filter(
            transition, observation_model, sampling_blocks, param.tracker
        )
        tracker = RbcParticleFilterObjectTracker(
            particle_filter, object_model, param.tracker.update_rate, seed=self.seed
        )
        logger.info("Built %r", tracker)
        return BuildResult(tracker=tracker)

    def create_object_model(self, ori: ObjectResourceIdentifier) -> ObjectModel:
        """
        Loads and creates an object model represented by the specified
        resource identifier
        """
        return self.loader.load(ori)

    def create_object_transition_model(
        self, param: ObjectTransitionParameters, part_count: int
    ) -> LinearStateTransition:
        """
        Creates a linear object transition function used in the filter
        """
        return ObjectTransitionModelBuilder(param, part_count).build()

    def create_obsrv_model(
        self,
        use_gpu: bool,
        object_model: ObjectModel,
        camera_data: CameraData,
        param: ObservationParameters,
    ) -> ObservationModel:
        """
        Creates the observation model. This can either be CPU or GPU based.

        Raises:
            CapabilityUnavailableError: GPU requested without GPU support
        """
        return create_observation_model(use_gpu, object_model, camera_data, param)

    def create_sampling_blocks(self, blocks: int, block_size: int) -> List[List[int]]:
        """
        Creates a sampling block definition used by the coordinate particle
        filter

        Args:
            blocks: Number of objects or object parts
            block_size: State dimension of each part
        """
        return create_sampling_blocks(blocks, block_size)

    def create_filter(
        self,
        transition: LinearStateTransition,
        observation_model: ObservationModel,
        sampling_blocks: List[List[int]],
        profile: TrackerParameters,
    ) -> RbCoordinateParticleFilter:
        """
        Creates an instance of the Rbc particle filter

        Raises:
            ValueError: The sampling blocks do not cover the noise dimension
        """
        return RbCoordinateParticleFilter(
            transition=transition,
            observation_model=observation_model,
            sampling_blocks=tuple(tuple(b) for b in sampling_blocks),
            evaluation_count=profile.evaluation_count,
            max_sample_count=profile.max_sample_count,
            max_kl_divergence=profile.max_kl_divergence,
        )
