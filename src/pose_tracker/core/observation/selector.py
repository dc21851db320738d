"""
Observation model selection.

Chooses the CPU or GPU depth observation model from the configuration's
capability flag. A GPU request on a build without GPU support is rejected
before any device context or model object is created.
"""

import logging

from pose_tracker.config.schemas import ObservationParameters
from pose_tracker.core.camera import CameraData
from pose_tracker.core.object_model import ObjectModel
from pose_tracker.core.observation.gpu import GpuDepthObservationModel
from pose_tracker.core.observation.model import (
    CpuDepthObservationModel,
    ObservationModel,
)
from pose_tracker.core.runtime.compute_runtime import (
    gpu_build_supported,
    observation_runtime_for,
    runtime_label,
)
from pose_tracker.errors import CapabilityUnavailableError

logger = logging.getLogger(__name__)


def create_observation_model(
    use_gpu: bool,
    object_model: ObjectModel,
    camera_data: CameraData,
    params: ObservationParameters,
) -> ObservationModel:
    """
    Create the rigid-body observation model. This is either CPU or GPU based.

    Raises:
        CapabilityUnavailableError: ``use_gpu`` is set but the running build
            has no GPU support
    """
    runtime = observation_runtime_for(use_gpu)

    if runtime == "gpu":
        if not gpu_build_supported():
            raise CapabilityUnavailableError()
        model = GpuDepthObservationModel(object_model, camera_data, params)
    else:
        model = CpuDepthObservationModel(object_model, camera_data, params)

    logger.info("Observation model: %s", runtime_label(runtime))
    return model
