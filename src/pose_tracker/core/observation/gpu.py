"""
CuPy implementation of the depth observation model.

All device memory is allocated while the configured CUDA device is current
and every evaluation runs inside the same scoped device context.
"""

import logging

import numpy as np

from pose_tracker.core.observation.model import DepthObservationModel
from pose_tracker.utils.gpu_utils import cp, cupyx, gpu_device_scope

logger = logging.getLogger(__name__)


class GpuDepthObservationModel(DepthObservationModel):
    """Depth observation model evaluated on a CUDA device."""

    runtime = "gpu"

    def __init__(self, object_model, camera_data, params):
        self.xp = cp
        self.device_id = int(params.device_id)
        with gpu_device_scope(self.device_id):
            super().__init__(object_model, camera_data, params)
        logger.info(
            "GPU observation model ready on CUDA device %d (%dx%d working resolution)",
            self.device_id,
            self.width,
            self.height,
        )

    def _to_device(self, array):
        return cp.asarray(array, dtype=cp.float64)

    def _to_host(self, array) -> np.ndarray:
        return cp.asnumpy(array)

    def _scatter_min(self, buffer, index, values) -> None:
        cupyx.scatter_min(buffer, index, values)

    def log_likelihoods(self, observation, states) -> np.ndarray:
        with gpu_device_scope(self.device_id):
            return super().log_likelihoods(observation, states)
