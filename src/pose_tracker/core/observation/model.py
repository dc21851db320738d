"""
Depth image observation models for rigid-body pose hypotheses.

A hypothesis is scored by point-splatting the object's surface points,
transformed by the hypothesized poses, into a z-buffer at the camera's
working resolution and comparing every rendered pixel with the observed
depth under a robust pixel model:

    p = (1 - o) * [(1 - w) * N(obs; pred, sigma) + w / max_depth]
        + o * [(1 - w) * 1{obs < pred} / pred + w / max_depth]

with sigma = model_sigma + sigma_factor * pred^2. Each pixel contributes the
log ratio against a uniform background density 1 / max_depth, so pixels the
hypothesis does not cover contribute nothing.

The implementation is written against an array module (``xp``) so the CPU
(NumPy) and GPU (CuPy) variants share the same arithmetic.
"""

import logging
import math
from typing import Protocol

import numpy as np

from pose_tracker.config.schemas import ObservationParameters
from pose_tracker.core.camera import CameraData
from pose_tracker.core.object_model import ObjectModel
from pose_tracker.core.state import rotation_matrices, split_poses

logger = logging.getLogger(__name__)

_SQRT_2PI = math.sqrt(2.0 * math.pi)


class ObservationModel(Protocol):
    """Protocol for all observation model variants."""

    runtime: str

    def log_likelihoods(self, observation: np.ndarray, states: np.ndarray) -> np.ndarray:
        """Score a batch of joint states (N, D) against one depth frame."""


class DepthObservationModel:
    """Shared rendering and pixel likelihood, parameterized by array module."""

    runtime = "cpu"
    xp = np

    def __init__(
        self,
        object_model: ObjectModel,
        camera_data: CameraData,
        params: ObservationParameters,
    ):
        self.camera_data = camera_data
        self.params = params
        self.body_count = object_model.count_parts()
        self.width, self.height = camera_data.downsampled_resolution()

        K = camera_data.downsampled_camera_matrix()
        self._fx, self._fy = float(K[0, 0]), float(K[1, 1])
        self._cx, self._cy = float(K[0, 2]), float(K[1, 2])

        self._part_points = [
            self._to_device(object_model.surface_points(i))
            for i in range(self.body_count)
        ]

    # --- Array module hooks ---

    def _to_device(self, array):
        return np.asarray(array, dtype=np.float64)

    def _to_host(self, array) -> np.ndarray:
        return np.asarray(array)

    def _scatter_min(self, buffer, index, values) -> None:
        np.minimum.at(buffer, index, values)

    # --- Rendering ---

    def render(self, states):
        """
        Render the predicted depth of every hypothesis.

        Args:
            states: (N, D) joint states

        Returns:
            (N, H, W) depth maps on the model's device, inf where empty
        """
        xp = self.xp
        states = self._to_device(states)
        if states.ndim == 1:
            states = states.reshape(1, -1)
        count = states.shape[0]
        positions, rotvecs = split_poses(states, self.body_count)
        R = rotation_matrices(rotvecs, xp)  # (N, K, 3, 3)

        pixels = self.height * self.width
        buffer = xp.full(count * pixels, xp.inf, dtype=xp.float64)
        offsets = (xp.arange(count, dtype=xp.int64) * pixels)[:, None]

        for k, points in enumerate(self._part_points):
            cam = xp.einsum("nij,pj->npi", R[:, k], points) + positions[:, k, None, :]
            x, y, z = cam[..., 0], cam[..., 1], cam[..., 2]
            in_front = z > 1e-6
            safe_z = xp.where(in_front, z, 1.0)
            u = xp.floor(self._fx * x / safe_z + self._cx + 0.5).astype(xp.int64)
            v = xp.floor(self._fy * y / safe_z + self._cy + 0.5).astype(xp.int64)
            valid = (
                in_front & (u >= 0) & (u < self.width) & (v >= 0) & (v < self.height)
            )
            flat = offsets + v * self.width + u
            self._scatter_min(buffer, flat[valid], z[valid])

        return buffer.reshape(count, self.height, self.width)

    # --- Likelihood ---

    def _pixel_log_ratio(self, observed, predicted):
        xp = self.xp
        p = self.params
        uniform = 1.0 / p.max_depth
        w = p.tail_weight
        o = p.occlusion_probability

        rendered = xp.isfinite(predicted)
        valid = rendered & xp.isfinite(observed) & (observed > 0)
        pred = xp.where(rendered, predicted, 1.0)
        obs = xp.where(valid, observed, 0.0)

        sigma = p.model_sigma + p.sigma_factor * pred * pred
        residual = (obs - pred) / sigma
        gauss = xp.exp(-0.5 * residual * residual) / (_SQRT_2PI * sigma)
        visible = (1.0 - w) * gauss + w * uniform
        occluded = (1.0 - w) * xp.where(obs < pred, 1.0 / pred, 0.0) + w * uniform
        prob = (1.0 - o) * visible + o * occluded

        ratio = xp.log(xp.maximum(prob, 1e-300)) - math.log(uniform)
        return xp.where(valid, ratio, 0.0)

    def log_likelihoods(self, observation: np.ndarray, states: np.ndarray) -> np.ndarray:
        """
        Score a batch of hypothesized joint states against one depth frame.

        Args:
            observation: Full-resolution depth image in metres (H, W)
            states: (N, D) joint states

        Returns:
            np.ndarray: (N,) log-likelihoods relative to the background
        """
        observed = self._to_device(self.camera_data.downsample(observation))
        predicted = self.render(states)
        scores = self._pixel_log_ratio(observed[None, :, :], predicted)
        totals = scores.reshape(scores.shape[0], -1).sum(axis=1)
        return np.asarray(self._to_host(totals), dtype=np.float64)


class CpuDepthObservationModel(DepthObservationModel):
    """NumPy implementation evaluated on the host."""

    runtime = "cpu"
    xp = np
