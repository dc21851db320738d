"""
Camera data consumed by the depth observation models.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Tuple

import cv2
import numpy as np
import yaml

from pose_tracker.errors import ConfigurationError


@dataclass(frozen=True, eq=False)
class CameraData:
    """Pinhole intrinsics and resolution of the depth sensor."""

    camera_matrix: np.ndarray  # 3x3 full-resolution intrinsics
    resolution: Tuple[int, int]  # (width, height) in pixels
    downsampling_factor: int = 1
    frame_id: str = field(default="camera")

    def __post_init__(self):
        K = np.array(self.camera_matrix, dtype=np.float64)
        if K.shape != (3, 3):
            raise ConfigurationError("camera_matrix must be 3x3")
        if K[0, 0] <= 0 or K[1, 1] <= 0:
            raise ConfigurationError("camera_matrix focal lengths must be positive")
        width, height = (int(v) for v in self.resolution)
        if width <= 0 or height <= 0:
            raise ConfigurationError("resolution must be positive")
        if int(self.downsampling_factor) < 1:
            raise ConfigurationError("downsampling_factor must be >= 1")
        if width // int(self.downsampling_factor) < 1 or height // int(
            self.downsampling_factor
        ) < 1:
            raise ConfigurationError("downsampling_factor exceeds the resolution")
        K.flags.writeable = False
        object.__setattr__(self, "camera_matrix", K)
        object.__setattr__(self, "resolution", (width, height))
        object.__setattr__(self, "downsampling_factor", int(self.downsampling_factor))

    def downsampled_resolution(self) -> Tuple[int, int]:
        f = self.downsampling_factor
        return (self.resolution[0] // f, self.resolution[1] // f)

    def downsampled_camera_matrix(self) -> np.ndarray:
        K = np.array(self.camera_matrix, dtype=np.float64)
        K[:2, :] /= float(self.downsampling_factor)
        return K

    def downsample(self, image: np.ndarray) -> np.ndarray:
        """
        Bring a full-resolution depth image to the working resolution.

        Nearest-neighbour sampling keeps depth discontinuities sharp.
        """
        image = np.asarray(image, dtype=np.float32)
        width, height = self.resolution
        if image.shape[:2] != (height, width):
            raise ValueError(
                f"Depth image has shape {image.shape[:2]}, expected {(height, width)}"
            )
        if self.downsampling_factor == 1:
            return image
        return cv2.resize(
            image, self.downsampled_resolution(), interpolation=cv2.INTER_NEAREST
        )


def camera_data_from_dict(data: Mapping[str, Any]) -> CameraData:
    if not isinstance(data, Mapping):
        raise ConfigurationError("Camera data must be a mapping")
    for key in ("camera_matrix", "resolution", "downsampling_factor"):
        if key not in data:
            raise ConfigurationError(f"Missing required camera key: '{key}'")
    resolution = data["resolution"]
    if not isinstance(resolution, Mapping) or not {"width", "height"} <= set(
        resolution
    ):
        raise ConfigurationError("'resolution' must provide width and height")
    try:
        camera_matrix = np.asarray(data["camera_matrix"], dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid camera_matrix: {exc}") from exc
    return CameraData(
        camera_matrix=camera_matrix,
        resolution=(resolution["width"], resolution["height"]),
        downsampling_factor=data["downsampling_factor"],
        frame_id=str(data.get("frame_id", "camera")),
    )


def load_camera_data(path) -> CameraData:
    """Load camera data from a YAML file."""
    p = Path(path).expanduser()
    if not p.is_file():
        raise ConfigurationError(f"Camera file not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {p}: {exc}") from exc
    return camera_data_from_dict(data)
