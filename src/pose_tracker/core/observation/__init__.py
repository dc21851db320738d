"""Depth observation models (CPU and GPU) and their selection."""

from .model import CpuDepthObservationModel, DepthObservationModel, ObservationModel
from .gpu import GpuDepthObservationModel
from .selector import create_observation_model

__all__ = [
    "ObservationModel",
    "DepthObservationModel",
    "CpuDepthObservationModel",
    "GpuDepthObservationModel",
    "create_observation_model",
]
