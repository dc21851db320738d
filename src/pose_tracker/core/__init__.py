"""
Core tracking components for the pose tracker.

This package contains the tracker builder and the pieces it assembles:
object model loading, state transition models, depth observation models
and the Rao-Blackwellised coordinate particle filter.
"""
from .builder import BuildResult, RbcParticleFilterTrackerBuilder
from .camera import CameraData, load_camera_data
from .object_model import ObjectModel, ObjectModelLoader
from .sampling import create_sampling_blocks
from .tracker import RbcParticleFilterObjectTracker


__all__ = [
    "BuildResult",
    "RbcParticleFilterTrackerBuilder",
    "RbcParticleFilterObjectTracker",
    "CameraData",
    "load_camera_data",
    "ObjectModel",
    "ObjectModelLoader",
    "create_sampling_blocks",
]
