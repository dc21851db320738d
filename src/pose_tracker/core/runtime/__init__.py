"""Shared compute runtime selection/resolution utilities."""

from .compute_runtime import (
    CANONICAL_RUNTIMES,
    gpu_build_supported,
    observation_runtime_for,
    runtime_label,
)

__all__ = [
    "CANONICAL_RUNTIMES",
    "runtime_label",
    "gpu_build_supported",
    "observation_runtime_for",
]
