"""Canonical compute runtime capability and translation helpers.

This module defines the observation runtimes the tracker can be built with and
translates the configuration's capability flag into one of them.
"""

from __future__ import annotations

from typing import List

from pose_tracker.utils.gpu_utils import CUDA_AVAILABLE, CUPY_AVAILABLE

CANONICAL_RUNTIMES: List[str] = [
    "cpu",
    "gpu",
]

_RUNTIME_LABELS = {
    "cpu": "CPU (NumPy)",
    "gpu": "GPU (CuPy/CUDA)",
}


def runtime_label(runtime: str) -> str:
    rt = str(runtime).strip().lower()
    if rt not in _RUNTIME_LABELS:
        raise ValueError(
            f"Unknown runtime {runtime!r}; expected one of {CANONICAL_RUNTIMES}"
        )
    return _RUNTIME_LABELS[rt]


def gpu_build_supported() -> bool:
    """Return True when the running build can evaluate observations on a GPU."""
    return bool(CUPY_AVAILABLE and CUDA_AVAILABLE)


def observation_runtime_for(use_gpu: bool) -> str:
    """Map the configuration's capability flag to a canonical runtime.

    The mapping never consults availability: a GPU request stays a GPU
    request so the caller can reject it instead of silently degrading.
    """
    return "gpu" if bool(use_gpu) else "cpu"
