"""
GPU utilities and device detection for the object pose tracker.

This module provides centralized GPU availability detection used by the
observation model selector. Supports:
  - CUDA (NVIDIA GPUs via CuPy)
  - Numba JIT for the CPU transition kernels
  - Automatic fallback to NumPy

Import this module to check GPU availability:
    from pose_tracker.utils.gpu_utils import CUDA_AVAILABLE, GPU_BUILD_SUPPORTED
"""

import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# CuPy for CUDA GPU acceleration (NVIDIA GPUs)
try:
    import cupy as cp
    import cupyx

    CUPY_AVAILABLE = True
    # Test if CUDA is actually available (not just installed)
    try:
        CUDA_DEVICE_COUNT = int(cp.cuda.runtime.getDeviceCount())
        CUDA_AVAILABLE = CUDA_DEVICE_COUNT > 0
    except Exception:
        CUDA_DEVICE_COUNT = 0
        CUDA_AVAILABLE = False
except ImportError:
    CUPY_AVAILABLE = False
    CUDA_AVAILABLE = False
    CUDA_DEVICE_COUNT = 0
    cp = None
    cupyx = None

# Numba for CPU JIT acceleration
try:
    from numba import njit

    NUMBA_AVAILABLE = True
except ImportError:
    NUMBA_AVAILABLE = False
    njit = None

# Summary flags
GPU_BUILD_SUPPORTED = CUPY_AVAILABLE and CUDA_AVAILABLE


def get_device_info() -> dict:
    """
    Get information about available compute devices.

    Returns:
        dict: Device availability information
    """
    info = {
        "cupy_available": CUPY_AVAILABLE,
        "cuda_available": CUDA_AVAILABLE,
        "cuda_device_count": CUDA_DEVICE_COUNT,
        "numba_available": NUMBA_AVAILABLE,
        "gpu_build_supported": GPU_BUILD_SUPPORTED,
    }

    if CUPY_AVAILABLE:
        try:
            info["cupy_version"] = cp.__version__
        except Exception:
            pass

    if NUMBA_AVAILABLE:
        try:
            import numba

            info["numba_version"] = numba.__version__
        except Exception:
            pass

    if CUDA_AVAILABLE:
        try:
            info["cuda_compute_capability"] = cp.cuda.Device(0).compute_capability
        except Exception:
            pass

    return info


def log_device_info() -> None:
    """Log available compute devices to help with debugging."""
    info = get_device_info()

    logger.info("=" * 60)
    logger.info("Available Compute Devices:")
    logger.info("-" * 60)

    if info["cuda_available"]:
        logger.info("✓ CUDA (CuPy): Available")
        logger.info("  Devices: %d", info["cuda_device_count"])
    elif info["cupy_available"]:
        logger.info("✗ CUDA (CuPy): Installed but no CUDA device found")
    else:
        logger.info("✗ CUDA (CuPy): Not available")

    if info["numba_available"]:
        logger.info("✓ Numba JIT: Available")
    else:
        logger.info("✗ Numba JIT: Not available")

    logger.info("-" * 60)
    if info["gpu_build_supported"]:
        logger.info("GPU observation model: SUPPORTED")
    else:
        logger.info("GPU observation model: NOT SUPPORTED (CPU only)")
    logger.info("=" * 60)


@contextmanager
def gpu_device_scope(device_id: int = 0):
    """
    Make a CUDA device current for the duration of the block.

    The previous device is restored and pending work on the device is
    synchronized on every exit path, including exceptions.

    Args:
        device_id (int): CUDA device ordinal

    Yields:
        cupy.cuda.Device: The active device
    """
    if not GPU_BUILD_SUPPORTED:
        raise RuntimeError("CUDA device requested but no GPU support is available.")

    device = cp.cuda.Device(int(device_id))
    with device:
        try:
            yield device
        finally:
            device.synchronize()


__all__ = [
    # Flags
    "CUPY_AVAILABLE",
    "CUDA_AVAILABLE",
    "CUDA_DEVICE_COUNT",
    "NUMBA_AVAILABLE",
    "GPU_BUILD_SUPPORTED",
    # Modules (may be None)
    "cp",
    "cupyx",
    "njit",
    # Functions
    "get_device_info",
    "log_device_info",
    "gpu_device_scope",
]
