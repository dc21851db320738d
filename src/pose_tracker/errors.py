"""
Error types raised while assembling a tracker.
"""


class CapabilityUnavailableError(RuntimeError):
    """A GPU-backed observation model was requested but GPU support is missing."""

    def __init__(self, message: str = None):
        super().__init__(
            message
            or "Tracker has no GPU support (CuPy with a visible CUDA device is "
            "required). Set use_gpu to false to build the CPU tracker."
        )


class ResourceResolutionError(RuntimeError):
    """An object resource identifier could not be resolved into geometry."""


class ConfigurationError(ValueError):
    """A configuration or camera mapping is missing fields or holds invalid values."""
