"""
Pose Tracker Package

Bayesian tracking of rigid, possibly multi-part objects in depth images.

Key Features:
- Rao-Blackwellised coordinate particle filter with blockwise sampling
- Linear object transition model with Numba acceleration when available
- Brownian motion transition model for damped random-walk dynamics
- Depth observation model with CPU (NumPy) and GPU (CuPy/CUDA) backends
- Capability-aware tracker builder that reports missing GPU support as a result
- Wavefront OBJ object models with one mesh per part
- CSV export of tracked part poses
"""

__version__ = "1.0.0"

from .app.launcher import main, parse_arguments, setup_logging
from .core.builder import BuildResult, RbcParticleFilterTrackerBuilder

__all__ = [
    "main",
    "parse_arguments",
    "setup_logging",
    "BuildResult",
    "RbcParticleFilterTrackerBuilder",
]
