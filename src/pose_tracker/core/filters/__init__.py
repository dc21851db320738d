"""State transition models and the coordinate particle filter."""

from .particle_filter import ParticleBelief, RbCoordinateParticleFilter, kl_divergence
from .transition import (
    BrownianMotionModelBuilder,
    LinearStateTransition,
    ObjectTransitionModelBuilder,
)

__all__ = [
    "LinearStateTransition",
    "ObjectTransitionModelBuilder",
    "BrownianMotionModelBuilder",
    "ParticleBelief",
    "RbCoordinateParticleFilter",
    "kl_divergence",
]
