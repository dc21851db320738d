"""
Rao-Blackwellised coordinate particle filter over rigid-body poses.

Instead of sampling the full joint noise vector at once, each filter step
walks the sampling blocks in order: it samples the noise of one block (one
object or object part), propagates, re-weights by the likelihood increment
and resamples when the weights drift too far from uniform. Later blocks are
sampled from particles that already survived the earlier ones.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.special import logsumexp

from pose_tracker.core.filters.transition import LinearStateTransition
from pose_tracker.core.observation.model import ObservationModel

logger = logging.getLogger(__name__)


def normalized_weights(log_weights: np.ndarray) -> np.ndarray:
    log_weights = np.asarray(log_weights, dtype=np.float64)
    return np.exp(log_weights - logsumexp(log_weights))


def kl_divergence(log_weights: np.ndarray) -> float:
    """KL divergence of the normalized weights from the uniform distribution."""
    log_weights = np.asarray(log_weights, dtype=np.float64)
    log_norm = log_weights - logsumexp(log_weights)
    w = np.exp(log_norm)
    terms = np.where(w > 0, w * log_norm, 0.0)
    return float(np.sum(terms) + np.log(len(log_weights)))


def systematic_resample_indices(
    weights: np.ndarray, count: int, rng: np.random.Generator
) -> np.ndarray:
    cumulative = np.cumsum(weights, dtype=np.float64)
    cumulative[-1] = 1.0

    step = 1.0 / count
    start = rng.random() * step
    points = start + step * np.arange(count, dtype=np.float64)
    indices = np.searchsorted(cumulative, points, side="left")
    return np.clip(indices, 0, len(weights) - 1)


@dataclass
class ParticleBelief:
    """Weighted particle set over joint states."""

    states: np.ndarray  # (N, D)
    log_weights: np.ndarray  # (N,) unnormalized

    @property
    def size(self) -> int:
        return self.states.shape[0]

    def weights(self) -> np.ndarray:
        return normalized_weights(self.log_weights)

    def mean(self) -> np.ndarray:
        return self.weights() @ self.states


@dataclass(frozen=True, eq=False)
class RbCoordinateParticleFilter:
    """
    Immutable bundle of the models and numeric tuning of the filter.
    """

    transition: LinearStateTransition
    observation_model: ObservationModel
    sampling_blocks: Tuple[Tuple[int, ...], ...]
    evaluation_count: int
    max_sample_count: int
    max_kl_divergence: float

    def __post_init__(self):
        blocks = tuple(tuple(int(i) for i in block) for block in self.sampling_blocks)
        covered = sum(len(b) for b in blocks)
        if covered != self.transition.noise_dimension:
            raise ValueError(
                f"Sampling blocks cover {covered} coordinates but the transition "
                f"model has noise dimension {self.transition.noise_dimension}"
            )
        object.__setattr__(self, "sampling_blocks", blocks)

    @property
    def sample_count(self) -> int:
        """Particles per step so that blocks x particles fits the evaluation count."""
        per_block = max(1, self.evaluation_count // len(self.sampling_blocks))
        return min(self.max_sample_count, per_block)

    def initial_belief(self, state: np.ndarray, count: Optional[int] = None) -> ParticleBelief:
        count = self.sample_count if count is None else int(count)
        state = np.asarray(state, dtype=np.float64).reshape(-1)
        if state.shape[0] != self.transition.state_dimension:
            raise ValueError(
                f"Initial state has dimension {state.shape[0]}, expected "
                f"{self.transition.state_dimension}"
            )
        return ParticleBelief(
            states=np.tile(state, (count, 1)),
            log_weights=np.zeros(count, dtype=np.float64),
        )

    def resample(
        self, belief: ParticleBelief, count: int, rng: np.random.Generator
    ) -> ParticleBelief:
        indices = systematic_resample_indices(belief.weights(), count, rng)
        return ParticleBelief(
            states=belief.states[indices].copy(),
            log_weights=np.zeros(count, dtype=np.float64),
        )

    def filter(
        self,
        belief: ParticleBelief,
        observation: np.ndarray,
        rng: np.random.Generator,
        inputs: Optional[Sequence[float]] = None,
    ) -> ParticleBelief:
        """
        Run one coordinate filter step on a depth frame.

        Args:
            belief: Current particle belief
            observation: Full-resolution depth image
            rng: Random generator used for noise and resampling
            inputs: Control input shared by all particles, zero if None

        Returns:
            ParticleBelief: Posterior belief
        """
        previous = belief.states
        count = belief.size
        noises = np.zeros((count, self.transition.noise_dimension), dtype=np.float64)
        U = (
            None
            if inputs is None
            else np.tile(np.asarray(inputs, dtype=np.float64), (count, 1))
        )
        log_weights = np.array(belief.log_weights, dtype=np.float64)
        log_likelihoods = np.zeros(count, dtype=np.float64)
        states = previous
        resampled = 0

        for block in self.sampling_blocks:
            cols = np.asarray(block, dtype=np.int64)
            noises[:, cols] = rng.standard_normal((count, len(cols)))
            states = self.transition.state(previous, noises, U)

            new_log_likelihoods = self.observation_model.log_likelihoods(
                observation, states
            )
            log_weights += new_log_likelihoods - log_likelihoods
            log_likelihoods = new_log_likelihoods

            if kl_divergence(log_weights) > self.max_kl_divergence:
                idx = systematic_resample_indices(
                    normalized_weights(log_weights), count, rng
                )
                previous = previous[idx]
                noises = noises[idx]
                states = states[idx]
                log_likelihoods = log_likelihoods[idx]
                if U is not None:
                    U = U[idx]
                log_weights = np.zeros(count, dtype=np.float64)
                resampled += 1

        logger.debug(
            "Filter step: %d particles, %d block(s), %d resampling(s)",
            count,
            len(self.sampling_blocks),
            resampled,
        )
        return ParticleBelief(states=np.array(states), log_weights=log_weights)
