"""Tracker builder configuration."""

from .schemas import (
    BrownianTransitionParameters,
    ObjectResourceIdentifier,
    ObjectTransitionParameters,
    ObservationParameters,
    TrackerBuilderParameters,
    TrackerParameters,
    load_parameters,
    parameters_from_dict,
    select_profile,
)

__all__ = [
    "TrackerParameters",
    "ObjectResourceIdentifier",
    "ObservationParameters",
    "ObjectTransitionParameters",
    "BrownianTransitionParameters",
    "TrackerBuilderParameters",
    "select_profile",
    "parameters_from_dict",
    "load_parameters",
]
