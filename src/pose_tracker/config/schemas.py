"""
Configuration tree for the rigid-body particle filter tracker builder.

Every parameter is required. Loading from a mapping (or a YAML file) fails
with ``ConfigurationError`` naming the dotted key of the first missing or
malformed entry.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from pose_tracker.errors import ConfigurationError


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


@dataclass(frozen=True)
class TrackerParameters:
    """Numeric profile of the particle filter for one execution target."""

    evaluation_count: int  # likelihood evaluations per filter step
    max_sample_count: int
    update_rate: float  # Hz
    max_kl_divergence: float

    def __post_init__(self):
        _check(self.evaluation_count > 0, "evaluation_count must be positive")
        _check(self.max_sample_count > 0, "max_sample_count must be positive")
        _check(self.update_rate > 0, "update_rate must be positive")
        _check(self.max_kl_divergence >= 0, "max_kl_divergence must be non-negative")


@dataclass(frozen=True)
class ObjectResourceIdentifier:
    """Locates the mesh files of the tracked object, one mesh per rigid part."""

    package_path: str
    directory: str
    meshes: Tuple[str, ...]

    def count_meshes(self) -> int:
        return len(self.meshes)

    def mesh_path(self, index: int) -> Path:
        return Path(self.package_path).expanduser() / self.directory / self.meshes[index]


@dataclass(frozen=True)
class ObservationParameters:
    """Depth pixel likelihood tuning."""

    tail_weight: float  # weight of the uniform outlier component
    model_sigma: float  # metres
    sigma_factor: float  # quadratic depth noise growth
    occlusion_probability: float
    max_depth: float  # metres
    device_id: int  # CUDA device of the GPU model

    def __post_init__(self):
        _check(0.0 <= self.tail_weight <= 1.0, "tail_weight must lie in [0, 1]")
        _check(self.model_sigma > 0, "model_sigma must be positive")
        _check(self.sigma_factor >= 0, "sigma_factor must be non-negative")
        _check(
            0.0 <= self.occlusion_probability < 1.0,
            "occlusion_probability must lie in [0, 1)",
        )
        _check(self.max_depth > 0, "max_depth must be positive")
        _check(self.device_id >= 0, "device_id must be non-negative")


@dataclass(frozen=True)
class ObjectTransitionParameters:
    """Per-object linear motion tuning, applied identically to every part."""

    linear_sigma: Tuple[float, float, float]
    angular_sigma: Tuple[float, float, float]
    velocity_factor: float

    def __post_init__(self):
        _check(min(self.linear_sigma) >= 0, "linear_sigma must be non-negative")
        _check(min(self.angular_sigma) >= 0, "angular_sigma must be non-negative")
        _check(self.velocity_factor >= 0, "velocity_factor must be non-negative")


@dataclass(frozen=True)
class BrownianTransitionParameters:
    """Damped Brownian motion tuning for the auxiliary transition model."""

    linear_acceleration_sigma: float
    angular_acceleration_sigma: float
    damping: float
    delta_time: float

    def __post_init__(self):
        _check(
            self.linear_acceleration_sigma >= 0,
            "linear_acceleration_sigma must be non-negative",
        )
        _check(
            self.angular_acceleration_sigma >= 0,
            "angular_acceleration_sigma must be non-negative",
        )
        _check(self.damping >= 0, "damping must be non-negative")
        _check(self.delta_time > 0, "delta_time must be positive")


@dataclass(frozen=True)
class TrackerBuilderParameters:
    """Builder and sub-builder parameters."""

    use_gpu: bool
    cpu: TrackerParameters
    gpu: TrackerParameters
    ori: ObjectResourceIdentifier
    observation: ObservationParameters
    object_transition: ObjectTransitionParameters
    brownian_transition: BrownianTransitionParameters
    tracker: Optional[TrackerParameters] = None  # selected profile


def select_profile(params: TrackerBuilderParameters) -> TrackerBuilderParameters:
    """Return a copy whose ``tracker`` profile is the one chosen by ``use_gpu``."""
    selected = params.gpu if params.use_gpu else params.cpu
    return replace(params, tracker=selected)


# --- Mapping readers ---


def _require(data: Mapping[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"'{path}' must be a mapping")
    if key not in data:
        dotted = f"{path}.{key}" if path else key
        raise ConfigurationError(f"Missing required configuration key: '{dotted}'")
    return data[key]


def _dotted(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _read_bool(data, key, path="") -> bool:
    value = _require(data, key, path)
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{_dotted(path, key)}' must be a boolean")
    return value


def _read_int(data, key, path="") -> int:
    value = _require(data, key, path)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{_dotted(path, key)}' must be an integer")
    return int(value)


def _read_float(data, key, path="") -> float:
    value = _require(data, key, path)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"'{_dotted(path, key)}' must be a number")
    return float(value)


def _read_str(data, key, path="") -> str:
    value = _require(data, key, path)
    if not isinstance(value, str):
        raise ConfigurationError(f"'{_dotted(path, key)}' must be a string")
    return value


def _read_vector3(data, key, path="") -> Tuple[float, float, float]:
    value = _require(data, key, path)
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 3
        or any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in value)
    ):
        raise ConfigurationError(
            f"'{_dotted(path, key)}' must be a list of three numbers"
        )
    return (float(value[0]), float(value[1]), float(value[2]))


def tracker_parameters_from_dict(data, path: str = "") -> TrackerParameters:
    return TrackerParameters(
        evaluation_count=_read_int(data, "evaluation_count", path),
        max_sample_count=_read_int(data, "max_sample_count", path),
        update_rate=_read_float(data, "update_rate", path),
        max_kl_divergence=_read_float(data, "max_kl_divergence", path),
    )


def object_resource_from_dict(data, path: str = "") -> ObjectResourceIdentifier:
    meshes = _require(data, "meshes", path)
    if (
        not isinstance(meshes, (list, tuple))
        or not meshes
        or not all(isinstance(m, str) and m.strip() for m in meshes)
    ):
        raise ConfigurationError(
            f"'{_dotted(path, 'meshes')}' must be a non-empty list of file names"
        )
    return ObjectResourceIdentifier(
        package_path=_read_str(data, "package_path", path),
        directory=_read_str(data, "directory", path),
        meshes=tuple(m.strip() for m in meshes),
    )


def observation_parameters_from_dict(data, path: str = "") -> ObservationParameters:
    return ObservationParameters(
        tail_weight=_read_float(data, "tail_weight", path),
        model_sigma=_read_float(data, "model_sigma", path),
        sigma_factor=_read_float(data, "sigma_factor", path),
        occlusion_probability=_read_float(data, "occlusion_probability", path),
        max_depth=_read_float(data, "max_depth", path),
        device_id=_read_int(data, "device_id", path),
    )


def object_transition_from_dict(data, path: str = "") -> ObjectTransitionParameters:
    return ObjectTransitionParameters(
        linear_sigma=_read_vector3(data, "linear_sigma", path),
        angular_sigma=_read_vector3(data, "angular_sigma", path),
        velocity_factor=_read_float(data, "velocity_factor", path),
    )


def brownian_transition_from_dict(data, path: str = "") -> BrownianTransitionParameters:
    return BrownianTransitionParameters(
        linear_acceleration_sigma=_read_float(data, "linear_acceleration_sigma", path),
        angular_acceleration_sigma=_read_float(
            data, "angular_acceleration_sigma", path
        ),
        damping=_read_float(data, "damping", path),
        delta_time=_read_float(data, "delta_time", path),
    )


def parameters_from_dict(data: Mapping[str, Any]) -> TrackerBuilderParameters:
    """Build the full parameter tree from a plain mapping (e.g. parsed YAML)."""
    return TrackerBuilderParameters(
        use_gpu=_read_bool(data, "use_gpu"),
        cpu=tracker_parameters_from_dict(_require(data, "cpu", ""), "cpu"),
        gpu=tracker_parameters_from_dict(_require(data, "gpu", ""), "gpu"),
        ori=object_resource_from_dict(_require(data, "object", ""), "object"),
        observation=observation_parameters_from_dict(
            _require(data, "observation", ""), "observation"
        ),
        object_transition=object_transition_from_dict(
            _require(data, "object_transition", ""), "object_transition"
        ),
        brownian_transition=brownian_transition_from_dict(
            _require(data, "brownian_transition", ""), "brownian_transition"
        ),
    )


def load_parameters(path) -> TrackerBuilderParameters:
    """Load tracker builder parameters from a YAML file."""
    p = Path(path).expanduser()
    if not p.is_file():
        raise ConfigurationError(f"Configuration file not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration file {p} must hold a mapping")
    return parameters_from_dict(data)
