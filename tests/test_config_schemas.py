"""
Tests for the tracker builder configuration tree.
"""

import copy
import dataclasses
from pathlib import Path

import pytest
import yaml

from pose_tracker.config.schemas import (
    TrackerParameters,
    load_parameters,
    parameters_from_dict,
    select_profile,
)
from pose_tracker.core.camera import load_camera_data
from pose_tracker.errors import ConfigurationError


def test_parameters_from_dict_reads_every_section(config_dict):
    params = parameters_from_dict(config_dict)

    assert params.use_gpu is False
    assert params.cpu == TrackerParameters(120, 60, 30.0, 2.0)
    assert params.gpu.evaluation_count == 6000
    assert params.ori.meshes == ("plane.obj",)
    assert params.ori.count_meshes() == 1
    assert params.observation.max_depth == pytest.approx(6.0)
    assert params.object_transition.linear_sigma == (0.002, 0.002, 0.002)
    assert params.brownian_transition.damping == pytest.approx(5.0)
    assert params.tracker is None


def test_mesh_path_joins_package_directory_and_file(config_dict, object_package):
    params = parameters_from_dict(config_dict)
    assert params.ori.mesh_path(0) == object_package / "meshes" / "plane.obj"


@pytest.mark.parametrize(
    "section,key,dotted",
    [
        (None, "use_gpu", "use_gpu"),
        ("cpu", "max_kl_divergence", "cpu.max_kl_divergence"),
        ("gpu", "evaluation_count", "gpu.evaluation_count"),
        ("object", "meshes", "object.meshes"),
        ("observation", "tail_weight", "observation.tail_weight"),
        ("object_transition", "velocity_factor", "object_transition.velocity_factor"),
        ("brownian_transition", "delta_time", "brownian_transition.delta_time"),
    ],
)
def test_missing_key_names_dotted_path(config_dict, section, key, dotted):
    data = copy.deepcopy(config_dict)
    if section is None:
        del data[key]
    else:
        del data[section][key]

    with pytest.raises(ConfigurationError, match=dotted):
        parameters_from_dict(data)


def test_missing_section_is_reported(config_dict):
    del config_dict["brownian_transition"]
    with pytest.raises(ConfigurationError, match="brownian_transition"):
        parameters_from_dict(config_dict)


@pytest.mark.parametrize(
    "section,key,value",
    [
        (None, "use_gpu", "yes"),
        ("cpu", "evaluation_count", 10.5),
        ("cpu", "evaluation_count", True),
        ("gpu", "update_rate", "fast"),
        ("object", "meshes", []),
        ("object_transition", "linear_sigma", [0.1, 0.1]),
    ],
)
def test_malformed_values_rejected(config_dict, section, key, value):
    if section is None:
        config_dict[key] = value
    else:
        config_dict[section][key] = value
    with pytest.raises(ConfigurationError):
        parameters_from_dict(config_dict)


@pytest.mark.parametrize(
    "section,key,value",
    [
        ("cpu", "evaluation_count", 0),
        ("observation", "tail_weight", 1.5),
        ("observation", "occlusion_probability", 1.0),
        ("observation", "model_sigma", 0.0),
        ("brownian_transition", "delta_time", 0.0),
    ],
)
def test_out_of_range_values_rejected(config_dict, section, key, value):
    config_dict[section][key] = value
    with pytest.raises(ConfigurationError):
        parameters_from_dict(config_dict)


@pytest.mark.parametrize("use_gpu", [False, True])
def test_select_profile_follows_capability_flag(config_dict, use_gpu):
    config_dict["use_gpu"] = use_gpu
    params = parameters_from_dict(config_dict)

    selected = select_profile(params)

    expected = params.gpu if use_gpu else params.cpu
    assert selected.tracker == expected
    # Original tree is left untouched
    assert params.tracker is None


def test_parameters_are_immutable(config_dict):
    params = parameters_from_dict(config_dict)
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.use_gpu = True


def test_load_parameters_from_yaml(tmp_path, config_dict):
    path = tmp_path / "tracker.yaml"
    path.write_text(yaml.safe_dump(config_dict), encoding="utf-8")

    params = load_parameters(path)

    assert params.cpu.max_sample_count == 60


def test_load_parameters_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_parameters(tmp_path / "absent.yaml")


def test_load_parameters_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_parameters(path)


def test_load_parameters_rejects_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("use_gpu: [unterminated\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_parameters(path)


def test_packaged_example_configuration_loads():
    config_dir = Path(__file__).resolve().parents[1] / "src" / "pose_tracker" / "config"

    params = load_parameters(config_dir / "tracker.yaml")
    camera = load_camera_data(config_dir / "camera.yaml")

    assert select_profile(params).tracker == params.cpu
    assert params.ori.count_meshes() == 1
    assert camera.downsampled_resolution() == (160, 120)
