"""
Tests for the CPU depth observation model.
"""

import numpy as np
import pytest

from pose_tracker.config.schemas import ObjectResourceIdentifier, ObservationParameters
from pose_tracker.core.camera import CameraData
from pose_tracker.core.object_model import ObjectModelLoader
from pose_tracker.core.observation.model import CpuDepthObservationModel
from pose_tracker.core.state import make_state, rotation_matrices

BACKGROUND = 3.0


@pytest.fixture
def observation_params():
    return ObservationParameters(
        tail_weight=0.01,
        model_sigma=0.003,
        sigma_factor=0.0014,
        occlusion_probability=0.1,
        max_depth=6.0,
        device_id=0,
    )


@pytest.fixture
def plane_model(object_package):
    ori = ObjectResourceIdentifier(
        package_path=str(object_package), directory="meshes", meshes=("plane.obj",)
    )
    return ObjectModelLoader().load(ori)


@pytest.fixture
def cpu_model(plane_model, camera_data, observation_params):
    return CpuDepthObservationModel(plane_model, camera_data, observation_params)


def _frame(model, pose):
    depth = model.render(make_state([pose]))[0]
    return np.where(np.isfinite(depth), depth, BACKGROUND).astype(np.float32)


class TestRotationMatrices:
    """Test suite for Rodrigues rotations."""

    def test_zero_vector_is_identity(self):
        np.testing.assert_allclose(rotation_matrices(np.zeros((1, 3)))[0], np.eye(3))

    def test_quarter_turn_about_z(self):
        R = rotation_matrices(np.array([[0.0, 0.0, np.pi / 2]]))[0]
        np.testing.assert_allclose(R @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)

    def test_batch_is_orthonormal(self):
        rotvecs = np.random.default_rng(0).normal(size=(5, 2, 3))
        R = rotation_matrices(rotvecs)
        eye = np.broadcast_to(np.eye(3), R.shape)
        np.testing.assert_allclose(R @ np.swapaxes(R, -1, -2), eye, atol=1e-12)


class TestCpuDepthObservationModel:
    """Test suite for rendering and the robust pixel likelihood."""

    def test_runtime(self, cpu_model):
        assert cpu_model.runtime == "cpu"

    def test_render_places_plane_at_its_depth(self, cpu_model):
        depth = cpu_model.render(make_state([[0.0, 0.0, 1.0, 0.0, 0.0, 0.0]]))

        assert depth.shape == (1, 48, 64)
        rendered = depth[np.isfinite(depth)]
        assert rendered.size > 100
        np.testing.assert_allclose(rendered, 1.0)
        # Plane centred on the principal point
        assert np.isfinite(depth[0, 24, 32])

    def test_render_behind_camera_is_empty(self, cpu_model):
        depth = cpu_model.render(make_state([[0.0, 0.0, -1.0, 0.0, 0.0, 0.0]]))
        assert not np.isfinite(depth).any()

    def test_true_pose_scores_highest(self, cpu_model):
        true_pose = [0.0, 0.0, 1.0, 0.0, 0.0, 0.0]
        frame = _frame(cpu_model, true_pose)
        states = np.vstack(
            [
                make_state([true_pose]),
                make_state([[0.05, 0.0, 1.0, 0.0, 0.0, 0.0]]),
                make_state([[0.0, 0.0, 1.1, 0.0, 0.0, 0.0]]),
                make_state([[0.0, 0.0, 1.0, 0.0, 0.6, 0.0]]),
            ]
        )

        scores = cpu_model.log_likelihoods(frame, states)

        assert scores.shape == (4,)
        assert scores.dtype == np.float64
        assert np.argmax(scores) == 0
        assert scores[0] > 0

    def test_occluded_pixels_are_less_penalized(self, cpu_model):
        in_front = cpu_model._pixel_log_ratio(np.array([0.5]), np.array([1.0]))
        behind = cpu_model._pixel_log_ratio(np.array([2.0]), np.array([1.0]))
        assert in_front[0] > behind[0]

    def test_unrendered_and_invalid_pixels_contribute_nothing(self, cpu_model):
        ratio = cpu_model._pixel_log_ratio(
            np.array([1.0, 0.0, np.nan, 1.0]), np.array([np.inf, 1.0, 1.0, 1.0])
        )
        np.testing.assert_array_equal(ratio[:3], 0.0)
        assert ratio[3] > 0

    def test_empty_view_scores_zero(self, cpu_model):
        frame = np.full((48, 64), BACKGROUND, dtype=np.float32)
        scores = cpu_model.log_likelihoods(
            frame, make_state([[0.0, 0.0, -1.0, 0.0, 0.0, 0.0]])[None, :]
        )
        np.testing.assert_array_equal(scores, [0.0])

    def test_downsampled_camera(self, plane_model, observation_params):
        K = np.array([[100.0, 0.0, 32.0], [0.0, 100.0, 24.0], [0.0, 0.0, 1.0]])
        camera = CameraData(camera_matrix=K, resolution=(64, 48), downsampling_factor=2)
        model = CpuDepthObservationModel(plane_model, camera, observation_params)

        depth = model.render(make_state([[0.0, 0.0, 1.0, 0.0, 0.0, 0.0]]))
        frame = np.full((48, 64), 1.0, dtype=np.float32)
        scores = model.log_likelihoods(frame, make_state([[0.0, 0.0, 1.0, 0, 0, 0]])[None])

        assert depth.shape == (1, 24, 32)
        assert scores[0] > 0

    def test_rejects_wrong_frame_resolution(self, cpu_model):
        with pytest.raises(ValueError):
            cpu_model.log_likelihoods(
                np.ones((10, 10), dtype=np.float32),
                make_state([[0.0, 0.0, 1.0, 0.0, 0.0, 0.0]])[None],
            )
