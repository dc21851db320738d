import copy
import sys
from pathlib import Path

import numpy as np
import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"

# Add both src and repo root to path for imports
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def write_plane_obj(path: Path, size: float = 0.2, cells: int = 10) -> Path:
    """Write a square grid mesh in the object's x/y plane, centred on the origin."""
    step = size / cells
    lines = ["# plane"]
    for j in range(cells + 1):
        for i in range(cells + 1):
            lines.append(f"v {-size / 2 + i * step:.6f} {-size / 2 + j * step:.6f} 0.0")
    row = cells + 1
    for j in range(cells):
        for i in range(cells):
            a = j * row + i + 1
            lines.append(f"f {a} {a + 1} {a + row + 1} {a + row}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


BASE_CONFIG = {
    "use_gpu": False,
    "cpu": {
        "evaluation_count": 120,
        "max_sample_count": 60,
        "update_rate": 30.0,
        "max_kl_divergence": 2.0,
    },
    "gpu": {
        "evaluation_count": 6000,
        "max_sample_count": 2000,
        "update_rate": 60.0,
        "max_kl_divergence": 1.5,
    },
    "object": {
        "package_path": "",
        "directory": "meshes",
        "meshes": ["plane.obj"],
    },
    "observation": {
        "tail_weight": 0.01,
        "model_sigma": 0.003,
        "sigma_factor": 0.0014,
        "occlusion_probability": 0.1,
        "max_depth": 6.0,
        "device_id": 0,
    },
    "object_transition": {
        "linear_sigma": [0.002, 0.002, 0.002],
        "angular_sigma": [0.01, 0.01, 0.01],
        "velocity_factor": 0.8,
    },
    "brownian_transition": {
        "linear_acceleration_sigma": 1.0,
        "angular_acceleration_sigma": 10.0,
        "damping": 5.0,
        "delta_time": 0.03,
    },
}


@pytest.fixture
def object_package(tmp_path):
    """Package directory holding two plane meshes."""
    mesh_dir = tmp_path / "meshes"
    mesh_dir.mkdir()
    write_plane_obj(mesh_dir / "plane.obj")
    write_plane_obj(mesh_dir / "lid.obj", size=0.1, cells=5)
    return tmp_path


@pytest.fixture
def config_dict(object_package):
    """Complete configuration mapping pointing at the temporary meshes."""
    data = copy.deepcopy(BASE_CONFIG)
    data["object"]["package_path"] = str(object_package)
    return data


@pytest.fixture
def camera_data():
    from pose_tracker.core.camera import CameraData

    K = np.array([[100.0, 0.0, 32.0], [0.0, 100.0, 24.0], [0.0, 0.0, 1.0]])
    return CameraData(camera_matrix=K, resolution=(64, 48))
