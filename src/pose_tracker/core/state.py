"""
Layout of the joint free-floating rigid bodies state.

Each body contributes 12 consecutive entries:
[x, y, z, rx, ry, rz, vx, vy, vz, wx, wy, wz]
where r is a rotation vector (axis * angle) and v, w are the linear and
angular velocities. Process noise has 6 entries per body (3 linear, 3
angular) and drives both the pose and the velocity of that body.
"""

from typing import List, Sequence, Tuple

import numpy as np

BODY_STATE_DIMENSION = 12
POSE_DIMENSION = 6

POSITION = slice(0, 3)
ORIENTATION = slice(3, 6)
LINEAR_VELOCITY = slice(6, 9)
ANGULAR_VELOCITY = slice(9, 12)


def state_dimension(body_count: int) -> int:
    return int(body_count) * BODY_STATE_DIMENSION


def noise_dimension(body_count: int) -> int:
    return int(body_count) * POSE_DIMENSION


def body_offset(body: int) -> int:
    return int(body) * BODY_STATE_DIMENSION


def make_state(poses: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Build a joint state from per-body 6-DoF poses with zero velocities.

    Args:
        poses: One [x, y, z, rx, ry, rz] sequence per body

    Returns:
        np.ndarray: State vector of length 12 * len(poses)
    """
    state = np.zeros(state_dimension(len(poses)), dtype=np.float64)
    for i, pose in enumerate(poses):
        pose = np.asarray(pose, dtype=np.float64).reshape(-1)
        if pose.shape[0] != POSE_DIMENSION:
            raise ValueError(
                f"Pose of body {i} has {pose.shape[0]} entries, expected {POSE_DIMENSION}"
            )
        state[body_offset(i) : body_offset(i) + POSE_DIMENSION] = pose
    return state


def body_poses(state: np.ndarray, body_count: int) -> List[Tuple[np.ndarray, np.ndarray]]:
    """Split a joint state into (position, rotation_vector) pairs."""
    state = np.asarray(state, dtype=np.float64).reshape(-1)
    poses = []
    for i in range(body_count):
        block = state[body_offset(i) : body_offset(i) + BODY_STATE_DIMENSION]
        poses.append((block[POSITION].copy(), block[ORIENTATION].copy()))
    return poses


def split_poses(states, body_count: int):
    """
    Extract positions and rotation vectors of a batch of joint states.

    Args:
        states: (N, 12 * body_count) array
        body_count: Number of rigid bodies

    Returns:
        tuple: positions (N, K, 3), rotation vectors (N, K, 3)
    """
    blocks = states.reshape(states.shape[0], body_count, BODY_STATE_DIMENSION)
    return blocks[:, :, POSITION], blocks[:, :, ORIENTATION]


def rotation_matrices(rotvecs, xp=np):
    """
    Rodrigues' formula for a batch of rotation vectors.

    Args:
        rotvecs: (..., 3) rotation vectors
        xp: Array module (numpy or cupy)

    Returns:
        (..., 3, 3) rotation matrices
    """
    theta = xp.sqrt(xp.sum(rotvecs * rotvecs, axis=-1))
    safe = xp.where(theta < 1e-12, 1.0, theta)
    k = rotvecs / safe[..., None]
    kx, ky, kz = k[..., 0], k[..., 1], k[..., 2]
    zeros = xp.zeros_like(kx)
    K = xp.stack(
        [
            xp.stack([zeros, -kz, ky], axis=-1),
            xp.stack([kz, zeros, -kx], axis=-1),
            xp.stack([-ky, kx, zeros], axis=-1),
        ],
        axis=-2,
    )
    s = xp.sin(theta)[..., None, None]
    c = xp.cos(theta)[..., None, None]
    eye = xp.eye(3, dtype=rotvecs.dtype)
    return eye + s * K + (1.0 - c) * (K @ K)
