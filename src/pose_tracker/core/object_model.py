"""
Object model loading.

Resolves an object resource identifier into the rigid-body geometry of the
tracked object. Each mesh file is one rigid part.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np

from pose_tracker.config.schemas import ObjectResourceIdentifier
from pose_tracker.errors import ResourceResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ObjectModel:
    """Read-only geometry of all rigid parts of a tracked object."""

    vertices: Tuple[np.ndarray, ...]  # per part (V, 3)
    triangles: Tuple[np.ndarray, ...]  # per part (T, 3) vertex indices
    names: Tuple[str, ...] = ()

    def count_parts(self) -> int:
        return len(self.vertices)

    def surface_points(self, part: int) -> np.ndarray:
        """Vertices plus triangle centroids of one part."""
        verts = self.vertices[part]
        tris = self.triangles[part]
        if len(tris) == 0:
            return verts
        centroids = verts[tris].mean(axis=1)
        return np.vstack([verts, centroids])


def _parse_index(token: str, vertex_count: int) -> int:
    idx = int(token.split("/")[0])
    if idx == 0:
        raise ValueError("OBJ vertex indices start at 1")
    # OBJ indices are 1-based; negative indices count from the end
    if idx > 0:
        return idx - 1
    resolved = vertex_count + idx
    if resolved < 0:
        raise ValueError(f"relative index {idx} precedes the first vertex")
    return resolved


def parse_obj(path: Path) -> Tuple[np.ndarray, np.ndarray]:
    """
    Parse the vertices and faces of a Wavefront OBJ file.

    Polygon faces are fan-triangulated. Texture and normal references are
    ignored.

    Args:
        path (Path): OBJ file path

    Returns:
        tuple: vertices (V, 3) float64, triangles (T, 3) int64
    """
    vertices: List[List[float]] = []
    triangles: List[List[int]] = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            parts = line.split()
            if not parts or parts[0].startswith("#"):
                continue
            try:
                if parts[0] == "v":
                    if len(parts) < 4:
                        raise ValueError("vertex needs three coordinates")
                    vertices.append([float(v) for v in parts[1:4]])
                elif parts[0] == "f":
                    face = [_parse_index(t, len(vertices)) for t in parts[1:]]
                    for k in range(1, len(face) - 1):
                        triangles.append([face[0], face[k], face[k + 1]])
            except (ValueError, IndexError) as exc:
                raise ResourceResolutionError(
                    f"Malformed OBJ record at {path}:{line_no}: {line.strip()!r}"
                ) from exc

    verts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    tris = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    if len(verts) == 0:
        raise ResourceResolutionError(f"Mesh has no vertices: {path}")
    if len(tris) and (tris.min() < 0 or tris.max() >= len(verts)):
        raise ResourceResolutionError(f"Mesh face references a missing vertex: {path}")
    return verts, tris


class ObjectModelLoader:
    """Loads object models from mesh files named by a resource identifier."""

    def load(self, ori: ObjectResourceIdentifier) -> ObjectModel:
        if ori.count_meshes() == 0:
            raise ResourceResolutionError("Object resource identifier lists no meshes.")

        vertices, triangles, names = [], [], []
        for i in range(ori.count_meshes()):
            path = ori.mesh_path(i)
            if not path.is_file():
                raise ResourceResolutionError(f"Object mesh not found: {path}")
            try:
                verts, tris = parse_obj(path)
            except (OSError, UnicodeDecodeError) as exc:
                raise ResourceResolutionError(
                    f"Unable to read object mesh {path}: {exc}"
                ) from exc
            logger.debug(
                "Loaded mesh %s: %d vertices, %d triangles", path, len(verts), len(tris)
            )
            for arr in (verts, tris):
                arr.flags.writeable = False
            vertices.append(verts)
            triangles.append(tris)
            names.append(path.stem)

        logger.info(
            "Object model loaded: %d part(s) from %s",
            len(vertices),
            Path(ori.package_path) / ori.directory,
        )
        return ObjectModel(
            vertices=tuple(vertices), triangles=tuple(triangles), names=tuple(names)
        )
