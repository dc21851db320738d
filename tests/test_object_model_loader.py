"""
Tests for Wavefront OBJ parsing and object model loading.
"""

import logging

import numpy as np
import pytest

from pose_tracker.config.schemas import ObjectResourceIdentifier
from pose_tracker.core.object_model import ObjectModelLoader, parse_obj
from pose_tracker.errors import ResourceResolutionError


def _ori(package, *meshes):
    return ObjectResourceIdentifier(
        package_path=str(package), directory="meshes", meshes=tuple(meshes)
    )


class TestParseObj:
    """Test suite for parse_obj."""

    def test_quad_is_fan_triangulated(self, tmp_path):
        path = tmp_path / "quad.obj"
        path.write_text(
            "# quad\nv 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nvn 0 0 1\nf 1//1 2//1 3//1 4//1\n"
        )
        verts, tris = parse_obj(path)

        assert verts.shape == (4, 3)
        np.testing.assert_array_equal(tris, [[0, 1, 2], [0, 2, 3]])

    def test_negative_and_textured_indices(self, tmp_path):
        path = tmp_path / "tri.obj"
        path.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0 0\nf -3/1 -2/1 -1/1\n")
        _, tris = parse_obj(path)
        np.testing.assert_array_equal(tris, [[0, 1, 2]])

    def test_points_only_mesh(self, tmp_path):
        path = tmp_path / "cloud.obj"
        path.write_text("v 0 0 1\nv 0 0 2\n")
        verts, tris = parse_obj(path)
        assert verts.shape == (2, 3)
        assert tris.shape == (0, 3)

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "# nothing\n",
            "v 0 0\n",
            "v 0 0 x\n",
            "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 9\n",
            "v 0 0 0\nv 1 0 0\nv 0 1 0\nf -4 -2 -1\n",
        ],
    )
    def test_malformed_mesh_rejected(self, tmp_path, content):
        path = tmp_path / "bad.obj"
        path.write_text(content)
        with pytest.raises(ResourceResolutionError):
            parse_obj(path)


class TestObjectModelLoader:
    """Test suite for ObjectModelLoader."""

    def test_one_part_per_mesh(self, object_package):
        model = ObjectModelLoader().load(_ori(object_package, "plane.obj", "lid.obj"))

        assert model.count_parts() == 2
        assert model.names == ("plane", "lid")
        assert model.vertices[0].shape == (121, 3)
        assert model.triangles[1].shape == (50, 3)

    def test_surface_points_add_centroids(self, object_package):
        model = ObjectModelLoader().load(_ori(object_package, "plane.obj"))

        points = model.surface_points(0)

        assert points.shape == (121 + 200, 3)
        np.testing.assert_allclose(points[:, 2], 0.0)

    def test_surface_points_per_part(self, object_package):
        model = ObjectModelLoader().load(_ori(object_package, "plane.obj", "lid.obj"))

        assert model.surface_points(1).shape == (36 + 50, 3)

    def test_geometry_is_read_only(self, object_package):
        model = ObjectModelLoader().load(_ori(object_package, "plane.obj"))
        with pytest.raises(ValueError):
            model.vertices[0][0, 0] = 5.0

    def test_loads_are_deterministic(self, object_package):
        loader = ObjectModelLoader()
        first = loader.load(_ori(object_package, "plane.obj"))
        second = loader.load(_ori(object_package, "plane.obj"))
        assert first is not second
        np.testing.assert_array_equal(first.vertices[0], second.vertices[0])

    def test_missing_mesh_raises(self, object_package):
        with pytest.raises(ResourceResolutionError, match="not found"):
            ObjectModelLoader().load(_ori(object_package, "plane.obj", "absent.obj"))

    def test_empty_mesh_list_raises(self, object_package):
        with pytest.raises(ResourceResolutionError):
            ObjectModelLoader().load(_ori(object_package))

    def test_logs_summary(self, object_package, caplog):
        with caplog.at_level(logging.INFO, logger="pose_tracker.core.object_model"):
            ObjectModelLoader().load(_ori(object_package, "plane.obj"))
        assert "1 part(s)" in caplog.text

    def test_zero_face_index_raises(self, object_package):
        # The face precedes the vertex that index 0 would otherwise wrap to
        (object_package / "meshes" / "zero.obj").write_text(
            "v 0 0 0\nv 1 0 0\nv 0 1 0\nf 0 1 2\nv 1 1 0\n"
        )
        with pytest.raises(ResourceResolutionError, match="zero.obj"):
            ObjectModelLoader().load(_ori(object_package, "zero.obj"))

    def test_non_utf8_mesh_raises(self, object_package):
        (object_package / "meshes" / "latin1.obj").write_bytes(
            b"v 0 0 0\n# caf\xe9\nv 1 0 0\nv 0 1 0\nf 1 2 3\n"
        )
        with pytest.raises(ResourceResolutionError, match="latin1.obj"):
            ObjectModelLoader().load(_ori(object_package, "latin1.obj"))

    def test_binary_mesh_raises(self, object_package):
        (object_package / "meshes" / "blob.obj").write_bytes(bytes(range(128, 256)))
        with pytest.raises(ResourceResolutionError):
            ObjectModelLoader().load(_ori(object_package, "blob.obj"))
