"""Tests for the scene object model and SceneSnapshot validation.

Tests cover:
- Shape validation (degenerate spheres and triangles)
- Material resolution (inline, table reference, default)
- Snapshot construction, packing and dictionary round trip
"""

import math

import numpy as np
import pytest

from tracelight.core.color import Color
from tracelight.core.vector import Vector
from tracelight.errors import DegenerateGeometry, PreconditionViolation
from tracelight.scene.objects import (
    DEFAULT_MATERIAL,
    Material,
    MaterialRef,
    SceneObject,
    ShapeKind,
    Sphere,
    Triangle,
    validate_shape,
)
from tracelight.scene.snapshot import SceneSnapshot

XY_TRIANGLE = Triangle((Vector(0.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0), Vector(0.0, 1.0, 0.0)))


class TestShapeValidation:
    """Tests for validate_shape."""

    def test_valid_shapes(self):
        validate_shape(Sphere(Vector.ZERO, 1.0))
        validate_shape(XY_TRIANGLE)

    @pytest.mark.parametrize("radius", [0.0, -1.0, math.nan, math.inf])
    def test_bad_sphere_radius(self, radius):
        with pytest.raises(DegenerateGeometry):
            validate_shape(Sphere(Vector.ZERO, radius))

    def test_non_finite_sphere_center(self):
        with pytest.raises(DegenerateGeometry):
            validate_shape(Sphere(Vector(math.inf, 0.0, 0.0), 1.0))

    def test_duplicate_corner(self):
        tri = Triangle((Vector.ZERO, Vector.ZERO, Vector.UNIT_Y))
        with pytest.raises(DegenerateGeometry):
            validate_shape(tri)

    def test_nearly_duplicate_corner(self):
        tri = Triangle((Vector.ZERO, Vector(1e-3, 0.0, 0.0), Vector.UNIT_Y))
        with pytest.raises(DegenerateGeometry):
            validate_shape(tri)

    def test_collinear_corners(self):
        tri = Triangle((Vector.ZERO, Vector(1.0, 1.0, 1.0), Vector(2.0, 2.0, 2.0)))
        with pytest.raises(DegenerateGeometry):
            validate_shape(tri)

    def test_wrong_corner_count(self):
        with pytest.raises(DegenerateGeometry):
            validate_shape(Triangle((Vector.ZERO, Vector.UNIT_X)))

    def test_unknown_shape_type(self):
        with pytest.raises(TypeError):
            validate_shape("sphere")

    def test_shape_kinds(self):
        assert Sphere(Vector.ZERO, 1.0).kind == ShapeKind.SPHERE
        assert XY_TRIANGLE.kind == ShapeKind.TRIANGLE

    def test_triangle_normal_follows_winding(self):
        assert XY_TRIANGLE.normal() == Vector.UNIT_Z
        a, b, c = XY_TRIANGLE.corners
        assert Triangle((a, c, b)).normal() == -Vector.UNIT_Z


class TestMaterials:
    """Tests for material resolution."""

    def test_non_emissive_material(self):
        m = Material(color=Color(0.5, 0.5, 0.5))
        assert m.emissive_color() is None
        assert m.diffuse_color() == Color(0.5, 0.5, 0.5)

    def test_emitter_without_ambient_emits_its_color(self):
        m = Material(color=Color(1.0, 0.5, 0.0), emits_light=True)
        assert m.emissive_color() == Color(1.0, 0.5, 0.0)

    def test_emitter_with_ambient(self):
        m = Material(color=Color.WHITE, ambient=Color(3.0, 3.0, 3.0), emits_light=True)
        assert m.emissive_color() == Color(3.0, 3.0, 3.0)
        assert m.diffuse_color() == Color.WHITE

    def test_ambient_ignored_unless_emitting(self):
        m = Material(ambient=Color(3.0, 3.0, 3.0))
        assert m.emissive_color() is None

    def test_material_dict_round_trip(self):
        m = Material(color=Color(0.1, 0.2, 0.3), ambient=Color(2.0, 2.0, 2.0), emits_light=True)
        assert Material.from_dict(m.to_dict()) == m

    def test_material_ref_resolves_against_table(self):
        table = (Material(color=Color.RED), Material(color=Color.BLUE))
        ref = MaterialRef(1, table)
        assert ref.diffuse_color() == Color.BLUE
        assert ref.emissive_color() is None

    @pytest.mark.parametrize("material_id", [-1, 2])
    def test_material_ref_out_of_range(self, material_id):
        with pytest.raises(PreconditionViolation):
            MaterialRef(material_id, (Material(), Material()))

    def test_object_without_material_uses_default(self):
        obj = SceneObject(Sphere(Vector.ZERO, 1.0))
        assert obj.resolve_material(()) is DEFAULT_MATERIAL

    def test_object_with_both_material_forms_is_rejected(self):
        with pytest.raises(PreconditionViolation):
            SceneObject(Sphere(Vector.ZERO, 1.0), material=Material(), material_id=0)

    @pytest.mark.parametrize("material_id", ["0", 1.0, True])
    def test_non_integer_material_id_is_rejected(self, material_id):
        with pytest.raises(PreconditionViolation, match="integer"):
            SceneObject(Sphere(Vector.ZERO, 1.0), material_id=material_id)


class TestSceneSnapshot:
    """Tests for snapshot construction."""

    def test_validates_shapes(self):
        bad = SceneObject(Sphere(Vector.ZERO, -1.0))
        with pytest.raises(DegenerateGeometry):
            SceneSnapshot([bad])

    def test_validates_material_ids(self):
        obj = SceneObject(Sphere(Vector.ZERO, 1.0), material_id=3)
        with pytest.raises(PreconditionViolation):
            SceneSnapshot([obj], materials=[Material()])

    def test_rejects_too_many_objects(self):
        from tracelight.config import MAX_OBJECTS

        objects = [SceneObject(Sphere(Vector.ZERO, 1.0))] * (MAX_OBJECTS + 1)
        with pytest.raises(PreconditionViolation):
            SceneSnapshot(objects)

    def test_material_resolution(self):
        table = [Material(color=Color.RED), Material(color=Color.GREEN, emits_light=True)]
        scene = SceneSnapshot(
            [
                SceneObject(Sphere(Vector.ZERO, 1.0), material_id=1),
                SceneObject(XY_TRIANGLE, material=Material(color=Color.BLUE)),
                SceneObject(Sphere(Vector.UNIT_X, 0.5)),
            ],
            materials=table,
        )
        assert scene.material_of(0).emissive_color() == Color.GREEN
        assert scene.material_of(1).diffuse_color() == Color.BLUE
        assert scene.material_of(2).diffuse_color() == Color.WHITE
        assert scene.emitter_count() == 1

    def test_sequence_protocol(self):
        objects = [SceneObject(Sphere(Vector.ZERO, 1.0)), SceneObject(XY_TRIANGLE)]
        scene = SceneSnapshot(objects)
        assert len(scene) == 2
        assert list(scene) == objects
        assert scene.objects == tuple(objects)

    def test_with_objects_keeps_materials(self):
        table = [Material(color=Color.RED)]
        scene = SceneSnapshot([], materials=table)
        moved = scene.with_objects([SceneObject(Sphere(Vector.ZERO, 1.0), material_id=0)])
        assert moved.materials == tuple(table)
        assert len(scene) == 0
        assert len(moved) == 1

    def test_pack_layout(self):
        from tracelight.config import MAX_OBJECTS

        lamp = Material(color=Color.WHITE, ambient=Color(2.0, 2.0, 2.0), emits_light=True)
        scene = SceneSnapshot(
            [
                SceneObject(Sphere(Vector(1.0, 2.0, 3.0), 0.5), material=lamp),
                SceneObject(XY_TRIANGLE, material=Material(color=Color(0.5, 0.25, 0.125))),
            ]
        )
        packed = scene.pack()

        assert packed["kind"].shape == (MAX_OBJECTS,)
        assert packed["a"].shape == (MAX_OBJECTS, 3)
        assert packed["a"].dtype == np.float32
        assert packed["kind"][:2].tolist() == [int(ShapeKind.SPHERE), int(ShapeKind.TRIANGLE)]
        assert packed["a"][0].tolist() == [1.0, 2.0, 3.0]
        assert packed["radius"][0] == 0.5
        assert packed["b"][1].tolist() == [1.0, 0.0, 0.0]
        assert packed["c"][1].tolist() == [0.0, 1.0, 0.0]
        assert packed["emits"][:2].tolist() == [1, 0]
        assert packed["emission"][0].tolist() == [2.0, 2.0, 2.0]
        assert packed["diffuse"][1].tolist() == [0.5, 0.25, 0.125]

    def test_dict_round_trip(self):
        table = [Material(color=Color.RED)]
        scene = SceneSnapshot(
            [
                SceneObject(Sphere(Vector(0.0, 1.0, 0.0), 0.5), material_id=0),
                SceneObject(XY_TRIANGLE, material=Material(color=Color.BLUE, emits_light=True)),
            ],
            materials=table,
        )
        restored = SceneSnapshot.from_dict(scene.to_dict())
        assert restored.objects == scene.objects
        assert restored.materials == scene.materials

    def test_from_dict_rejects_unknown_shape(self):
        with pytest.raises(ValueError):
            SceneSnapshot.from_dict({"objects": [{"cube": {}}]})

    def test_from_dict_rejects_string_material_id(self):
        data = {
            "materials": [{"color": [1.0, 0.0, 0.0]}],
            "objects": [{"sphere": {"center": [0.0, 0.0, 0.0], "radius": 1.0}, "material_id": "0"}],
        }
        with pytest.raises(PreconditionViolation):
            SceneSnapshot.from_dict(data)

    def test_corner_list_is_frozen_into_tuple(self):
        """Mutating the caller's corner list cannot change a validated snapshot."""
        corners = [Vector(0.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0), Vector(0.0, 1.0, 0.0)]
        scene = SceneSnapshot([SceneObject(Triangle(corners))])

        corners[2] = Vector(2.0, 0.0, 0.0)

        shape = scene.objects[0].shape
        assert isinstance(shape.corners, tuple)
        assert shape.corners[2] == Vector(0.0, 1.0, 0.0)
        validate_shape(shape)
        assert scene.pack()["c"][0].tolist() == [0.0, 1.0, 0.0]
