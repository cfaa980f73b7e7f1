"""Immutable, validated scene snapshots.

A SceneSnapshot is the only scene value the renderer accepts. Building one
validates every shape and resolves every material reference, so the device
kernels can assume well-formed input and never fail mid-frame:

- triangles with (near) zero-length edges or collinear corners, and spheres
  with a non-positive radius, raise DegenerateGeometry
- a material_id outside the material table raises PreconditionViolation
- scenes larger than the device capacity raise PreconditionViolation

Snapshots never change after construction. A driver that animates the scene
builds a new snapshot between frames (``with_objects``), which gives every
frame a consistent view without locking.

Example:
    >>> from tracelight.core.color import Color
    >>> from tracelight.core.vector import Vector
    >>> from tracelight.scene.objects import Material, SceneObject, Sphere
    >>> from tracelight.scene.snapshot import SceneSnapshot
    >>> table = [Material(color=Color(0.8, 0.2, 0.2))]
    >>> scene = SceneSnapshot(
    ...     [SceneObject(Sphere(Vector(0.0, 0.0, 0.0), 1.0), material_id=0)],
    ...     materials=table,
    ... )
    >>> len(scene)
    1
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any

import numpy as np
import numpy.typing as npt

from tracelight.config import MAX_OBJECTS
from tracelight.core.vector import Vector
from tracelight.errors import PreconditionViolation
from tracelight.scene.objects import (
    Material,
    SceneObject,
    ShapeKind,
    Sphere,
    SurfaceMaterial,
    Triangle,
    validate_shape,
)


class SceneSnapshot:
    """A validated, read-only list of scene objects and their materials.

    Attributes:
        objects: The objects, in intersection order.
        materials: The material table that material_id values index.
    """

    __slots__ = ("_objects", "_materials", "_resolved")

    def __init__(
        self,
        objects: Iterable[SceneObject],
        materials: Sequence[Material] = (),
    ) -> None:
        """Validate and freeze a scene.

        Args:
            objects: Scene objects in intersection order. Exact distance ties
                are won by the object that comes first.
            materials: Material table for objects that carry a material_id.

        Raises:
            DegenerateGeometry: If any shape is degenerate.
            PreconditionViolation: If any material_id is out of range, or the
                scene exceeds MAX_OBJECTS.
        """
        self._objects: tuple[SceneObject, ...] = tuple(objects)
        self._materials: tuple[Material, ...] = tuple(materials)

        if len(self._objects) > MAX_OBJECTS:
            raise PreconditionViolation(
                f"Scene has {len(self._objects)} objects; the maximum is {MAX_OBJECTS}"
            )

        resolved = []
        for obj in self._objects:
            validate_shape(obj.shape)
            resolved.append(obj.resolve_material(self._materials))
        self._resolved: tuple[SurfaceMaterial, ...] = tuple(resolved)

    @property
    def objects(self) -> tuple[SceneObject, ...]:
        return self._objects

    @property
    def materials(self) -> tuple[Material, ...]:
        return self._materials

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self._objects)

    def material_of(self, index: int) -> SurfaceMaterial:
        """Get the resolved material of the object at ``index``."""
        return self._resolved[index]

    def emitter_count(self) -> int:
        """Count the objects whose material emits light."""
        return sum(1 for m in self._resolved if m.emissive_color() is not None)

    def with_objects(self, objects: Iterable[SceneObject]) -> "SceneSnapshot":
        """Build a new snapshot with different objects and the same materials."""
        return SceneSnapshot(objects, self._materials)

    def __repr__(self) -> str:
        return f"SceneSnapshot(objects={len(self._objects)}, materials={len(self._materials)})"

    # =========================================================================
    # Device Packing
    # =========================================================================

    def pack(self) -> dict[str, npt.NDArray[Any]]:
        """Pack the scene into padded Structure-of-Arrays buffers.

        Every array has MAX_OBJECTS rows so it can be copied straight into the
        preallocated device fields. Spheres store their center in ``a`` and
        their radius in ``radius``; triangles store their corners in a, b, c.

        Returns:
            Dictionary of float32/int32 arrays keyed by field name.
        """
        kind = np.zeros(MAX_OBJECTS, dtype=np.int32)
        corner_a = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
        corner_b = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
        corner_c = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
        radius = np.zeros(MAX_OBJECTS, dtype=np.float32)
        diffuse = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
        emission = np.zeros((MAX_OBJECTS, 3), dtype=np.float32)
        emits = np.zeros(MAX_OBJECTS, dtype=np.int32)

        for i, obj in enumerate(self._objects):
            shape = obj.shape
            kind[i] = int(shape.kind)
            if isinstance(shape, Sphere):
                corner_a[i] = shape.center.to_tuple()
                radius[i] = shape.radius
            else:
                corner_a[i] = shape.corners[0].to_tuple()
                corner_b[i] = shape.corners[1].to_tuple()
                corner_c[i] = shape.corners[2].to_tuple()

            material = self._resolved[i]
            diffuse[i] = material.diffuse_color().to_tuple()
            emitted = material.emissive_color()
            if emitted is not None:
                emission[i] = emitted.to_tuple()
                emits[i] = 1

        return {
            "kind": kind,
            "a": corner_a,
            "b": corner_b,
            "c": corner_c,
            "radius": radius,
            "diffuse": diffuse,
            "emission": emission,
            "emits": emits,
        }

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        objects = []
        for obj in self._objects:
            shape = obj.shape
            if shape.kind == ShapeKind.SPHERE:
                entry: dict[str, Any] = {
                    "sphere": {"center": list(shape.center), "radius": shape.radius}
                }
            else:
                entry = {"triangle": [list(corner) for corner in shape.corners]}
            if obj.material is not None:
                entry["material"] = obj.material.to_dict()
            if obj.material_id is not None:
                entry["material_id"] = obj.material_id
            objects.append(entry)

        return {
            "materials": [m.to_dict() for m in self._materials],
            "objects": objects,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SceneSnapshot":
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials' and 'objects' keys.

        Raises:
            ValueError: If an object entry has no recognised shape.
            DegenerateGeometry: If a shape is degenerate.
            PreconditionViolation: If a material_id is out of range.
        """
        materials = [Material.from_dict(m) for m in data.get("materials", [])]

        objects = []
        for entry in data.get("objects", []):
            if "sphere" in entry:
                sphere = entry["sphere"]
                shape: Sphere | Triangle = Sphere(
                    center=Vector.from_sequence(sphere.get("center", [0.0, 0.0, 0.0])),
                    radius=float(sphere.get("radius", 1.0)),
                )
            elif "triangle" in entry:
                corners = entry["triangle"]
                if len(corners) != 3:
                    raise ValueError(f"Triangle needs 3 corners, got {len(corners)}")
                shape = Triangle(
                    corners=(
                        Vector.from_sequence(corners[0]),
                        Vector.from_sequence(corners[1]),
                        Vector.from_sequence(corners[2]),
                    )
                )
            else:
                raise ValueError(f"Unknown object entry: {sorted(entry)}")

            inline = entry.get("material")
            objects.append(
                SceneObject(
                    shape=shape,
                    material=Material.from_dict(inline) if inline is not None else None,
                    material_id=entry.get("material_id"),
                )
            )

        return cls(objects, materials)
