"""Scene object model: shapes, materials and material resolution.

A scene is an ordered list of SceneObject values. Each object pairs a shape
(Sphere or Triangle) with a material reference, which takes one of two forms:

- an inline ``Material`` embedded in the object, or
- a ``material_id`` indexing an external material table (the form produced
  by mesh loaders, where many faces share one material).

Both forms resolve to something implementing ``SurfaceMaterial``, the only
interface the renderer needs: an optional emitted color and a diffuse color.
An object with neither resolves to DEFAULT_MATERIAL (white, non-emissive).

Shape validity is checked by ``validate_shape``, which ``SceneSnapshot``
calls once per object at construction time.

Example:
    >>> from tracelight.core.color import Color
    >>> from tracelight.core.vector import Vector
    >>> from tracelight.scene.objects import Material, SceneObject, Sphere
    >>> lamp = Material(color=Color(1.0, 0.9, 0.7), emits_light=True)
    >>> obj = SceneObject(Sphere(Vector(0.0, 2.0, 0.0), 0.5), material=lamp)
    >>> obj.resolve_material(()).emissive_color()
    Color(r=1.0, g=0.9, b=0.7)
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, Union

from tracelight.core.color import Color
from tracelight.core.vector import Vector
from tracelight.errors import DegenerateGeometry, PreconditionViolation

# Triangle edges must be longer than this (squared)
MIN_EDGE_LENGTH_SQUARED = 1e-5

# Cross product of the normalized edges must be longer than this (squared)
MIN_CROSS_LENGTH_SQUARED = 1e-4


class ShapeKind(IntEnum):
    """Shape tag stored per object in device memory."""

    SPHERE = 0
    TRIANGLE = 1


@dataclass(frozen=True)
class Sphere:
    """A sphere shape.

    Attributes:
        center: The center point.
        radius: The radius (positive).
    """

    center: Vector
    radius: float

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.SPHERE


@dataclass(frozen=True)
class Triangle:
    """A triangle shape.

    Attributes:
        corners: The three corner points. Their winding only affects the
            sign of the plane normal, which intersection re-orients anyway.
    """

    corners: tuple[Vector, Vector, Vector]

    def __post_init__(self) -> None:
        # Corners are always stored as an immutable tuple
        object.__setattr__(self, "corners", tuple(self.corners))

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.TRIANGLE

    def edges(self) -> tuple[Vector, Vector]:
        a, b, c = self.corners
        return b - a, c - a

    def normal(self) -> Vector:
        """Unit plane normal following the corner winding.

        Raises:
            DegenerateVector: If the triangle is degenerate.
        """
        edge1, edge2 = self.edges()
        return edge1.normalized().cross(edge2.normalized()).normalized()


Shape = Union[Sphere, Triangle]


class SurfaceMaterial(Protocol):
    """What the renderer needs to know about a surface."""

    def emissive_color(self) -> Color | None:
        """The emitted color, or None for surfaces that do not emit."""
        ...

    def diffuse_color(self) -> Color:
        """The color multiplied into the path mask on every hit."""
        ...


@dataclass(frozen=True)
class Material:
    """An inline material.

    Attributes:
        color: The diffuse color.
        ambient: The emitted color for light sources. When None, an emitting
            material emits its diffuse color.
        emits_light: Whether hits on this material add light to the path.
    """

    color: Color = Color.WHITE
    ambient: Color | None = None
    emits_light: bool = False

    def emissive_color(self) -> Color | None:
        if not self.emits_light:
            return None
        return self.ambient if self.ambient is not None else self.color

    def diffuse_color(self) -> Color:
        return self.color

    def to_dict(self) -> dict:
        data: dict = {"color": list(self.color), "emits_light": self.emits_light}
        if self.ambient is not None:
            data["ambient"] = list(self.ambient)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Material":
        ambient = data.get("ambient")
        return cls(
            color=Color.from_sequence(data.get("color", [1.0, 1.0, 1.0])),
            ambient=Color.from_sequence(ambient) if ambient is not None else None,
            emits_light=bool(data.get("emits_light", False)),
        )


DEFAULT_MATERIAL = Material()


@dataclass(frozen=True)
class MaterialRef:
    """A material looked up by index in a material table.

    Attributes:
        material_id: Index into ``table``.
        table: The material table the id refers to.

    Raises:
        PreconditionViolation: If material_id is not a valid table index.
    """

    material_id: int
    table: tuple[Material, ...]

    def __post_init__(self) -> None:
        if not 0 <= self.material_id < len(self.table):
            raise PreconditionViolation(
                f"material_id {self.material_id} out of range for a table of "
                f"{len(self.table)} materials"
            )

    def resolve(self) -> Material:
        return self.table[self.material_id]

    def emissive_color(self) -> Color | None:
        return self.resolve().emissive_color()

    def diffuse_color(self) -> Color:
        return self.resolve().diffuse_color()


@dataclass(frozen=True)
class SceneObject:
    """A shape paired with its material reference.

    Attributes:
        shape: The Sphere or Triangle.
        material: Inline material, mutually exclusive with material_id.
        material_id: Index into the scene's material table.

    Raises:
        PreconditionViolation: If both material and material_id are given,
            or material_id is not an integer.
    """

    shape: Shape
    material: Material | None = None
    material_id: int | None = None

    def __post_init__(self) -> None:
        if self.material is not None and self.material_id is not None:
            raise PreconditionViolation("An object takes either a material or a material_id, not both")
        if self.material_id is not None and (
            isinstance(self.material_id, bool) or not isinstance(self.material_id, int)
        ):
            raise PreconditionViolation(f"material_id must be an integer, got {self.material_id!r}")

    def resolve_material(self, table: Sequence[Material]) -> SurfaceMaterial:
        """Resolve this object's material against a material table.

        Raises:
            PreconditionViolation: If material_id is out of range.
        """
        if self.material is not None:
            return self.material
        if self.material_id is None:
            return DEFAULT_MATERIAL
        return MaterialRef(self.material_id, tuple(table))


def _check_finite(point: Vector, what: str) -> None:
    if not all(math.isfinite(v) for v in point):
        raise DegenerateGeometry(f"{what} has non-finite coordinates: {point!r}")


def validate_shape(shape: Shape) -> None:
    """Reject shapes the intersection routines cannot handle.

    Raises:
        DegenerateGeometry: For a non-positive sphere radius, a triangle with
            a (near) zero-length edge, or collinear triangle corners.
        TypeError: If shape is not a Sphere or Triangle.
    """
    if isinstance(shape, Sphere):
        _check_finite(shape.center, "Sphere center")
        if not (math.isfinite(shape.radius) and shape.radius > 0.0):
            raise DegenerateGeometry(f"Sphere radius must be positive, got {shape.radius}")
    elif isinstance(shape, Triangle):
        if len(shape.corners) != 3:
            raise DegenerateGeometry(f"Triangle needs 3 corners, got {len(shape.corners)}")
        for corner in shape.corners:
            _check_finite(corner, "Triangle corner")
        edge1, edge2 = shape.edges()
        if (
            edge1.length_squared() <= MIN_EDGE_LENGTH_SQUARED
            or edge2.length_squared() <= MIN_EDGE_LENGTH_SQUARED
        ):
            raise DegenerateGeometry(f"Triangle has a zero-length edge: {shape.corners!r}")
        cross = edge1.normalized().cross(edge2.normalized())
        if cross.length_squared() <= MIN_CROSS_LENGTH_SQUARED:
            raise DegenerateGeometry(f"Triangle corners are collinear: {shape.corners!r}")
    else:
        raise TypeError(f"Unsupported shape type: {type(shape).__name__}")
