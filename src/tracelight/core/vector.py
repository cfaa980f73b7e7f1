"""Host-side 3D vector type used for points and directions.

The Vector dataclass is the value type used everywhere outside Taichi kernels:
scene construction, camera transforms and validation. Kernels work on
``taichi.math.vec3`` instead (see ``tracelight.core.ray``).

Two algorithms are provided for sampling a uniform point in the unit ball:

- ``random_in_unit_ball_rejection``: draw a uniform point in the cube
  [-1, 1]^3 until it falls inside the ball. Cheap per draw (three uniforms,
  no transcendental functions) but the number of draws is random, 6/pi ~ 1.91
  on average.
- ``random_in_unit_ball_direct``: normalize a Gaussian direction and scale it
  by a cube-rooted uniform radius. Always one draw, but each call pays for
  three Gaussian samples, a square root and a cube root.

Both produce the same (uniform) distribution.

Example:
    >>> from tracelight.core.vector import Vector
    >>> v = Vector(3.0, 0.0, 4.0)
    >>> v.length()
    5.0
    >>> v.normalized()
    Vector(x=0.6, y=0.0, z=0.8)
"""

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

from tracelight.errors import DegenerateVector

# Vectors at or below this length cannot be normalized
MIN_NORMALIZE_LENGTH = 1e-4

# Tolerance on |len^2 - 1| for a vector to count as normalized
NORMALIZED_TOLERANCE = 1e-5

_default_rng = np.random.default_rng()


@dataclass(frozen=True)
class Vector:
    """An immutable 3D vector, also used as a point.

    Attributes:
        x: The x component.
        y: The y component.
        z: The z component.
    """

    x: float
    y: float
    z: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "Vector":
        """Build a vector from any 3-element sequence.

        Raises:
            ValueError: If the sequence does not have exactly three elements.
        """
        if len(values) != 3:
            raise ValueError(f"Expected 3 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector":
        return Vector(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> "Vector":
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector":
        return Vector(self.x / scalar, self.y / scalar, self.z / scalar)

    def dot(self, other: "Vector") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector") -> "Vector":
        return Vector(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def is_normalized(self) -> bool:
        """Check whether the vector has unit length within tolerance."""
        return abs(self.length_squared() - 1.0) < NORMALIZED_TOLERANCE

    def normalized(self) -> "Vector":
        """Return the unit vector pointing in the same direction.

        Raises:
            DegenerateVector: If the length is at most MIN_NORMALIZE_LENGTH.
        """
        length = self.length()
        if length <= MIN_NORMALIZE_LENGTH:
            raise DegenerateVector(f"Cannot normalize {self!r} (length {length:.3g})")
        return self / length

    def reflect(self, normal: "Vector") -> "Vector":
        """Mirror this vector about a surface normal.

        Divides by the normal's own squared length, so the normal does not
        have to be unit length.

        Args:
            normal: The surface normal to reflect about.

        Returns:
            The reflected vector, with the same length as this one.

        Raises:
            DegenerateVector: If the normal has zero length.
        """
        n2 = normal.length_squared()
        if n2 == 0.0:
            raise DegenerateVector("Cannot reflect about a zero-length normal")
        return self - normal * (2.0 * self.dot(normal) / n2)


Point = Vector

Vector.ZERO = Vector(0.0, 0.0, 0.0)
Vector.UNIT_X = Vector(1.0, 0.0, 0.0)
Vector.UNIT_Y = Vector(0.0, 1.0, 0.0)
Vector.UNIT_Z = Vector(0.0, 0.0, 1.0)


# =============================================================================
# Random Sampling
# =============================================================================


def random_in_unit_ball_rejection(rng: np.random.Generator | None = None) -> Vector:
    """Sample a uniform point in the unit ball by rejection.

    Draws points uniformly from the cube [-1, 1]^3 until one lands inside
    the ball (length^2 <= 1).

    Args:
        rng: Random generator to draw from. Defaults to a module-level one.

    Returns:
        A point with length^2 <= 1.
    """
    rng = _default_rng if rng is None else rng
    while True:
        x, y, z = rng.uniform(-1.0, 1.0, size=3)
        if x * x + y * y + z * z <= 1.0:
            return Vector(float(x), float(y), float(z))


def random_in_unit_ball_direct(rng: np.random.Generator | None = None) -> Vector:
    """Sample a uniform point in the unit ball without rejection.

    A normalized Gaussian vector is uniform on the sphere; scaling it by
    u^(1/3) for uniform u makes the radius follow the r^2 density of the ball.

    Args:
        rng: Random generator to draw from. Defaults to a module-level one.

    Returns:
        A point with length^2 <= 1.
    """
    rng = _default_rng if rng is None else rng
    gx, gy, gz = rng.standard_normal(3)
    norm = math.sqrt(gx * gx + gy * gy + gz * gz)
    while norm == 0.0:
        gx, gy, gz = rng.standard_normal(3)
        norm = math.sqrt(gx * gx + gy * gy + gz * gz)
    radius = float(rng.random()) ** (1.0 / 3.0)
    scale = radius / norm
    return Vector(float(gx) * scale, float(gy) * scale, float(gz) * scale)


def random_unit_vector(rng: np.random.Generator | None = None) -> Vector:
    """Sample a uniformly distributed direction on the unit sphere."""
    while True:
        p = random_in_unit_ball_rejection(rng)
        if p.length() > MIN_NORMALIZE_LENGTH:
            return p.normalized()
