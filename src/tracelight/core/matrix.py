"""4x4 affine transform built on host-side vectors.

Matrices are row-major with the last row fixed to [0, 0, 0, 1]. They are used
for camera poses: the rotation block maps camera-local directions to world
space and the last column holds the camera position.

Composition reads left to right in the local frame of the left operand:
``camera * Matrix.translation(v)`` moves the camera along its own axes, not
the world axes.

Camera convention: local +X is forward (see ``Matrix.dir``), local +Y is
up on screen and local +Z is screen left.

Example:
    >>> import math
    >>> from tracelight.core.angle import Angle
    >>> from tracelight.core.matrix import Matrix
    >>> from tracelight.core.vector import Vector
    >>> turn = Matrix.rotation(Vector.UNIT_Y, Angle(math.pi / 2))
    >>> pose = Matrix.translation(Vector(1.0, 2.0, 3.0)) * turn
    >>> pose.pos()
    Vector(x=1.0, y=2.0, z=3.0)
"""

import math

import numpy as np
import numpy.typing as npt

from tracelight.core.angle import Angle
from tracelight.core.vector import Vector
from tracelight.errors import PreconditionViolation


class Matrix:
    """An immutable 4x4 affine transform.

    The backing NumPy array is private and read-only; every operation
    returns a new Matrix.
    """

    __slots__ = ("_m",)

    def __init__(self, rows: npt.ArrayLike) -> None:
        """Create a matrix from a 4x4 array-like.

        Args:
            rows: Four rows of four numbers each.

        Raises:
            ValueError: If the input is not 4x4 or its last row is not
                [0, 0, 0, 1].
        """
        m = np.array(rows, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 matrix, got shape {m.shape}")
        if not np.array_equal(m[3], [0.0, 0.0, 0.0, 1.0]):
            raise ValueError(f"Last row must be [0, 0, 0, 1], got {m[3].tolist()}")
        m.flags.writeable = False
        self._m = m

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def identity(cls) -> "Matrix":
        return cls(np.eye(4))

    @classmethod
    def rotation(cls, axis: Vector, angle: Angle) -> "Matrix":
        """Rotation about a unit axis (Rodrigues' rotation formula).

        Args:
            axis: The rotation axis. Must already be normalized.
            angle: The rotation angle, counter-clockwise looking down the axis.

        Raises:
            PreconditionViolation: If axis is not normalized.
        """
        if not axis.is_normalized():
            raise PreconditionViolation(f"Rotation axis {axis!r} is not normalized")

        x, y, z = axis.x, axis.y, axis.z
        s = math.sin(angle.radians)
        c = math.cos(angle.radians)
        a = 1.0 - c

        return cls(
            [
                [x * x * a + c, x * y * a - z * s, x * z * a + y * s, 0.0],
                [y * x * a + z * s, y * y * a + c, y * z * a - x * s, 0.0],
                [z * x * a - y * s, z * y * a + x * s, z * z * a + c, 0.0],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )

    @classmethod
    def translation(cls, offset: Vector) -> "Matrix":
        m = np.eye(4)
        m[:3, 3] = offset.to_tuple()
        return cls(m)

    @classmethod
    def scale(cls, factors: Vector) -> "Matrix":
        return cls(np.diag([factors.x, factors.y, factors.z, 1.0]))

    # =========================================================================
    # Operations
    # =========================================================================

    def __mul__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        return Matrix(self._m @ other._m)

    def mul_rotate(self, v: Vector) -> Vector:
        """Transform a direction (w = 0): only the 3x3 block applies."""
        x, y, z = self._m[:3, :3] @ np.array(v.to_tuple())
        return Vector(float(x), float(y), float(z))

    def mul_translate(self, v: Vector) -> Vector:
        """Transform a point (w = 1): rotation, scale and translation apply."""
        x, y, z = self._m[:3, :3] @ np.array(v.to_tuple()) + self._m[:3, 3]
        return Vector(float(x), float(y), float(z))

    def pos(self) -> Vector:
        """The translation column (camera position)."""
        x, y, z = self._m[:3, 3]
        return Vector(float(x), float(y), float(z))

    def dir(self) -> Vector:
        """The local +X axis in world space (camera forward)."""
        return self.mul_rotate(Vector.UNIT_X)

    def rotation_block(self) -> npt.NDArray[np.float64]:
        """Return a writable copy of the 3x3 rotation/scale block."""
        return self._m[:3, :3].copy()

    def rows(self) -> tuple[tuple[float, ...], ...]:
        return tuple(tuple(float(v) for v in row) for row in self._m)

    def allclose(self, other: "Matrix", atol: float = 1e-9) -> bool:
        return bool(np.allclose(self._m, other._m, rtol=0.0, atol=atol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return bool(np.array_equal(self._m, other._m))

    def __hash__(self) -> int:
        return hash(self._m.tobytes())

    def __repr__(self) -> str:
        return f"Matrix({self.rows()!r})"

    def __str__(self) -> str:
        lines = []
        for i, row in enumerate(self._m):
            cells = "".join(f"{v:+.2f}  " for v in row)
            prefix = "[" if i == 0 else " "
            lines.append(f"{prefix}[{cells}]")
        return "\n".join(lines) + "]\n"
