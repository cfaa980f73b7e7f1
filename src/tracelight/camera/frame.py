"""Frame camera: pose matrix plus sun direction, and primary ray generation.

The camera is a 4x4 pose (see ``tracelight.core.matrix``). In camera-local
space the eye looks along +X, +Y is up on screen and +Z is screen left.
Every pixel (x, y) of a width x height image gets the local direction

    p = normalize(1, (height/2 - y) / height, (width/2 - x) / width * aspect)

with aspect = width / height, so the vertical field of view is fixed by the
unit image-plane height and the horizontal extent follows the aspect ratio.
The world direction is the pose's rotation block applied to p, and every
primary ray starts at the pose position.

The sun direction travels with the camera because both are per-frame inputs
to the integrator. It points from the sun toward the scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.camera.frame import FrameCamera, primary_direction, setup_camera
    >>> from tracelight.core.matrix import Matrix
    >>> from tracelight.core.vector import Vector
    >>> camera = FrameCamera(pose=Matrix.identity(), sun=Vector(0.0, -1.0, 0.0))
    >>> setup_camera(camera)
    >>> primary_direction(camera.pose, 64, 48, 128, 96)
    Vector(x=1.0, y=0.0, z=0.0)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tracelight.core.matrix import Matrix
from tracelight.core.ray import Ray, vec3
from tracelight.core.vector import Vector
from tracelight.errors import PreconditionViolation

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class FrameCamera:
    """Per-frame camera state.

    Attributes:
        pose: Camera-to-world transform. Its position is the ray origin and
            its rotation block orients the image plane.
        sun: Unit direction of the sunlight (from the sun toward the scene).

    Raises:
        PreconditionViolation: If sun is not normalized.
    """

    pose: Matrix
    sun: Vector

    def __post_init__(self) -> None:
        if not self.sun.is_normalized():
            raise PreconditionViolation(f"Sun direction must be normalized, got {self.sun!r}")

    def moved(self, pose: Matrix) -> "FrameCamera":
        """Return the same camera at a new pose."""
        return FrameCamera(pose=pose, sun=self.sun)


def primary_direction(pose: Matrix, x: float, y: float, width: int, height: int) -> Vector:
    """Compute the world-space direction of the primary ray through (x, y).

    Host-side counterpart of ``get_primary_ray``. Pixel (0, 0) is the top
    left corner of the image; fractional coordinates address sub-pixel
    positions.

    Args:
        pose: Camera-to-world transform.
        x: Horizontal pixel coordinate (0 = left).
        y: Vertical pixel coordinate (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A unit direction vector in world space.
    """
    aspect = width / height
    local = Vector(
        1.0,
        (height / 2.0 - y) / height,
        (width / 2.0 - x) / width * aspect,
    ).normalized()
    return pose.mul_rotate(local).normalized()


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Columns of the pose rotation block: world images of local X, Y, Z
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_left = ti.Vector.field(3, dtype=ti.f32, shape=())

# Sun direction (from the sun toward the scene)
_sun_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per frame)
# =============================================================================


def setup_camera(camera: FrameCamera) -> None:
    """Upload the camera pose and sun direction to the device.

    Args:
        camera: The camera for the next frame.
    """
    block = camera.pose.rotation_block()
    _camera_origin[None] = camera.pose.pos().to_tuple()
    _camera_forward[None] = block[:, 0].tolist()
    _camera_up[None] = block[:, 1].tolist()
    _camera_left[None] = block[:, 2].tolist()
    set_sun(camera.sun)


def set_sun(sun: Vector) -> None:
    """Upload only the sun direction (used when tracing single rays).

    Raises:
        PreconditionViolation: If sun is not normalized.
    """
    if not sun.is_normalized():
        raise PreconditionViolation(f"Sun direction must be normalized, got {sun!r}")
    _sun_direction[None] = sun.to_tuple()


# =============================================================================
# Ray Generation (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_primary_ray(x: ti.f32, y: ti.f32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray through image coordinates (x, y).

    Args:
        x: Horizontal pixel coordinate, may be fractional (0 = left).
        y: Vertical pixel coordinate, may be fractional (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A Ray from the camera position with a unit world direction.
    """
    w = ti.cast(width, ti.f32)
    h = ti.cast(height, ti.f32)
    aspect = w / h

    local = tm.normalize(vec3(1.0, (0.5 * h - y) / h, (0.5 * w - x) / w * aspect))
    world = local[0] * _camera_forward[None] + local[1] * _camera_up[None] + local[2] * _camera_left[None]

    return Ray(origin=_camera_origin[None], direction=tm.normalize(world))


@ti.func
def get_sun_direction() -> vec3:
    return _sun_direction[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current device camera state for debugging."""
    fields = {
        "origin": _camera_origin,
        "forward": _camera_forward,
        "up": _camera_up,
        "left": _camera_left,
        "sun": _sun_direction,
    }
    info = {}
    for name, field in fields.items():
        v = field[None]
        info[name] = (float(v[0]), float(v[1]), float(v[2]))
    return info
