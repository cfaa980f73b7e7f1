"""Deterministic bounce integrator and frame kernels.

Every primary ray follows a single deterministic path: at each hit the ray
is mirrored about the surface normal, so the renderer has no sampling noise
and two renders of the same snapshot and camera are identical.

Along the path the integrator keeps two colors:

    accumulated  light gathered so far (starts black)
    mask         product of the surface colors and cosine weights seen so
                 far (starts white)

On a hit with cosine weight w = dot(-direction, normal):

    - an emissive surface adds emission * mask * w to accumulated
    - mask is multiplied by diffuse * w
    - the ray continues from the hit point along the mirror direction

When the ray escapes:

    - if it hit anything before, the sun adds mask * max(0, dot(-sun, direction))
    - the white skybox adds mask * skybox
    - the path ends

The loop runs at most bounces + 1 times. A path that is still bouncing when
the loop ends contributes nothing further.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.config import RenderSettings
    >>> from tracelight.core.integrator import trace_ray
    >>> from tracelight.core.vector import Vector
    >>> from tracelight.scene.snapshot import SceneSnapshot
    >>> empty = SceneSnapshot([])
    >>> sun = Vector(0.0, -1.0, 0.0)
    >>> color = trace_ray(empty, Vector.ZERO, Vector.UNIT_X, sun, RenderSettings())
    >>> round(color.r, 3)
    0.4
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from tracelight.camera.frame import get_primary_ray, get_sun_direction, set_sun
from tracelight.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, RenderSettings, SelfIntersection
from tracelight.core.color import Color
from tracelight.core.ray import reflect
from tracelight.core.vector import Vector
from tracelight.scene.intersection import (
    intersect_scene,
    load_scene,
    object_diffuse,
    object_emission,
    object_emits,
)
from tracelight.scene.snapshot import SceneSnapshot

# Type alias for 3D vectors
vec3 = tm.vec3

DIRECTION_NUDGE = int(SelfIntersection.DIRECTION_NUDGE)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Linear color per pixel, indexed [row, column] (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Result of a single traced ray
_probe_color = ti.Vector.field(3, dtype=ti.f32, shape=())


def clear_render_target() -> None:
    """Clear the color buffer to black."""
    _color_buffer.fill(0.0)


def get_image_numpy(width: int, height: int) -> npt.NDArray[np.float32]:
    """Copy the active region of the color buffer to the host.

    Returns:
        Linear float32 array of shape (height, width, 3), row 0 at the top.
        Values are not clamped.
    """
    image = np.empty((height, width, 3), dtype=np.float32)
    _copy_region(image)
    return image


@ti.kernel
def _copy_region(out: ti.types.ndarray(dtype=ti.f32, ndim=3)):
    for y, x in ti.ndrange(out.shape[0], out.shape[1]):
        color = _color_buffer[y, x]
        for c in ti.static(range(3)):
            out[y, x, c] = color[c]


# =============================================================================
# Bounce Loop
# =============================================================================


@ti.func
def trace(
    origin: vec3,
    direction: vec3,
    bounces: ti.i32,
    skybox: ti.f32,
    mode: ti.i32,
    origin_epsilon: ti.f32,
    direction_nudge: ti.f32,
) -> vec3:
    """Compute the color seen along one ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (normalized here).
        bounces: Bounces after the primary hit.
        skybox: Brightness of the white sky.
        mode: SelfIntersection strategy value.
        origin_epsilon: Normal offset for ORIGIN_OFFSET.
        direction_nudge: Normal weight for DIRECTION_NUDGE.

    Returns:
        The linear RGB color (unclamped).
    """
    ray_origin = origin
    ray_direction = tm.normalize(direction)

    accumulated = vec3(0.0, 0.0, 0.0)
    mask = vec3(1.0, 1.0, 1.0)
    hit_anything = 0

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(bounces + 1):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction)

            if rec.hit == 0:
                if hit_anything == 1:
                    sun = get_sun_direction()
                    accumulated += mask * ti.max(0.0, tm.dot(-sun, ray_direction))
                accumulated += mask * skybox
                active = 0
            else:
                hit_anything = 1
                i = rec.object_index
                normal = rec.normal
                w = tm.dot(-ray_direction, normal)

                if object_emits[i] == 1:
                    accumulated += object_emission[i] * mask * w
                mask *= object_diffuse[i] * w

                hit_point = ray_origin + rec.t * ray_direction
                reflection = reflect(ray_direction, normal)
                if mode == DIRECTION_NUDGE:
                    ray_origin = hit_point
                    ray_direction = tm.normalize(reflection + normal * direction_nudge)
                else:
                    ray_origin = hit_point + normal * origin_epsilon
                    ray_direction = tm.normalize(reflection)

    return accumulated


@ti.func
def shade_pixel(
    x: ti.i32,
    y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    supersample: ti.i32,
    bounces: ti.i32,
    skybox: ti.f32,
    mode: ti.i32,
    origin_epsilon: ti.f32,
    direction_nudge: ti.f32,
) -> vec3:
    """Average the colors of an s x s grid of primary rays inside a pixel.

    Sub-pixel offsets are (i + 0.5) / s - 0.5 along each axis, so s = 1
    traces exactly one ray through the pixel coordinate itself.
    """
    total = vec3(0.0, 0.0, 0.0)
    s = ti.cast(supersample, ti.f32)

    for sy in range(supersample):
        for sx in range(supersample):
            offset_x = (ti.cast(sx, ti.f32) + 0.5) / s - 0.5
            offset_y = (ti.cast(sy, ti.f32) + 0.5) / s - 0.5
            ray = get_primary_ray(
                ti.cast(x, ti.f32) + offset_x, ti.cast(y, ti.f32) + offset_y, width, height
            )
            total += trace(
                ray.origin, ray.direction, bounces, skybox, mode, origin_epsilon, direction_nudge
            )

    return total / (s * s)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_parallel(
    width: ti.i32,
    height: ti.i32,
    supersample: ti.i32,
    bounces: ti.i32,
    skybox: ti.f32,
    mode: ti.i32,
    origin_epsilon: ti.f32,
    direction_nudge: ti.f32,
):
    """Render every pixel, one parallel task per pixel."""
    for y, x in ti.ndrange(height, width):
        _color_buffer[y, x] = shade_pixel(
            x, y, width, height, supersample, bounces, skybox, mode, origin_epsilon, direction_nudge
        )


@ti.kernel
def _render_serial(
    width: ti.i32,
    height: ti.i32,
    supersample: ti.i32,
    bounces: ti.i32,
    skybox: ti.f32,
    mode: ti.i32,
    origin_epsilon: ti.f32,
    direction_nudge: ti.f32,
):
    """Render every pixel in row-major order on a single thread."""
    ti.loop_config(serialize=True)
    for y, x in ti.ndrange(height, width):
        _color_buffer[y, x] = shade_pixel(
            x, y, width, height, supersample, bounces, skybox, mode, origin_epsilon, direction_nudge
        )


@ti.kernel
def _trace_single(
    origin: vec3,
    direction: vec3,
    bounces: ti.i32,
    skybox: ti.f32,
    mode: ti.i32,
    origin_epsilon: ti.f32,
    direction_nudge: ti.f32,
):
    # Single-iteration loop keeps the bounce loop out of the parallel scope
    for _ in range(1):
        _probe_color[None] = trace(
            origin, direction, bounces, skybox, mode, origin_epsilon, direction_nudge
        )


# =============================================================================
# Public Rendering API
# =============================================================================


def _settings_args(settings: RenderSettings) -> tuple[int, float, int, float, float]:
    return (
        settings.bounces,
        settings.skybox,
        int(settings.self_intersection),
        settings.origin_epsilon,
        settings.direction_nudge,
    )


def render_image(settings: RenderSettings) -> None:
    """Render the current device scene and camera into the color buffer.

    The scene must have been uploaded with ``load_scene`` and the camera with
    ``setup_camera``. Pixels are independent, so the parallel and serial
    kernels produce identical buffers.

    Args:
        settings: Image size, bounce count and integrator constants.
    """
    kernel = _render_parallel if settings.parallel else _render_serial
    kernel(settings.width, settings.height, settings.supersample, *_settings_args(settings))


def trace_ray(
    snapshot: SceneSnapshot,
    origin: Vector,
    direction: Vector,
    sun: Vector,
    settings: RenderSettings | None = None,
) -> Color:
    """Trace a single ray through a scene.

    Runs the same device code as the frame kernels. Intended for tests and
    debugging; image sizes in ``settings`` are ignored.

    Args:
        snapshot: The scene (uploaded if not resident).
        origin: The ray origin.
        direction: The ray direction (normalized here).
        sun: Unit direction of the sunlight.
        settings: Integrator constants. Defaults to RenderSettings().

    Returns:
        The linear color seen along the ray (unclamped).

    Raises:
        DegenerateVector: If direction is (near) zero.
        PreconditionViolation: If sun is not normalized.
    """
    settings = settings or RenderSettings()
    direction = direction.normalized()

    load_scene(snapshot)
    set_sun(sun)
    _trace_single(vec3(*origin), vec3(*direction), *_settings_args(settings))

    c = _probe_color[None]
    return Color(float(c[0]), float(c[1]), float(c[2]))
