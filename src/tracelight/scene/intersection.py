"""Scene-level ray intersection over device-resident objects.

A SceneSnapshot is uploaded into preallocated Taichi fields (Structure of
Arrays, one slot per object) before a frame is rendered. ``intersect_scene``
then scans all objects linearly and keeps the nearest hit.

Tie-breaking: the scan keeps a new hit only when it is strictly nearer than
the current best, so on an exact distance tie the object that comes first in
the snapshot wins.

Uploading is the phase boundary between scene updates and rendering: fields
are written from Python before a kernel launch and only read by kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.core.vector import Vector
    >>> from tracelight.scene.intersection import raycast
    >>> from tracelight.scene.objects import SceneObject, Sphere
    >>> from tracelight.scene.snapshot import SceneSnapshot
    >>> scene = SceneSnapshot([SceneObject(Sphere(Vector(0.0, 0.0, 0.0), 1.0))])
    >>> hit = raycast(scene, Vector(-2.0, 0.0, 0.0), Vector(1.0, 0.0, 0.0))
    >>> round(hit.distance, 4)
    1.0
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from tracelight.config import MAX_OBJECTS
from tracelight.core.vector import Vector
from tracelight.geometry.sphere import HitRecord, SpherePrimitive, hit_sphere, make_miss
from tracelight.geometry.triangle import TrianglePrimitive, hit_triangle
from tracelight.scene.objects import ShapeKind
from tracelight.scene.snapshot import SceneSnapshot

logger = logging.getLogger(__name__)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

SPHERE_KIND = int(ShapeKind.SPHERE)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: 1 if the ray intersected any object, 0 on a miss.
        t: Distance along the ray to the nearest hit.
        normal: Unit normal at the hit, facing against the ray.
        object_index: Index of the hit object in the snapshot. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3
    object_index: ti.i32


@dataclass(frozen=True)
class RayHit:
    """Host-side result of ``raycast``.

    Attributes:
        object_index: Index of the hit object in the snapshot.
        distance: Distance along the normalized ray (always > 0).
        normal: Unit normal facing against the ray.
    """

    object_index: int
    distance: float
    normal: Vector


# Object storage: Structure of Arrays layout. Spheres keep their center in
# object_a; triangles keep their corners in object_a, object_b, object_c.
object_kind = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_c = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_radius = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)

# Resolved material per object
object_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_emission = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
object_emits = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)

num_objects = ti.field(dtype=ti.i32, shape=())

# Snapshot currently resident in the fields (identity check avoids re-uploads)
_loaded_snapshot: SceneSnapshot | None = None


def load_scene(snapshot: SceneSnapshot) -> None:
    """Upload a snapshot into the device fields.

    Uploading the snapshot that is already resident is a no-op. Snapshots are
    immutable, so identity implies identical contents.

    Args:
        snapshot: The validated scene to render next.
    """
    global _loaded_snapshot
    if snapshot is _loaded_snapshot:
        return

    packed = snapshot.pack()
    object_kind.from_numpy(packed["kind"])
    object_a.from_numpy(packed["a"])
    object_b.from_numpy(packed["b"])
    object_c.from_numpy(packed["c"])
    object_radius.from_numpy(packed["radius"])
    object_diffuse.from_numpy(packed["diffuse"])
    object_emission.from_numpy(packed["emission"])
    object_emits.from_numpy(packed["emits"])
    num_objects[None] = len(snapshot)

    _loaded_snapshot = snapshot
    logger.info(
        "Uploaded scene: %d objects, %d materials, %d emitters",
        len(snapshot),
        len(snapshot.materials),
        snapshot.emitter_count(),
    )


def clear_scene() -> None:
    """Remove all objects from the device scene."""
    global _loaded_snapshot
    num_objects[None] = 0
    _loaded_snapshot = None


def get_object_count() -> int:
    """Get the number of objects resident on the device."""
    return int(num_objects[None])


@ti.func
def _make_scene_miss() -> SceneHitRecord:
    return SceneHitRecord(hit=0, t=0.0, normal=vec3(0.0, 0.0, 0.0), object_index=-1)


@ti.func
def intersect_object(ray_origin: vec3, ray_direction: vec3, i: ti.i32) -> HitRecord:
    """Intersect the ray with object i, dispatching on its shape tag."""
    rec = make_miss()
    if object_kind[i] == SPHERE_KIND:
        sphere = SpherePrimitive(center=object_a[i], radius=object_radius[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere)
    else:
        tri = TrianglePrimitive(a=object_a[i], b=object_b[i], c=object_c[i])
        rec = hit_triangle(ray_origin, ray_direction, tri)
    return rec


@ti.func
def intersect_scene(ray_origin: vec3, ray_direction: vec3) -> SceneHitRecord:
    """Find the nearest object hit by a ray.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (must be normalized).

    Returns:
        A SceneHitRecord for the nearest hit, or a miss record.
    """
    closest = _make_scene_miss()

    for i in range(num_objects[None]):
        rec = intersect_object(ray_origin, ray_direction, i)
        if rec.hit == 1:
            if closest.hit == 0 or rec.t < closest.t:
                closest = SceneHitRecord(hit=1, t=rec.t, normal=rec.normal, object_index=i)

    return closest


# =============================================================================
# Host Entry Point
# =============================================================================

_probe_hit = ti.field(dtype=ti.i32, shape=())
_probe_t = ti.field(dtype=ti.f32, shape=())
_probe_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_probe_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _raycast_kernel(ray_origin: vec3, ray_direction: vec3):
    # Single-iteration loop keeps the object scan out of the parallel scope
    for _ in range(1):
        rec = intersect_scene(ray_origin, ray_direction)
        _probe_hit[None] = rec.hit
        _probe_t[None] = rec.t
        _probe_normal[None] = rec.normal
        _probe_index[None] = rec.object_index


def raycast(snapshot: SceneSnapshot, origin: Vector, direction: Vector) -> RayHit | None:
    """Find the nearest object hit by a single ray.

    Runs the same device code the renderer uses. Intended for tests, picking
    and debugging; rendering traces all pixels in one kernel launch instead.

    Args:
        snapshot: The scene to test against (uploaded if not resident).
        origin: The ray origin.
        direction: The ray direction (normalized here).

    Returns:
        The nearest RayHit, or None if the ray escapes.

    Raises:
        DegenerateVector: If direction is (near) zero.
    """
    direction = direction.normalized()
    load_scene(snapshot)
    _raycast_kernel(vec3(*origin), vec3(*direction))

    if _probe_hit[None] == 0:
        return None
    n = _probe_normal[None]
    return RayHit(
        object_index=int(_probe_index[None]),
        distance=float(_probe_t[None]),
        normal=Vector(float(n[0]), float(n[1]), float(n[2])),
    )
