"""Triangle primitive with ray-triangle intersection.

Ray-triangle intersection uses the plane test followed by a same-side test:
1. Compute the plane normal from the two edge vectors
2. Reject rays parallel to the plane and planes behind the ray origin
3. Check that the plane hit lies on the inner side of all three edges

The same-side test crosses each edge with the vector from the edge's start
corner to the hit point. The result must not point against the plane normal.
A hit point within sqrt(MIN_VERTEX_DISTANCE_SQUARED) of a corner is treated
as a miss, since the cross product there is numerically meaningless.

Triangles reaching this module are validated at scene construction (see
``tracelight.scene.snapshot``), so the edges are never degenerate here.
"""

import taichi as ti
import taichi.math as tm

from .sphere import HitRecord, make_miss

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# |dot(normal, direction)| below this counts as parallel to the plane
PARALLEL_EPSILON = 1e-6

# Plane hits at or closer than this are behind (or at) the origin
MIN_HIT_DISTANCE = 1e-4

# Hit points this close (squared) to a corner are rejected
MIN_VERTEX_DISTANCE_SQUARED = 1e-4


@ti.dataclass
class TrianglePrimitive:
    """A triangle defined by three corner points.

    Attributes:
        a: First corner (vec3).
        b: Second corner (vec3).
        c: Third corner (vec3).
    """

    a: vec3
    b: vec3
    c: vec3


@ti.func
def triangle_normal(tri: TrianglePrimitive) -> vec3:
    """Unit plane normal, following the winding a -> b -> c."""
    edge1 = tm.normalize(tri.b - tri.a)
    edge2 = tm.normalize(tri.c - tri.a)
    return tm.normalize(tm.cross(edge1, edge2))


@ti.func
def _inside_edge(start: vec3, end: vec3, point: vec3, normal: vec3) -> ti.i32:
    """Check that point lies on the inner side of the edge start -> end."""
    inside = 1
    to_point = point - start
    if tm.dot(to_point, to_point) < MIN_VERTEX_DISTANCE_SQUARED:
        inside = 0
    elif tm.dot(normal, tm.cross(end - start, to_point)) < 0.0:
        inside = 0
    return inside


@ti.func
def hit_triangle(ray_origin: vec3, ray_direction: vec3, tri: TrianglePrimitive) -> HitRecord:
    """Test for ray-triangle intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (must be normalized).
        tri: The triangle to test intersection against.

    Returns:
        A HitRecord whose normal opposes the ray, or a miss record.
    """
    normal = triangle_normal(tri)
    denom = tm.dot(normal, ray_direction)

    result = make_miss()

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(normal, tri.a - ray_origin) / denom

        if t > MIN_HIT_DISTANCE:
            hit_point = ray_origin + t * ray_direction

            inside = _inside_edge(tri.a, tri.b, hit_point, normal)
            if inside == 1:
                inside = _inside_edge(tri.b, tri.c, hit_point, normal)
            if inside == 1:
                inside = _inside_edge(tri.c, tri.a, hit_point, normal)

            if inside == 1:
                facing = normal
                if denom >= 0.0:
                    facing = -normal
                result = HitRecord(hit=1, t=t, normal=facing)

    return result
