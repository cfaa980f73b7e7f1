"""Sphere primitive with ray-sphere intersection.

The ray direction is assumed normalized, which lets the quadratic drop its
leading coefficient. With rel = center - origin and b = dot(direction, rel):

    t^2 - 2*b*t + (|rel|^2 - r^2) = 0
    d = b^2 - (|rel|^2 - r^2)
    t = b -/+ sqrt(d)

Only the nearer root is considered. If it is not positive the ray either
starts inside the sphere or the sphere lies behind it, and both count as a
miss. A tangent ray (d <= 0) is also a miss.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.geometry.sphere import SpherePrimitive, hit_sphere
    >>> sphere = SpherePrimitive(center=ti.math.vec3(0, 0, 0), radius=1.0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SpherePrimitive:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Distance along the (normalized) ray to the hit point.
            Only valid if hit == 1.
        normal: Unit surface normal at the hit point, oriented against the
            incoming ray so that dot(-direction, normal) >= 0.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    normal: vec3


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(hit=0, t=0.0, normal=vec3(0.0, 0.0, 0.0))


@ti.func
def hit_sphere(ray_origin: vec3, ray_direction: vec3, sphere: SpherePrimitive) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (must be normalized).
        sphere: The sphere to test intersection against.

    Returns:
        A HitRecord for the nearer root, or a miss record.
    """
    rel = sphere.center - ray_origin
    b = tm.dot(ray_direction, rel)
    d = b * b - (tm.dot(rel, rel) - sphere.radius * sphere.radius)

    result = make_miss()

    if d > 0.0:
        t = b - ti.sqrt(d)
        if t > 0.0:
            hit_point = ray_origin + t * ray_direction
            normal = tm.normalize(hit_point - sphere.center)
            # Orient against the incoming ray
            if tm.dot(normal, ray_direction) >= 0.0:
                normal = -normal
            result = HitRecord(hit=1, t=t, normal=normal)

    return result
