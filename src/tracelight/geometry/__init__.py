"""Geometry module for shape primitives.

This module provides the device-side primitives and their intersection
routines:

Components:
    sphere: Sphere primitive with ray-sphere intersection
    triangle: Triangle primitive with plane + same-side intersection

All intersection routines are implemented as Taichi functions (@ti.func)
and follow the pattern:
    record = hit_shape(ray_origin, ray_direction, shape)

Every returned normal opposes the incoming ray, so shading code can rely on
dot(-direction, normal) >= 0. There is no acceleration structure; scenes are
scanned linearly by ``tracelight.scene.intersection``.
"""

from .sphere import HitRecord, SpherePrimitive, hit_sphere, make_miss
from .triangle import TrianglePrimitive, hit_triangle, triangle_normal

__all__ = [
    "HitRecord",
    "make_miss",
    "SpherePrimitive",
    "hit_sphere",
    "TrianglePrimitive",
    "hit_triangle",
    "triangle_normal",
]
