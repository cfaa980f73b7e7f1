"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    vector: Host-side Vector/Point type and unit-ball sampling
    angle: Radian wrapper used by rotation construction
    matrix: 4x4 affine transforms for camera poses
    color: RGB colors with 8-bit pixel conversion
    ray: Ray data structure and device-side reflection
    integrator: Bounce loop computing one color per primary ray
    renderer: Per-frame parallel pixel driver

The host-side value types (vector, angle, matrix, color) are pure Python and
NumPy. ray, integrator and renderer run inside Taichi kernels.
"""

from .angle import Angle
from .color import Color
from .matrix import Matrix
from .ray import Ray, reflect, vec3
from .vector import (
    Point,
    Vector,
    random_in_unit_ball_direct,
    random_in_unit_ball_rejection,
    random_unit_vector,
)

# Note: integrator and renderer are NOT imported here. They allocate Taichi
# fields at import time, which must happen after ti.init().
#
# For rendering, use:
#   from tracelight.core.renderer import Renderer

__all__ = [
    "Angle",
    "Color",
    "Matrix",
    "Point",
    "Vector",
    "random_in_unit_ball_direct",
    "random_in_unit_ball_rejection",
    "random_unit_vector",
    "Ray",
    "vec3",
    "reflect",
]
