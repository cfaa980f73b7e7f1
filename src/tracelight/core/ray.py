"""Ray data structure and the device-side mirror reflection.

Kernels use ``taichi.math`` directly for dot, cross and normalize. Only the
reflection formula lives here, because it has to agree with the host-side
``Vector.reflect`` for normals that are not unit length.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracelight.core.ray import Ray, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(1.0, 0.0, 0.0))
    ...     return ray.origin + 5.0 * ray.direction
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A primary ray handed from the camera to the integrator.

    Attributes:
        origin: Camera position (vec3).
        direction: Unit direction (vec3).
    """

    origin: vec3
    direction: vec3


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror ``incident`` about ``normal``.

    Divides by the normal's squared length, so any non-zero normal works.
    Kernels only see validated geometry, so the normal is never zero here.
    """
    return incident - normal * (2.0 * tm.dot(incident, normal) / tm.dot(normal, normal))
