"""Scene module: object model, snapshots and ray-scene queries.

Components:
    objects: Sphere/Triangle shapes, materials and material resolution
    snapshot: Validated immutable scene value uploaded once per frame
    intersection: Device-side object storage and nearest-hit scan
    cornell_box: Triangle-mesh Cornell box demo scene

Scene data is organized for GPU access:
    - Structure-of-Arrays layout for geometric data
    - Materials resolved per object at snapshot construction
    - Linear scan, no acceleration structure
"""

from .objects import (
    DEFAULT_MATERIAL,
    Material,
    MaterialRef,
    SceneObject,
    Shape,
    ShapeKind,
    Sphere,
    SurfaceMaterial,
    Triangle,
    validate_shape,
)
from .snapshot import SceneSnapshot

# Note: intersection and cornell_box are NOT imported here. They allocate
# (or import modules that allocate) Taichi fields, which must happen after
# ti.init().

__all__ = [
    "DEFAULT_MATERIAL",
    "Material",
    "MaterialRef",
    "SceneObject",
    "SceneSnapshot",
    "Shape",
    "ShapeKind",
    "Sphere",
    "SurfaceMaterial",
    "Triangle",
    "validate_shape",
]
