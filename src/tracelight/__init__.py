"""Taichi-based path tracer for triangle and sphere scenes.

This package provides a data-parallel path tracer using Taichi, with support for:
- Host-side vector, matrix, angle and color value types
- Sphere and triangle primitives with a linear nearest-hit scan
- A deterministic bounce integrator (diffuse mask + emissive surfaces,
  directional sun and constant skybox)
- Immutable per-frame scene snapshots rendered in parallel

Subpackages:
    core: Vector algebra, colors, transforms, the integrator and the renderer
    geometry: Sphere and triangle intersection routines
    scene: Object model, snapshot validation and device-side scene storage
    camera: Per-frame camera pose and primary ray generation
    preview: Pixel buffer conversion and PNG export
"""

__version__ = "0.1.0"
