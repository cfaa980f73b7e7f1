"""Preview module for rendered output.

Components:
    export: RGBA8 conversion and PNG export via Pillow

Window creation and presentation of the framebuffer are left to the
application; this module only turns frames into pixel buffers and files.

Example:
    >>> from tracelight.preview import save_png
    >>> save_png(renderer.render_frame(scene, camera), "output.png")
"""

from tracelight.preview.export import compute_rmse, load_png, save_png, to_rgba8

__all__ = [
    "to_rgba8",
    "save_png",
    "load_png",
    "compute_rmse",
]
